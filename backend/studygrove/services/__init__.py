"""
StudyGrove Backend — Services Layer
====================================

Service Inventory:
    - storage_gateway.StorageGateway:  per-request repository (one commit per write)
    - progression:                     pure XP / level / tree-stage engine
    - pomodoro_service.PomodoroService: session insert + XP award orchestration
    - llm_base.AnswerGrader (abstract): interface for free-text answer grading
    - gemini_service.GeminiAnswerGrader: Gemini implementation with retry and
                                         circuit breaker
    - identity:                        bearer token verification (Firebase or
                                       shared secret)

Routes depend on the abstract AnswerGrader and IdentityVerifier; the concrete
instances are chosen in main.create_app().
"""
