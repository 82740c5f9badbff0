"""
StudyGrove Backend — API Routes Package
========================================

Route Inventory:
    - notes.py:     GET/POST      /api/notes
                    GET/PUT/DELETE /api/notes/{id}
    - quizzes.py:   POST          /api/quizzes/check
                    GET/POST      /api/quizzes
                    GET/DELETE    /api/quizzes/{id}
    - pomodoro.py:  POST          /api/pomodoro/log
                    GET           /api/pomodoro/history
                    GET           /api/stats
    - health.py:    GET           /health            (no auth)

Routes stay thin: resolve the caller, validate the body, call the gateway or
a service, map records to response schemas. Errors are raised as
StudyGroveError subclasses and rendered by the handlers in main.py.
"""
