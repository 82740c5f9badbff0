"""
StudyGrove Backend — Application Package Initializer
=====================================================

What: The `studygrove` package: Pomodoro logging, notes, flashcard quizzes
      and the experience/tree progression behind them.
Who:  Imported by uvicorn (studygrove.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP, auth, ownership checks
    ├─────────────────────────────────────┤
    │   Services (Progression, Grading,   │  ← Domain rules, outbound calls
    │            Identity)                │
    ├─────────────────────────────────────┤
    │   Storage Gateway + Mappers         │  ← ORM records ↔ wire schemas
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never hand ORM records to the client: every response passes
    through studygrove.mappers into a Pydantic schema.
"""

__version__ = "1.0.0"
