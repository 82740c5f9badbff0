"""
StudyGrove Backend — Test Configuration (conftest.py)
======================================================

What:  Shared fixtures: an in-memory SQLite database, stub collaborators and
       an HTTPX client wired to a fresh app per test.

Fixture Hierarchy (all function-scoped):
    db_engine ── session_factory ─┬── db_session      (gateway/service tests)
                                  └── test_client     (API tests)
    grader ───────────────────────────┘
    mock_db_session                   (failure-path tests, no database)

Auth in API tests:
    StubVerifier accepts "token-alice" and "token-bob"; use the
    alice_headers / bob_headers fixtures. Anything else is a 401.
"""

import os

# Must run before any studygrove import: config.settings is built on import.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["AUTH_PROVIDER"] = "shared_secret"
os.environ["AUTH_SHARED_SECRET"] = "test-shared-secret"
os.environ["RETRY_MAX_ATTEMPTS"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List, Optional, Tuple  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from studygrove import models  # noqa: E402,F401
from studygrove.database import Base, get_db_session  # noqa: E402
from studygrove.exceptions import UnauthorizedError  # noqa: E402
from studygrove.main import create_app  # noqa: E402
from studygrove.services.identity import AuthenticatedUser, IdentityVerifier  # noqa: E402
from studygrove.services.llm_base import AnswerGrader, GradeResult  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Stub Collaborators
# ══════════════════════════════════════════════════════════════════════════

class StubVerifier(IdentityVerifier):
    TOKENS = {
        "token-alice": AuthenticatedUser(uid="alice", email="alice@example.com"),
        "token-bob": AuthenticatedUser(uid="bob", email="bob@example.com"),
    }

    def verify(self, token: str) -> AuthenticatedUser:
        user = self.TOKENS.get(token)
        if user is None:
            raise UnauthorizedError(reason="unknown test token")
        return user


class StubGrader(AnswerGrader):
    """Returns `result` or raises `error`; remembers every call."""

    def __init__(self):
        self.result = GradeResult(correct=True, feedback="Well done.")
        self.error: Optional[Exception] = None
        self.healthy = True
        self.calls: List[Tuple[str, str, str]] = []

    async def grade(self, question: str, user_answer: str, correct_answer: str) -> GradeResult:
        self.calls.append((question, user_answer, correct_answer))
        if self.error is not None:
            raise self.error
        return self.result

    async def health_check(self) -> bool:
        return self.healthy


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory schema per test. StaticPool keeps one shared connection."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    AsyncSession stand-in for failure paths.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def grader():
    return StubGrader()


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer token-bob"}


@pytest_asyncio.fixture
async def test_client(session_factory, grader):
    """
    HTTPX AsyncClient talking to a fresh app over ASGITransport.

    Each request gets its own session from the per-test engine, so data
    written by one request is visible to the next only once committed.
    """
    app = create_app(identity_verifier=StubVerifier(), answer_grader=grader)

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
