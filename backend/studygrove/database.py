"""
StudyGrove Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, declarative Base and the
       FastAPI session dependency.
How:   One engine per process with a connection pool; one AsyncSession per
       request, rolled back if the handler raises.
Who:   The storage gateway receives the session through Depends().

Connection Pooling Strategy:
    PostgreSQL (asyncpg): pool_size + max_overflow connections, pre-ping,
    hourly recycle. SQLite (aiosqlite) keeps SQLAlchemy's default pool:
    QueuePool arguments are rejected for in-memory databases.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from studygrove.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: gateway methods commit and then hand the same
# record to the mapper, so attributes must stay loaded after commit.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object with Alembic (see alembic/env.py).
    """
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything still pending
        4. On error: rolls back the open transaction and re-raises

    Storage gateway writes commit themselves, so the final commit is usually
    a no-op. Work committed before an error is NOT undone here.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables() -> None:
    """
    Create every table known to Base.metadata.

    Only used when AUTO_CREATE_TABLES is set; real deployments run Alembic.
    """
    # Importing the models package registers the tables on Base.metadata
    from studygrove import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close every pooled connection. Called from the lifespan on shutdown."""
    await engine.dispose()
