"""
StudyGrove Backend — Storage Gateway
=====================================

What:  Thin repository over the relational store: one method per read or
       write, no business rules.
How:   Wraps a request-scoped AsyncSession. Every mutating method commits its
       own unit of work, so each call behaves like a single statement.
Who:   Route handlers (via dependencies.get_storage) and PomodoroService.

Consistency Note:
    There is no transaction spanning two gateway calls. Logging a session
    and updating the stats row are two commits: if the second fails, the
    session stays recorded without its XP award. Concurrent logs for the
    same user can overwrite each other's stats (last write wins).

Error Handling:
    SQLAlchemyError → rollback → DatabaseError (500). The operation name and
    original error type go to the log, never to the client.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studygrove.exceptions import DatabaseError
from studygrove.models import Note, PomodoroSession, Quiz, UserStats
from studygrove.models.note import utcnow

logger = logging.getLogger(__name__)


class StorageGateway:
    """
    Repository for notes, quizzes, pomodoro sessions and user stats.

    Ordering:
        All list methods return most recent first; ties (same timestamp) are
        broken by id so the order is stable.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str, **context: Any) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(
                "Storage operation %s failed: %s | Context: %s",
                operation,
                str(e),
                context,
                exc_info=True,
            )
            await self.db.rollback()
            raise DatabaseError(
                context={"operation": operation, "error_type": type(e).__name__, **context},
            ) from e

    async def _save(self, record: Any) -> None:
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

    # ── Notes ─────────────────────────────────────────────────────────────

    async def get_notes(self, user_id: str) -> List[Note]:
        async with self._guard("get_notes", user_id=user_id):
            result = await self.db.execute(
                select(Note)
                .where(Note.user_id == user_id)
                .order_by(desc(Note.created_at), desc(Note.id))
            )
            return list(result.scalars().all())

    async def get_note(self, note_id: int) -> Optional[Note]:
        async with self._guard("get_note", note_id=note_id):
            return await self.db.get(Note, note_id)

    async def create_note(self, user_id: str, fields: Dict[str, Any]) -> Note:
        async with self._guard("create_note", user_id=user_id):
            note = Note(user_id=user_id, **fields)
            await self._save(note)
            return note

    async def update_note(self, note_id: int, changes: Dict[str, Any]) -> Optional[Note]:
        """
        Apply a partial update and refresh updated_at.

        Returns None if the note vanished between the ownership check and
        this call.
        """
        async with self._guard("update_note", note_id=note_id):
            note = await self.db.get(Note, note_id)
            if note is None:
                return None
            for attr, value in changes.items():
                setattr(note, attr, value)
            note.updated_at = utcnow()
            await self._save(note)
            return note

    async def delete_note(self, note_id: int) -> None:
        async with self._guard("delete_note", note_id=note_id):
            await self.db.execute(delete(Note).where(Note.id == note_id))
            await self.db.commit()

    # ── Quizzes ───────────────────────────────────────────────────────────

    async def get_quizzes(self, user_id: str) -> List[Quiz]:
        async with self._guard("get_quizzes", user_id=user_id):
            result = await self.db.execute(
                select(Quiz)
                .where(Quiz.user_id == user_id)
                .order_by(desc(Quiz.created_at), desc(Quiz.id))
            )
            return list(result.scalars().all())

    async def get_quiz(self, quiz_id: int) -> Optional[Quiz]:
        async with self._guard("get_quiz", quiz_id=quiz_id):
            return await self.db.get(Quiz, quiz_id)

    async def create_quiz(self, user_id: str, fields: Dict[str, Any]) -> Quiz:
        async with self._guard("create_quiz", user_id=user_id):
            quiz = Quiz(user_id=user_id, **fields)
            await self._save(quiz)
            return quiz

    async def delete_quiz(self, quiz_id: int) -> None:
        async with self._guard("delete_quiz", quiz_id=quiz_id):
            await self.db.execute(delete(Quiz).where(Quiz.id == quiz_id))
            await self.db.commit()

    # ── Pomodoro ──────────────────────────────────────────────────────────

    async def log_pomodoro_session(
        self, user_id: str, duration: int, completed: bool
    ) -> PomodoroSession:
        async with self._guard("log_pomodoro_session", user_id=user_id):
            session = PomodoroSession(
                user_id=user_id,
                duration=duration,
                completed=completed,
            )
            await self._save(session)
            return session

    async def get_pomodoro_history(self, user_id: str) -> List[PomodoroSession]:
        async with self._guard("get_pomodoro_history", user_id=user_id):
            result = await self.db.execute(
                select(PomodoroSession)
                .where(PomodoroSession.user_id == user_id)
                .order_by(desc(PomodoroSession.completed_at), desc(PomodoroSession.id))
            )
            return list(result.scalars().all())

    # ── User Stats ────────────────────────────────────────────────────────

    async def get_user_stats(self, user_id: str) -> Optional[UserStats]:
        async with self._guard("get_user_stats", user_id=user_id):
            result = await self.db.execute(
                select(UserStats).where(UserStats.user_id == user_id)
            )
            return result.scalar_one_or_none()

    async def ensure_user_stats(self, user_id: str) -> UserStats:
        """
        Return the user's stats row, creating it with defaults if absent.

        Race handling:
            Two first requests for the same user may both see "no row" and
            both insert. The loser hits the unique constraint on user_id,
            rolls back and reads the winner's row.
        """
        stats = await self.get_user_stats(user_id)
        if stats is not None:
            return stats

        try:
            stats = UserStats(user_id=user_id)
            await self._save(stats)
            logger.info("Created stats row for user %s", user_id)
            return stats
        except IntegrityError:
            await self.db.rollback()
            logger.info("Stats row for user %s created concurrently; re-reading", user_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Storage operation ensure_user_stats failed: %s", str(e), exc_info=True)
            raise DatabaseError(
                context={"operation": "ensure_user_stats", "error_type": type(e).__name__},
            ) from e

        stats = await self.get_user_stats(user_id)
        if stats is None:
            raise DatabaseError(context={"operation": "ensure_user_stats", "user_id": user_id})
        return stats

    async def update_user_stats(self, user_id: str, changes: Dict[str, Any]) -> UserStats:
        stats = await self.ensure_user_stats(user_id)
        async with self._guard("update_user_stats", user_id=user_id):
            for attr, value in changes.items():
                setattr(stats, attr, value)
            await self._save(stats)
            return stats
