"""
StudyGrove Backend — Pomodoro Service
======================================

What:  Orchestrates POST /api/pomodoro/log: record the session, then award
       experience through the progression engine.

Orchestration Flow:
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐    ┌────────────┐
    │ Insert       │───▶│ Ensure stats │───▶│ apply_session│───▶│ Update     │
    │ session row  │    │ row          │    │ (pure)       │    │ stats row  │
    └──────────────┘    └──────────────┘    └──────────────┘    └────────────┘

    Each box that touches storage is its own commit. A failure after the
    session insert leaves the session recorded with no XP award; nothing is
    compensated or retried.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Tuple

from studygrove.models import PomodoroSession, UserStats
from studygrove.services.progression import StudyProgress, apply_session
from studygrove.services.storage_gateway import StorageGateway

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PomodoroService:
    """
    Stateless orchestrator; the storage gateway is passed per call.

    Args:
        clock: Source of the last_study_date timestamp (injectable for tests)
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock

    async def log_session(
        self,
        storage: StorageGateway,
        user_id: str,
        duration: int,
        completed: bool,
    ) -> Tuple[PomodoroSession, UserStats]:
        """
        Persist one focus session and update the user's progression.

        Returns:
            (session, stats) where stats is the fully updated row.

        Raises:
            DatabaseError: Either write failed (the other is not undone)
        """
        session = await storage.log_pomodoro_session(
            user_id=user_id,
            duration=duration,
            completed=completed,
        )

        stats = await storage.ensure_user_stats(user_id)
        before = StudyProgress.from_record(stats)
        after = apply_session(before, duration=duration, completed=completed, now=self.clock())

        updated = await storage.update_user_stats(user_id, after.as_changes())

        if after.level > before.level:
            logger.info(
                "User %s reached level %d (tree stage: %s)",
                user_id,
                after.level,
                after.tree_stage.value,
            )
        logger.debug(
            "Logged session %s for user %s: %d min, completed=%s, xp %d → %d",
            session.id,
            user_id,
            duration,
            completed,
            before.experience,
            after.experience,
        )
        return session, updated


pomodoro_service = PomodoroService()
