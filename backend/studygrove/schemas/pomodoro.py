"""
StudyGrove Backend — Pomodoro and Stats Schemas
================================================

What:  The public contract for /api/pomodoro/* and /api/stats.

Strict types on PomodoroLogRequest:
    duration must be a JSON integer above zero and completed a JSON boolean.
    Lax coercion ("25", 1, "true") would let malformed clients award XP.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from studygrove.schemas.common import CamelModel


class PomodoroLogRequest(CamelModel):
    """Body of POST /api/pomodoro/log."""
    duration: int = Field(strict=True, gt=0, description="Session length in minutes")
    completed: bool = Field(strict=True, description="False when the timer was abandoned")


class PomodoroSessionResponse(CamelModel):
    id: int
    user_id: str
    duration: int
    completed: bool
    completed_at: datetime


class UserStatsResponse(CamelModel):
    id: int
    user_id: str
    level: int
    experience: int
    total_study_minutes: int
    current_streak: int
    last_study_date: Optional[datetime] = None
    tree_stage: str


class PomodoroLogResponse(CamelModel):
    """Returned by POST /api/pomodoro/log: the new session and updated stats."""
    session: PomodoroSessionResponse
    stats: UserStatsResponse
