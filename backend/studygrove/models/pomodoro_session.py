"""
StudyGrove Backend — PomodoroSession SQLAlchemy Model
======================================================

What:  One row per focus interval, written when the timer elapses
       (completed=True) or is abandoned (completed=False).
       Append-only: nothing updates or deletes these rows.
"""

from datetime import datetime

from sqlalchemy import TIMESTAMP, Boolean, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from studygrove.database import Base
from studygrove.models.note import utcnow


class PomodoroSession(Base):
    __tablename__ = "pomodoro_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Session length in minutes",
    )
    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    completed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_pomodoro_sessions_user_completed_at", "user_id", "completed_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<PomodoroSession(id={self.id}, user_id='{self.user_id}', "
            f"duration={self.duration}, completed={self.completed})>"
        )
