"""
StudyGrove Backend — UserStats SQLAlchemy Model
================================================

What:  Cumulative progression for one user: level, experience, study
       minutes, streak and tree stage.
Who:   Created lazily by StorageGateway.ensure_user_stats(); mutated only
       through the progression engine (services/progression.py).

Invariant:
    Exactly one row per user, enforced by the unique constraint on user_id.
    ensure_user_stats() relies on that constraint when two requests race to
    create the row.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import TIMESTAMP, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from studygrove.database import Base


class UserStats(Base):
    __tablename__ = "user_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    level: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default=text("1"),
    )
    # Nominal range 0–99: the engine carries every 100 XP into a level
    experience: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"),
    )
    total_study_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"),
    )
    current_streak: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"),
    )
    last_study_date: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True,
    )
    # sapling | juvenile | adult (see services.progression.TreeStage)
    tree_stage: Mapped[str] = mapped_column(
        String(20), nullable=False, default="sapling", server_default=text("'sapling'"),
    )

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_user_stats_user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserStats(user_id='{self.user_id}', level={self.level}, "
            f"experience={self.experience}, tree_stage='{self.tree_stage}')>"
        )
