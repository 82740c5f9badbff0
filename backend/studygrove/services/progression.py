"""
StudyGrove Backend — Stats/Progression Engine
==============================================

What:  Pure function turning (current progress, one focus session) into the
       next progress state: experience, level, study minutes, tree stage.
Why:   The only domain logic with state-transition semantics lives here, away
       from HTTP and SQL, so it can be tested exhaustively.
Who:   Called by PomodoroService.log_session() once per logged session.

Algorithm:
    1. xp_gain = 10 if completed else 1
    2. experience += xp_gain
    3. while experience >= 100: level += 1; experience -= 100
    4. total_study_minutes += duration
    5. tree_stage = stage_for_level(level)      (recomputed, not incremental)
    6. last_study_date = now
    7. current_streak passes through unchanged

Tree stage policy:
    The stage is a pure function of level. Levels only grow through this
    engine, so in practice the stage never regresses; if a level were
    corrected downward by hand, the next logged session would recompute the
    stage from the corrected level.

Streaks:
    current_streak is stored but not maintained here. No day-boundary
    increment/reset rule is defined for it.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

XP_COMPLETED_SESSION = 10
XP_PARTIAL_SESSION = 1
XP_PER_LEVEL = 100

JUVENILE_MIN_LEVEL = 5
ADULT_MIN_LEVEL = 10


class TreeStage(str, Enum):
    SAPLING = "sapling"
    JUVENILE = "juvenile"
    ADULT = "adult"


def stage_for_level(level: int) -> TreeStage:
    """Map a level to its tree stage: <5 sapling, 5–9 juvenile, ≥10 adult."""
    if level >= ADULT_MIN_LEVEL:
        return TreeStage.ADULT
    if level >= JUVENILE_MIN_LEVEL:
        return TreeStage.JUVENILE
    return TreeStage.SAPLING


def xp_for_session(completed: bool) -> int:
    return XP_COMPLETED_SESSION if completed else XP_PARTIAL_SESSION


@dataclass(frozen=True)
class StudyProgress:
    """Snapshot of the progression fields of a UserStats row."""

    level: int = 1
    experience: int = 0
    total_study_minutes: int = 0
    current_streak: int = 0
    last_study_date: Optional[datetime] = None
    tree_stage: TreeStage = TreeStage.SAPLING

    @classmethod
    def from_record(cls, record: Any) -> "StudyProgress":
        """
        Build a snapshot from a UserStats-like object.

        NULL (or zero level) columns fall back to the defaults of a fresh row.
        """
        return cls(
            level=record.level or 1,
            experience=record.experience or 0,
            total_study_minutes=record.total_study_minutes or 0,
            current_streak=record.current_streak or 0,
            last_study_date=record.last_study_date,
            tree_stage=TreeStage(record.tree_stage or TreeStage.SAPLING.value),
        )

    def as_changes(self) -> Dict[str, Any]:
        """Column values for StorageGateway.update_user_stats()."""
        return {
            "level": self.level,
            "experience": self.experience,
            "total_study_minutes": self.total_study_minutes,
            "current_streak": self.current_streak,
            "last_study_date": self.last_study_date,
            "tree_stage": self.tree_stage.value,
        }


def apply_session(
    current: StudyProgress,
    duration: int,
    completed: bool,
    now: datetime,
) -> StudyProgress:
    """
    Apply one focus session to a progress snapshot.

    Args:
        current:   Progress before the session
        duration:  Session length in minutes (validated > 0 upstream)
        completed: True if the timer ran to the end
        now:       Timestamp recorded as last_study_date

    Returns:
        A new StudyProgress; `current` is not modified.
    """
    experience = current.experience + xp_for_session(completed)
    level = current.level
    # A single session gains at most 10 XP, but stored experience may already
    # exceed the nominal range, so carry as many levels as needed.
    while experience >= XP_PER_LEVEL:
        level += 1
        experience -= XP_PER_LEVEL

    return replace(
        current,
        level=level,
        experience=experience,
        total_study_minutes=current.total_study_minutes + duration,
        last_study_date=now,
        tree_stage=stage_for_level(level),
    )
