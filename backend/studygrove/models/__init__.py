"""ORM models. Importing this package registers every table on Base.metadata."""

from studygrove.models.note import Note
from studygrove.models.pomodoro_session import PomodoroSession
from studygrove.models.quiz import Quiz
from studygrove.models.user_stats import UserStats

__all__ = ["Note", "PomodoroSession", "Quiz", "UserStats"]
