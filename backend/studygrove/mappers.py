"""
StudyGrove Backend — Record → Response Mappers
===============================================

What:  Explicit conversion from ORM records to wire schemas.
Why:   Keeps the public JSON contract independent of the table layout. A new
       column stays private until a mapper exposes it.
"""

from studygrove.models import Note, PomodoroSession, Quiz, UserStats
from studygrove.schemas.note import NoteResponse
from studygrove.schemas.pomodoro import PomodoroSessionResponse, UserStatsResponse
from studygrove.schemas.quiz import QuestionAnswer, QuizResponse


def note_to_response(note: Note) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        user_id=note.user_id,
        title=note.title,
        content=note.content,
        is_favorite=bool(note.is_favorite),
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def quiz_to_response(quiz: Quiz) -> QuizResponse:
    return QuizResponse(
        id=quiz.id,
        user_id=quiz.user_id,
        title=quiz.title,
        description=quiz.description,
        questions=[
            QuestionAnswer(question=item["question"], answer=item["answer"])
            for item in quiz.questions or []
        ],
        high_score=quiz.high_score or 0,
        created_at=quiz.created_at,
    )


def session_to_response(session: PomodoroSession) -> PomodoroSessionResponse:
    return PomodoroSessionResponse(
        id=session.id,
        user_id=session.user_id,
        duration=session.duration,
        completed=bool(session.completed),
        completed_at=session.completed_at,
    )


def stats_to_response(stats: UserStats) -> UserStatsResponse:
    return UserStatsResponse(
        id=stats.id,
        user_id=stats.user_id,
        level=stats.level,
        experience=stats.experience,
        total_study_minutes=stats.total_study_minutes,
        current_streak=stats.current_streak,
        last_study_date=stats.last_study_date,
        tree_stage=stats.tree_stage,
    )
