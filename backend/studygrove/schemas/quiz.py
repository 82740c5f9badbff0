"""
StudyGrove Backend — Quiz Request/Response Schemas
===================================================

What:  The public contract for /api/quizzes and /api/quizzes/check.

Validation gap:
    Question and answer strings may be empty. The client filters out blank
    pairs before submitting; the server only checks the shape.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from studygrove.schemas.common import CamelModel


class QuestionAnswer(CamelModel):
    """One flashcard: prompt and expected answer."""
    question: str
    answer: str


class QuizCreate(CamelModel):
    """
    Body of POST /api/quizzes.

    highScore is not accepted on create; new quizzes start at 0.
    """
    title: str
    description: Optional[str] = None
    questions: List[QuestionAnswer] = Field(description="Ordered flashcards")


class QuizResponse(CamelModel):
    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    questions: List[QuestionAnswer]
    high_score: int
    created_at: datetime


class CheckAnswerRequest(CamelModel):
    """Body of POST /api/quizzes/check."""
    question: str
    user_answer: str
    correct_answer: str


class CheckAnswerResponse(CamelModel):
    """The grader's verdict, returned verbatim to the client."""
    correct: bool
    feedback: str
