"""
StudyGrove Backend — Abstract Answer Grader Interface
======================================================

What:  Abstract base class for the outbound call that grades a free-text
       flashcard answer.
Why:   Route handlers depend on this interface, not on Gemini. The app
       factory builds one concrete grader at startup and tests swap in a
       stub through create_app(answer_grader=...).
How:   Concrete implementations inherit from AnswerGrader and implement
       grade() and health_check().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class GradeResult:
    """The grader's verdict for one answer."""

    correct: bool
    feedback: str


class AnswerGrader(ABC):
    """
    Contract:
        - grade() returns a GradeResult or raises GradingServiceError
        - Implementations own their timeout, retry and error translation
        - No local grading logic: the verdict comes from the external model
    """

    @abstractmethod
    async def grade(self, question: str, user_answer: str, correct_answer: str) -> GradeResult:
        """
        Compare a user's answer with the expected one.

        Args:
            question:       The flashcard prompt
            user_answer:    What the user typed
            correct_answer: The answer stored on the flashcard

        Returns:
            GradeResult with the verdict and a short explanation.

        Raises:
            GradingServiceError: Timeout, transport failure, open circuit or
                an unparseable response.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe for GET /health. Never raises."""
        ...
