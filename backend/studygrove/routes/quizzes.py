"""
StudyGrove Backend — Quiz Route Handlers
=========================================

What:  Flashcard quiz CRUD under /api/quizzes, plus POST /api/quizzes/check
       which asks the answer grader to judge one free-text answer.
Who:   The quiz builder and quiz player screens.

Grading flow:
    client ──▶ /check ──▶ AnswerGrader.grade() ──▶ Gemini
                 │                 │
                 │◀── {correct, feedback}        (200)
                 │◀── GradingServiceError        (500 "Failed to check answer")

    The check endpoint does not read or write any quiz: the client sends the
    question and expected answer it is already showing.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from studygrove.dependencies import (
    ensure_owner,
    get_answer_grader,
    get_current_user,
    get_storage,
)
from studygrove.mappers import quiz_to_response
from studygrove.schemas.common import ErrorResponse, ValidationErrorResponse
from studygrove.schemas.quiz import (
    CheckAnswerRequest,
    CheckAnswerResponse,
    QuizCreate,
    QuizResponse,
)
from studygrove.services.identity import AuthenticatedUser
from studygrove.services.llm_base import AnswerGrader
from studygrove.services.storage_gateway import StorageGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["Quizzes"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ValidationErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
}
_OWNED_ERRORS = {
    **_ERRORS,
    403: {"description": "Quiz belongs to another user", "model": ErrorResponse},
    404: {"description": "Quiz not found", "model": ErrorResponse},
}


# Registered before the /{quiz_id} routes so "check" is never parsed as an id
@router.post(
    "/check",
    response_model=CheckAnswerResponse,
    responses={
        **_ERRORS,
        500: {"description": "Grader failed or timed out", "model": ErrorResponse},
    },
    summary="Grade a free-text flashcard answer",
)
async def check_answer(
    body: CheckAnswerRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    grader: AnswerGrader = Depends(get_answer_grader),
) -> CheckAnswerResponse:
    result = await grader.grade(
        question=body.question,
        user_answer=body.user_answer,
        correct_answer=body.correct_answer,
    )
    logger.debug("Graded answer for user %s: correct=%s", user.uid, result.correct)
    return CheckAnswerResponse(correct=result.correct, feedback=result.feedback)


@router.get(
    "",
    response_model=List[QuizResponse],
    responses=_ERRORS,
    summary="List the caller's quizzes, newest first",
)
async def list_quizzes(
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> List[QuizResponse]:
    quizzes = await storage.get_quizzes(user.uid)
    return [quiz_to_response(quiz) for quiz in quizzes]


@router.post(
    "",
    response_model=QuizResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create a quiz owned by the caller",
)
async def create_quiz(
    body: QuizCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> QuizResponse:
    quiz = await storage.create_quiz(
        user.uid,
        {
            "title": body.title,
            "description": body.description,
            "questions": [pair.model_dump() for pair in body.questions],
        },
    )
    logger.info("User %s created quiz %s with %d questions", user.uid, quiz.id, len(body.questions))
    return quiz_to_response(quiz)


@router.get(
    "/{quiz_id}",
    response_model=QuizResponse,
    responses=_OWNED_ERRORS,
    summary="Get one quiz",
)
async def get_quiz(
    quiz_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> QuizResponse:
    quiz = ensure_owner(await storage.get_quiz(quiz_id), user, "quiz", quiz_id)
    return quiz_to_response(quiz)


@router.delete(
    "/{quiz_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_OWNED_ERRORS,
    summary="Delete a quiz",
)
async def delete_quiz(
    quiz_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> Response:
    ensure_owner(await storage.get_quiz(quiz_id), user, "quiz", quiz_id)
    await storage.delete_quiz(quiz_id)
    logger.info("User %s deleted quiz %s", user.uid, quiz_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
