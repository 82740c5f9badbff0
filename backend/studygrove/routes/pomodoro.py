"""
StudyGrove Backend — Pomodoro and Stats Route Handlers
=======================================================

What:  POST /api/pomodoro/log, GET /api/pomodoro/history and GET /api/stats.
How:   Logging goes through PomodoroService (session insert + XP award);
       reads go straight to the storage gateway.
Who:   The focus timer and the study-tree dashboard.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from studygrove.dependencies import get_current_user, get_storage
from studygrove.mappers import session_to_response, stats_to_response
from studygrove.schemas.common import ErrorResponse, ValidationErrorResponse
from studygrove.schemas.pomodoro import (
    PomodoroLogRequest,
    PomodoroLogResponse,
    PomodoroSessionResponse,
    UserStatsResponse,
)
from studygrove.services.identity import AuthenticatedUser
from studygrove.services.pomodoro_service import pomodoro_service
from studygrove.services.storage_gateway import StorageGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Pomodoro"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ValidationErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
}


@router.post(
    "/pomodoro/log",
    response_model=PomodoroLogResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Record a focus session and award experience",
    description=(
        "Completed sessions award 10 XP, abandoned ones 1 XP. Every 100 XP "
        "is converted into a level; the tree grows at levels 5 and 10."
    ),
)
async def log_pomodoro(
    body: PomodoroLogRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> PomodoroLogResponse:
    session, stats = await pomodoro_service.log_session(
        storage,
        user_id=user.uid,
        duration=body.duration,
        completed=body.completed,
    )
    return PomodoroLogResponse(
        session=session_to_response(session),
        stats=stats_to_response(stats),
    )


@router.get(
    "/pomodoro/history",
    response_model=List[PomodoroSessionResponse],
    responses=_ERRORS,
    summary="List the caller's focus sessions, newest first",
)
async def pomodoro_history(
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> List[PomodoroSessionResponse]:
    sessions = await storage.get_pomodoro_history(user.uid)
    return [session_to_response(session) for session in sessions]


@router.get(
    "/stats",
    response_model=UserStatsResponse,
    responses=_ERRORS,
    summary="Get the caller's progression stats",
    description="Creates the stats row with defaults on first access.",
)
async def get_stats(
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> UserStatsResponse:
    stats = await storage.ensure_user_stats(user.uid)
    return stats_to_response(stats)
