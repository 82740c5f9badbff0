"""
StudyGrove Backend — Health Check Route
========================================

What:  Unauthenticated GET /health for container and load balancer probes.
How:   SELECT 1 against the database, then the grader's own probe (or its
       circuit breaker state, if it has one).

Status levels:
    healthy    database and grader both fine          → 200
    degraded   database fine, grader down or circuit open → 200
    unhealthy  database unreachable                   → 503
"""

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from studygrove import __version__
from studygrove.database import get_db_session
from studygrove.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request, db: AsyncSession = Depends(get_db_session)):
    db_status = "connected"
    grader_status = "available"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    grader = request.app.state.answer_grader
    breaker = getattr(grader, "circuit_breaker", None)
    if breaker is not None and breaker.state == breaker.OPEN:
        grader_status = "circuit_open"
    elif not await grader.health_check():
        grader_status = "unavailable"

    if grader_status != "available" and overall == "healthy":
        overall = "degraded"

    report = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        grader=grader_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=report.model_dump())
    return report
