"""
StudyGrove Backend — FastAPI Application Factory
=================================================

What:  Builds the FastAPI application: middleware, error handlers, routers
       and the two injected collaborators (identity verifier, answer grader).
Who:   uvicorn (`uvicorn studygrove.main:app`) and the test suite, which
       calls create_app() with stub collaborators.

Application Architecture:
    ┌───────────────────────────────────────────────────────┐
    │                     FastAPI App                       │
    │                                                       │
    │  Middleware:  Request ID → Access Log → GZip → CORS   │
    │                                                       │
    │  app.state:   identity_verifier   answer_grader       │
    │                                                       │
    │  Routes:      /api/notes  /api/quizzes                │
    │               /api/pomodoro  /api/stats  /health      │
    │                                                       │
    │  Errors:      401 │ 403 │ 404 │ 400 │ 500             │
    │               body is always {"message": ...}         │
    └───────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → optional create_all
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studygrove import __version__
from studygrove.config import settings
from studygrove.database import create_tables, dispose_engine
from studygrove.exceptions import (
    DatabaseError,
    ForbiddenError,
    GradingServiceError,
    NotFoundError,
    StudyGroveError,
    UnauthorizedError,
    ValidationError,
)
from studygrove.middleware.logging import RequestLoggingMiddleware
from studygrove.middleware.request_id import RequestIDMiddleware, request_id_var
from studygrove.routes import health, notes, pomodoro, quizzes
from studygrove.schemas.common import field_from_loc
from studygrove.services.gemini_service import GeminiAnswerGrader
from studygrove.services.identity import IdentityVerifier, build_identity_verifier
from studygrove.services.llm_base import AnswerGrader

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

class RequestIdFilter(logging.Filter):
    """Stamps every record with the current request id ("-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] studygrove.routes.notes [a1b2c3d4] message
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Our access middleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("StudyGrove Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and the unaffected routes still work
        logger.error("Configuration error: %s", str(e))

    if settings.auto_create_tables:
        await create_tables()
        logger.info("AUTO_CREATE_TABLES: schema created")

    logger.info("Auth provider: %s", settings.auth_provider)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("StudyGrove Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _message(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to status codes. Every body carries `message`; 400 bodies
    add `field`. Context dicts and stack traces go to the log only.

        UnauthorizedError       → 401 "Unauthorized"
        ForbiddenError          → 403 "Forbidden"
        NotFoundError           → 404 "<Resource> not found"
        ValidationError /
        RequestValidationError  → 400 first violation
        GradingServiceError     → 500 "Failed to check answer"
        DatabaseError           → 500 "Internal server error"
        HTTPException           → its status, detail as message
        anything else           → 500 "Internal server error"
    """

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        logger.info("Unauthorized %s %s: %s", request.method, request.url.path, exc.reason)
        return _message(401, exc.message, headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return _message(403, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _message(404, exc.message)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s (field=%s)", exc.message, exc.field)
        return JSONResponse(status_code=400, content={"message": exc.message, "field": exc.field})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        message = first.get("msg", "Invalid request")
        # Malformed JSON reports a character offset, not a field
        field = None if first.get("type") == "json_invalid" else field_from_loc(first.get("loc", ()))
        logger.warning(
            "Request validation failed on %s %s: %s (field=%s, %d error(s))",
            request.method,
            request.url.path,
            message,
            field,
            len(errors),
        )
        return JSONResponse(status_code=400, content={"message": message, "field": field})

    @app.exception_handler(GradingServiceError)
    async def handle_grading_error(request: Request, exc: GradingServiceError):
        logger.error("Answer grading failed: %s | Context: %s", exc.message, exc.context)
        return _message(500, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return _message(500, GENERIC_ERROR)

    @app.exception_handler(StudyGroveError)
    async def handle_app_error(request: Request, exc: StudyGroveError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return _message(500, GENERIC_ERROR)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _message(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return _message(500, GENERIC_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    identity_verifier: Optional[IdentityVerifier] = None,
    answer_grader: Optional[AnswerGrader] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        identity_verifier: Overrides the AUTH_PROVIDER-selected verifier
        answer_grader:     Overrides the Gemini grader

    The collaborators are attached here rather than in the lifespan so they
    exist even when the ASGI lifespan protocol is not run (in-process test
    transports).
    """
    app = FastAPI(
        title="StudyGrove API",
        description=(
            "Study notes, flashcard quizzes graded by Google Gemini, and a "
            "Pomodoro timer that grows a study tree."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if identity_verifier is None:
        identity_verifier = build_identity_verifier(settings)
    if answer_grader is None:
        answer_grader = GeminiAnswerGrader()
    app.state.identity_verifier = identity_verifier
    app.state.answer_grader = answer_grader

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(quizzes.router)
    app.include_router(pomodoro.router)
    app.include_router(health.router)

    return app


app = create_app()
