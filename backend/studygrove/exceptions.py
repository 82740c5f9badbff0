"""
StudyGrove Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception carries a client-safe message and an optional context
       dict. Global handlers registered in main.py turn them into
       `{"message": ...}` JSON bodies with the right status code.
Who:   Raised by dependencies, the storage gateway and services.

Exception Hierarchy:
    StudyGroveError (base)
    ├── UnauthorizedError         → 401 (missing/invalid bearer credential)
    ├── ForbiddenError            → 403 (valid credential, wrong owner)
    ├── NotFoundError             → 404
    ├── ValidationError           → 400 (first violated field)
    ├── GradingServiceError       → 500 (LLM timeout, bad payload, outage)
    │   └── CircuitBreakerOpenError
    └── DatabaseError             → 500 (details logged, never returned)
"""

from typing import Any, Dict, Optional


class StudyGroveError(Exception):
    """
    Base exception for all StudyGrove application errors.

    Attributes:
        message:  Client-safe description (returned in the response body)
        context:  Debug details (logged server-side, NOT returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnauthorizedError(StudyGroveError):
    """
    Raised when the bearer credential is missing, malformed, expired or
    rejected by the identity provider.

    The client always sees the same "Unauthorized" message; the reason goes
    into `context` for the server log only.
    """

    def __init__(
        self,
        reason: str = "missing credential",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message="Unauthorized", context=ctx)
        self.reason = reason


class ForbiddenError(StudyGroveError):
    """
    Raised when an authenticated caller targets a record owned by someone else.

    HTTP: 403. The body never echoes the record, so ownership failures cannot
    leak content.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message="Forbidden", context=ctx)


class NotFoundError(StudyGroveError):
    """
    Raised when a requested record does not exist.

    The storage gateway returns None for missing rows; route handlers convert
    that into this exception so the handler can answer 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ValidationError(StudyGroveError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request. FastAPI's own RequestValidationError is translated
    to the same response shape in main.py, so clients see one format:

        {"message": "Input should be greater than 0", "field": "duration"}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class GradingServiceError(StudyGroveError):
    """
    Raised when the answer-grading LLM cannot produce a usable verdict.

    What:    Timeout, transport error, exhausted retries, or a payload that is
             not a JSON object.
    HTTP:    500 with "Failed to check answer". There is no partial-credit
             fallback: the client either gets a verdict or this error.
    """

    def __init__(
        self,
        message: str = "Failed to check answer",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CircuitBreakerOpenError(GradingServiceError):
    """
    Raised without calling Gemini while the circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → threshold reached → OPEN (reject calls for recovery_time seconds)
        → timeout elapsed → HALF-OPEN (allow one test call)
        → test succeeds → CLOSED; test fails → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(StudyGroveError):
    """
    Raised when a storage gateway operation fails.

    Security Note:
        The client always receives a generic message. The failing operation
        and original error type are kept in `context` for the server log.
    """

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
