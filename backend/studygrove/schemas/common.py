"""
StudyGrove Backend — Shared Schema Pieces
==========================================

What:  The camelCase base model every wire schema extends, plus the error
       and health response shapes.

Why a camelCase base:
    The React client speaks camelCase (`isFavorite`, `createdAt`) while the
    ORM and Python code use snake_case. The alias generator does the
    translation at the boundary; populate_by_name lets Python code build
    schemas with snake_case keyword arguments.
"""

from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """
    Error body for every non-2xx response.

    Example:
        {"message": "Forbidden"}
    """
    message: str = Field(description="Human-readable error description")


class ValidationErrorResponse(ErrorResponse):
    """
    Error body for 400 responses: the first violated field only.

    Example:
        {"message": "Input should be greater than 0", "field": "duration"}
    """
    field: Optional[str] = Field(default=None, description="Dotted path of the offending field")


class HealthResponse(BaseModel):
    """Returned by GET /health for load balancers and monitoring."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    grader: str = Field(description="Answer grader status: available, unavailable, circuit_open")
    uptime_seconds: float = Field(description="Seconds since service started")


def field_from_loc(loc: Sequence[Any]) -> Optional[str]:
    """("body", "questions", 0, "answer") → "questions.0.answer"."""
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    return ".".join(parts) or None
