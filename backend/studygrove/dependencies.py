"""
StudyGrove Backend — Request Dependencies
==========================================

What:  FastAPI dependencies shared by the route modules.

    get_current_user   bearer token → AuthenticatedUser (or 401)
    get_storage        request-scoped StorageGateway
    get_answer_grader  the AnswerGrader built by create_app()
    ensure_owner       404 if the record is missing, 403 if someone else's

Who:   Every /api route. The identity verifier and the grader live on
       app.state, so tests swap them through create_app() arguments.
"""

import logging
from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from studygrove.database import get_db_session
from studygrove.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from studygrove.services.identity import AuthenticatedUser, IdentityVerifier
from studygrove.services.llm_base import AnswerGrader
from studygrove.services.storage_gateway import StorageGateway

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must produce our 401 body, not
# FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """
    Resolve the caller from the Authorization header.

    Raises:
        UnauthorizedError: Header missing, not a Bearer scheme, or the
            verifier rejects the token.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(reason="missing bearer token")

    verifier: IdentityVerifier = request.app.state.identity_verifier
    # JWKS refreshes are blocking HTTP calls
    return await run_in_threadpool(verifier.verify, credentials.credentials)


def get_storage(db: AsyncSession = Depends(get_db_session)) -> StorageGateway:
    return StorageGateway(db)


def get_answer_grader(request: Request) -> AnswerGrader:
    return request.app.state.answer_grader


def ensure_owner(record: Optional[Any], user: AuthenticatedUser, resource: str, resource_id: int) -> Any:
    """
    Check that `record` exists and belongs to `user`.

    Existence is checked first: a missing id is 404 for everyone, an existing
    id owned by another user is 403.
    """
    if record is None:
        raise NotFoundError(resource=resource, resource_id=resource_id)
    if record.user_id != user.uid:
        logger.warning(
            "User %s denied access to %s %s owned by another user",
            user.uid,
            resource,
            resource_id,
        )
        raise ForbiddenError(resource=resource, resource_id=resource_id)
    return record
