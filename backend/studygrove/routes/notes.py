"""
StudyGrove Backend — Notes Route Handlers
==========================================

What:  CRUD for the caller's study notes under /api/notes.
How:   Every handler resolves the caller first, then goes through the
       storage gateway. Single-note routes load the record and run
       ensure_owner() before reading or mutating it.
Who:   The notes page and the note editor of the web client.

Status codes:
    200 list / get / update    201 create    204 delete
    401 no or bad token        403 someone else's note
    404 unknown id             400 malformed body or id
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import ValidationError as PydanticValidationError

from studygrove.dependencies import ensure_owner, get_current_user, get_storage
from studygrove.exceptions import NotFoundError, ValidationError
from studygrove.mappers import note_to_response
from studygrove.schemas.common import ErrorResponse, ValidationErrorResponse, field_from_loc
from studygrove.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from studygrove.services.identity import AuthenticatedUser
from studygrove.services.storage_gateway import StorageGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ValidationErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
}
_OWNED_ERRORS = {
    **_ERRORS,
    403: {"description": "Note belongs to another user", "model": ErrorResponse},
    404: {"description": "Note not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[NoteResponse],
    responses=_ERRORS,
    summary="List the caller's notes, newest first",
)
async def list_notes(
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> List[NoteResponse]:
    notes = await storage.get_notes(user.uid)
    return [note_to_response(note) for note in notes]


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses=_OWNED_ERRORS,
    summary="Get one note",
)
async def get_note(
    note_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> NoteResponse:
    note = ensure_owner(await storage.get_note(note_id), user, "note", note_id)
    return note_to_response(note)


@router.post(
    "",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create a note owned by the caller",
)
async def create_note(
    body: NoteCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> NoteResponse:
    note = await storage.create_note(user.uid, body.model_dump())
    logger.info("User %s created note %s", user.uid, note.id)
    return note_to_response(note)


@router.put(
    "/{note_id}",
    response_model=NoteResponse,
    responses=_OWNED_ERRORS,
    summary="Partially update a note",
    description="Only the fields present in the body change; updatedAt is refreshed.",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": NoteUpdate.model_json_schema(by_alias=True)}},
        }
    },
)
async def update_note(
    note_id: int,
    raw: Any = Body(default=None),
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> NoteResponse:
    # Ownership is settled before the body is looked at: 403/404 win over 400
    ensure_owner(await storage.get_note(note_id), user, "note", note_id)

    try:
        body = NoteUpdate.model_validate(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        raise ValidationError(message=first["msg"], field=field_from_loc(first["loc"])) from e

    note = await storage.update_note(note_id, body.changes())
    if note is None:
        # Deleted between the ownership check and the update
        raise NotFoundError(resource="note", resource_id=note_id)
    return note_to_response(note)


@router.delete(
    "/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=_OWNED_ERRORS,
    summary="Delete a note",
)
async def delete_note(
    note_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: StorageGateway = Depends(get_storage),
) -> Response:
    ensure_owner(await storage.get_note(note_id), user, "note", note_id)
    await storage.delete_note(note_id)
    logger.info("User %s deleted note %s", user.uid, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
