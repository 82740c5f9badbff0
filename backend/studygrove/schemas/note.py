"""
StudyGrove Backend — Note Request/Response Schemas
===================================================

What:  The public contract for /api/notes.
Why:   Separate from the SQLAlchemy model so storage changes cannot silently
       alter what clients receive; studygrove.mappers does the conversion.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from studygrove.schemas.common import CamelModel


class NoteCreate(CamelModel):
    """
    Body of POST /api/notes.

    userId is never accepted from the client: ownership comes from the
    verified bearer token.
    """
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")
    is_favorite: bool = Field(default=False, description="Pinned by the user")


class NoteUpdate(CamelModel):
    """Body of PUT /api/notes/{id}. Every field is optional."""
    title: Optional[str] = None
    content: Optional[str] = None
    is_favorite: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        """
        Fields the client actually sent, keyed by ORM attribute name.

        Explicit nulls are dropped: title and content are NOT NULL columns
        and an absent isFavorite means "leave as is".
        """
        return self.model_dump(exclude_unset=True, exclude_none=True)


class NoteResponse(CamelModel):
    id: int
    user_id: str
    title: str
    content: str
    is_favorite: bool
    created_at: datetime
    updated_at: datetime
