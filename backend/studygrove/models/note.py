"""
StudyGrove Backend — Note SQLAlchemy Model
===========================================

What:  ORM model for the `notes` table.
Who:   Read and written only by the StorageGateway; never serialized directly.

Table Design Rationale:
    - user_id: the identity provider's subject string. The user record lives
      with the provider, so there is no local users table to reference.
    - created_at / updated_at: UTC, timezone-aware. updated_at is refreshed by
      the gateway on every edit.

    Composite index (user_id, created_at):
        Serves the only list query ("this user's notes, newest first") with a
        backward index scan.
"""

from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, Boolean, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from studygrove.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A free-form study note.

    Lifecycle:
        1. Created on explicit user action
        2. Mutated in place on edit (title, content, is_favorite)
        3. Deleted on explicit user action
        user_id never changes after creation.
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Identity provider subject of the owning user",
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    is_favorite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notes_user_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id='{self.user_id}', title='{self.title[:20]}')>"
