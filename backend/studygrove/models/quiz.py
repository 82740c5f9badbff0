"""
StudyGrove Backend — Quiz SQLAlchemy Model
===========================================

What:  ORM model for the `quizzes` table (flashcard sets).

Why questions are embedded JSON:
    Question/answer pairs have no lifecycle of their own: they are created
    with the quiz, read with the quiz and deleted with the quiz. Storing the
    ordered list in one JSON column (JSONB on PostgreSQL) keeps every quiz
    operation a single-row statement.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import JSON, TIMESTAMP, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from studygrove.database import Base
from studygrove.models.note import utcnow


class Quiz(Base):
    """A flashcard quiz owned by one user."""

    __tablename__ = "quizzes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Ordered list of {"question": str, "answer": str}
    questions: Mapped[List[Dict[str, str]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
    )

    high_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_quizzes_user_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Quiz(id={self.id}, user_id='{self.user_id}', questions={len(self.questions or [])})>"
