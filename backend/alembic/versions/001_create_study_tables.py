"""Create study tables

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  notes, quizzes, pomodoro_sessions and user_stats.
How:   user_id is the identity provider's subject string. There is no users
       table to reference, so no foreign keys; every per-user list query is
       served by a (user_id, timestamp) index.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "user_id",
            sa.String(128),
            nullable=False,
            comment="Identity provider subject of the owning user",
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notes_user_created_at", "notes", ["user_id", "created_at"])

    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "questions",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column("high_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quizzes_user_created_at", "quizzes", ["user_id", "created_at"])

    op.create_table(
        "pomodoro_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, comment="Session length in minutes"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("completed_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_pomodoro_sessions_user_completed_at",
        "pomodoro_sessions",
        ["user_id", "completed_at"],
    )

    op.create_table(
        "user_stats",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("experience", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_study_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("last_study_date", nullable=True),
        sa.Column(
            "tree_stage",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'sapling'"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_user_stats_user_id"),
    )


def downgrade() -> None:
    op.drop_table("user_stats")
    op.drop_index("idx_pomodoro_sessions_user_completed_at", table_name="pomodoro_sessions")
    op.drop_table("pomodoro_sessions")
    op.drop_index("idx_quizzes_user_created_at", table_name="quizzes")
    op.drop_table("quizzes")
    op.drop_index("idx_notes_user_created_at", table_name="notes")
    op.drop_table("notes")
