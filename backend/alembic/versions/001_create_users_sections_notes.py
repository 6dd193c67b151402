"""Create users, sections and notes tables

Revision ID: 001
Revises: None
Create Date: 2025-01-06 00:00:00.000000+00:00

What:  Initial schema: accounts, their sections, and the notes inside them.
How:   PostgreSQL server defaults (gen_random_uuid(), CURRENT_TIMESTAMP) back
       up the values the application already assigns.

Constraints:
    users.email UNIQUE                    → 23505 → 409 Conflict
    sections.user_id → users   CASCADE
    notes.user_id    → users   CASCADE
    notes.section_id → sections RESTRICT  (non-empty sections can't be deleted)

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp_columns():
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "sections",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_sections"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_sections_user_id", ondelete="CASCADE"
        ),
    )
    op.create_index("idx_sections_user_created", "sections", ["user_id", "created_at"])

    op.create_table(
        "notes",
        _id_column(),
        sa.Column("title", sa.String(200), nullable=False, server_default=sa.text("''")),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("section_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_notes"),
        sa.ForeignKeyConstraint(
            ["section_id"], ["sections.id"], name="fk_notes_section_id", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_notes_user_id", ondelete="CASCADE"
        ),
    )
    op.create_index("idx_notes_user_created", "notes", ["user_id", "created_at"])
    op.create_index(
        "idx_notes_user_section_created", "notes", ["user_id", "section_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("idx_notes_user_section_created", table_name="notes")
    op.drop_index("idx_notes_user_created", table_name="notes")
    op.drop_table("notes")
    op.drop_index("idx_sections_user_created", table_name="sections")
    op.drop_table("sections")
    op.drop_table("users")
