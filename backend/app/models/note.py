"""
Tulisin Backend — Note Model
=============================

What:  ORM model for the `notes` table.
Why:   The core resource; every note lives in exactly one section.
How:   `user_id` duplicates the section owner so every note query can be
       owner-scoped without joining sections. The service layer guarantees
       that `section_id` always points at a section of the same user.

Table Design:
    - title / content default to "" (both optional on create)
    - section_id ON DELETE RESTRICT: a section with notes cannot be removed
      out from under them; the section service rejects that case first
    - user_id ON DELETE CASCADE: removing a user removes their notes

Query Patterns:
    - Notes in a section, newest first:
        WHERE user_id = :uid AND section_id = :sid ORDER BY created_at DESC
      → idx_notes_user_section_created
    - Single note: WHERE id = :id AND user_id = :uid → primary key
"""

import uuid

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import TimestampMixin


class Note(TimestampMixin, Base):
    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    section_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sections.id", ondelete="RESTRICT", name="fk_notes_section_id"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE", name="fk_notes_user_id"),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_notes_user_created", "user_id", "created_at"),
        Index("idx_notes_user_section_created", "user_id", "section_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, section_id={self.section_id}, title='{self.title}')>"
