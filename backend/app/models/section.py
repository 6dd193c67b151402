"""
Tulisin Backend — Section Model
================================

What:  ORM model for the `sections` table (a user's notebook divider).
How:   `notes_count` is NOT a column. Repositories derive it per query with
       LEFT JOIN notes + COUNT, so it can never drift from the real number
       of notes.

Query Patterns:
    - List a user's sections: WHERE user_id = :uid ORDER BY created_at DESC
      → idx_sections_user_created
"""

import uuid

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import TimestampMixin


class Section(TimestampMixin, Base):
    __tablename__ = "sections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE", name="fk_sections_user_id"),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_sections_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Section(id={self.id}, name='{self.name}')>"
