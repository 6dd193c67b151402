"""
Tulisin Backend — Notes Repository
===================================

What:  Data mapping for the `notes` table.
Why:   Keeps SQL out of the service layer; services only see NoteRecord /
       NoteSummary values, None, or booleans.
How:   SQLAlchemy Core statements built from the ORM columns. Every
       statement filters on `user_id`, so a note of another user is
       indistinguishable from a missing one.

Partial Updates:
    `NoteChanges` lists the mutable fields explicitly. `assignments()`
    yields only the supplied ones in a fixed order (title, content,
    section_id). With nothing supplied, `update_note` re-reads the row
    instead of issuing a no-op UPDATE, so `updated_at` stays untouched.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import delete, func, insert, select, update

from app.models import Note
from app.models.mixins import utcnow
from app.repositories.base import Executor, as_utc

_SUMMARY_COLUMNS = (
    Note.id,
    Note.title,
    Note.section_id,
    Note.user_id,
    Note.created_at,
    Note.updated_at,
)
_NOTE_COLUMNS = _SUMMARY_COLUMNS + (Note.content,)


@dataclass(frozen=True)
class NoteSummary:
    """A note without its content, as returned by list queries."""

    id: uuid.UUID
    title: str
    section_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NoteRecord(NoteSummary):
    content: str = ""


@dataclass(frozen=True)
class NewNote:
    user_id: uuid.UUID
    section_id: uuid.UUID
    title: str = ""
    content: str = ""


@dataclass(frozen=True)
class NoteChanges:
    """Fields of a partial update; None means "leave unchanged"."""

    title: Optional[str] = None
    content: Optional[str] = None
    section_id: Optional[uuid.UUID] = None

    def assignments(self) -> List[Tuple[str, Any]]:
        pairs = (
            ("title", self.title),
            ("content", self.content),
            ("section_id", self.section_id),
        )
        return [(name, value) for name, value in pairs if value is not None]

    @property
    def is_empty(self) -> bool:
        return not self.assignments()


def _summary(row: Mapping[str, Any]) -> NoteSummary:
    return NoteSummary(
        id=row["id"],
        title=row["title"],
        section_id=row["section_id"],
        user_id=row["user_id"],
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


def _record(row: Mapping[str, Any]) -> NoteRecord:
    return NoteRecord(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        section_id=row["section_id"],
        user_id=row["user_id"],
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


async def list_notes_by_section(
    executor: Executor,
    user_id: uuid.UUID,
    section_id: uuid.UUID,
    limit: int,
    offset: int,
) -> Tuple[List[NoteSummary], int]:
    """
    One page of a section's notes, newest first, plus the total for the filter.

    Both statements run on the same executor so the page and the total come
    from one checked-out connection.
    """
    owner_filter = (Note.user_id == user_id, Note.section_id == section_id)

    total_result = await executor.execute(select(func.count(Note.id)).where(*owner_filter))
    total = int(total_result.scalar_one() or 0)

    page_stmt = (
        select(*_SUMMARY_COLUMNS)
        .where(*owner_filter)
        .order_by(Note.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    page_result = await executor.execute(page_stmt)
    return [_summary(row) for row in page_result.mappings().all()], total


async def get_note(executor: Executor, note_id: uuid.UUID, user_id: uuid.UUID) -> Optional[NoteRecord]:
    stmt = select(*_NOTE_COLUMNS).where(Note.id == note_id, Note.user_id == user_id)
    result = await executor.execute(stmt)
    row = result.mappings().one_or_none()
    return _record(row) if row is not None else None


async def insert_note(executor: Executor, data: NewNote) -> NoteRecord:
    now = utcnow()
    stmt = (
        insert(Note)
        .values(
            title=data.title,
            content=data.content,
            section_id=data.section_id,
            user_id=data.user_id,
            created_at=now,
            updated_at=now,
        )
        .returning(*_NOTE_COLUMNS)
    )
    result = await executor.execute(stmt)
    return _record(result.mappings().one())


async def update_note(
    executor: Executor,
    note_id: uuid.UUID,
    user_id: uuid.UUID,
    changes: NoteChanges,
) -> Optional[NoteRecord]:
    """Apply the supplied fields only; None when the owner-scoped row is missing."""
    assignments = changes.assignments()
    if not assignments:
        return await get_note(executor, note_id, user_id)

    values = dict(assignments)
    values["updated_at"] = utcnow()
    stmt = (
        update(Note)
        .where(Note.id == note_id, Note.user_id == user_id)
        .values(**values)
        .returning(*_NOTE_COLUMNS)
    )
    result = await executor.execute(stmt)
    row = result.mappings().one_or_none()
    return _record(row) if row is not None else None


async def delete_note(executor: Executor, note_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    stmt = delete(Note).where(Note.id == note_id, Note.user_id == user_id)
    result = await executor.execute(stmt)
    return result.rowcount > 0
