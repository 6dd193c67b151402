"""
Tulisin Backend — Sections Repository
======================================

What:  Data mapping for the `sections` table.
How:   Every read derives `notes_count` with LEFT JOIN notes + COUNT(notes.id),
       so a section with no notes reports 0 and the value is never stale.
       All statements are owner-scoped; a section of another user looks
       exactly like a missing one (None / False).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, func, insert, select, update

from app.models import Note, Section
from app.models.mixins import utcnow
from app.repositories.base import Executor, as_utc

_SECTION_COLUMNS = (
    Section.id,
    Section.name,
    Section.user_id,
    Section.created_at,
    Section.updated_at,
)


@dataclass(frozen=True)
class SectionRecord:
    id: uuid.UUID
    name: str
    user_id: uuid.UUID
    notes_count: int
    created_at: datetime
    updated_at: datetime


def _to_record(row: Mapping[str, Any], notes_count: Optional[int] = None) -> SectionRecord:
    if notes_count is None:
        notes_count = row["notes_count"]
    return SectionRecord(
        id=row["id"],
        name=row["name"],
        user_id=row["user_id"],
        notes_count=int(notes_count or 0),
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


def _select_with_counts():
    notes_count = func.count(Note.id).label("notes_count")
    return (
        select(*_SECTION_COLUMNS, notes_count)
        .select_from(Section)
        .outerjoin(Note, Note.section_id == Section.id)
        .group_by(*_SECTION_COLUMNS)
    )


async def list_sections(executor: Executor, user_id: uuid.UUID) -> List[SectionRecord]:
    """All sections of a user, newest first, each with its live notes count."""
    stmt = (
        _select_with_counts()
        .where(Section.user_id == user_id)
        .order_by(Section.created_at.desc())
    )
    result = await executor.execute(stmt)
    return [_to_record(row) for row in result.mappings().all()]


async def get_section(
    executor: Executor, section_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[SectionRecord]:
    stmt = _select_with_counts().where(Section.id == section_id, Section.user_id == user_id)
    result = await executor.execute(stmt)
    row = result.mappings().one_or_none()
    return _to_record(row) if row is not None else None


async def insert_section(executor: Executor, user_id: uuid.UUID, name: str) -> SectionRecord:
    """Create a section. A new section has no notes, so the count starts at 0."""
    now = utcnow()
    stmt = (
        insert(Section)
        .values(name=name, user_id=user_id, created_at=now, updated_at=now)
        .returning(*_SECTION_COLUMNS)
    )
    result = await executor.execute(stmt)
    return _to_record(result.mappings().one(), notes_count=0)


async def count_section_notes(executor: Executor, section_id: uuid.UUID) -> int:
    stmt = select(func.count(Note.id)).where(Note.section_id == section_id)
    result = await executor.execute(stmt)
    return int(result.scalar_one() or 0)


async def update_section(
    executor: Executor, section_id: uuid.UUID, user_id: uuid.UUID, name: str
) -> Optional[SectionRecord]:
    """Rename a section; the notes count is re-derived after the update."""
    stmt = (
        update(Section)
        .where(Section.id == section_id, Section.user_id == user_id)
        .values(name=name, updated_at=utcnow())
        .returning(*_SECTION_COLUMNS)
    )
    result = await executor.execute(stmt)
    row = result.mappings().one_or_none()
    if row is None:
        return None
    return _to_record(row, notes_count=await count_section_notes(executor, section_id))


async def delete_section(executor: Executor, section_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    stmt = delete(Section).where(Section.id == section_id, Section.user_id == user_id)
    result = await executor.execute(stmt)
    return result.rowcount > 0


async def verify_section_ownership(
    executor: Executor, section_id: uuid.UUID, user_id: uuid.UUID
) -> bool:
    """True when the section exists AND belongs to the user."""
    stmt = (
        select(Section.id)
        .where(Section.id == section_id, Section.user_id == user_id)
        .limit(1)
    )
    result = await executor.execute(stmt)
    return result.first() is not None
