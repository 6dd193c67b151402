"""
Tulisin Backend — Note Service
===============================

What:  Business rules for notes: ownership, section membership, pagination.
Why:   Repositories only map data; this layer decides what a caller may see
       and guarantees a note never points at another user's section.
How:   Read paths check out one pooled client for the whole sequence; write
       paths run inside one transaction so a failed check leaves no trace.
Who:   Built per request by the `get_note_service` dependency.

Write Flow:
    validated input → (section ownership check) → transactional mutation
                    → NoteRecord | NotFoundError

    NotFoundError raised inside `db.transaction()` rolls the transaction
    back before it propagates, so a rejected create/update has no side effects.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from app.database import Database
from app.exceptions import NotFoundError
from app.repositories import notes as notes_repo
from app.repositories.notes import NewNote, NoteChanges, NoteRecord, NoteSummary
from app.repositories.sections import verify_section_ownership
from app.services.ids import IdLike, parse_id_or_404

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
# Largest offset every supported driver binds as an integer
MAX_OFFSET = 2**31 - 1

SECTION_NOT_FOUND = "Section not found"
NOTE_NOT_FOUND = "Note not found"


@dataclass(frozen=True)
class NotePage:
    notes: List[NoteSummary]
    total: int
    limit: int
    offset: int


def clamp_pagination(limit: int, offset: int) -> tuple:
    """limit into [1, MAX_LIMIT], offset into [0, MAX_OFFSET]."""
    return min(max(limit, 1), MAX_LIMIT), min(max(offset, 0), MAX_OFFSET)


class NoteService:
    """
    Responsibilities:
        - list_notes():   one page of a section's notes (section must be owned)
        - get_note():     single owner-scoped note
        - create_note():  ownership check + insert in one transaction
        - update_note():  partial update, re-checking a new section
        - delete_note():  owner-scoped delete
    """

    def __init__(self, db: Database):
        self.db = db

    async def list_notes(
        self,
        user_id: IdLike,
        section_id: IdLike,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> NotePage:
        owner = parse_id_or_404(user_id, SECTION_NOT_FOUND)
        section = parse_id_or_404(section_id, SECTION_NOT_FOUND)
        limit, offset = clamp_pagination(limit, offset)

        async with self.db.client() as client:
            if not await verify_section_ownership(client, section, owner):
                raise NotFoundError(SECTION_NOT_FOUND)
            notes, total = await notes_repo.list_notes_by_section(
                client, owner, section, limit, offset
            )

        return NotePage(notes=notes, total=total, limit=limit, offset=offset)

    async def get_note(self, note_id: IdLike, user_id: IdLike) -> NoteRecord:
        note_uuid = parse_id_or_404(note_id, NOTE_NOT_FOUND)
        owner = parse_id_or_404(user_id, NOTE_NOT_FOUND)

        async with self.db.client() as client:
            note = await notes_repo.get_note(client, note_uuid, owner)

        if note is None:
            raise NotFoundError(NOTE_NOT_FOUND)
        return note

    async def create_note(
        self,
        user_id: IdLike,
        section_id: IdLike,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> NoteRecord:
        owner = parse_id_or_404(user_id, SECTION_NOT_FOUND)
        section = parse_id_or_404(section_id, SECTION_NOT_FOUND)
        new_note = NewNote(
            user_id=owner,
            section_id=section,
            title=title or "",
            content=content or "",
        )

        async with self.db.transaction() as tx:
            if not await verify_section_ownership(tx, section, owner):
                raise NotFoundError(SECTION_NOT_FOUND)
            note = await notes_repo.insert_note(tx, new_note)

        logger.info("Note %s created in section %s", note.id, section)
        return note

    async def update_note(
        self,
        note_id: IdLike,
        user_id: IdLike,
        title: Optional[str] = None,
        content: Optional[str] = None,
        section_id: Optional[IdLike] = None,
    ) -> NoteRecord:
        note_uuid = parse_id_or_404(note_id, NOTE_NOT_FOUND)
        owner = parse_id_or_404(user_id, NOTE_NOT_FOUND)
        new_section = None
        if section_id is not None:
            new_section = parse_id_or_404(section_id, SECTION_NOT_FOUND)
        changes = NoteChanges(title=title, content=content, section_id=new_section)

        async with self.db.transaction() as tx:
            if new_section is not None and not await verify_section_ownership(tx, new_section, owner):
                raise NotFoundError(SECTION_NOT_FOUND)
            note = await notes_repo.update_note(tx, note_uuid, owner, changes)
            if note is None:
                raise NotFoundError(NOTE_NOT_FOUND)

        return note

    async def delete_note(self, note_id: IdLike, user_id: IdLike) -> None:
        note_uuid = parse_id_or_404(note_id, NOTE_NOT_FOUND)
        owner = parse_id_or_404(user_id, NOTE_NOT_FOUND)

        async with self.db.transaction() as tx:
            if not await notes_repo.delete_note(tx, note_uuid, owner):
                raise NotFoundError(NOTE_NOT_FOUND)

        logger.info("Note %s deleted", note_uuid)
