"""
Tulisin Backend — Section Service
==================================

Owner-scoped section CRUD. Sections have no parent resource, so there is no
ownership pre-check: every repository call is already filtered by user id.

Deleting a section that still holds notes is rejected with ConflictError.
The count and the delete run in the same transaction; the RESTRICT foreign
key on notes.section_id backs this up if a note sneaks in concurrently.
"""

import logging
from typing import List

from app.database import Database
from app.exceptions import ConflictError, NotFoundError
from app.repositories import sections as sections_repo
from app.repositories.sections import SectionRecord
from app.services.ids import IdLike, parse_id_or_404

logger = logging.getLogger(__name__)

SECTION_NOT_FOUND = "Section not found"


class SectionService:
    def __init__(self, db: Database):
        self.db = db

    async def list_sections(self, user_id: IdLike) -> List[SectionRecord]:
        owner = parse_id_or_404(user_id, SECTION_NOT_FOUND)
        async with self.db.client() as client:
            return await sections_repo.list_sections(client, owner)

    async def get_section(self, section_id: IdLike, user_id: IdLike) -> SectionRecord:
        section_uuid = parse_id_or_404(section_id, SECTION_NOT_FOUND)
        owner = parse_id_or_404(user_id, SECTION_NOT_FOUND)

        async with self.db.client() as client:
            section = await sections_repo.get_section(client, section_uuid, owner)

        if section is None:
            raise NotFoundError(SECTION_NOT_FOUND)
        return section

    async def create_section(self, user_id: IdLike, name: str) -> SectionRecord:
        owner = parse_id_or_404(user_id, SECTION_NOT_FOUND)
        async with self.db.transaction() as tx:
            section = await sections_repo.insert_section(tx, owner, name)
        logger.info("Section %s created", section.id)
        return section

    async def update_section(self, section_id: IdLike, user_id: IdLike, name: str) -> SectionRecord:
        section_uuid = parse_id_or_404(section_id, SECTION_NOT_FOUND)
        owner = parse_id_or_404(user_id, SECTION_NOT_FOUND)

        async with self.db.transaction() as tx:
            section = await sections_repo.update_section(tx, section_uuid, owner, name)
            if section is None:
                raise NotFoundError(SECTION_NOT_FOUND)

        return section

    async def delete_section(self, section_id: IdLike, user_id: IdLike) -> None:
        section_uuid = parse_id_or_404(section_id, SECTION_NOT_FOUND)
        owner = parse_id_or_404(user_id, SECTION_NOT_FOUND)

        async with self.db.transaction() as tx:
            if not await sections_repo.verify_section_ownership(tx, section_uuid, owner):
                raise NotFoundError(SECTION_NOT_FOUND)
            notes_count = await sections_repo.count_section_notes(tx, section_uuid)
            if notes_count:
                raise ConflictError(
                    "Section still contains notes",
                    details={"notesCount": notes_count},
                )
            await sections_repo.delete_section(tx, section_uuid, owner)

        logger.info("Section %s deleted", section_uuid)
