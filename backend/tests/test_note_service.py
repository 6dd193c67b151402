"""
Tulisin Backend — Note Service Tests
=====================================

What:  Business rules of NoteService against a real (SQLite) database.
Why:   Ownership and section membership are enforced here; a slip leaks one
       user's notes to another.

What we test:
    ✅ Create requires an owned section; a rejected create leaves no row
    ✅ Pagination is clamped, total reflects the section filter
    ✅ Partial updates touch only supplied fields
    ✅ Moving a note into another user's section is refused
    ✅ Malformed and foreign ids look exactly like missing ones
"""

import uuid

import pytest
from sqlalchemy import func, select

from app.exceptions import NotFoundError
from app.models import Note
from app.services.note_service import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MAX_OFFSET,
    NoteService,
    clamp_pagination,
)


async def _note_count(database) -> int:
    rows = await database.query(select(func.count(Note.id).label("n")))
    return rows[0]["n"]


class TestClampPagination:
    def test_limit_below_one_becomes_one(self):
        assert clamp_pagination(0, 0) == (1, 0)

    def test_limit_above_max_is_capped(self):
        assert clamp_pagination(500, 0) == (MAX_LIMIT, 0)

    def test_negative_offset_becomes_zero(self):
        assert clamp_pagination(10, -5) == (10, 0)

    def test_huge_offset_is_capped(self):
        assert clamp_pagination(10, 10**20) == (10, MAX_OFFSET)

    def test_defaults(self):
        assert DEFAULT_LIMIT == 50
        assert MAX_LIMIT == 100


class TestNoteServiceCreate:
    @pytest.mark.asyncio
    async def test_create_in_own_section(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id, "Work")

        note = await NoteService(database).create_note(user.id, section.id, "Title", "Body")

        assert note.title == "Title"
        assert note.content == "Body"
        assert note.section_id == section.id
        assert note.user_id == user.id
        assert note.created_at == note.updated_at

    @pytest.mark.asyncio
    async def test_missing_title_and_content_default_to_empty(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id)

        note = await NoteService(database).create_note(user.id, str(section.id))

        assert note.title == ""
        assert note.content == ""

    @pytest.mark.asyncio
    async def test_create_in_foreign_section_inserts_nothing(self, database, user_factory, section_factory):
        owner = await user_factory()
        intruder = await user_factory()
        section = await section_factory(owner.id)

        with pytest.raises(NotFoundError) as exc_info:
            await NoteService(database).create_note(intruder.id, section.id, "T", "C")

        assert exc_info.value.message == "Section not found"
        assert await _note_count(database) == 0

    @pytest.mark.asyncio
    async def test_create_with_malformed_section_id(self, database, user_factory):
        user = await user_factory()
        with pytest.raises(NotFoundError) as exc_info:
            await NoteService(database).create_note(user.id, "not-a-uuid", "T", "C")
        assert exc_info.value.message == "Section not found"


class TestNoteServiceList:
    @pytest.mark.asyncio
    async def test_page_and_total(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id)
        other_section = await section_factory(user.id)
        service = NoteService(database)
        for i in range(5):
            await service.create_note(user.id, section.id, f"Note {i}", "x")
        await service.create_note(user.id, other_section.id, "Elsewhere", "x")

        page = await service.list_notes(user.id, section.id, limit=2, offset=1)

        assert page.total == 5
        assert page.limit == 2
        assert page.offset == 1
        assert len(page.notes) == 2
        assert all(n.section_id == section.id for n in page.notes)

    @pytest.mark.asyncio
    async def test_out_of_range_pagination_is_clamped(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id)
        service = NoteService(database)
        await service.create_note(user.id, section.id, "Only", "x")

        page = await service.list_notes(user.id, section.id, limit=0, offset=-5)
        assert (page.limit, page.offset) == (1, 0)
        assert len(page.notes) == 1

        page = await service.list_notes(user.id, section.id, limit=500)
        assert page.limit == MAX_LIMIT

        page = await service.list_notes(user.id, section.id, offset=10**20)
        assert page.offset == MAX_OFFSET
        assert page.notes == []
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_summaries_carry_no_content(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id)
        service = NoteService(database)
        await service.create_note(user.id, section.id, "T", "secret body")

        page = await service.list_notes(user.id, section.id)
        assert not hasattr(page.notes[0], "content")

    @pytest.mark.asyncio
    async def test_foreign_section_is_not_found(self, database, user_factory, section_factory):
        owner = await user_factory()
        intruder = await user_factory()
        section = await section_factory(owner.id)

        with pytest.raises(NotFoundError):
            await NoteService(database).list_notes(intruder.id, section.id)


class TestNoteServiceGet:
    @pytest.mark.asyncio
    async def test_get_own_note(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id)
        service = NoteService(database)
        created = await service.create_note(user.id, section.id, "T", "C")

        fetched = await service.get_note(str(created.id), user.id)
        assert fetched == created

    @pytest.mark.asyncio
    async def test_foreign_malformed_and_missing_ids_look_the_same(
        self, database, user_factory, section_factory
    ):
        owner = await user_factory()
        intruder = await user_factory()
        section = await section_factory(owner.id)
        service = NoteService(database)
        note = await service.create_note(owner.id, section.id, "T", "C")

        for note_id, user_id in (
            (note.id, intruder.id),
            ("nope", owner.id),
            (uuid.uuid4(), owner.id),
        ):
            with pytest.raises(NotFoundError) as exc_info:
                await service.get_note(note_id, user_id)
            assert exc_info.value.message == "Note not found"


class TestNoteServiceUpdate:
    def setup_method(self):
        self.original_title = "Original"
        self.original_content = "Original content"

    async def _make_note(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id)
        note = await NoteService(database).create_note(
            user.id, section.id, self.original_title, self.original_content
        )
        return user, section, note

    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self, database, user_factory, section_factory):
        user, _, note = await self._make_note(database, user_factory, section_factory)

        updated = await NoteService(database).update_note(note.id, user.id, title="New")

        assert updated.title == "New"
        assert updated.content == self.original_content
        assert updated.updated_at >= note.updated_at
        assert updated.created_at == note.created_at

    @pytest.mark.asyncio
    async def test_no_fields_returns_note_unchanged(self, database, user_factory, section_factory):
        user, _, note = await self._make_note(database, user_factory, section_factory)

        updated = await NoteService(database).update_note(note.id, user.id)

        assert updated == note

    @pytest.mark.asyncio
    async def test_move_to_own_section(self, database, user_factory, section_factory):
        user, _, note = await self._make_note(database, user_factory, section_factory)
        target = await section_factory(user.id, "Target")

        updated = await NoteService(database).update_note(note.id, user.id, section_id=str(target.id))

        assert updated.section_id == target.id

    @pytest.mark.asyncio
    async def test_move_to_foreign_section_is_refused(self, database, user_factory, section_factory):
        user, section, note = await self._make_note(database, user_factory, section_factory)
        stranger = await user_factory()
        foreign = await section_factory(stranger.id)
        service = NoteService(database)

        with pytest.raises(NotFoundError) as exc_info:
            await service.update_note(note.id, user.id, title="Moved", section_id=foreign.id)

        assert exc_info.value.message == "Section not found"
        unchanged = await service.get_note(note.id, user.id)
        assert unchanged.section_id == section.id
        assert unchanged.title == self.original_title

    @pytest.mark.asyncio
    async def test_update_foreign_note(self, database, user_factory, section_factory):
        _, _, note = await self._make_note(database, user_factory, section_factory)
        stranger = await user_factory()

        with pytest.raises(NotFoundError) as exc_info:
            await NoteService(database).update_note(note.id, stranger.id, title="Hijack")
        assert exc_info.value.message == "Note not found"


class TestNoteServiceDelete:
    @pytest.mark.asyncio
    async def test_delete_then_gone(self, database, user_factory, section_factory):
        user = await user_factory()
        section = await section_factory(user.id)
        service = NoteService(database)
        note = await service.create_note(user.id, section.id, "T", "C")

        await service.delete_note(note.id, user.id)

        with pytest.raises(NotFoundError):
            await service.get_note(note.id, user.id)
        with pytest.raises(NotFoundError):
            await service.delete_note(note.id, user.id)

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, database, user_factory):
        user = await user_factory()
        with pytest.raises(NotFoundError):
            await NoteService(database).delete_note("12345", user.id)

    @pytest.mark.asyncio
    async def test_foreign_delete_keeps_note(self, database, user_factory, section_factory):
        owner = await user_factory()
        stranger = await user_factory()
        section = await section_factory(owner.id)
        service = NoteService(database)
        note = await service.create_note(owner.id, section.id, "T", "C")

        with pytest.raises(NotFoundError):
            await service.delete_note(note.id, stranger.id)
        assert await _note_count(database) == 1
