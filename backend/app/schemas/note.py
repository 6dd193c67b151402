"""
Tulisin Backend — Note Schemas
===============================

What:  Request bodies and responses for the /notes endpoints.
Why:   Field rules live here so routes and services receive clean values:
       titles and content are optional, but when sent they must not be blank.
How:   Create requires `sectionId`; update treats every field as optional and
       only the ones present in the body reach the repository. Section ids
       stay strings here; the service parses them (a malformed id simply
       matches no section).

Pagination:
    Offset-based (`limit` + `offset`) with a `total` for the filter, since
    the client renders numbered pages per section.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from app.schemas.common import ApiModel, require_text

MAX_TITLE_LENGTH = 200


class _NoteFields(ApiModel):
    title: Optional[str] = None
    content: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if not v.strip():
            raise ValueError("Title cannot be empty")
        if len(v) > MAX_TITLE_LENGTH:
            raise ValueError(f"Title must not exceed {MAX_TITLE_LENGTH} characters")
        return v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Content cannot be empty")
        return v


class NoteCreateRequest(_NoteFields):
    section_id: str

    @field_validator("section_id")
    @classmethod
    def validate_section_id(cls, v: str) -> str:
        return require_text(v, "Section ID cannot be empty")


class NoteUpdateRequest(_NoteFields):
    section_id: Optional[str] = None

    @field_validator("section_id")
    @classmethod
    def validate_section_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return require_text(v, "Section ID cannot be empty")


class NoteSummaryResponse(ApiModel):
    """List item: everything except the note body."""
    id: uuid.UUID
    title: str
    section_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class NoteResponse(NoteSummaryResponse):
    content: str


class NoteEnvelope(ApiModel):
    note: NoteResponse


class NoteListResponse(ApiModel):
    notes: List[NoteSummaryResponse]
    total: int
    limit: int
    offset: int
