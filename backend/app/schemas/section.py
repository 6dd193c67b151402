"""Tulisin Backend — Section Schemas"""

import uuid
from datetime import datetime
from typing import List

from pydantic import field_validator

from app.schemas.common import ApiModel, require_text

MAX_SECTION_NAME = 100


class SectionRequest(ApiModel):
    """Body of both POST /sections and PUT /sections/{id}; only the name is mutable."""
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        name = require_text(v, "Name cannot be empty")
        if len(name) > MAX_SECTION_NAME:
            raise ValueError(f"Name must not exceed {MAX_SECTION_NAME} characters")
        return name


class SectionResponse(ApiModel):
    id: uuid.UUID
    name: str
    user_id: uuid.UUID
    notes_count: int
    created_at: datetime
    updated_at: datetime


class SectionEnvelope(ApiModel):
    section: SectionResponse


class SectionListResponse(ApiModel):
    sections: List[SectionResponse]
