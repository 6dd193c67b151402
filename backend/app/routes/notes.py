"""
Tulisin Backend — Notes Route Handlers
=======================================

What:  CRUD for notes under /notes; listing is per section and paginated.
Why:   The editor loads one section at a time, newest notes first.
How:   Query parameters for GET /notes are parsed here so malformed values
       get a 400 with a precise message; everything else is delegated to
       NoteService.

Query Parameters (GET /notes):
    sectionId  required, UUID       → 400 "Section ID is required" / "Invalid Section ID format"
    limit      1..100, default 50   → 400 "Limit must be a number between 1 and 100"
    offset     0..2**31-1, default 0     → 400 "Offset must be a non-negative number"
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_current_user, get_note_service
from app.exceptions import BadRequestError
from app.schemas.common import ErrorResponse, SuccessResponse, ValidationErrorResponse
from app.schemas.note import (
    NoteCreateRequest,
    NoteEnvelope,
    NoteListResponse,
    NoteResponse,
    NoteSummaryResponse,
    NoteUpdateRequest,
)
from app.security import TokenPayload
from app.services.ids import try_parse_id
from app.services.note_service import DEFAULT_LIMIT, MAX_LIMIT, MAX_OFFSET, NoteService

router = APIRouter(prefix="/notes", tags=["Notes"])

_COMMON_ERRORS = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
}
_ITEM_ERRORS = {
    **_COMMON_ERRORS,
    404: {"description": "Note or section not found", "model": ErrorResponse},
}


def _parse_int(raw: Optional[str], default: int) -> Optional[int]:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return None


@router.get(
    "",
    response_model=NoteListResponse,
    responses={**_ITEM_ERRORS, 400: {"description": "Bad query parameters", "model": ErrorResponse}},
    summary="List a section's notes (newest first)",
)
async def list_notes(
    section_id: Optional[str] = Query(default=None, alias="sectionId"),
    limit: Optional[str] = Query(default=None, description=f"Items per page (1-{MAX_LIMIT})"),
    offset: Optional[str] = Query(default=None, description="Items to skip"),
    current: TokenPayload = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
) -> NoteListResponse:
    if not section_id:
        raise BadRequestError("Section ID is required")
    section_uuid = try_parse_id(section_id)
    if section_uuid is None:
        raise BadRequestError("Invalid Section ID format")

    parsed_limit = _parse_int(limit, DEFAULT_LIMIT)
    if parsed_limit is None or not 1 <= parsed_limit <= MAX_LIMIT:
        raise BadRequestError(f"Limit must be a number between 1 and {MAX_LIMIT}")

    parsed_offset = _parse_int(offset, 0)
    if parsed_offset is None or not 0 <= parsed_offset <= MAX_OFFSET:
        raise BadRequestError("Offset must be a non-negative number")

    page = await notes.list_notes(current.user_id, section_uuid, parsed_limit, parsed_offset)
    return NoteListResponse(
        notes=[NoteSummaryResponse.model_validate(n) for n in page.notes],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.post(
    "",
    response_model=NoteEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={**_ITEM_ERRORS, 400: {"model": ValidationErrorResponse}},
    summary="Create a note in one of the caller's sections",
)
async def create_note(
    body: NoteCreateRequest,
    current: TokenPayload = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
) -> NoteEnvelope:
    record = await notes.create_note(
        current.user_id,
        body.section_id,
        title=body.title,
        content=body.content,
    )
    return NoteEnvelope(note=NoteResponse.model_validate(record))


@router.get(
    "/{note_id}",
    response_model=NoteEnvelope,
    responses=_ITEM_ERRORS,
    summary="Get one note",
)
async def get_note(
    note_id: str,
    current: TokenPayload = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
) -> NoteEnvelope:
    record = await notes.get_note(note_id, current.user_id)
    return NoteEnvelope(note=NoteResponse.model_validate(record))


@router.put(
    "/{note_id}",
    response_model=NoteEnvelope,
    responses={**_ITEM_ERRORS, 400: {"model": ValidationErrorResponse}},
    summary="Partially update a note",
    description="Only fields present in the body change; an empty body returns the note unchanged.",
)
async def update_note(
    note_id: str,
    body: NoteUpdateRequest,
    current: TokenPayload = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
) -> NoteEnvelope:
    record = await notes.update_note(
        note_id,
        current.user_id,
        title=body.title,
        content=body.content,
        section_id=body.section_id,
    )
    return NoteEnvelope(note=NoteResponse.model_validate(record))


@router.delete(
    "/{note_id}",
    response_model=SuccessResponse,
    responses=_ITEM_ERRORS,
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    current: TokenPayload = Depends(get_current_user),
    notes: NoteService = Depends(get_note_service),
) -> SuccessResponse:
    await notes.delete_note(note_id, current.user_id)
    return SuccessResponse(success=True, message="Note deleted successfully")
