"""
Tulisin Backend — Section Route Handlers
=========================================

What:  CRUD for the caller's sections under /sections.
How:   Path ids arrive as strings; a malformed id is reported as 404 by the
       service, exactly like an id that belongs to someone else.
"""

from fastapi import APIRouter, Depends, status

from app.dependencies import get_current_user, get_section_service
from app.schemas.common import ErrorResponse, SuccessResponse, ValidationErrorResponse
from app.schemas.section import (
    SectionEnvelope,
    SectionListResponse,
    SectionRequest,
    SectionResponse,
)
from app.security import TokenPayload
from app.services.section_service import SectionService

router = APIRouter(prefix="/sections", tags=["Sections"])

_COMMON_ERRORS = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
}
_ITEM_ERRORS = {
    **_COMMON_ERRORS,
    404: {"description": "Section not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=SectionListResponse,
    responses=_COMMON_ERRORS,
    summary="List sections with their notes counts",
)
async def list_sections(
    current: TokenPayload = Depends(get_current_user),
    sections: SectionService = Depends(get_section_service),
) -> SectionListResponse:
    records = await sections.list_sections(current.user_id)
    return SectionListResponse(sections=[SectionResponse.model_validate(r) for r in records])


@router.post(
    "",
    response_model=SectionEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={**_COMMON_ERRORS, 400: {"model": ValidationErrorResponse}},
    summary="Create a section",
)
async def create_section(
    body: SectionRequest,
    current: TokenPayload = Depends(get_current_user),
    sections: SectionService = Depends(get_section_service),
) -> SectionEnvelope:
    record = await sections.create_section(current.user_id, body.name)
    return SectionEnvelope(section=SectionResponse.model_validate(record))


@router.get(
    "/{section_id}",
    response_model=SectionEnvelope,
    responses=_ITEM_ERRORS,
    summary="Get one section",
)
async def get_section(
    section_id: str,
    current: TokenPayload = Depends(get_current_user),
    sections: SectionService = Depends(get_section_service),
) -> SectionEnvelope:
    record = await sections.get_section(section_id, current.user_id)
    return SectionEnvelope(section=SectionResponse.model_validate(record))


@router.put(
    "/{section_id}",
    response_model=SectionEnvelope,
    responses={**_ITEM_ERRORS, 400: {"model": ValidationErrorResponse}},
    summary="Rename a section",
)
async def update_section(
    section_id: str,
    body: SectionRequest,
    current: TokenPayload = Depends(get_current_user),
    sections: SectionService = Depends(get_section_service),
) -> SectionEnvelope:
    record = await sections.update_section(section_id, current.user_id, body.name)
    return SectionEnvelope(section=SectionResponse.model_validate(record))


@router.delete(
    "/{section_id}",
    response_model=SuccessResponse,
    responses={
        **_ITEM_ERRORS,
        409: {"description": "Section still contains notes", "model": ErrorResponse},
    },
    summary="Delete an empty section",
)
async def delete_section(
    section_id: str,
    current: TokenPayload = Depends(get_current_user),
    sections: SectionService = Depends(get_section_service),
) -> SuccessResponse:
    await sections.delete_section(section_id, current.user_id)
    return SuccessResponse(success=True, message="Section deleted successfully")
