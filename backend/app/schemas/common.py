"""
Tulisin Backend — Shared Schema Pieces
=======================================

What:  Base model with camelCase JSON aliases, plus the error / success /
       health envelopes every router shares.
Why:   The API speaks camelCase (`sectionId`, `createdAt`) while Python code
       stays snake_case. `populate_by_name` lets tests and services build
       models with either spelling.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def require_text(value: str, empty_message: str) -> str:
    """Strip surrounding whitespace; blank strings are rejected."""
    stripped = value.strip()
    if not stripped:
        raise ValueError(empty_message)
    return stripped


# ══════════════════════════════════════════════════════════════════════════
# Envelopes
# ══════════════════════════════════════════════════════════════════════════


class SuccessResponse(ApiModel):
    success: bool = True
    message: str


class FieldErrorDetail(BaseModel):
    field: str
    message: str
    code: Optional[str] = None


class ErrorResponse(BaseModel):
    """
    Body of every non-validation error.

    Example:
        {"error": "Note not found", "code": "NOT_FOUND"}
    """
    error: str = Field(description="Human-readable error description")
    code: Optional[str] = Field(default=None, description="Machine-readable error code")
    details: Optional[Union[Dict[str, Any], List[Any]]] = Field(default=None)


class ValidationErrorResponse(BaseModel):
    """
    Body of a 400 validation failure.

    Example:
        {"error": "Validation failed",
         "details": [{"field": "email", "message": "Email must be a valid email address"}]}
    """
    error: str
    details: List[FieldErrorDetail]


class HealthResponse(ApiModel):
    """
    What:  Service and database status for load balancers and monitoring.
    Why:   A backend that can't reach its database is effectively down, so
           the check covers the pool, not just the process.
    """
    status: str = Field(description="healthy or unhealthy")
    version: str
    environment: str
    database: str = Field(description="connected or disconnected")
    pool: Dict[str, int] = Field(default_factory=dict)
    uptime_seconds: float
