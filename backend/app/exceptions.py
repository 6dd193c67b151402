"""
Tulisin Backend — Application Error Taxonomy
=============================================

What:  Typed application errors, each carrying its HTTP status and a stable
       machine-readable code.
Why:   Services raise these for business-rule violations; the connection
       manager raises them for classified storage failures; a single boundary
       handler (app/error_handlers.py) renders any of them as JSON.
How:   Every error is an AppError with `message`, `status_code`, `code`,
       optional client-visible `details` and server-only `context`.

Exception Hierarchy:
    AppError (base)
    ├── ValidationError              → 400 VALIDATION_ERROR (field-level detail list)
    ├── BadRequestError              → 400 BAD_REQUEST (free-form details)
    ├── AuthenticationError          → 401 AUTHENTICATION_ERROR
    ├── AuthorizationError           → 403 AUTHORIZATION_ERROR
    ├── NotFoundError                → 404 NOT_FOUND
    ├── ConflictError                → 409 CONFLICT
    ├── RateLimitError               → 429 RATE_LIMIT
    └── InternalError                → 500 INTERNAL_ERROR (message redacted outside development)
        ├── ConfigurationError
        └── DatabaseNotInitializedError

Security Note:
    `details` is returned to the client; `context` is only logged. Anything
    that could reveal schema or query text belongs in `context`.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"


@dataclass(frozen=True)
class FieldError:
    """One failed field in a ValidationError."""

    field: str
    message: str
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["code"] is None:
            del data["code"]
        return data


class AppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:      User-facing description (safe to return)
        status_code:  HTTP status the boundary handler responds with
        code:         Stable ErrorCode value
        details:      Extra client-visible information
        context:      Debug information (logged, NOT returned)
    """

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        code: Optional[ErrorCode] = None,
    ):
        self.message = message
        self.details = details
        self.context = context or {}
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class ValidationError(AppError):
    """
    Raised when client input fails field validation.

    Example response:
        {
            "error": "Validation failed",
            "details": [{"field": "email", "message": "Email must be a valid email address"}]
        }
    """

    status_code = 400
    code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[List[FieldError]] = None,
    ):
        super().__init__(message=message)
        self.field_errors = list(field_errors or [])

    @classmethod
    def for_field(cls, field: str, message: str, code: Optional[str] = None) -> "ValidationError":
        return cls("Validation failed", [FieldError(field=field, message=message, code=code)])


class BadRequestError(AppError):
    status_code = 400
    code = ErrorCode.BAD_REQUEST

    def __init__(
        self,
        message: str = "Bad request",
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)


class AuthenticationError(AppError):
    status_code = 401
    code = ErrorCode.AUTHENTICATION_ERROR

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message)


class AuthorizationError(AppError):
    status_code = 403
    code = ErrorCode.AUTHORIZATION_ERROR

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message=message)


class NotFoundError(AppError):
    """
    Raised when a requested resource does not exist for the caller.

    Cross-user access also raises this (never AuthorizationError), so a
    client cannot probe for the existence of other users' records.
    """

    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message=message)


class ConflictError(AppError):
    status_code = 409
    code = ErrorCode.CONFLICT

    def __init__(
        self,
        message: str = "Resource already exists",
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)


class RateLimitError(AppError):
    status_code = 429
    code = ErrorCode.RATE_LIMIT

    def __init__(self, message: str = "Too many requests", retry_after: Optional[int] = None):
        details = {"retryAfter": retry_after} if retry_after is not None else None
        super().__init__(message=message, details=details)
        self.retry_after = retry_after


class InternalError(AppError):
    """
    Server-side failure. The boundary handler replaces the message with a
    generic one unless the service runs in development mode.
    """

    status_code = 500
    code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str = "Internal server error",
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)


class ConfigurationError(InternalError):
    """Fatal wiring mistake, e.g. attaching a second database to one application."""


class DatabaseNotInitializedError(InternalError):
    def __init__(self, message: str = "Database not initialized"):
        super().__init__(message=message)
