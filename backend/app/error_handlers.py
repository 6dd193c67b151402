"""
Tulisin Backend — Boundary Error Mapper
========================================

What:  Turns every exception that escapes a route into a JSON error response.
Why:   Routes and services just raise; one place decides status codes, body
       shape, log severity and what may be shown to the client.
How:   FastAPI exception handlers registered by `register_exception_handlers()`.

Response Shapes:
    Validation (400):  {"error": "Validation failed", "details": [{field, message, code?}]}
    Other AppError:    {"error": <message>, "code": <CODE>, "details"?: {...}}
    Internal (500):    {"error": "Internal server error", "code": "INTERNAL_ERROR"}
                       In development the real message is kept and
                       details.name / details.stack are added.

Logging:
    5xx → ERROR (traceback for unexpected exceptions), 4xx → WARNING.
    AppError.context is logged, never returned.
"""

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import AppError, ErrorCode, FieldError, InternalError, ValidationError
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

GENERIC_INTERNAL_MESSAGE = "Internal server error"
BODY_MESSAGE = "Request body must be a valid JSON object"

_HTTP_STATUS_CODES = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.AUTHENTICATION_ERROR,
    403: ErrorCode.AUTHORIZATION_ERROR,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    429: ErrorCode.RATE_LIMIT,
}


def _stack_of(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def error_body(exc: AppError, debug: bool = False) -> Dict[str, Any]:
    """JSON body for an AppError. `debug` exposes internal messages and stacks."""
    if isinstance(exc, ValidationError):
        return {
            "error": exc.message,
            "details": [field_error.to_dict() for field_error in exc.field_errors],
        }

    if exc.is_server_error:
        if not debug:
            return {"error": GENERIC_INTERNAL_MESSAGE, "code": ErrorCode.INTERNAL_ERROR.value}
        cause = exc.__cause__ or exc
        details = dict(exc.details or {})
        details.update({"name": type(cause).__name__, "stack": _stack_of(cause)})
        return {"error": exc.message, "code": exc.code.value, "details": details}

    body: Dict[str, Any] = {"error": exc.message, "code": exc.code.value}
    if exc.details:
        body["details"] = exc.details
    return body


def error_response(exc: AppError, debug: bool = False) -> JSONResponse:
    headers = None
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        headers = {"Retry-After": str(retry_after)}
    return JSONResponse(status_code=exc.status_code, content=error_body(exc, debug), headers=headers)


def field_errors_from(exc: RequestValidationError) -> List[FieldError]:
    """
    Flatten Pydantic errors into FieldErrors.

    Field names come from the request location, which already uses the
    camelCase aliases (`sectionId`). A body that is not a JSON object, or
    not JSON at all, is reported on the pseudo-field `body`.
    """
    field_errors: List[FieldError] = []
    for err in exc.errors():
        loc = tuple(err.get("loc") or ())
        err_type = err.get("type", "")

        if err_type == "json_invalid" or loc == ("body",):
            field_errors.append(FieldError(field="body", message=BODY_MESSAGE, code=err_type))
            continue

        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        parts = [str(part) for part in loc]
        field = ".".join(parts) or "body"
        if err_type == "value_error" and err.get("ctx", {}).get("error") is not None:
            message = str(err["ctx"]["error"])
        else:
            message = err.get("msg", "Invalid value")
        field_errors.append(FieldError(field=field, message=message, code=err_type))
    return field_errors


def _log(request: Request, exc: AppError, exc_info: Optional[BaseException] = None) -> None:
    rid = request_id_var.get("")
    if exc.is_server_error:
        logger.error(
            "[%s] %s %s → %d %s | context=%s",
            rid, request.method, request.url.path, exc.status_code, exc.message, exc.context,
            exc_info=exc_info,
        )
    else:
        logger.warning(
            "[%s] %s %s → %d %s",
            rid, request.method, request.url.path, exc.status_code, exc.message,
        )


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """
    Handler order (most specific wins):
        AppError               → its own status / code
        RequestValidationError → 400 Validation
        HTTPException          → status kept, `{error, code}` body
        Exception              → 500 Internal
    """

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        _log(request, exc, exc_info=exc.__cause__ if exc.is_server_error else None)
        return error_response(exc, debug)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = ValidationError("Validation failed", field_errors_from(exc))
        _log(request, error)
        return error_response(error, debug)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = _HTTP_STATUS_CODES.get(exc.status_code)
        if code is None:
            code = ErrorCode.INTERNAL_ERROR if exc.status_code >= 500 else ErrorCode.BAD_REQUEST
        error = AppError(str(exc.detail), status_code=exc.status_code, code=code)
        _log(request, error)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": error.message, "code": code.value},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        error = InternalError(
            str(exc) or GENERIC_INTERNAL_MESSAGE,
            context={"error_type": type(exc).__name__},
        )
        error.__cause__ = exc
        _log(request, error, exc_info=exc)
        return error_response(error, debug)
