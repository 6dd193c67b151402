"""
Tulisin Backend — Storage Error Classification
===============================================

What:  Translates driver/SQLAlchemy failures into typed application errors.
Why:   Repositories let storage errors propagate untouched; the connection
       manager passes them through `classify_database_error()` so services
       and the boundary handler only ever see AppError subclasses.
How:   1. Read the SQLSTATE from the driver error (asyncpg exposes `sqlstate`,
          SQLAlchemy's adapter mirrors it as `pgcode`).
       2. Drivers without SQLSTATE (SQLite) are classified by message keywords
          into the same codes.
       3. Connectivity failures without a code become a connection error.
       4. The code selects the error kind and a fixed, vendor-independent message.

Mapping (https://www.postgresql.org/docs/current/errcodes-appendix.html):
    23505 unique_violation          → ConflictError   (409)
    23503 foreign_key_violation     → BadRequestError (400)
    23502 not_null_violation        → BadRequestError (400)
    23514 check_violation           → BadRequestError (400)
    42P01 undefined_table           → InternalError   (500)
    42703 undefined_column          → InternalError   (500)
    08000/08003/08006 connection    → InternalError   (500)
    anything else                   → InternalError   (500)
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)

from app.exceptions import AppError, BadRequestError, ConflictError, InternalError

logger = logging.getLogger(__name__)


class SqlState(str, Enum):
    UNIQUE_VIOLATION = "23505"
    FOREIGN_KEY_VIOLATION = "23503"
    NOT_NULL_VIOLATION = "23502"
    CHECK_VIOLATION = "23514"
    UNDEFINED_TABLE = "42P01"
    UNDEFINED_COLUMN = "42703"
    CONNECTION_EXCEPTION = "08000"
    CONNECTION_DOES_NOT_EXIST = "08003"
    CONNECTION_FAILURE = "08006"


SQLSTATE_MAPPING: Dict[str, Tuple[Type[AppError], str]] = {
    SqlState.UNIQUE_VIOLATION.value: (ConflictError, "A record with this information already exists"),
    SqlState.FOREIGN_KEY_VIOLATION.value: (BadRequestError, "Referenced record does not exist"),
    SqlState.NOT_NULL_VIOLATION.value: (BadRequestError, "Required field is missing"),
    SqlState.CHECK_VIOLATION.value: (BadRequestError, "Data violates database constraints"),
    SqlState.UNDEFINED_TABLE.value: (InternalError, "Database table not found"),
    SqlState.UNDEFINED_COLUMN.value: (InternalError, "Database column not found"),
    SqlState.CONNECTION_EXCEPTION.value: (InternalError, "Database connection error"),
    SqlState.CONNECTION_DOES_NOT_EXIST.value: (InternalError, "Database connection error"),
    SqlState.CONNECTION_FAILURE.value: (InternalError, "Database connection error"),
}

FALLBACK_MESSAGE = "Database operation failed"

# Keyword fallback for drivers that don't report SQLSTATE (SQLite, mostly).
# Checked in order; first match wins.
_MESSAGE_KEYWORDS = (
    (("unique constraint", "duplicate key", "unique failed"), SqlState.UNIQUE_VIOLATION),
    (("foreign key constraint", "foreign key"), SqlState.FOREIGN_KEY_VIOLATION),
    (("not null constraint", "null value in column"), SqlState.NOT_NULL_VIOLATION),
    (("check constraint",), SqlState.CHECK_VIOLATION),
    (("no such table",), SqlState.UNDEFINED_TABLE),
    (("no such column", "has no column"), SqlState.UNDEFINED_COLUMN),
)


def _match_any(msg: str, keywords: Tuple[str, ...]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _driver_error(exc: BaseException) -> Optional[BaseException]:
    return getattr(exc, "orig", None) if isinstance(exc, DBAPIError) else None


def extract_sqlstate(exc: BaseException) -> Optional[str]:
    """SQLSTATE reported by the driver, if any."""
    orig = _driver_error(exc)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def extract_constraint(exc: BaseException) -> Optional[str]:
    orig = _driver_error(exc)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
        diag = getattr(candidate, "diag", None)
        if diag is not None and getattr(diag, "constraint_name", None):
            return diag.constraint_name
    return None


def infer_sqlstate(exc: BaseException) -> Optional[str]:
    """
    Best-effort SQLSTATE for errors whose driver did not report one.

    Integrity/operational messages are matched against known keywords;
    remaining operational and pool failures count as lost connections.
    """
    orig = _driver_error(exc)
    message = str(orig if orig is not None else exc).lower()

    if isinstance(exc, DBAPIError):
        for keywords, state in _MESSAGE_KEYWORDS:
            if _match_any(message, keywords):
                return state.value

    if isinstance(exc, (OperationalError, DisconnectionError, PoolTimeoutError, OSError)):
        return SqlState.CONNECTION_FAILURE.value
    return None


def classify_database_error(exc: BaseException, statement: Optional[str] = None) -> AppError:
    """
    Convert a storage failure into an AppError.

    Args:
        exc:        The SQLAlchemy / driver / OS exception that was raised
        statement:  SQL text being executed (logged only, never returned)

    Returns:
        ConflictError, BadRequestError or InternalError. AppErrors pass through unchanged.
    """
    if isinstance(exc, AppError):
        return exc

    sqlstate = extract_sqlstate(exc) or infer_sqlstate(exc)
    constraint = extract_constraint(exc)
    orig = _driver_error(exc)

    context: Dict[str, Any] = {
        "sqlstate": sqlstate,
        "constraint": constraint,
        "statement": statement,
        "error_type": type(orig if orig is not None else exc).__name__,
        "original_error": str(orig if orig is not None else exc),
    }

    mapping = SQLSTATE_MAPPING.get(sqlstate) if sqlstate else None
    if mapping is None:
        logger.error(
            "Unclassified database error (sqlstate=%s): %s",
            sqlstate,
            context["original_error"],
        )
        return InternalError(FALLBACK_MESSAGE, context=context)

    error_cls, message = mapping
    if issubclass(error_cls, InternalError):
        logger.error("Database error %s: %s", sqlstate, context["original_error"])
        return InternalError(message, context=context)

    # Client-side constraint problems: expected, keep the log quiet
    logger.info("Database constraint violation %s (constraint=%s)", sqlstate, constraint)
    details: Dict[str, Any] = {"sqlstate": sqlstate}
    if constraint:
        details["constraint"] = constraint
    return error_cls(message, details=details, context=context)


STORAGE_ERRORS = (SQLAlchemyError, OSError)
