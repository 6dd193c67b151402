"""Identifier parsing shared by the services."""

import uuid
from typing import Optional, Union

from app.exceptions import NotFoundError

IdLike = Union[str, uuid.UUID]


def try_parse_id(value: IdLike) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


def parse_id_or_404(value: IdLike, not_found_message: str) -> uuid.UUID:
    """
    A malformed id cannot match any row, so it is reported exactly like a
    missing one. Callers never learn whether an id was invalid or absent.
    """
    parsed = try_parse_id(value)
    if parsed is None:
        raise NotFoundError(not_found_message)
    return parsed
