"""Shared pieces of the repository layer."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Union

from sqlalchemy.engine.result import Result
from sqlalchemy.sql import Executable


class Executor(Protocol):
    """
    Anything that can run a statement: a `DatabaseClient` checked out for a
    read sequence or a `DatabaseTransaction`. Repositories never open or
    release connections themselves.
    """

    async def execute(
        self,
        sql: Union[str, Executable],
        params: Optional[Union[Dict[str, Any], List[Dict[str, Any]]]] = None,
    ) -> Result:
        ...


def as_utc(value: datetime) -> datetime:
    # SQLite hands timezone-aware columns back as naive values
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
