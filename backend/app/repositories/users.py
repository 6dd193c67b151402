"""
Tulisin Backend — Users Repository
===================================

Data mapping for the `users` table. Lookups are exact matches on the stored
email; normalization happens in the request schema before data gets here.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import insert, select

from app.models import User
from app.repositories.base import Executor, as_utc

_USER_COLUMNS = (
    User.id,
    User.name,
    User.email,
    User.password_hash,
    User.created_at,
    User.updated_at,
)


@dataclass(frozen=True)
class UserRecord:
    id: uuid.UUID
    name: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NewUser:
    name: str
    email: str
    password_hash: str


def _to_record(row: Mapping[str, Any]) -> UserRecord:
    return UserRecord(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )


async def insert_user(executor: Executor, data: NewUser) -> UserRecord:
    stmt = (
        insert(User)
        .values(name=data.name, email=data.email, password_hash=data.password_hash)
        .returning(*_USER_COLUMNS)
    )
    result = await executor.execute(stmt)
    return _to_record(result.mappings().one())


async def find_user_by_email(executor: Executor, email: str) -> Optional[UserRecord]:
    result = await executor.execute(select(*_USER_COLUMNS).where(User.email == email))
    row = result.mappings().one_or_none()
    return _to_record(row) if row is not None else None


async def find_user_by_id(executor: Executor, user_id: uuid.UUID) -> Optional[UserRecord]:
    result = await executor.execute(select(*_USER_COLUMNS).where(User.id == user_id))
    row = result.mappings().one_or_none()
    return _to_record(row) if row is not None else None


async def email_exists(executor: Executor, email: str) -> bool:
    result = await executor.execute(select(User.id).where(User.email == email).limit(1))
    return result.first() is not None
