"""
Tulisin Backend — Auth Schemas
===============================

Request bodies for register/login and the user/auth responses.

Normalization:
    Emails are trimmed and lower-cased here, before any lookup or insert,
    so the UNIQUE constraint on users.email behaves case-insensitively.
"""

import re
import uuid
from datetime import datetime

from pydantic import field_validator

from app.schemas.common import ApiModel, require_text

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100


def normalize_email(value: str) -> str:
    email = value.strip()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Email must be a valid email address")
    return email.lower()


def check_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return value


class RegisterRequest(ApiModel):
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        name = require_text(v, "Name cannot be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise ValueError(f"Name must not exceed {MAX_NAME_LENGTH} characters")
        return name

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password(v)


class LoginRequest(ApiModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password(v)


class UserResponse(ApiModel):
    """Public view of a user; the password hash is never part of it."""
    id: uuid.UUID
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class AuthResponse(ApiModel):
    user: UserResponse
    token: str
    expires_at: datetime
