"""
Tulisin Backend — FastAPI Dependencies
=======================================

What:  Request-scoped wiring: database handle, services, current user.
How:   Long-lived collaborators (Database, TokenCodec, PasswordHasher) live on
       `app.state` and are set up by the application factory; services are
       cheap objects built per request around them.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.database import Database, get_database
from app.exceptions import AuthenticationError
from app.security import PasswordHasher, TokenCodec, TokenPayload
from app.services.auth_service import AuthService
from app.services.note_service import NoteService
from app.services.section_service import SectionService

# auto_error=False: a missing header must produce our 401 body, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenCodec = Depends(get_token_codec),
) -> TokenPayload:
    """
    Resolve `Authorization: Bearer <token>` into the caller's identity.

    Raises:
        AuthenticationError: no token, bad signature, or expired token
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return tokens.decode(credentials.credentials)


def get_note_service(db: Database = Depends(get_database)) -> NoteService:
    return NoteService(db)


def get_section_service(db: Database = Depends(get_database)) -> SectionService:
    return SectionService(db)


def get_auth_service(
    db: Database = Depends(get_database),
    tokens: TokenCodec = Depends(get_token_codec),
    passwords: PasswordHasher = Depends(get_password_hasher),
) -> AuthService:
    return AuthService(db, tokens, passwords)
