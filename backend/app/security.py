"""
Tulisin Backend — Password Hashing & Access Tokens
===================================================

What:  bcrypt password hashing (passlib) and HS256 access tokens (python-jose).
Why:   Credentials are never stored or compared in plain text; tokens let the
       API stay stateless (logout is a client-side token drop).
How:   `PasswordHasher` wraps a passlib CryptContext. Hashing is CPU-bound, so
       the async helpers push it onto Starlette's threadpool to keep the event
       loop responsive. `TokenCodec` signs `{sub, email, iat, exp}` and turns
       every decode failure into an AuthenticationError.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class PasswordHasher:
    def __init__(self, rounds: int = 10):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return self._context.verify(password, password_hash)

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.verify, password, password_hash)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenPayload:
    user_id: uuid.UUID
    email: str


class TokenCodec:
    """Signs and verifies access tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 10_080):
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = timedelta(minutes=expires_minutes)

    def issue(self, user_id: uuid.UUID, email: str) -> IssuedToken:
        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = issued_at + self._lifetime
        claims = {
            "sub": str(user_id),
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def decode(self, token: str) -> TokenPayload:
        """
        Verify signature and expiry.

        Raises:
            AuthenticationError: "Token expired" or "Invalid token"
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except JWTError as e:
            logger.debug("Rejected access token: %s", e)
            raise AuthenticationError("Invalid token")

        subject = claims.get("sub")
        try:
            user_id = uuid.UUID(str(subject))
        except ValueError:
            raise AuthenticationError("Invalid token")
        return TokenPayload(user_id=user_id, email=str(claims.get("email", "")))


def build_password_hasher(settings: Settings) -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_salt_rounds)


def build_token_codec(settings: Settings) -> TokenCodec:
    return TokenCodec(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_expires_minutes,
    )
