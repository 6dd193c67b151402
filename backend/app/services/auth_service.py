"""
Tulisin Backend — Auth Service
===============================

What:  Registration, login and current-user lookup.
How:   Registration runs in one transaction (exists check + insert) so two
       concurrent sign-ups with the same email cannot both succeed; the
       loser hits the UNIQUE constraint, which the connection manager
       classifies as ConflictError as well.

Security Notes:
    - Unknown email and wrong password produce the same message, so login
      cannot be used to enumerate accounts.
    - bcrypt runs in the threadpool (see app.security).
"""

import logging
from dataclasses import dataclass

from app.database import Database
from app.exceptions import AuthenticationError, ConflictError
from app.repositories import users as users_repo
from app.repositories.users import NewUser, UserRecord
from app.security import IssuedToken, PasswordHasher, TokenCodec
from app.services.ids import IdLike, try_parse_id

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class AuthResult:
    user: UserRecord
    token: IssuedToken


class AuthService:
    def __init__(self, db: Database, tokens: TokenCodec, passwords: PasswordHasher):
        self.db = db
        self.tokens = tokens
        self.passwords = passwords

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """Expects `email` already trimmed and lower-cased by the request schema."""
        async with self.db.transaction() as tx:
            if await users_repo.email_exists(tx, email):
                raise ConflictError("Email already exists")
            password_hash = await self.passwords.hash_async(password)
            user = await users_repo.insert_user(
                tx, NewUser(name=name, email=email, password_hash=password_hash)
            )

        logger.info("User registered: %s", user.id)
        return AuthResult(user=user, token=self.tokens.issue(user.id, user.email))

    async def login(self, email: str, password: str) -> AuthResult:
        async with self.db.client() as client:
            user = await users_repo.find_user_by_email(client, email)

        if user is None or not await self.passwords.verify_async(password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)

        return AuthResult(user=user, token=self.tokens.issue(user.id, user.email))

    async def get_current_user(self, user_id: IdLike) -> UserRecord:
        user_uuid = try_parse_id(user_id)
        if user_uuid is None:
            raise AuthenticationError("User not found")

        async with self.db.client() as client:
            user = await users_repo.find_user_by_id(client, user_uuid)

        if user is None:
            raise AuthenticationError("User not found")
        return user
