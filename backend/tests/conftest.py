"""
Tulisin Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the whole suite.
How:   Integration tests run against a throwaway SQLite file through
       aiosqlite, so no PostgreSQL server is needed. The schema is created
       from Base.metadata for every test; nothing is shared between tests.

Fixture Hierarchy (all function-scoped):
    test_settings ── database ── app ── client
                          └── user_factory / section_factory
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator, Dict

# Must be set before anything imports app.config / app.main
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='tulisin_test_')}/import.db",
)
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import app.models  # noqa: F401  (registers tables)
from app.config import Settings
from app.database import Base, Database, DatabaseConfig
from app.main import create_app
from app.repositories import sections as sections_repo
from app.repositories import users as users_repo
from app.repositories.users import NewUser

API = "/api/v1"


# ══════════════════════════════════════════════════════════════════════════
# Configuration & Database
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/tulisin.db",
        environment="test",
        jwt_secret="test-secret-not-real",
        bcrypt_salt_rounds=4,
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database(test_settings) -> AsyncGenerator[Database, None]:
    """A Database with the full schema created; closed after the test."""
    db = Database(DatabaseConfig.from_settings(test_settings))
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.close()


# ══════════════════════════════════════════════════════════════════════════
# Data Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def user_factory(database):
    """
    Inserts a user directly through the repository.

    Usage:
        user = await user_factory("a@x.com")
    """
    async def make(email: str = None, name: str = "Test User"):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        async with database.transaction() as tx:
            return await users_repo.insert_user(
                tx, NewUser(name=name, email=email, password_hash="not-a-real-hash")
            )
    return make


@pytest.fixture
def section_factory(database):
    async def make(user_id: uuid.UUID, name: str = "Section"):
        async with database.transaction() as tx:
            return await sections_repo.insert_section(tx, user_id, name)
    return make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(test_settings, database):
    return create_app(test_settings, database=database)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX client talking to the app in-process.

    ASGITransport does not run the lifespan; the `database` fixture already
    owns the schema and shutdown.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(client):
    """
    Registers through the API and returns (token, user_json).

    Usage:
        token, user = await register_user("a@x.com")
    """
    async def do_register(email: str, name: str = "Tester", password: str = "abcdef"):
        response = await client.post(
            f"{API}/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"]
    return do_register


@pytest.fixture
def headers_for():
    return auth_headers
