"""
Tulisin Backend — Connection Manager Tests
===========================================

What we test:
    ✅ Single statements, scoped clients and transactions against SQLite
    ✅ Commit on success, rollback + original error on failure
    ✅ Connections released on every exit path (including failing BEGIN/COMMIT)
    ✅ Storage errors arrive classified (Conflict / BadRequest)
    ✅ Lifecycle: attach once, close once, unusable after close
"""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.database import (
    Database,
    DatabaseConfig,
    DatabaseTransaction,
    attach_database,
    get_database,
)
from app.exceptions import (
    BadRequestError,
    ConfigurationError,
    ConflictError,
    DatabaseNotInitializedError,
    InternalError,
)
from app.models import User
from app.repositories import notes as notes_repo
from app.repositories import users as users_repo
from app.repositories.notes import NewNote
from app.repositories.users import NewUser


async def _count_users(database: Database) -> int:
    rows = await database.query(select(func.count(User.id).label("n")))
    return rows[0]["n"]


class TestQuery:
    @pytest.mark.asyncio
    async def test_text_statement_returns_mappings(self, database):
        rows = await database.query("SELECT 1 AS one")
        assert rows[0]["one"] == 1

    @pytest.mark.asyncio
    async def test_bound_parameters(self, database):
        rows = await database.query("SELECT :value AS echoed", {"value": 42})
        assert len(rows) == 1
        assert rows[0]["echoed"] == 42

    @pytest.mark.asyncio
    async def test_write_through_query_is_committed(self, database):
        await database.query(
            "INSERT INTO users (id, name, email, password_hash, created_at, updated_at) "
            "VALUES (:id, 'Q', 'q@example.com', 'h', '2024-01-01 00:00:00', '2024-01-01 00:00:00')",
            {"id": uuid.uuid4().hex},
        )
        assert await _count_users(database) == 1


class TestClient:
    @pytest.mark.asyncio
    async def test_scoped_client_released_after_success(self, database):
        async with database.client() as client:
            await client.execute("SELECT 1")
        assert client.released

    @pytest.mark.asyncio
    async def test_scoped_client_released_after_error(self, database):
        with pytest.raises(RuntimeError):
            async with database.client() as client:
                raise RuntimeError("boom")
        assert client.released

    @pytest.mark.asyncio
    async def test_acquired_client_release_is_idempotent(self, database):
        client = await database.acquire_client()
        await client.release()
        await client.release()
        assert client.released

    @pytest.mark.asyncio
    async def test_released_client_rejects_statements(self, database):
        client = await database.acquire_client()
        await client.release()
        with pytest.raises(InternalError):
            await client.execute("SELECT 1")


class TestTransactions:
    @pytest.mark.asyncio
    async def test_commit_on_success(self, database):
        async with database.transaction() as tx:
            await users_repo.insert_user(tx, NewUser(name="A", email="a@x.com", password_hash="h"))
        assert await _count_users(database) == 1

    @pytest.mark.asyncio
    async def test_rollback_and_reraise_original_error(self, database):
        class Boom(Exception):
            pass

        with pytest.raises(Boom):
            async with database.transaction() as tx:
                await users_repo.insert_user(tx, NewUser(name="A", email="a@x.com", password_hash="h"))
                raise Boom()

        assert tx.released
        assert await _count_users(database) == 0

    @pytest.mark.asyncio
    async def test_execute_in_transaction_returns_callback_result(self, database):
        async def create(tx):
            return await users_repo.insert_user(tx, NewUser(name="B", email="b@x.com", password_hash="h"))

        user = await database.execute_in_transaction(create)
        assert user.email == "b@x.com"
        assert await _count_users(database) == 1

    @pytest.mark.asyncio
    async def test_execute_in_transaction_is_all_or_nothing(self, database):
        async def two_inserts(tx):
            await users_repo.insert_user(tx, NewUser(name="A", email="dup@x.com", password_hash="h"))
            await users_repo.insert_user(tx, NewUser(name="B", email="dup@x.com", password_hash="h"))

        with pytest.raises(ConflictError):
            await database.execute_in_transaction(two_inserts)
        assert await _count_users(database) == 0

    @pytest.mark.asyncio
    async def test_manual_commit_releases_and_cannot_repeat(self, database):
        tx = await database.begin_transaction()
        await tx.execute("SELECT 1")
        await tx.commit()
        assert tx.released
        with pytest.raises(InternalError):
            await tx.commit()

    @pytest.mark.asyncio
    async def test_rollback_after_finish_is_noop(self, database):
        tx = await database.begin_transaction()
        await tx.rollback()
        await tx.rollback()
        assert tx.released


class TestErrorTranslation:
    @pytest.mark.asyncio
    async def test_unique_violation_becomes_conflict(self, database, user_factory):
        await user_factory("same@x.com")
        with pytest.raises(ConflictError) as exc_info:
            async with database.transaction() as tx:
                await users_repo.insert_user(tx, NewUser(name="X", email="same@x.com", password_hash="h"))
        assert exc_info.value.message == "A record with this information already exists"

    @pytest.mark.asyncio
    async def test_foreign_key_violation_becomes_bad_request(self, database, user_factory):
        user = await user_factory()
        with pytest.raises(BadRequestError) as exc_info:
            async with database.transaction() as tx:
                await notes_repo.insert_note(tx, NewNote(user_id=user.id, section_id=uuid.uuid4()))
        assert exc_info.value.message == "Referenced record does not exist"

    @pytest.mark.asyncio
    async def test_missing_table_is_internal(self, database):
        with pytest.raises(InternalError) as exc_info:
            await database.query("SELECT * FROM no_such_table")
        assert exc_info.value.message == "Database table not found"
        # The statement stays in server-side context only
        assert exc_info.value.details is None
        assert "no_such_table" in exc_info.value.context["statement"]


class TestReleaseOnDriverFailure:
    @pytest.mark.asyncio
    async def test_failed_begin_releases_connection(self, database):
        connection = MagicMock()
        connection.begin = AsyncMock(
            side_effect=OperationalError("BEGIN", {}, Exception("disk I/O error"))
        )
        connection.close = AsyncMock()

        with patch.object(database, "_connect", AsyncMock(return_value=connection)):
            with pytest.raises(InternalError) as exc_info:
                await database.begin_transaction()

        connection.close.assert_awaited_once()
        assert exc_info.value.message == "Database connection error"

    @pytest.mark.asyncio
    async def test_failed_commit_still_releases(self):
        connection = MagicMock()
        connection.close = AsyncMock()
        transaction = MagicMock()
        transaction.commit = AsyncMock(
            side_effect=OperationalError("COMMIT", {}, Exception("server closed the connection"))
        )

        tx = DatabaseTransaction(connection, transaction)
        with pytest.raises(InternalError):
            await tx.commit()

        connection.close.assert_awaited_once()
        assert tx.released

    @pytest.mark.asyncio
    async def test_failed_rollback_keeps_original_error(self, database):
        class Boom(Exception):
            pass

        connection = MagicMock()
        connection.close = AsyncMock()
        transaction = MagicMock()
        transaction.rollback = AsyncMock(side_effect=OperationalError("ROLLBACK", {}, Exception("gone")))
        tx = DatabaseTransaction(connection, transaction)

        with patch.object(database, "begin_transaction", AsyncMock(return_value=tx)):
            with pytest.raises(Boom):
                async with database.transaction():
                    raise Boom()

        connection.close.assert_awaited_once()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_test_connection_marks_healthy(self, database):
        assert not database.is_healthy()
        await database.test_connection()
        assert database.is_healthy()

    @pytest.mark.asyncio
    async def test_pool_info_keys(self, database):
        info = database.pool_info()
        assert set(info) == {"size", "checked_in", "checked_out", "overflow"}

    @pytest.mark.asyncio
    async def test_close_is_idempotent_and_final(self, test_settings):
        db = Database(DatabaseConfig.from_settings(test_settings))
        await db.close()
        await db.close()

        assert db.is_closed
        assert not db.is_healthy()
        with pytest.raises(DatabaseNotInitializedError):
            await db.acquire_client()
        with pytest.raises(DatabaseNotInitializedError):
            await db.query("SELECT 1")
        with pytest.raises(DatabaseNotInitializedError):
            db.pool_info()

    @pytest.mark.asyncio
    async def test_attach_twice_is_configuration_error(self, test_settings):
        app = FastAPI()
        first = Database(DatabaseConfig.from_settings(test_settings))
        second = Database(DatabaseConfig.from_settings(test_settings))
        try:
            attach_database(app, first)
            with pytest.raises(ConfigurationError) as exc_info:
                attach_database(app, second)
            assert exc_info.value.message == "Database already initialized"
            assert app.state.database is first
        finally:
            await first.close()
            await second.close()

    @pytest.mark.asyncio
    async def test_get_database_requires_open_handle(self, test_settings):
        app = FastAPI()
        request = MagicMock()
        request.app = app
        with pytest.raises(DatabaseNotInitializedError):
            get_database(request)

        db = attach_database(app, Database(DatabaseConfig.from_settings(test_settings)))
        assert get_database(request) is db

        await db.close()
        with pytest.raises(DatabaseNotInitializedError):
            get_database(request)


class TestConfig:
    def test_from_settings(self, test_settings):
        config = DatabaseConfig.from_settings(test_settings)
        assert config.url == test_settings.sqlalchemy_url
        assert config.pool_size == test_settings.db_pool_size
        assert config.idle_timeout == test_settings.db_idle_timeout
        assert config.connection_timeout == test_settings.db_connection_timeout
