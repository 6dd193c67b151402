"""
Tulisin Backend — Connection Manager
=====================================

What:  Async SQLAlchemy engine wrapper exposing single statements, checked-out
       clients and explicit transactions, plus the declarative Base.
Why:   Centralizes all connection handling so no other layer can leak a
       pooled connection or observe a half-applied write.
How:   A `Database` owns one AsyncEngine (connection pool). Callers either
       run one statement (`query`), check out a client for a read sequence
       (`client()` / `acquire_client()`), or run a write sequence inside a
       transaction (`transaction()` / `execute_in_transaction()`).
       Every storage failure is translated by app.database_errors.
Who:   Constructed by the application factory and stored on `app.state`;
       services receive it through the `get_database` dependency.
When:  Engine is created when the app is built; connections are opened lazily.

Release Guarantees:
    - client():       connection returned to the pool on every exit path
    - transaction():  commit on success, rollback + re-raise on any error;
                      commit/rollback release the connection even when the
                      COMMIT/ROLLBACK statement itself fails
    - close():        disposes the pool once; later use raises
                      DatabaseNotInitializedError

Connection Pooling Strategy (PostgreSQL):
    pool_size:      persistent connections (DB_POOL_SIZE)
    max_overflow:   temporary connections for bursts (DB_MAX_OVERFLOW)
    pool_recycle:   idle connections are recycled after DB_IDLE_TIMEOUT seconds
    pool_timeout:   checkout waits at most DB_CONNECTION_TIMEOUT seconds
    pool_pre_ping:  validates connections before use
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from fastapi import FastAPI, Request
from sqlalchemy import event, text
from sqlalchemy.engine import RowMapping, make_url
from sqlalchemy.engine.result import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncTransaction, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from sqlalchemy.sql import Executable

from app.config import Settings
from app.database_errors import STORAGE_ERRORS, classify_database_error
from app.exceptions import (
    AppError,
    ConfigurationError,
    DatabaseNotInitializedError,
    InternalError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Statement = Union[str, Executable]
Params = Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers tables with a single metadata object, used by Alembic for
    migrations and by the test suite to create the schema.
    """
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection and pool parameters for one Database."""

    url: str
    pool_size: int = 20
    max_overflow: int = 10
    idle_timeout: int = 30
    connection_timeout: int = 2
    echo: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseConfig":
        return cls(
            url=settings.sqlalchemy_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            idle_timeout=settings.db_idle_timeout,
            connection_timeout=settings.db_connection_timeout,
            echo=settings.log_level == "DEBUG",
        )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_config(config: DatabaseConfig) -> AsyncEngine:
    """
    Build the AsyncEngine for a DatabaseConfig.

    SQLite (used by the test suite) gets a NullPool and foreign key
    enforcement; every other backend gets the sized, recycled pool.
    """
    url = make_url(config.url)
    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(url, echo=config.echo, poolclass=NullPool)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    connect_args: Dict[str, Any] = {}
    if url.get_driver_name() == "asyncpg":
        connect_args["timeout"] = config.connection_timeout

    return create_async_engine(
        url,
        echo=config.echo,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.connection_timeout,
        pool_recycle=config.idle_timeout,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def _as_statement(sql: Statement) -> Executable:
    return text(sql) if isinstance(sql, str) else sql


def _describe(statement: Executable) -> str:
    try:
        return str(statement)
    except SQLAlchemyError:
        return type(statement).__name__


class DatabaseClient:
    """
    One physical connection checked out of the pool.

    Used for a bounded sequence of reads. The owner must call `release()`
    exactly once; `Database.client()` does that automatically.
    """

    def __init__(self, connection: AsyncConnection):
        self._connection = connection
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    async def execute(self, sql: Statement, params: Params = None) -> Result:
        """Execute one statement; storage failures surface as AppError."""
        if self._released:
            raise InternalError("Database connection already released")
        statement = _as_statement(sql)
        try:
            return await self._connection.execute(statement, params)
        except STORAGE_ERRORS as exc:
            raise classify_database_error(exc, _describe(statement)) from exc

    async def query(self, sql: Statement, params: Params = None) -> List[RowMapping]:
        """Execute one statement and return its rows as mappings."""
        result = await self.execute(sql, params)
        if not result.returns_rows:
            return []
        return list(result.mappings().all())

    async def release(self) -> None:
        """Return the connection to the pool. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        try:
            await self._connection.close()
        except STORAGE_ERRORS as exc:
            # The pool invalidates the connection itself; nothing left to undo
            logger.warning("Failed to return connection to pool: %s", exc)


class DatabaseTransaction(DatabaseClient):
    """
    A checked-out connection with an open transaction.

    `commit()` and `rollback()` both end the transaction and release the
    connection, even when the COMMIT/ROLLBACK statement raises.
    """

    def __init__(self, connection: AsyncConnection, transaction: AsyncTransaction):
        super().__init__(connection)
        self._transaction = transaction

    @property
    def is_active(self) -> bool:
        return not self._released and self._transaction.is_active

    async def commit(self) -> None:
        if self._released:
            raise InternalError("Transaction already finished")
        try:
            await self._transaction.commit()
        except STORAGE_ERRORS as exc:
            raise classify_database_error(exc, "COMMIT") from exc
        finally:
            await self.release()

    async def rollback(self) -> None:
        if self._released:
            return
        try:
            await self._transaction.rollback()
        except STORAGE_ERRORS as exc:
            raise classify_database_error(exc, "ROLLBACK") from exc
        finally:
            await self.release()


class Database:
    """
    Owner of the connection pool.

    Lifecycle:
        1. Constructed once by the application factory (pool is lazy)
        2. `test_connection()` at startup verifies connectivity
        3. Services run statements through clients and transactions
        4. `close()` at shutdown disposes the pool exactly once
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._engine: Optional[AsyncEngine] = create_engine_from_config(config)
        self._healthy = False

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseNotInitializedError()
        return self._engine

    @property
    def is_closed(self) -> bool:
        return self._engine is None

    # ── Connections ───────────────────────────────────────────────────────

    async def _connect(self) -> AsyncConnection:
        engine = self.engine
        try:
            connection = await engine.connect()
        except STORAGE_ERRORS as exc:
            self._healthy = False
            raise classify_database_error(exc, "CONNECT") from exc
        self._healthy = True
        return connection

    async def acquire_client(self) -> DatabaseClient:
        """Check out a connection. The caller MUST release it."""
        return DatabaseClient(await self._connect())

    @asynccontextmanager
    async def client(self) -> AsyncIterator[DatabaseClient]:
        """Scoped client: released on every exit path."""
        client = await self.acquire_client()
        try:
            yield client
        finally:
            await client.release()

    async def begin_transaction(self) -> DatabaseTransaction:
        """Check out a connection and BEGIN. The caller MUST commit or roll back."""
        connection = await self._connect()
        try:
            transaction = await connection.begin()
        except STORAGE_ERRORS as exc:
            await connection.close()
            raise classify_database_error(exc, "BEGIN") from exc
        return DatabaseTransaction(connection, transaction)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[DatabaseTransaction]:
        """
        Scoped transaction: commit on normal exit, rollback and re-raise on error.

        A failing ROLLBACK is logged; the error from the block is what propagates.
        """
        tx = await self.begin_transaction()
        try:
            yield tx
        except BaseException:
            try:
                await tx.rollback()
            except AppError as rollback_error:
                logger.error("Rollback failed: %s", rollback_error.message)
            raise
        if tx.is_active:
            await tx.commit()

    async def execute_in_transaction(self, fn: Callable[[DatabaseTransaction], Awaitable[T]]) -> T:
        """Run `fn` inside one transaction; all of its statements apply or none do."""
        async with self.transaction() as tx:
            return await fn(tx)

    async def query(self, sql: Statement, params: Params = None) -> List[RowMapping]:
        """Run a single statement in its own short transaction and return its rows."""
        async with self.transaction() as tx:
            return await tx.query(sql, params)

    # ── Health ────────────────────────────────────────────────────────────

    async def test_connection(self) -> None:
        """Round-trip `SELECT 1`; raises InternalError when unreachable."""
        try:
            async with self.client() as client:
                await client.execute("SELECT 1")
        except AppError as exc:
            self._healthy = False
            raise InternalError(
                "Failed to connect to database",
                context={"original_error": exc.message, **exc.context},
            ) from exc
        self._healthy = True
        logger.debug("Database connection check passed")

    def is_healthy(self) -> bool:
        return self._healthy and not self.is_closed

    def pool_info(self) -> Dict[str, int]:
        """Current pool occupancy; zeros for pools that don't track it."""
        pool = self.engine.pool
        info = {}
        for key, attr in (
            ("size", "size"),
            ("checked_in", "checkedin"),
            ("checked_out", "checkedout"),
            ("overflow", "overflow"),
        ):
            method = getattr(pool, attr, None)
            info[key] = int(method()) if callable(method) else 0
        return info

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Dispose the pool. Later calls are no-ops; later use raises."""
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        self._healthy = False
        await engine.dispose()
        logger.info("Database connection pool closed")


# ── Application wiring ────────────────────────────────────────────────────

def attach_database(app: FastAPI, database: Database) -> Database:
    """
    Bind a Database to an application.

    Raises:
        ConfigurationError: the application already owns a Database
    """
    if getattr(app.state, "database", None) is not None:
        raise ConfigurationError("Database already initialized")
    app.state.database = database
    return database


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's Database."""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None or database.is_closed:
        raise DatabaseNotInitializedError()
    return database
