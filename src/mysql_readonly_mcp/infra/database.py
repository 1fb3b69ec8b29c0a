"""
Database connection pool management - MySQL (SQLite for local runs and tests).
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from mysql_readonly_mcp.config.constants import (
    KILL_QUERY_TIMEOUT_SECONDS,
    STARTUP_PING_TIMEOUT_SECONDS,
)
from mysql_readonly_mcp.config.settings import MySQLSettings
from mysql_readonly_mcp.utils.errors import ConfigurationError


# Session-wide default access mode, applied once per physical connection
SESSION_READ_ONLY = {
    "mysql": "SET SESSION TRANSACTION READ ONLY",
    "sqlite": "PRAGMA query_only = ON",
}

# Explicit per-request read-only transaction
BEGIN_READ_ONLY = {
    "mysql": "START TRANSACTION READ ONLY",
    "sqlite": "BEGIN",
}


@dataclass(frozen=True)
class Checkout:
    """A pooled connection dedicated to one request"""
    connection: AsyncConnection
    thread_id: Optional[int] = None


class Database:
    """
    Async connection pool manager

    Handles connection pooling, read-only transactions and server-side
    cancellation of in-flight statements.
    """

    def __init__(self, config: MySQLSettings, engine: Optional[AsyncEngine] = None):
        """
        Initialize the connection pool

        Args:
            config: MySQL settings (DSN and pool limits)
            engine: Pre-built engine (tests); built from config when omitted
        """
        self.config = config

        if engine is None:
            url = config.get_connection_string()
            logger.info(f"Connecting to {url.get_backend_name()}: {url.database} @ {url.host}:{url.port}")
            engine = create_async_engine(url, echo=False, **config.pool_options())

        self.engine = engine
        self.dialect = engine.dialect.name
        if self.dialect not in BEGIN_READ_ONLY:
            raise ConfigurationError(f"unsupported database dialect: {self.dialect}")

        self._register_session_listener()

    def _register_session_listener(self):
        """
        Mark every new physical connection read-only at session level.

        This sits underneath the per-request READ ONLY transaction so a
        statement that somehow runs outside it still cannot write.
        """
        statement = SESSION_READ_ONLY[self.dialect]

        @event.listens_for(self.engine.sync_engine, "connect")
        def set_session_read_only(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            try:
                cursor.execute(statement)
            finally:
                cursor.close()

        logger.debug(f"Registered session read-only listener ({statement})")

    async def ping(self, timeout: float = STARTUP_PING_TIMEOUT_SECONDS):
        """Check the database is reachable; raises on failure or timeout"""
        async with asyncio.timeout(timeout):
            async with self.engine.connect() as conn:
                await conn.exec_driver_sql("SELECT 1")
        version = self.engine.dialect.server_version_info
        logger.success(f"Connected to {self.dialect} (v{'.'.join(str(p) for p in version or ())})")

    async def acquire(self) -> Checkout:
        """
        Check out one connection in AUTOCOMMIT mode so the read-only
        transaction can be opened explicitly.

        Returns:
            Checkout holding the connection and, for MySQL, its server thread id
        """
        conn = await self.engine.connect()
        try:
            await conn.execution_options(isolation_level="AUTOCOMMIT")
            thread_id = None
            if self.dialect == "mysql":
                result = await conn.exec_driver_sql("SELECT CONNECTION_ID()")
                thread_id = int(result.scalar_one())
        except BaseException:
            await conn.invalidate()
            await conn.close()
            raise
        return Checkout(connection=conn, thread_id=thread_id)

    async def begin_read_only(self, conn: AsyncConnection):
        await conn.exec_driver_sql(BEGIN_READ_ONLY[self.dialect])

    async def commit(self, conn: AsyncConnection):
        await conn.exec_driver_sql("COMMIT")

    async def rollback(self, conn: AsyncConnection):
        await conn.exec_driver_sql("ROLLBACK")

    async def kill_query(self, thread_id: int):
        """Ask the server to abort whatever statement the given connection is running"""
        try:
            async with asyncio.timeout(KILL_QUERY_TIMEOUT_SECONDS):
                async with self.engine.connect() as conn:
                    await conn.exec_driver_sql(f"KILL QUERY {int(thread_id)}")
            logger.warning(f"Killed in-flight query on connection {thread_id}")
        except (SQLAlchemyError, TimeoutError) as e:
            logger.error(f"Failed to kill query on connection {thread_id}: {e}")

    async def abort(self, checkout: Checkout):
        """
        Cancel a checkout whose request was interrupted mid-statement.

        The statement is killed server-side (MySQL) and the connection is
        invalidated so it is discarded instead of returned to the pool.
        """
        if checkout.thread_id is not None:
            await self.kill_query(checkout.thread_id)
        try:
            await checkout.connection.invalidate()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to invalidate connection: {e}")

    async def dispose(self):
        await self.engine.dispose()
