"""
Bounded executor - the final trust boundary before the database.

Runs one admitted statement inside a read-only transaction under a per-call
deadline, streams at most max_rows rows and normalizes every value.
"""

import asyncio
from typing import List, Tuple

from loguru import logger
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from mysql_readonly_mcp.config.constants import READ_ONLY_VIOLATION_MESSAGE
from mysql_readonly_mcp.infra.database import Database
from mysql_readonly_mcp.sql.analysis.classifier import classify
from mysql_readonly_mcp.sql.execution.normalize import Scalar, normalize_value
from mysql_readonly_mcp.sql.execution.result import BoundedQueryResult
from mysql_readonly_mcp.sql.policy import QueryPolicy
from mysql_readonly_mcp.utils.errors import (
    AdmissionRejectedError,
    ConnectionAcquireError,
    QueryExecutionError,
    QueryTimeoutError,
)


# Per-statement: server-side cursor, caller text passed to the driver verbatim
STREAM_OPTIONS = {"stream_results": True, "no_parameters": True}


class BoundedExecutor:
    """
    Executes read-only SQL with timeout, row-limit and connection guarantees.

    The classifier runs again here regardless of what the caller checked.
    """

    def __init__(self, database: Database, policy: QueryPolicy):
        self.database = database
        self.policy = policy

    def check_admission(self, query: str):
        """
        Raise AdmissionRejectedError unless the query is read-only.

        Raises:
            AdmissionRejectedError: If the classifier rejects the text
        """
        decision = classify(query, self.policy.deny_substrings)
        if not decision.admitted:
            logger.warning(f"Rejected query ({decision.reason}): {query[:200]}")
            raise AdmissionRejectedError(READ_ONLY_VIOLATION_MESSAGE)

    async def execute(self, query: str) -> BoundedQueryResult:
        """
        Execute a SQL query (read-only) under the configured bounds.

        Args:
            query: SQL text; re-validated before anything touches the pool

        Returns:
            BoundedQueryResult

        Raises:
            AdmissionRejectedError: Query is not read-only
            ConnectionAcquireError: No connection could be checked out
            QueryExecutionError: Statement, scan or commit failure
            QueryTimeoutError: Deadline exceeded
        """
        self.check_admission(query)

        deadline = self.policy.deadline_seconds
        logger.info(f"Executing SQL: {query[:200]}")
        try:
            async with asyncio.timeout(deadline):
                result = await self._run(query)
        except TimeoutError as e:
            logger.error(f"Query exceeded {deadline}s deadline: {query[:200]}")
            raise QueryTimeoutError(f"query timed out after {deadline}s") from e

        logger.success(
            f"Query returned {result.row_count} rows with {len(result.columns)} columns"
            + (" (truncated)" if result.truncated else "")
        )
        return result

    async def _run(self, query: str) -> BoundedQueryResult:
        try:
            checkout = await self.database.acquire()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to acquire connection: {e}")
            raise ConnectionAcquireError(f"failed to acquire connection: {e}") from e

        conn = checkout.connection
        try:
            return await self._run_read_only(conn, query)
        except asyncio.CancelledError:
            await self.database.abort(checkout)
            raise
        finally:
            await conn.close()

    async def _run_read_only(self, conn: AsyncConnection, query: str) -> BoundedQueryResult:
        try:
            await self.database.begin_read_only(conn)
        except SQLAlchemyError as e:
            logger.error(f"Failed to start read-only transaction: {e}")
            raise QueryExecutionError(f"failed to start read-only transaction: {e}") from e

        try:
            columns, rows, truncated = await conn.run_sync(self._stream_rows, query)
        except QueryExecutionError as e:
            logger.error(str(e))
            await self._rollback(conn)
            raise

        try:
            await self.database.commit(conn)
        except SQLAlchemyError as e:
            # Rows already read are dropped; the caller sees only the error
            logger.error(f"Failed to finish transaction: {e}")
            raise QueryExecutionError(f"failed to finish transaction: {e}") from e

        return BoundedQueryResult(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            truncated=truncated,
        )

    def _stream_rows(
        self, sync_conn: Connection, query: str
    ) -> Tuple[List[str], List[List[Scalar]], bool]:
        """
        Run the statement on a server-side cursor and keep at most row_limit rows.

        The options apply to this statement only, so the COMMIT/ROLLBACK that
        follow run on a plain cursor. no_parameters passes the text to the
        driver untouched (no bind-parameter or %-format interpretation).
        """
        try:
            result = sync_conn.exec_driver_sql(query, execution_options=STREAM_OPTIONS)
        except SQLAlchemyError as e:
            raise QueryExecutionError(f"query failed: {e}") from e

        try:
            scanned = self._scan(result)
        except BaseException:
            self._discard(result)
            raise

        try:
            result.close()
        except SQLAlchemyError as e:
            raise QueryExecutionError(f"failed to read row: {e}") from e
        return scanned

    def _scan(self, result: CursorResult) -> Tuple[List[str], List[List[Scalar]], bool]:
        if not result.returns_rows:
            return [], [], False

        try:
            columns = list(result.keys())
        except SQLAlchemyError as e:
            raise QueryExecutionError(f"failed to fetch columns: {e}") from e

        max_rows = self.policy.row_limit
        rows: List[List[Scalar]] = []
        truncated = False
        try:
            for row in result:
                if len(rows) >= max_rows:
                    truncated = True
                    break
                rows.append([normalize_value(value) for value in row])
        except (SQLAlchemyError, UnicodeError) as e:
            raise QueryExecutionError(f"failed to read row: {e}") from e

        return columns, rows, truncated

    def _discard(self, result: CursorResult):
        # The scan error is what the caller sees
        try:
            result.close()
        except Exception as e:
            logger.warning(f"Failed to close cursor: {e}")

    async def _rollback(self, conn: AsyncConnection):
        try:
            await self.database.rollback(conn)
        except SQLAlchemyError as e:
            logger.warning(f"Rollback failed: {e}")
