"""
MCP server wiring

Exposes the gateway over the Model Context Protocol:
- Tool ``mysql_query``: run one read-only statement
- Resources ``mysql://databases``, ``mysql://tables/{db}``, ``mysql://schema/{db}/{table}``
"""

from contextlib import asynccontextmanager
from typing import Annotated, List, Optional

from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, CallToolResult, ErrorData, TextContent, ToolAnnotations
from pydantic import Field

from mysql_readonly_mcp.config.constants import (
    READ_ONLY_VIOLATION_MESSAGE,
    RESOURCE_NOT_FOUND_ERROR_CODE,
    TOOL_NAME,
)
from mysql_readonly_mcp.config.settings import Settings
from mysql_readonly_mcp.infra.database import Database
from mysql_readonly_mcp.resources.router import (
    DATABASES_URI,
    SCHEMA_URI_TEMPLATE,
    TABLES_URI_TEMPLATE,
    ResourceRouter,
)
from mysql_readonly_mcp.sql.analysis.classifier import is_admitted
from mysql_readonly_mcp.sql.execution.executor import BoundedExecutor
from mysql_readonly_mcp.sql.execution.result import BoundedQueryResult
from mysql_readonly_mcp.sql.policy import QueryPolicy
from mysql_readonly_mcp.utils.errors import GatewayError, ResourceNotFoundError


JSON_MIME_TYPE = "application/json"


def tool_error_result(message: str) -> CallToolResult:
    """Failure result: same structured shape, empty columns/rows, isError set"""
    return CallToolResult(
        content=[TextContent(type="text", text=message)],
        structuredContent=BoundedQueryResult.empty().to_dict(),
        isError=True,
    )


def tool_success_result(result: BoundedQueryResult) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text="ok")],
        structuredContent=result.to_dict(),
    )


class GatewayHandlers:
    """
    Transport-facing handlers for the query tool and catalog resources.

    Every failure is scoped to the request and reported, never raised into
    the transport as an unexpected error.
    """

    def __init__(self, executor: BoundedExecutor, router: ResourceRouter):
        self.executor = executor
        self.router = router

    async def run_query(self, query: str) -> CallToolResult:
        # Checked here and again inside the executor
        if not is_admitted(query, self.executor.policy.deny_substrings):
            logger.warning(f"Rejected tool query: {query[:200]}")
            return tool_error_result(READ_ONLY_VIOLATION_MESSAGE)

        try:
            result = await self.executor.execute(query)
        except GatewayError as e:
            return tool_error_result(str(e))

        return tool_success_result(result)

    async def read_resource(self, uri: str) -> str:
        """
        Read a catalog resource as JSON.

        Raises:
            McpError: RESOURCE_NOT_FOUND_ERROR_CODE for a bad locator,
                INTERNAL_ERROR carrying the executor's message otherwise
        """
        try:
            return await self.router.read(uri)
        except ResourceNotFoundError as e:
            logger.warning(str(e))
            raise McpError(
                ErrorData(code=RESOURCE_NOT_FOUND_ERROR_CODE, message=str(e), data={"uri": uri})
            ) from e
        except GatewayError as e:
            logger.error(f"Resource {uri} failed: {e}")
            raise McpError(
                ErrorData(code=INTERNAL_ERROR, message=str(e), data={"uri": uri, "code": e.code})
            ) from e


class GatewayServer(FastMCP):
    """
    FastMCP whose resource reads go straight to the catalog router.

    A bad locator surfaces as RESOURCE_NOT_FOUND_ERROR_CODE and a backend
    failure as INTERNAL_ERROR, without FastMCP's template-error wrapping.
    """

    def __init__(self, name: str, handlers: GatewayHandlers, **kwargs):
        self.handlers = handlers
        super().__init__(name, **kwargs)

    async def read_resource(self, uri) -> List[ReadResourceContents]:
        content = await self.handlers.read_resource(str(uri))
        return [ReadResourceContents(content=content, mime_type=JSON_MIME_TYPE)]


def build_handlers(settings: Settings, database: Optional[Database] = None) -> GatewayHandlers:
    database = database or Database(settings.mysql)
    policy = QueryPolicy.from_settings(settings.mysql)
    logger.info(
        f"Query policy: timeout={policy.deadline_seconds}s max_rows={policy.row_limit} "
        f"allowed={list(policy.allowed_statement_prefixes)} deny={list(policy.deny_substrings)}"
    )
    executor = BoundedExecutor(database, policy)
    return GatewayHandlers(executor, ResourceRouter(executor))


def create_server(settings: Settings, database: Optional[Database] = None) -> GatewayServer:
    """
    Create the FastMCP server with the query tool and catalog resources.

    Args:
        settings: Loaded settings
        database: Pre-built Database (tests); built from settings when omitted
    """
    handlers = build_handlers(settings, database)

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        logger.info(f"🚀 {settings.server.name} {settings.server.version} starting")
        try:
            yield
        finally:
            logger.info("🛑 Shutting down, closing connection pool")
            await handlers.executor.database.dispose()

    mcp = GatewayServer(settings.server.name, handlers, lifespan=lifespan)

    @mcp.tool(
        name=TOOL_NAME,
        description="Run a read-only SQL query against MySQL.",
        annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False),
        structured_output=False,
    )
    async def mysql_query(
        query: Annotated[str, Field(description="Read-only SQL query (SELECT/SHOW/DESCRIBE/EXPLAIN).")],
    ) -> CallToolResult:
        return await handlers.run_query(query)

    @mcp.resource(
        DATABASES_URI,
        name="mysql_databases",
        description="List databases available on this MySQL server.",
        mime_type=JSON_MIME_TYPE,
    )
    async def mysql_databases() -> str:
        return await handlers.read_resource(DATABASES_URI)

    @mcp.resource(
        TABLES_URI_TEMPLATE,
        name="mysql_tables",
        description="List tables in the given database.",
        mime_type=JSON_MIME_TYPE,
    )
    async def mysql_tables(db: str) -> str:
        return await handlers.read_resource(TABLES_URI_TEMPLATE.format(db=db))

    @mcp.resource(
        SCHEMA_URI_TEMPLATE,
        name="mysql_schema",
        description="Describe a table's schema (DESCRIBE).",
        mime_type=JSON_MIME_TYPE,
    )
    async def mysql_schema(db: str, table: str) -> str:
        return await handlers.read_resource(SCHEMA_URI_TEMPLATE.format(db=db, table=table))

    return mcp
