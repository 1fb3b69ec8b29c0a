"""
Command-line MCP client.

Spawns the server over stdio, calls the query tool once and prints the
structured result.

Usage:
    mysql-readonly-mcp-client --query "SELECT 1"
    mysql-readonly-mcp-client --query "SHOW TABLES" --server-command "mysql-readonly-mcp --config prod.toml"
"""

import argparse
import asyncio
import json
import os
import shlex
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Optional

from loguru import logger
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.types import CallToolResult, TextContent

from mysql_readonly_mcp.config.constants import TOOL_NAME
from mysql_readonly_mcp.utils.errors import ToolCallError
from mysql_readonly_mcp.utils.logger import setup_logger


DEFAULT_SERVER_COMMAND = "mysql-readonly-mcp"


@asynccontextmanager
async def open_session(command: List[str]) -> AsyncIterator[ClientSession]:
    """Start the server process and yield an initialized client session"""
    params = StdioServerParameters(
        command=command[0],
        args=command[1:],
        # The server reads MYSQLMCP_* overrides from the environment
        env=dict(os.environ),
    )
    async with stdio_client(params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            yield session


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one read-only query through the MCP server")
    parser.add_argument(
        "-q",
        "--query",
        default="SELECT 1",
        help="Read-only SQL query to run.",
    )
    parser.add_argument(
        "--server-command",
        default=DEFAULT_SERVER_COMMAND,
        help="Command line that starts the MCP server.",
    )
    return parser.parse_args(argv)


def _text_content(result: CallToolResult) -> List[str]:
    return [c.text for c in result.content if isinstance(c, TextContent)]


def render_result(result: CallToolResult) -> str:
    """
    Render a tool result for display.

    Raises:
        ToolCallError: If the server flagged the call as failed
    """
    if result.isError:
        if result.structuredContent is not None:
            raise ToolCallError(f"tool failed: {json.dumps(result.structuredContent, indent=2)}")
        texts = _text_content(result)
        if texts:
            raise ToolCallError(f"tool failed: {texts[0]}")
        raise ToolCallError("tool failed")

    if result.structuredContent is not None:
        return json.dumps(result.structuredContent, indent=2)

    lines = []
    for content in result.content:
        if isinstance(content, TextContent):
            lines.append(content.text)
        else:
            lines.append(content.model_dump_json(indent=2))
    return "\n".join(lines)


async def run(
    argv: Optional[List[str]] = None,
    session_factory: Callable[[List[str]], object] = open_session,
) -> str:
    """
    Call the query tool once and return the rendered output.

    Raises:
        ToolCallError: On usage errors, transport failures or tool failures
    """
    args = parse_args(argv)
    if not args.query:
        raise ToolCallError("--query is required")

    command = shlex.split(args.server_command)
    if not command:
        raise ToolCallError("--server-command is required")

    async with session_factory(command) as session:
        try:
            result = await session.call_tool(TOOL_NAME, {"query": args.query})
        except Exception as e:
            raise ToolCallError(f"CallTool failed: {e}") from e

    return render_result(result)


def main(argv: Optional[List[str]] = None) -> int:
    setup_logger("WARNING")
    try:
        output = asyncio.run(run(argv))
    except ToolCallError as e:
        logger.error(str(e))
        return 1
    print(output, file=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
