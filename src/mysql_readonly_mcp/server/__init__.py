"""
MCP transport layer - tool and resource handlers
"""

from mysql_readonly_mcp.server.app import (
    GatewayHandlers,
    GatewayServer,
    build_handlers,
    create_server,
    tool_error_result,
    tool_success_result,
)

__all__ = [
    "GatewayHandlers",
    "GatewayServer",
    "build_handlers",
    "create_server",
    "tool_error_result",
    "tool_success_result",
]
