"""
Shared utilities - logging and errors
"""

from mysql_readonly_mcp.utils.errors import (
    GatewayError,
    AdmissionRejectedError,
    ConnectionAcquireError,
    QueryExecutionError,
    QueryTimeoutError,
    ResourceNotFoundError,
    ConfigurationError,
    ToolCallError,
)
from mysql_readonly_mcp.utils.logger import setup_logger

__all__ = [
    "GatewayError",
    "AdmissionRejectedError",
    "ConnectionAcquireError",
    "QueryExecutionError",
    "QueryTimeoutError",
    "ResourceNotFoundError",
    "ConfigurationError",
    "ToolCallError",
    "setup_logger",
]
