"""
SQL execution - bounded executor, results and value normalization
"""

from mysql_readonly_mcp.sql.execution.executor import BoundedExecutor
from mysql_readonly_mcp.sql.execution.normalize import (
    Scalar,
    normalize_value,
    format_timestamp,
    format_time_of_day,
)
from mysql_readonly_mcp.sql.execution.result import BoundedQueryResult

__all__ = [
    "BoundedExecutor",
    "BoundedQueryResult",
    "Scalar",
    "normalize_value",
    "format_timestamp",
    "format_time_of_day",
]
