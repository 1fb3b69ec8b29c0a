"""
Infrastructure layer - Database connection pool
"""

from mysql_readonly_mcp.infra.database import Database, Checkout

__all__ = [
    "Database",
    "Checkout",
]
