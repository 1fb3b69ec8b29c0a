"""
SQL analysis utilities using sqlglot AST
"""

from mysql_readonly_mcp.sql.analysis.classifier import (
    AdmissionDecision,
    classify,
    is_admitted,
    parse_statement,
)

__all__ = [
    "AdmissionDecision",
    "classify",
    "is_admitted",
    "parse_statement",
]
