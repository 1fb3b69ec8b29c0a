"""
Immutable admission and execution policy.

Built once at startup from Settings and passed explicitly to the executor
and the tool/resource handlers.
"""

from dataclasses import dataclass
from typing import Tuple

from mysql_readonly_mcp.config.constants import (
    DEFAULT_ALLOW_STATEMENT_PREFIXES,
    DEFAULT_DENY_SUBSTRINGS,
    DEFAULT_MAX_ROWS,
    DEFAULT_QUERY_TIMEOUT_SECONDS,
)
from mysql_readonly_mcp.config.settings import MySQLSettings, normalize_list


@dataclass(frozen=True)
class QueryPolicy:
    # Informational; the classifier's kind switch decides
    allowed_statement_prefixes: Tuple[str, ...] = DEFAULT_ALLOW_STATEMENT_PREFIXES
    deny_substrings: Tuple[str, ...] = tuple(normalize_list(list(DEFAULT_DENY_SUBSTRINGS)))

    # Raw configured limits; <= 0 means "use the default"
    timeout_seconds: float = DEFAULT_QUERY_TIMEOUT_SECONDS
    max_rows: int = DEFAULT_MAX_ROWS

    @classmethod
    def from_settings(cls, mysql: MySQLSettings) -> "QueryPolicy":
        return cls(
            allowed_statement_prefixes=tuple(normalize_list(mysql.allow_statement_prefixes)),
            deny_substrings=tuple(normalize_list(mysql.deny_substrings)),
            timeout_seconds=mysql.query_timeout_seconds,
            max_rows=mysql.max_rows,
        )

    @property
    def deadline_seconds(self) -> float:
        if self.timeout_seconds <= 0:
            return DEFAULT_QUERY_TIMEOUT_SECONDS
        return self.timeout_seconds

    @property
    def row_limit(self) -> int:
        if self.max_rows <= 0:
            return DEFAULT_MAX_ROWS
        return self.max_rows
