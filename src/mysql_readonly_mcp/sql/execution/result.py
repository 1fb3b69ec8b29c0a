"""
Bounded query result returned by the executor.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from mysql_readonly_mcp.sql.execution.normalize import Scalar


@dataclass(frozen=True)
class BoundedQueryResult:
    """
    Columns, normalized rows and truncation flag for one request.

    Every row has len(columns) values and row_count == len(rows).
    """
    columns: List[str] = field(default_factory=list)
    rows: List[List[Scalar]] = field(default_factory=list)
    row_count: int = 0
    truncated: bool = False

    @classmethod
    def empty(cls) -> "BoundedQueryResult":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": list(self.columns),
            "rows": [list(row) for row in self.rows],
            "rowCount": self.row_count,
            "truncated": self.truncated,
        }

    def to_json(self) -> str:
        # default=str covers driver types normalize_value passes through
        return json.dumps(self.to_dict(), default=str)
