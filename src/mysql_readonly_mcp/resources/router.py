"""
Catalog resource router.

Maps ``mysql://`` locators onto three canned catalog queries:

    mysql://databases              -> SHOW DATABASES
    mysql://tables/{db}            -> SHOW TABLES FROM `db`
    mysql://schema/{db}/{table}    -> DESCRIBE `db`.`table`

Path segments are the only caller text ever interpolated into SQL, so each
one must match the identifier whitelist before it is quoted in.
"""

import re
from dataclasses import dataclass
from typing import List
from urllib.parse import unquote, urlsplit

from loguru import logger

from mysql_readonly_mcp.sql.execution.executor import BoundedExecutor
from mysql_readonly_mcp.sql.execution.result import BoundedQueryResult
from mysql_readonly_mcp.utils.errors import ResourceNotFoundError


SCHEME = "mysql"
IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_]+")

DATABASES_URI = f"{SCHEME}://databases"
TABLES_URI_TEMPLATE = f"{SCHEME}://tables/{{db}}"
SCHEMA_URI_TEMPLATE = f"{SCHEME}://schema/{{db}}/{{table}}"


@dataclass(frozen=True)
class CatalogQuery:
    uri: str
    sql: str


def is_identifier(value: str) -> bool:
    return IDENTIFIER_RE.fullmatch(value) is not None


def _path_parts(path: str) -> List[str]:
    trimmed = path[1:] if path.startswith("/") else path
    return [unquote(p) for p in trimmed.split("/")] if trimmed else []


class ResourceRouter:
    """Resolves catalog locators and runs them through the bounded executor"""

    def __init__(self, executor: BoundedExecutor):
        self.executor = executor

    def resolve(self, uri: str) -> CatalogQuery:
        """
        Map a locator onto its canned query.

        Raises:
            ResourceNotFoundError: Unknown locator shape or invalid identifier
        """
        try:
            parsed = urlsplit(uri)
        except ValueError:
            raise ResourceNotFoundError(uri) from None

        if parsed.scheme.lower() != SCHEME:
            raise ResourceNotFoundError(uri)

        host = (parsed.netloc or "").lower()
        parts = _path_parts(parsed.path)

        if host == "databases":
            if parts:
                raise ResourceNotFoundError(uri)
            sql = "SHOW DATABASES"
        elif host == "tables":
            if len(parts) != 1 or not is_identifier(parts[0]):
                raise ResourceNotFoundError(uri)
            sql = f"SHOW TABLES FROM `{parts[0]}`"
        elif host == "schema":
            if len(parts) != 2 or not all(is_identifier(p) for p in parts):
                raise ResourceNotFoundError(uri)
            sql = f"DESCRIBE `{parts[0]}`.`{parts[1]}`"
        else:
            raise ResourceNotFoundError(uri)

        return CatalogQuery(uri=uri, sql=sql)

    async def fetch(self, uri: str) -> BoundedQueryResult:
        query = self.resolve(uri)
        logger.info(f"Reading resource {uri}")
        return await self.executor.execute(query.sql)

    async def read(self, uri: str) -> str:
        """
        Resolve and execute a locator.

        Returns:
            JSON-encoded BoundedQueryResult

        Raises:
            ResourceNotFoundError: Bad locator (input error)
            GatewayError: Valid locator whose query failed (backend error)
        """
        result = await self.fetch(uri)
        return result.to_json()
