"""
Catalog resources - canned, identifier-parameterized queries
"""

from mysql_readonly_mcp.resources.router import (
    CatalogQuery,
    ResourceRouter,
    DATABASES_URI,
    TABLES_URI_TEMPLATE,
    SCHEMA_URI_TEMPLATE,
    is_identifier,
)

__all__ = [
    "CatalogQuery",
    "ResourceRouter",
    "DATABASES_URI",
    "TABLES_URI_TEMPLATE",
    "SCHEMA_URI_TEMPLATE",
    "is_identifier",
]
