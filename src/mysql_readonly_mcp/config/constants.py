"""
Application constants

Centralized constants used across the gateway.
"""

from typing import Tuple

# ============================================================================
# Server identity
# ============================================================================

DEFAULT_SERVER_NAME = "mysql-readonly"
DEFAULT_SERVER_VERSION = "v1.0.0"

TOOL_NAME = "mysql_query"


# ============================================================================
# Admission defaults
# ============================================================================

# Informational only: the classifier's statement-kind switch is authoritative
DEFAULT_ALLOW_STATEMENT_PREFIXES: Tuple[str, ...] = ("select", "show", "describe", "explain")

# Read statements with write or locking side effects
DEFAULT_DENY_SUBSTRINGS: Tuple[str, ...] = (
    " into outfile",
    " into dumpfile",
    " for update",
    " lock in share mode",
)

READ_ONLY_VIOLATION_MESSAGE = "only read-only queries are allowed"


# ============================================================================
# Execution limits
# ============================================================================

DEFAULT_QUERY_TIMEOUT_SECONDS = 30
DEFAULT_MAX_ROWS = 1000
STARTUP_PING_TIMEOUT_SECONDS = 5
KILL_QUERY_TIMEOUT_SECONDS = 5


# ============================================================================
# MCP protocol
# ============================================================================

# JSON-RPC error code MCP uses for an unknown resource
RESOURCE_NOT_FOUND_ERROR_CODE = -32002
