"""
Custom error classes for the gateway
"""


class GatewayError(Exception):
    """Base exception for gateway errors"""
    code: str = "gateway_error"


class AdmissionRejectedError(GatewayError):
    """Query text failed the read-only classifier"""
    code = "read_only_violation"


class ConnectionAcquireError(GatewayError):
    """Could not check a connection out of the pool"""
    code = "connection_error"


class QueryExecutionError(GatewayError):
    """Statement, column, row or commit failure inside the read-only transaction"""
    code = "execution_error"


class QueryTimeoutError(GatewayError):
    """Per-call deadline exceeded"""
    code = "timeout"


class ResourceNotFoundError(GatewayError):
    """Unknown resource locator or invalid identifier segment"""
    code = "not_found"

    def __init__(self, uri: str):
        super().__init__(f"Resource not found: {uri}")
        self.uri = uri


class ConfigurationError(GatewayError):
    """Invalid or incomplete startup configuration"""
    code = "config_error"


class ToolCallError(GatewayError):
    """Client-side failure calling the query tool"""
    code = "tool_call_error"
