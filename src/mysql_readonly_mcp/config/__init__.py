"""
Configuration layer - Settings and constants
"""

from mysql_readonly_mcp.config.settings import (
    Settings,
    ServerSettings,
    MySQLSettings,
    LoggingSettings,
    load_settings,
    normalize_list,
)

__all__ = [
    "Settings",
    "ServerSettings",
    "MySQLSettings",
    "LoggingSettings",
    "load_settings",
    "normalize_list",
]
