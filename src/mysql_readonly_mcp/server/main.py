"""
MCP server entry point

Usage:
    mysql-readonly-mcp --config config.toml
    # OR
    python -m mysql_readonly_mcp.server.main --config config.toml
"""

import argparse
import asyncio
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from mysql_readonly_mcp.config.settings import Settings, load_settings
from mysql_readonly_mcp.infra.database import Database
from mysql_readonly_mcp.server.app import create_server
from mysql_readonly_mcp.utils.errors import ConfigurationError
from mysql_readonly_mcp.utils.logger import setup_logger


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Read-only MySQL MCP server (stdio)")
    parser.add_argument(
        "--config",
        default="config.toml",
        help="Path to TOML config.",
    )
    return parser.parse_args(argv)


async def check_connection(settings: Settings):
    """Ping once at startup; the pool is disposed so serving starts from a fresh loop"""
    database = None
    try:
        database = Database(settings.mysql)
        await database.ping()
    finally:
        if database is not None:
            await database.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logger()

    try:
        settings = load_settings(args.config)
        settings.mysql.get_connection_string()
    except ConfigurationError as e:
        logger.error(f"Failed to load config {args.config!r}: {e}")
        return 1

    setup_logger(settings.logging.level, settings.logging.file or None)

    try:
        asyncio.run(check_connection(settings))
    except (SQLAlchemyError, OSError, TimeoutError, ConfigurationError) as e:
        logger.error(f"Failed to connect to mysql: {e}")
        return 1

    server = create_server(settings)
    server.run(transport="stdio")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
