"""
Logging utility with loguru.
Provides structured logging with optional file rotation.

stdout carries the MCP stdio transport, so console output goes to stderr.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure loguru logger with console and (optionally) file outputs.

    Args:
        level: Minimum level for the console sink
        log_file: Path of a rotating log file; empty/None disables it
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        colorize=True,
        format=CONSOLE_FORMAT,
        level=level.upper(),
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=FILE_FORMAT,
            level="DEBUG",
        )

    logger.debug("Logger initialized")
    return logger
