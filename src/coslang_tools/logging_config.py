"""Logging configuration for coslang-tools."""

import os
import sys

from loguru import logger


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: str | None = None
) -> None:
    """Configure loguru with appropriate level.

    Logs go to stderr (stdout carries MCP traffic when serving). log_file, or
    the COSLANG_LOG_FILE environment variable, adds a rotating debug log.
    quiet keeps stderr down to errors, for commands whose output is parsed.
    """
    logger.remove()
    level = "DEBUG" if verbose else "ERROR" if quiet else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")

    log_file = log_file or os.environ.get("COSLANG_LOG_FILE")
    if log_file:
        logger.add(log_file, level="DEBUG", rotation="1 MB", retention=3)
