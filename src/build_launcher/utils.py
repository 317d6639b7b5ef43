"""Utility functions for build-launcher."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def normalize_path(path: str) -> str:
    """
    Normalize a manifest path for use on disk and in URLs:
    - Convert backslashes to forward slashes
    - Strip leading "./" and "/" segments
    """
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


def normalize_key(path: str) -> str:
    """Comparison key for a manifest path. Target filesystems may be case-insensitive."""
    return normalize_path(path).lower()


def setup_logging(
    log_file: Optional[Path] = None,
    log_level: str = "INFO",
    console: bool = True,
) -> None:  # pragma: no cover
    """
    Configure loguru sinks.

    Args:
        log_file: Path to a rotating log file, skipped if None
        log_level: Minimum level for all sinks
        console: Whether to also log to stderr
    """
    # Remove default handler and any existing handlers
    logger.remove()

    if console:
        logger.add(sys.stderr, level=log_level, backtrace=True, diagnose=True, colorize=True)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=log_level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=True,
            enqueue=True,
            colorize=False,
        )

    logger.debug(f"Logging configured, level={log_level}, file={log_file}")
