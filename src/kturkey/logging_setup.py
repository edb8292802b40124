"""Logging configuration for the kturkey command line.

Library modules only create ``logging.getLogger(__name__)`` loggers; handlers
are installed here, once, by the CLI entry point.
"""

import logging
import sys
from typing import Optional

from kturkey.config import load_settings

# Map string level names to logging constants
LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level: Optional[str] = None) -> int:
    """Resolve a level name to a logging constant.

    Args:
        level: Level name; if None, KTURKEY_LOG_LEVEL is used

    Returns:
        Logging level constant (default: WARNING)
    """
    if level is None:
        level = load_settings().log_level
    return LOG_LEVEL_MAP.get(level.strip().upper(), logging.WARNING)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the ``kturkey`` logger to write to stderr.

    Args:
        level: Level name; if None, KTURKEY_LOG_LEVEL is used

    Returns:
        The configured package logger
    """
    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    log_level = get_log_level(level)

    logger = logging.getLogger("kturkey")
    logger.setLevel(log_level)

    # Remove any existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
