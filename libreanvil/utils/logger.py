"""
Logger module - Console logging for LibreAnvil.

Every module asks for its own logger with ``get_logger(__name__)``. The
default level comes from ``LIBREANVIL_LOG_LEVEL`` (INFO when unset).
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def default_level() -> int:
    """Level named by LIBREANVIL_LOG_LEVEL, falling back to INFO."""
    name = os.getenv("LIBREANVIL_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Return the named logger with a stdout handler attached once.

    Args:
        name: Dotted logger name, usually the caller's __name__
        level: Explicit level; otherwise an unset level gets the default

    Returns:
        The logger
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(default_level())

    return logger
