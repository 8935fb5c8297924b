"""
Logging setup shared by the command line and scripts.

Library modules only create loggers (``logging.getLogger(__name__)``); handlers
are installed once, here, by the entry point.
"""
from __future__ import annotations

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", format_string: str | None = None) -> None:
    """
    Configure the root logger with a stdout stream handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        format_string: Custom format string (uses the default if None).

    Raises:
        ValueError: If `level` is not a known level name.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")
    logging.basicConfig(
        level=numeric,
        format=format_string or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
