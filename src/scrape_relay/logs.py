"""Logging setup. Logs always go to stderr; stdout is reserved for results."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from scrape_relay.config import normalize_log_level

LOGGER_NAME = "scrape_relay"


def configure_logging(level: str = "info") -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Args:
        level: One of debug, info, warn/warning, error.

    Returns:
        The package root logger.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, normalize_log_level(level).upper()))
    logger.handlers.clear()

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
