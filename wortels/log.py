"""Console logging for the CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "wortels"


def configure_logging(level: int | str = logging.WARNING, console: Console | None = None) -> logging.Logger:
    """Route the ``wortels`` logger to a Rich handler on stderr.

    Safe to call repeatedly; previously installed handlers are replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setLevel(level)
    logger.addHandler(handler)
    return logger
