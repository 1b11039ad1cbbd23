"""Logging setup for the server and CLI.

Console output goes through rich's handler; an optional size-rotating log
file (5 MB × 5) receives the same records in plain text.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.logging import RichHandler

ROOT_LOGGER = "artifactor"

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 5


def configure_logging(level: str = "INFO", log_file: str | Path | None = None) -> logging.Logger:
    """Install handlers on the ``artifactor`` logger and return it.

    Calling this again replaces the previously installed handlers.

    Raises:
        ValueError: If *level* is not a known logging level name.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: '{level}'")

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(numeric)
    logger.propagate = False

    console = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
    console.setLevel(numeric)
    logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler.setLevel(numeric)
        logger.addHandler(file_handler)

    return logger
