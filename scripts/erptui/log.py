"""Centralized logger configuration.

Usage:
    from erptui.log import get_logger
    logger = get_logger(__name__)

The terminal belongs to the UI, so records go to a rotating file instead of
stderr.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "erptui"
DEFAULT_LEVEL = os.getenv("ERPTUI_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
MAX_BYTES = 2_000_000
BACKUP_COUNT = 2


def default_log_path() -> Path:
    """Log file under XDG_STATE_HOME (or ~/.local/state)."""
    xdg_state = os.environ.get("XDG_STATE_HOME")
    base = Path(xdg_state) if xdg_state else Path.home() / ".local" / "state"
    return base / "erptui" / "erptui.log"


def setup_logging(level: str = DEFAULT_LEVEL, log_path: Path | None = None) -> Path:
    """Attach a rotating file handler to the package logger.

    Returns the path being written to. Calling it again replaces the handler.
    """
    path = log_path or default_log_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()

    handler = RotatingFileHandler(
        path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False
    return path


def get_logger(name: str) -> logging.Logger:
    """Child logger of the package logger; ``erptui.x`` names pass through."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
