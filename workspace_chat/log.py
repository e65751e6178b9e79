"""Package logger.

Every module logs through ``logger`` from here. The terminal belongs to
the Textual UI, so output goes to a rotating file once
``setup_logging`` has been called.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

logger = logging.getLogger("workspace_chat")

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", path: Path | None = None) -> None:
    """Attach a rotating file handler to the package logger."""
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if path is None:
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
    except OSError:
        logger.debug("failed to open log file %s", path, exc_info=True)
        return
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    for existing in list(logger.handlers):
        if isinstance(existing, RotatingFileHandler):
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)
