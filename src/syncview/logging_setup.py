from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .paths import log_path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "syncview-file"


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> Path:
    """Send package logs to a rotating file; the terminal belongs to the TUI."""
    resolved = _resolve_level(level)
    log_file = log_file or log_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger("syncview")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()
    handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    return log_file


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    if isinstance(value, int):
        return value
    raise ValueError(f"Unknown log level: {level}")
