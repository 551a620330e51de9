"""Logging configuration for lincli.

Logging is off by default so that command output stays clean. Set
``LIN_LOG=true`` to append debug records to ``LIN_LOG_FILE``
(default ``~/.lin.log``).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_ENABLED = os.environ.get("LIN_LOG", "false").lower() in ("true", "1", "yes")
LOG_FILE = Path(os.environ.get("LIN_LOG_FILE", str(Path.home() / ".lin.log")))
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_logger: logging.Logger | None = None
_logged_once_keys: set[str] = set()


def setup_logging() -> logging.Logger:
    """Configure the ``lincli`` logger hierarchy.

    Module loggers created with ``logging.getLogger(__name__)`` propagate
    to this logger, so enabling it here captures cache and sync records too.
    """
    global _logger

    logger = logging.getLogger("lincli")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.propagate = False

    if LOG_ENABLED:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(LOG_FILE)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.setLevel(logging.DEBUG)
    else:
        handler = logging.NullHandler()
        logger.setLevel(logging.WARNING)

    logger.addHandler(handler)
    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def log_message(message: str, level: int = logging.INFO) -> None:
    """Write a message to the log file when logging is enabled."""
    if not LOG_ENABLED:
        return
    get_logger().log(level, message)


def log_query(operation: str, variables: dict | None = None, cached: bool = False) -> None:
    """Record a GraphQL round trip (or a cache hit that avoided one)."""
    source = "CACHE" if cached else "API"
    log_message(f"QUERY[{source}]: {operation} VARIABLES: {variables or {}}", logging.DEBUG)


def log_once(key: str, message: str) -> None:
    """Log a message only the first time ``key`` is seen in this process."""
    if key in _logged_once_keys:
        return
    _logged_once_keys.add(key)
    log_message(message)


__all__ = [
    "LOG_ENABLED",
    "LOG_FILE",
    "setup_logging",
    "get_logger",
    "log_message",
    "log_query",
    "log_once",
]
