"""
Logging setup for milestone-tracker.

Library modules only call logging.getLogger(__name__); the CLI calls
setup_logging() once to attach a handler to the package logger.  Output goes
to stderr so that --json command output on stdout stays machine-readable.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler

from .core.config import LOG_LEVEL_ENV

PACKAGE_LOGGER = "milestone_tracker"
_HANDLER_MARK = "_milestone_tracker_handler"


class JSONFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        extra = {k: v for k, v in record.__dict__.items() if k.startswith("ctx_")}
        if extra:
            log_entry["context"] = extra
        return json.dumps(log_entry, default=str)


def _resolve_level(level: str | None) -> int:
    name = level or os.environ.get(LOG_LEVEL_ENV) or "WARNING"
    return getattr(logging, name.upper(), logging.WARNING)


def setup_logging(level: str | None = None, json_format: bool = False) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Level name; falls back to $MILESTONE_TRACKER_LOG_LEVEL, then WARNING
        json_format: Emit JSON lines instead of rich console output

    The handler installed by a previous call is replaced, so calling it
    again switches the format and level without stacking handlers.
    Handlers added by others are left alone.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(_resolve_level(level))
    for old in [h for h in logger.handlers if getattr(h, _HANDLER_MARK, False)]:
        logger.removeHandler(old)

    if json_format:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            show_time=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    setattr(handler, _HANDLER_MARK, True)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
