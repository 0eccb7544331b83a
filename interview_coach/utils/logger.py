"""
Logging for the interview coach.

LOG_FORMAT=console gives Rich output on stderr for local runs; LOG_FORMAT=json
writes one JSON object per record to stdout for log collectors.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache

from pythonjsonlogger import jsonlogger
from rich.console import Console
from rich.logging import RichHandler

from interview_coach.config import get_settings

JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _build_handler(log_format: str) -> logging.Handler:
    if log_format.lower() == "json":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(jsonlogger.JsonFormatter(JSON_FIELDS))
        return handler
    return RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )


def setup_logging(force: bool = False) -> None:
    """Install the configured handler on the root logger (once, unless force)."""
    root = logging.getLogger()
    if root.handlers and not force:
        return

    settings = get_settings()
    level = (settings.log_level or "INFO").upper()
    handler = _build_handler(settings.log_format)

    root.handlers = [handler]
    root.setLevel(level)

    # uvicorn installs its own handlers at startup; route them through ours
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.setLevel(level)


@lru_cache()
def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name or "interview-coach")
