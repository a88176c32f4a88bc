"""structlog setup shared by the web app and the CLI."""

from __future__ import annotations

import logging
import sys

import structlog

from eidadoi.settings import Settings


def configure_logging(settings: Settings) -> None:
    """Render events as JSON lines to stderr, or append them to ``log_file``."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        factory = structlog.WriteLoggerFactory(file=settings.log_file.open("a", encoding="utf-8"))
    else:
        factory = structlog.PrintLoggerFactory(file=sys.stderr)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=factory,
        cache_logger_on_first_use=False,
    )
