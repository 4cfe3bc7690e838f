"""structlog setup."""

import logging
import sys
from typing import Optional

import structlog

from mealwise.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog processors and stdlib log level.

    Console renderer by default, one JSON object per line when
    ``LOG_JSON`` is set.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
