"""Logging configuration for Turnstile."""

import logging
import sys

import structlog

from turnstile.config import Settings, get_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and route stdlib logging to stdout."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper())

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,  # type: ignore[arg-type]
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    # Uvicorn logs every request otherwise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
