"""structlog setup driven by LoggingSettings."""

import logging

import structlog

from paper2slides.config.settings import LoggingSettings, get_settings


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog rendering and level.

    Args:
        settings: Logging section; defaults to the cached application settings.
    """
    settings = settings or get_settings().logging
    level = logging.getLevelName(settings.level)

    renderer: structlog.types.Processor
    if settings.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
