"""structlog setup for applications embedding the engine."""

import logging

import structlog

from mastery_progression.config import Settings, get_settings


def configure_logging(json_logs: bool = False, level: str = "INFO") -> None:
    """Configure structlog processors.

    Args:
        json_logs: Render JSON lines for machine parsing instead of the
            human-readable console format.
        level: Minimum log level name.
    """
    renderer = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog from the ``logging`` section of the settings."""
    settings = settings or get_settings()
    configure_logging(json_logs=settings.log_json, level=settings.log_level)
