"""Structured logging via structlog."""

import structlog

from rag_core.config.settings import settings


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Level names as in settings.log_level, case-insensitive."""
    renderer = (
        structlog.processors.JSONRenderer()
        if (fmt or settings.log_format) == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            (level or settings.log_level).lower()
        ),
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
