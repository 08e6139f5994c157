"""Structured logging for the API and the CLI.

Log lines go to stderr so CLI tables on stdout stay clean. Events are
snake_case names with keyword context, e.g.
``logger.info("user_registered", user_id=1, referred_by="abc123")``.
"""

import logging
import sys

import structlog

from referly.settings import Settings


def _stderr_logger(*args) -> structlog.PrintLogger:
    # Looked up per logger so redirected streams (test runners) are honoured
    return structlog.PrintLogger(file=sys.stderr)


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.TimeStamper(fmt="iso"), structlog.processors.JSONRenderer()
    return (
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger from settings.

    Safe to call more than once; the last call wins.
    """
    settings = settings or Settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    timestamper, renderer = _renderer(settings.log_format)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=settings.is_production,
    )

    # uvicorn and sqlalchemy log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
