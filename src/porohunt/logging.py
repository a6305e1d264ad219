"""Logging configuration for Poro Hunt."""

import logging
import sys
from typing import Any

import structlog

from porohunt.config import settings

# Third-party loggers that are far too chatty at INFO
_QUIET_LOGGERS = {
    "asyncio": logging.WARNING,
    "aiohttp": logging.WARNING,
    "aiogram": logging.INFO,
    "aiosqlite": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


def _renderer() -> list[Any]:
    if settings.log_format == "json":
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def setup_logging() -> None:
    """Configure structlog and route stdlib logging to stdout."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=shared_processors + _renderer(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def bind_room(chat_id: int) -> None:
    """Attach the room id to every log line emitted by the current task."""
    structlog.contextvars.bind_contextvars(chat_id=chat_id)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance for the given name."""
    return structlog.get_logger(name)
