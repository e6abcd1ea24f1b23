"""Structured logging for the code assistant service.

Routes and application wiring log through structlog with keyword context;
services and HTTP clients log through the standard library. Both write to
stdout at the configured level.

Request-scoped context (session ID, AI service, document session) is bound
with ``bind_request_context`` and merged into every structlog entry emitted
while the request is handled.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from src.core.config import get_settings


QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "pypdf")
JSON_ENVIRONMENTS = ("production", "staging")
STDLIB_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def add_service_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp the service name, environment and vector store backend on an entry."""
    settings = get_settings()
    event_dict.setdefault("service", settings.service_name)
    event_dict.setdefault("environment", settings.environment)
    event_dict.setdefault("vector_store", settings.vector_store_backend)
    return event_dict


def _renderer(environment: str) -> list[Processor]:
    if environment in JSON_ENVIRONMENTS:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging() -> None:
    """Configure structlog and stdlib logging from Settings.

    JSON lines in production and staging, a console renderer elsewhere.
    """
    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_context,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *_renderer(settings.environment),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format=STDLIB_FORMAT, stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(**context: Any) -> None:
    """Bind request-scoped values (None values are skipped) for later entries."""
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in context.items() if value is not None}
    )


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, e.g. ``get_logger(__name__).info("Session created", session_id=sid)``."""
    return structlog.get_logger(name)


Logger = structlog.BoundLogger
