"""
Observability Infrastructure

Structured logging with correlation tracking for the allocation and routing
engine. Every module obtains its logger through ``get_logger``.
"""

import contextvars
import logging
import sys
import uuid
from typing import Any

import structlog

from .config import settings

# Context variables for correlation tracking
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
actor_var: contextvars.ContextVar[str] = contextvars.ContextVar("actor", default="")


class CorrelationIdProcessor:
    """Structlog processor to add correlation ID and actor to all log entries."""

    def __call__(
        self, logger: Any, name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        correlation_id = correlation_id_var.get("")
        actor = actor_var.get("")

        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        if actor:
            event_dict["actor"] = actor

        return event_dict


def setup_structured_logging() -> None:
    """Configure structured logging with JSON or console output."""

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        CorrelationIdProcessor(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if settings.LOG_SQL:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID for operation tracking."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str:
    return correlation_id_var.get("")


def set_actor(actor: str) -> None:
    """Bind the acting user to subsequent log entries."""
    actor_var.set(actor)


def bind_operation(actor: str) -> str:
    """Bind ``actor`` and a correlation ID to the current context.

    An ID already set by the caller is kept so nested workflows share it.
    """
    set_actor(actor)
    return get_correlation_id() or set_correlation_id()
