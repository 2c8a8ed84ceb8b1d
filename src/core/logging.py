"""Structured logging configuration using structlog."""

import logging
import sys
from contextvars import ContextVar
from typing import Any

import orjson
import structlog
from structlog.types import Processor

from src.core.config import settings

# Context variables for document/filer correlation
document_id_ctx: ContextVar[str | None] = ContextVar("document_id", default=None)
filer_id_ctx: ContextVar[str | None] = ContextVar("filer_id", default=None)
category_ctx: ContextVar[str | None] = ContextVar("category", default=None)


def _add_context_vars(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Attach the active document, filer, and category to log events.

    Args:
        logger: The logger instance (unused).
        method_name: The logging method name (unused).
        event_dict: The log event dictionary.

    Returns:
        Updated event dictionary with context variables.
    """
    if document_id := document_id_ctx.get():
        event_dict["document_id"] = document_id
    if filer_id := filer_id_ctx.get():
        event_dict["filer_id"] = filer_id
    if category := category_ctx.get():
        event_dict["category"] = category
    return event_dict


def _orjson_serializer(obj: Any, **kwargs: Any) -> str:
    """Serialize a log event with orjson.

    Decimal amounts are not native to orjson, so they are rendered as strings
    to keep cents exact.
    """
    return orjson.dumps(obj, default=_orjson_default).decode("utf-8")


def _orjson_default(obj: Any) -> Any:
    """Fallback conversion for values orjson cannot encode."""
    # Decimal, Enum members and other value objects
    if hasattr(obj, "value") and not callable(obj.value):
        return obj.value
    return str(obj)


def configure_logging() -> None:
    """Configure structlog for the application.

    Development mode: ConsoleRenderer with colors for readability.
    Production mode: JSONRenderer with orjson for structured logging.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_context_vars,
    ]

    log_format = settings.log_format.lower() if settings.log_format else None
    use_json = log_format == "json" or (
        log_format is None and settings.environment != "development"
    )

    if use_json:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.EventRenamer("message"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(serializer=_orjson_serializer),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if settings.debug else logging.INFO,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Optional logger name. Defaults to __name__ of caller.

    Returns:
        Configured structlog bound logger.
    """
    return structlog.get_logger(name)
