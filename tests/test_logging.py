"""Tests for structured logging configuration."""

import structlog

from src.core.config import settings
from src.core.logging import (
    _add_context_vars,
    _orjson_serializer,
    category_ctx,
    configure_logging,
    document_id_ctx,
    filer_id_ctx,
)
from src.documents.models import DocumentCategory


def _reset_structlog() -> None:
    """Reset structlog defaults to avoid test cross-talk."""
    structlog.reset_defaults()


def test_configure_logging_uses_json_when_log_format_json() -> None:
    """Use JSON logging when log_format=json, even in development."""
    original_env = settings.environment
    original_format = getattr(settings, "log_format", None)

    try:
        settings.environment = "development"
        settings.log_format = "json"
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert any(
            isinstance(processor, structlog.processors.JSONRenderer)
            for processor in processors
        )
        assert any(
            isinstance(processor, structlog.processors.EventRenamer)
            for processor in processors
        )
    finally:
        settings.environment = original_env
        settings.log_format = original_format
        _reset_structlog()


def test_configure_logging_uses_console_when_log_format_console() -> None:
    """Use console logging when log_format=console in development."""
    original_env = settings.environment
    original_format = getattr(settings, "log_format", None)

    try:
        settings.environment = "development"
        settings.log_format = "console"
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert any(
            isinstance(processor, structlog.dev.ConsoleRenderer)
            for processor in processors
        )
        assert not any(
            isinstance(processor, structlog.processors.JSONRenderer)
            for processor in processors
        )
    finally:
        settings.environment = original_env
        settings.log_format = original_format
        _reset_structlog()


def test_configure_logging_defaults_to_json_outside_development() -> None:
    """Without an override, non-development environments log JSON."""
    original_env = settings.environment
    original_format = getattr(settings, "log_format", None)

    try:
        settings.environment = "production"
        settings.log_format = None
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert any(
            isinstance(processor, structlog.processors.JSONRenderer)
            for processor in processors
        )
    finally:
        settings.environment = original_env
        settings.log_format = original_format
        _reset_structlog()


def test_context_vars_are_added_to_events() -> None:
    """Active document, filer and category land on every event."""
    tokens = (
        document_id_ctx.set("doc-1"),
        filer_id_ctx.set("filer-9"),
        category_ctx.set("W2"),
    )
    try:
        event = _add_context_vars(None, "info", {"event": "document_extracted"})
    finally:
        category_ctx.reset(tokens[2])
        filer_id_ctx.reset(tokens[1])
        document_id_ctx.reset(tokens[0])

    assert event == {
        "event": "document_extracted",
        "document_id": "doc-1",
        "filer_id": "filer-9",
        "category": "W2",
    }


def test_context_vars_absent_when_unset() -> None:
    """Unset context variables add nothing."""
    event = _add_context_vars(None, "info", {"event": "form_computed"})
    assert event == {"event": "form_computed"}


def test_orjson_serializer_renders_decimals_and_enums() -> None:
    """Decimal amounts keep their cents; enums render as their value."""
    from decimal import Decimal

    rendered = _orjson_serializer(
        {"refund": Decimal("1882.00"), "category": DocumentCategory.FORM_1099_INT}
    )
    assert '"refund":"1882.00"' in rendered
    assert '"category":"1099-INT"' in rendered
