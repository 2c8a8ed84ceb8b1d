"""Application configuration using Pydantic Settings."""

import json
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_PROVIDER_UNAVAILABLE_MARKERS = [
    "ModelNotFound",
    "Resource not found",
    "NotFound",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Environment
    environment: str = "development"
    """Current environment (development, staging, production)."""

    debug: bool = False
    """Enable debug mode."""

    log_format: str | None = None
    """Logging format override (json or console). Defaults by environment."""

    # Tax computation
    default_tax_year: int = 2023
    """Tax year used when a form state does not name one."""

    # Extraction
    reconciliation_threshold: Decimal = Decimal("100")
    """Absolute currency difference above which the text reading overrides
    the structured reading of a critical field."""

    max_reasonable_amount: Decimal = Decimal("100000000")
    """Upper bound accepted for amounts recovered from raw text."""

    extraction_concurrency: int = 4
    """Max documents extracted concurrently by `extract_documents`."""

    # Structured-extraction provider
    provider_timeout_seconds: float = 30.0
    """Timeout applied to every structured-extraction call."""

    provider_fail_max: int = 5
    """Consecutive provider failures before the circuit opens."""

    provider_reset_timeout: int = 30
    """Seconds an open circuit waits before allowing a trial call."""

    # NoDecode prevents pydantic-settings from forcing JSON parsing at the
    # env-source layer, so we can accept either JSON arrays or CSV strings.
    provider_unavailable_markers: Annotated[list[str], NoDecode] = (
        DEFAULT_PROVIDER_UNAVAILABLE_MARKERS
    )
    """Error message or code fragments meaning the provider model is unavailable."""

    @field_validator("provider_unavailable_markers", mode="before")
    @classmethod
    def parse_unavailable_markers(cls, value: object) -> list[str]:
        """Parse unavailable markers from JSON array, CSV, or list."""
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return DEFAULT_PROVIDER_UNAVAILABLE_MARKERS.copy()

            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                decoded = None

            if isinstance(decoded, list):
                return _normalize_markers(decoded)
            if isinstance(decoded, str):
                text = decoded
            elif decoded is not None:
                raise ValueError(
                    "PROVIDER_UNAVAILABLE_MARKERS must be a JSON array or comma-separated string."
                )

            # Fallback: comma-separated values
            return _normalize_markers(item.strip() for item in text.split(","))

        if isinstance(value, (list, tuple, set)):
            return _normalize_markers(value)

        raise ValueError(
            "PROVIDER_UNAVAILABLE_MARKERS must be a string, list, tuple, or set."
        )

    @field_validator("reconciliation_threshold", "max_reasonable_amount")
    @classmethod
    def require_positive_amount(cls, value: Decimal) -> Decimal:
        """Reject zero or negative currency bounds."""
        if value <= 0:
            raise ValueError("currency thresholds must be positive")
        return value


def _normalize_markers(values: Iterable[object]) -> list[str]:
    """Strip and dedupe markers while preserving declaration order."""
    normalized: list[str] = []
    seen: set[str] = set()
    for raw_item in values:
        item = str(raw_item).strip().strip("'").strip('"')
        if not item or item in seen:
            continue
        normalized.append(item)
        seen.add(item)

    if not normalized:
        return DEFAULT_PROVIDER_UNAVAILABLE_MARKERS.copy()
    return normalized


try:
    settings = Settings()
except Exception as exc:
    env_file = Path(".env")
    root_error = str(exc)
    suggestions = [
        "RECONCILIATION_THRESHOLD and MAX_REASONABLE_AMOUNT must be positive numbers.",
        "Allowed values for PROVIDER_UNAVAILABLE_MARKERS are:",
        '  1) ["ModelNotFound","Resource not found","NotFound"]',
        "  2) ModelNotFound,Resource not found,NotFound",
    ]

    raise RuntimeError(
        "Failed to initialize application settings. "
        f"Check environment variables in {env_file.resolve() if env_file.exists() else '.env'}.\n"
        + f"Error: {root_error}\n"
        + "\n".join(suggestions)
    ) from exc
