"""Structured field reader for provider-labeled fields.

Maps a category's canonical fields onto the provider's labeled field set
using the alias tables in `src.documents.aliases`. Only fields the provider
actually populated appear in the result; nothing is invented for a missing
field, so the text-pattern fallback can act on it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from src.documents.aliases import FieldSpec, get_field_specs
from src.documents.models import (
    DocumentCategory,
    ExtractionField,
    FieldKind,
    FieldSource,
    format_identifier,
    validate_ein,
)
from src.documents.normalizer import normalize_text, parse_amount, unwrap_value

logger = structlog.get_logger()

_IDENTIFIER_FIELDS = frozenset({"employee_ssn", "recipient_tin", "payer_tin", "employer_ein"})
# Plain nine-digit values in these fields are written XX-XXXXXXX.
_EIN_FIELDS = frozenset({"employer_ein", "payer_tin"})


class StructuredReadStatus(str, Enum):
    """Outcome of a structured read."""

    POPULATED = "populated"
    """Provider succeeded and at least one canonical field was found."""

    EMPTY = "empty"
    """Provider succeeded but populated none of the category's fields."""

    UNAVAILABLE = "unavailable"
    """No labeled fields were produced (provider error or text-only mode)."""


@dataclass
class StructuredReadResult:
    """Partial extraction from labeled fields.

    Attributes:
        status: Whether labeled data was available and useful.
        fields: Canonical fields that the provider populated.
        matched_aliases: Alias that supplied each canonical field.
    """

    status: StructuredReadStatus
    fields: dict[str, ExtractionField] = field(default_factory=dict)
    matched_aliases: dict[str, str] = field(default_factory=dict)


def resolve_alias(labeled_fields: Mapping[str, Any], alias: str) -> Any:
    """Find the raw value for an alias, walking dotted paths into nested objects.

    A flat key that literally contains the dot wins over a nested walk.
    """
    if alias in labeled_fields:
        return labeled_fields[alias]
    if "." not in alias:
        return None

    current: Any = labeled_fields
    for part in alias.split("."):
        container = _as_mapping(current)
        if container is None or part not in container:
            return None
        current = container[part]
    return current


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    """Return the mapping of sub-fields held by a provider object, if any."""
    unwrapped = unwrap_value(value)
    if isinstance(unwrapped, Mapping):
        return unwrapped
    # Providers may hand back a list of per-state objects; use the first.
    if isinstance(unwrapped, (list, tuple)) and unwrapped:
        return _as_mapping(unwrapped[0])
    return None


def _read_value(spec: FieldSpec, raw: Any) -> Any:
    if spec.kind == FieldKind.AMOUNT:
        return parse_amount(raw)
    text = normalize_text(raw)
    if text is not None and spec.name in _IDENTIFIER_FIELDS:
        if spec.name in _EIN_FIELDS and re.fullmatch(r"\d{9}", text):
            return validate_ein(text)
        return format_identifier(text)
    return text


def read_structured_fields(
    labeled_fields: Mapping[str, Any] | None,
    category: DocumentCategory,
    *,
    confidence: float = 0.9,
) -> StructuredReadResult:
    """Read canonical fields from a provider's labeled field set.

    Args:
        labeled_fields: Provider field map (name -> raw value), or None when
            the provider produced no labeled data.
        category: Category whose alias table drives the read.
        confidence: Confidence assigned to structured readings.

    Returns:
        StructuredReadResult. An absent or empty field map yields status
        UNAVAILABLE; a present map with no matching fields yields EMPTY.
    """
    if not labeled_fields:
        return StructuredReadResult(status=StructuredReadStatus.UNAVAILABLE)

    fields: dict[str, ExtractionField] = {}
    matched: dict[str, str] = {}

    for spec in get_field_specs(category):
        for alias in spec.aliases:
            value = _read_value(spec, resolve_alias(labeled_fields, alias))
            if value is None:
                continue
            if spec.kind == FieldKind.AMOUNT and value < 0:
                logger.warning(
                    "structured_negative_amount_ignored",
                    field=spec.name,
                    alias=alias,
                    value=str(value),
                )
                continue
            fields[spec.name] = ExtractionField(
                name=spec.name,
                value=value,
                source=FieldSource.STRUCTURED,
                confidence=confidence,
            )
            matched[spec.name] = alias
            break

    status = StructuredReadStatus.POPULATED if fields else StructuredReadStatus.EMPTY
    logger.debug(
        "structured_fields_read",
        category=category.value,
        status=status.value,
        field_count=len(fields),
    )
    return StructuredReadResult(status=status, fields=fields, matched_aliases=matched)


__all__ = [
    "StructuredReadResult",
    "StructuredReadStatus",
    "read_structured_fields",
    "resolve_alias",
]
