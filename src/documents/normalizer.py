"""Amount and text normalization for provider values.

Provider values arrive as plain numbers, currency-formatted strings, or
wrapper objects exposing `value` or `content` (either as mapping keys or as
attributes). These helpers unwrap and canonicalize them.

Absence is preserved: anything that does not parse yields None, never zero.

Example:
    >>> parse_amount("$50,000.00")
    Decimal('50000.00')
    >>> parse_amount({"value": "12,500"})
    Decimal('12500')
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

_WRAPPER_KEYS = ("value", "content")
_AMOUNT_STRIP = re.compile(r"[$,\s]")
_WHITESPACE = re.compile(r"\s+")


def unwrap_value(raw: Any) -> Any:
    """Peel `value`/`content` wrappers until a primitive or container remains.

    `value` is preferred over `content`; a wrapper whose `value` is None falls
    through to `content` (providers fill `content` with the printed text
    when they cannot type the value).
    """
    current = raw
    # Providers nest at most a couple of levels; bound the walk anyway.
    for _ in range(8):
        if isinstance(current, Mapping):
            inner = _first_present(current.get(key) for key in _WRAPPER_KEYS)
        elif _is_primitive(current):
            return current
        else:
            inner = _first_present(getattr(current, key, None) for key in _WRAPPER_KEYS)
        if inner is None:
            return None if _looks_like_wrapper(current) else current
        current = inner
    return current


def parse_amount(raw: Any) -> Decimal | None:
    """Parse a provider value into a Decimal amount.

    Args:
        raw: Number, currency string, Decimal, or a value/content wrapper.

    Returns:
        The amount, or None when the value is missing or not numeric.
        Parsing never changes the sign or scale of the printed number.
    """
    value = unwrap_value(raw)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = _AMOUNT_STRIP.sub("", value)
        if not cleaned:
            return None
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None
    return None


def normalize_text(raw: Any) -> str | None:
    """Normalize a provider value into trimmed single-spaced text."""
    value = unwrap_value(raw)
    if value is None or isinstance(value, (bool, Mapping)):
        return None
    if isinstance(value, (list, tuple)):
        parts = [normalize_text(item) for item in value]
        value = " ".join(part for part in parts if part)
    text = _WHITESPACE.sub(" ", str(value)).strip()
    return text or None


def normalize_name(name: str) -> str:
    """Uppercase a person name and collapse whitespace for comparison."""
    return _WHITESPACE.sub(" ", name.strip().upper())


def _first_present(candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is None:
            continue
        if isinstance(candidate, str) and not candidate.strip():
            continue
        return candidate
    return None


def _is_primitive(value: Any) -> bool:
    return isinstance(value, (str, int, float, Decimal, bool, list, tuple))


def _looks_like_wrapper(value: Any) -> bool:
    if isinstance(value, Mapping):
        return any(key in value for key in _WRAPPER_KEYS)
    return any(hasattr(value, key) for key in _WRAPPER_KEYS)


__all__ = [
    "normalize_name",
    "normalize_text",
    "parse_amount",
    "unwrap_value",
]
