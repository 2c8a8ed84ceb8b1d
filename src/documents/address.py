"""Address parsing for recognized US mailing addresses.

Parsers are tried in order and the first one that yields a street, city,
two-letter state and a 5- or 9-digit ZIP wins:

1. Comma delimited: "123 Main St, Springfield, IL 62701"
2. Two-part comma: "123 Main St Springfield, IL 62701"
3. Space delimited: "123 MAIN ST SPRINGFIELD IL 62701"
4. ZIP-first backward parse for anything else containing a ZIP

When nothing matches, the whole string is kept as the street.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from pydantic import BaseModel

ZIP_PATTERN = r"\d{5}(?:-\d{4})?"

_STATE_ZIP = re.compile(rf"^([A-Z]{{2}})\s*({ZIP_PATTERN})$")
_TRAILING_STATE_ZIP = re.compile(rf"^(.+?)\s+([A-Z]{{2}})\s+({ZIP_PATTERN})$")
_ZIP_ANYWHERE = re.compile(rf"(?<!\d)({ZIP_PATTERN})(?!\d)")
_STATE_BEFORE_ZIP = re.compile(rf"([A-Z]{{2}})[\s,]+{ZIP_PATTERN}(?!\d)")

# Tokens that end the street part of a space-delimited address
STREET_SUFFIXES = frozenset(
    {
        "ST", "STREET", "AVE", "AVENUE", "RD", "ROAD", "DR", "DRIVE", "LN", "LANE",
        "BLVD", "BOULEVARD", "WAY", "CT", "COURT", "PL", "PLACE", "TER", "TERRACE",
        "CIR", "CIRCLE", "PKWY", "PARKWAY", "HWY", "HIGHWAY", "SQ", "TRL", "TRAIL",
        "LOOP", "ISLANDS", "PLZ", "PLAZA",
    }
)
UNIT_MARKERS = frozenset({"APT", "UNIT", "STE", "SUITE", "#"})


class ParsedAddress(BaseModel):
    """Address split into components.

    `matched` is False when no parser recognized the layout and the input
    was kept whole as the street.
    """

    street: str
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    matched: bool = False

    def formatted(self) -> str:
        """Render as "street, city, ST ZIP" (or just the street)."""
        if not self.matched:
            return self.street
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}"


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip().strip(",").strip()


def _complete(street: str, city: str, state: str, zip_code: str) -> ParsedAddress | None:
    street, city = _clean(street), _clean(city)
    if not street or not city:
        return None
    return ParsedAddress(
        street=street,
        city=city,
        state=state.upper(),
        zip_code=zip_code,
        matched=True,
    )


def _parse_comma_delimited(address: str) -> ParsedAddress | None:
    parts = [part.strip() for part in address.split(",")]
    if len(parts) < 3:
        return None
    match = _STATE_ZIP.match(parts[-1])
    if not match:
        return None
    return _complete(", ".join(parts[:-2]), parts[-2], match.group(1), match.group(2))


def _parse_two_part(address: str) -> ParsedAddress | None:
    parts = [part.strip() for part in address.split(",")]
    if len(parts) != 2:
        return None
    match = _STATE_ZIP.match(parts[1])
    if not match:
        return None
    street, city = _split_street_city(parts[0].split())
    if street is None:
        return None
    return _complete(street, city, match.group(1), match.group(2))


def _parse_space_delimited(address: str) -> ParsedAddress | None:
    if "," in address:
        return None
    match = _TRAILING_STATE_ZIP.match(address)
    if not match:
        return None
    street, city = _split_street_city(match.group(1).split())
    if street is None:
        return None
    return _complete(street, city, match.group(2), match.group(3))


def _parse_zip_first(address: str) -> ParsedAddress | None:
    zip_matches = list(_ZIP_ANYWHERE.finditer(address))
    if not zip_matches:
        return None
    zip_code = zip_matches[-1].group(1)

    state_matches = [
        match for match in _STATE_BEFORE_ZIP.finditer(address)
        if match.end() <= zip_matches[-1].end()
    ]
    if not state_matches:
        return None
    state_match = state_matches[-1]

    before_state = address[: state_match.start()].strip().rstrip(",")
    parts = [part.strip() for part in before_state.split(",") if part.strip()]
    if len(parts) >= 2:
        return _complete(", ".join(parts[:-1]), parts[-1], state_match.group(1), zip_code)

    street, city = _split_street_city(before_state.split())
    if street is None:
        return None
    return _complete(street, city, state_match.group(1), zip_code)


def _split_street_city(words: list[str]) -> tuple[str | None, str]:
    """Split "123 Main St Spring Field" into street and city words.

    The city starts after the last street suffix or unit number; without
    one, the final word is taken as the city.
    """
    if len(words) < 2:
        return None, ""

    boundary: int | None = None
    for index, word in enumerate(words[:-1]):
        token = word.upper().rstrip(".,")
        if token in STREET_SUFFIXES:
            boundary = index + 1
        elif token in UNIT_MARKERS and index + 1 < len(words) - 1:
            boundary = index + 2
        elif token.startswith("#") and len(token) > 1:
            boundary = index + 1

    if boundary is None or boundary >= len(words):
        boundary = len(words) - 1

    return " ".join(words[:boundary]), " ".join(words[boundary:])


_PARSERS: tuple[Callable[[str], ParsedAddress | None], ...] = (
    _parse_comma_delimited,
    _parse_two_part,
    _parse_space_delimited,
    _parse_zip_first,
)


def parse_address(address: str) -> ParsedAddress:
    """Split an address string into street, city, state and ZIP.

    Args:
        address: Address as recognized, on one or more lines.

    Returns:
        ParsedAddress; `matched` is False when only the street is known.

    Example:
        >>> parse_address("123 Main St, Springfield, IL 62701").city
        'Springfield'
    """
    cleaned = _clean(address)
    for parser in _PARSERS:
        parsed = parser(cleaned)
        if parsed is not None:
            return parsed
    return ParsedAddress(street=cleaned, matched=False)


__all__ = ["ParsedAddress", "parse_address"]
