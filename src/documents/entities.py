"""Multi-entity detection for documents carrying more than one person.

Batch wage statements (and some brokerage 1099 bundles) print several
identity blocks in one text stream. Handling runs in three stages:

1. detect_entity_blocks: find "name / street / city, ST ZIP" line triples.
2. score_entity_block: turn each block into an EntityRecord with an
   identifier lookup and a 0-100 confidence.
3. select_primary_entity: pick one record, preferring a caller-supplied
   target name, otherwise the highest composite score.

Each stage is a pure function so it can be tested on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

import structlog

from src.documents.models import EntityRecord, format_identifier
from src.documents.normalizer import normalize_name

logger = structlog.get_logger()

# =============================================================================
# Detection
# =============================================================================

_NAME_LINE = re.compile(r"^[A-Z][A-Za-z.'-]*(?:\s+[A-Z][A-Za-z.'-]*)+$")
_CITY_STATE_ZIP_LINE = re.compile(r"^[A-Za-z][A-Za-z\s.'-]*,\s*[A-Z]{2}\s+\d{5}(?:-\d{4})?$")
_EMPLOYEE_HEADER = re.compile(r"\be/f\b|employee['’]?s?\s+(?:first\s+)?name", re.IGNORECASE)
_ISSUER_LABEL = re.compile(r"\b(?:employer|payer)['’]?s?\b", re.IGNORECASE)

FORM_WORDS = frozenset({"EMPLOYEE", "EMPLOYER", "FORM", "PAYER", "RECIPIENT"})
BUSINESS_SUFFIXES = frozenset(
    {
        "INC", "LLC", "LLP", "LTD", "CORP", "CORPORATION", "CO", "COMPANY",
        "BANK", "TRUST", "GROUP", "HOLDINGS", "PARTNERS", "FUND", "ASSOCIATES",
    }
)

MIN_NAME_LENGTH = 4
MAX_NAME_LENGTH = 50
IDENTIFIER_WINDOW = 200

_IDENTIFIER = re.compile(
    r"(?<![\w-])((?:\d{3}|XXX)-(?:\d{2}|XX)-\d{4}|\d{3}\s\d{2}\s\d{4})(?![\w-])"
    # Bare nine digits only after an SSN/TIN label
    r"|\b(?:SSN|TIN)\s*[:#]?\s*(\d{9})(?![\w-])",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class EntityBlock:
    """Raw name/street/city line triple found in the text."""

    name: str
    street: str
    city_line: str
    line_index: int

    @property
    def address(self) -> str:
        return f"{self.street}, {self.city_line}"

    @property
    def source_text(self) -> str:
        return "\n".join((self.name, self.street, self.city_line))


def _words(name: str) -> list[str]:
    return [word.strip(".,'") for word in normalize_name(name).split()]


def is_business_name(name: str) -> bool:
    """True when the name ends in or contains a business suffix."""
    return any(word in BUSINESS_SUFFIXES for word in _words(name))


def _is_person_name_line(line: str, previous: str | None) -> bool:
    if not MIN_NAME_LENGTH <= len(line) < MAX_NAME_LENGTH:
        return False
    if not _NAME_LINE.match(line):
        return False
    words = _words(line)
    if any(word in FORM_WORDS for word in words) or is_business_name(line):
        return False
    # The block right after an employer/payer label belongs to the issuer.
    return not (previous and _ISSUER_LABEL.search(previous))


def _is_street_line(line: str) -> bool:
    return any(char.isdigit() for char in line) and not _CITY_STATE_ZIP_LINE.match(line)


def detect_entity_blocks(text: str) -> list[EntityBlock]:
    """Find person identity blocks in recognized text.

    Blank lines are dropped before scanning. When an employee name header
    is present, scanning starts after it.

    Args:
        text: Raw recognized text.

    Returns:
        Blocks in the order they appear.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    start = 0
    for index, line in enumerate(lines):
        if _EMPLOYEE_HEADER.search(line):
            start = index + 1
            break

    blocks: list[EntityBlock] = []
    index = start
    while index + 2 < len(lines):
        name, street, city_line = lines[index : index + 3]
        previous = lines[index - 1] if index > 0 else None
        if (
            _is_person_name_line(name, previous)
            and _is_street_line(street)
            and _CITY_STATE_ZIP_LINE.match(city_line)
        ):
            blocks.append(EntityBlock(name, street, city_line, index))
            index += 3
        else:
            index += 1
    return blocks


# =============================================================================
# Scoring
# =============================================================================

BASE_CONFIDENCE = 50
IDENTIFIER_BONUS = 30
ADDRESS_BONUS = 20
COMPLETENESS_BONUS = 10
SHORT_NAME_PENALTY = 10
SHORT_NAME_LENGTH = 6


def _name_pattern(name: str) -> re.Pattern[str]:
    return re.compile(r"\s+".join(re.escape(word) for word in name.split()))


def find_identifier(text: str, name: str, *, limit: int | None = None) -> str | None:
    """Find an SSN/TIN printed within IDENTIFIER_WINDOW characters after a name.

    Args:
        text: Full recognized text.
        name: Name as printed.
        limit: Offset the search must not cross (the next block's start).
    """
    match = _name_pattern(name).search(text)
    if match is None:
        return None
    end = match.end() + IDENTIFIER_WINDOW
    if limit is not None:
        end = min(end, limit)
    found = _IDENTIFIER.search(text, match.end(), max(end, match.end()))
    return format_identifier(found.group(1) or found.group(2)) if found else None


def score_entity_block(
    block: EntityBlock, text: str, *, next_block: EntityBlock | None = None
) -> EntityRecord:
    """Build an EntityRecord with a 0-100 detection confidence."""
    limit = None
    if next_block is not None:
        next_match = _name_pattern(next_block.name).search(text)
        limit = next_match.start() if next_match else None

    identifier = find_identifier(text, block.name, limit=limit)
    address = block.address

    confidence = BASE_CONFIDENCE
    if identifier:
        confidence += IDENTIFIER_BONUS
    if len(address) > 10:
        confidence += ADDRESS_BONUS
    if identifier and len(address) > 10:
        confidence += COMPLETENESS_BONUS
    if len(block.name) < SHORT_NAME_LENGTH:
        confidence -= SHORT_NAME_PENALTY

    return EntityRecord(
        name=block.name,
        identifier=identifier,
        address=address,
        confidence=max(0, min(100, confidence)),
        source_text=block.source_text,
        line_index=block.line_index,
    )


def detect_entities(text: str) -> list[EntityRecord]:
    """Detect and score every identity block in the text."""
    blocks = detect_entity_blocks(text)
    records = [
        score_entity_block(
            block,
            text,
            next_block=blocks[index + 1] if index + 1 < len(blocks) else None,
        )
        for index, block in enumerate(blocks)
    ]
    if len(records) > 1:
        logger.info(
            "multiple_entities_detected",
            count=len(records),
            names=[record.name for record in records],
        )
    return records


# =============================================================================
# Selection
# =============================================================================


class SelectionReason(str, Enum):
    """Why a record was chosen as primary."""

    SINGLE = "single"
    TARGET_NAME = "target_name"
    SCORE = "score"


@dataclass
class EntitySelection:
    """Outcome of primary-entity selection.

    Attributes:
        records: All candidate records, in detection order.
        primary_index: Index of the chosen record.
        reason: Which rule picked it.
        scores: Composite score per record (empty unless scored).
    """

    records: list[EntityRecord]
    primary_index: int
    reason: SelectionReason
    scores: list[float] = field(default_factory=list)

    @property
    def primary(self) -> EntityRecord:
        return self.records[self.primary_index]


def name_similarity(name: str, target: str) -> float:
    """Shared words divided by the larger word count (0.0-1.0)."""
    name_words, target_words = _words(name), _words(target)
    if not name_words or not target_words:
        return 0.0
    shared = len(set(name_words) & set(target_words))
    return shared / max(len(name_words), len(target_words))


def matches_target(name: str, target: str) -> bool:
    """Exact match, or every target word appears in the name."""
    if normalize_name(name) == normalize_name(target):
        return True
    target_words = set(_words(target))
    return bool(target_words) and target_words <= set(_words(name))


def composite_score(record: EntityRecord, target_name: str | None = None) -> float:
    """Selection score combining confidence, completeness and similarity."""
    score = float(record.confidence)
    if record.name:
        score += 10
    if record.identifier:
        score += 20
    if record.address:
        score += 15
    if not is_business_name(record.name):
        score += 5
    if target_name:
        score += name_similarity(record.name, target_name) * 30
    return score


def select_primary_entity(
    records: list[EntityRecord], target_name: str | None = None
) -> EntitySelection | None:
    """Choose the primary record.

    A record whose name matches the target wins outright; otherwise the
    highest composite score wins and ties keep the earlier record.

    Returns:
        EntitySelection, or None when there are no records.

    Example:
        >>> selection = select_primary_entity(records, target_name="Jordan Blake")
        >>> selection.primary.name
        'Jordan Blake'
    """
    if not records:
        return None
    if len(records) == 1:
        return EntitySelection(records, 0, SelectionReason.SINGLE)

    if target_name:
        for index, record in enumerate(records):
            if matches_target(record.name, target_name):
                logger.info("primary_entity_selected", reason="target_name", name=record.name)
                return EntitySelection(records, index, SelectionReason.TARGET_NAME)

    scores = [composite_score(record, target_name) for record in records]
    best = 0
    for index, score in enumerate(scores):
        if score > scores[best]:
            best = index

    logger.info(
        "primary_entity_selected",
        reason="score",
        name=records[best].name,
        score=scores[best],
    )
    return EntitySelection(records, best, SelectionReason.SCORE, scores)


__all__ = [
    "EntityBlock",
    "EntitySelection",
    "SelectionReason",
    "composite_score",
    "detect_entities",
    "detect_entity_blocks",
    "find_identifier",
    "is_business_name",
    "matches_target",
    "name_similarity",
    "score_entity_block",
    "select_primary_entity",
]
