"""Text-pattern extractor: recovers canonical fields from raw recognized text.

Runs whenever raw text exists, independent of how the structured read went,
so the reconciliation step always has a second reading to compare against.

For wage statements the multi-entity stages run first. When more than one
person block is found, identity fields come from the selected record and
amounts are read from that person's slice of the text before the full text
is tried.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog

from src.documents.entities import EntitySelection, detect_entities, select_primary_entity
from src.documents.models import DocumentCategory, EntityRecord, ExtractionField, FieldSource
from src.documents.patterns import PatternRule, apply_rules, get_pattern_rules

logger = structlog.get_logger()

TEXT_PATTERN_CONFIDENCE = 0.7

_ENTITY_FIELDS = {
    "employee_name": "name",
    "employee_ssn": "identifier",
    "employee_address": "address",
}


@dataclass
class TextExtractionResult:
    """Fields recovered from raw text, plus entity diagnostics.

    Attributes:
        fields: Canonical fields found by pattern rules or entity selection.
        matched_rules: Rule (or entity source) that supplied each field.
        entities: Every detected person block, in detection order.
        selection: Primary-entity selection, when any block was found.
    """

    fields: dict[str, ExtractionField] = field(default_factory=dict)
    matched_rules: dict[str, str] = field(default_factory=dict)
    entities: list[EntityRecord] = field(default_factory=list)
    selection: EntitySelection | None = None

    @property
    def primary_index(self) -> int | None:
        return self.selection.primary_index if self.selection else None


def _entity_segment(text: str, selection: EntitySelection) -> str | None:
    """Slice of text from the primary record's name to the next record's name."""
    primary = selection.primary
    start = text.find(primary.name)
    if start < 0:
        return None
    end = len(text)
    if selection.primary_index + 1 < len(selection.records):
        following = selection.records[selection.primary_index + 1]
        next_start = text.find(following.name, start + len(primary.name))
        if next_start > start:
            end = next_start
    return text[start:end]


def _from_entity(
    result: TextExtractionResult,
    selection: EntitySelection,
    confidence: float,
    field_names: tuple[str, ...] = tuple(_ENTITY_FIELDS),
) -> None:
    record = selection.primary
    scale = record.confidence / 100
    for field_name in field_names:
        value = getattr(record, _ENTITY_FIELDS[field_name])
        if not value or field_name in result.fields:
            continue
        result.fields[field_name] = ExtractionField(
            name=field_name,
            value=value,
            source=FieldSource.TEXT_PATTERN,
            confidence=round(confidence * scale, 4),
        )
        result.matched_rules[field_name] = f"entity:{selection.reason.value}"


def _apply(
    result: TextExtractionResult,
    field_name: str,
    rules: tuple[PatternRule, ...],
    texts: list[str],
    confidence: float,
) -> None:
    for text in texts:
        found = apply_rules(text, rules)
        if found is None:
            continue
        value, rule_name = found
        result.fields[field_name] = ExtractionField(
            name=field_name,
            value=value,
            source=FieldSource.TEXT_PATTERN,
            confidence=confidence,
        )
        result.matched_rules[field_name] = rule_name
        return


def extract_text_fields(
    text: str | None,
    category: DocumentCategory,
    *,
    target_name: str | None = None,
    confidence: float = TEXT_PATTERN_CONFIDENCE,
) -> TextExtractionResult:
    """Recover canonical fields for a category from raw recognized text.

    Args:
        text: Raw recognized text.
        category: Category whose rule table applies.
        target_name: Person the caller expects; steers entity selection.
        confidence: Confidence assigned to pattern readings.

    Returns:
        TextExtractionResult. Fields no rule matched are absent, never zero.

    Example:
        >>> result = extract_text_fields(w2_text, DocumentCategory.W2)
        >>> result.fields["wages"].value
        Decimal('50000.00')
    """
    result = TextExtractionResult()
    if not text or not text.strip():
        return result

    rules_by_field = get_pattern_rules(category)
    if not rules_by_field:
        return result

    text = normalize_recognized_text(text)
    texts = [text]
    deferred: tuple[str, ...] = ()
    if category == DocumentCategory.W2:
        result.entities = detect_entities(text)
        result.selection = select_primary_entity(result.entities, target_name)
        if result.selection is not None:
            # Labelled SSN rules outrank a lone block's nearby identifier
            deferred = ("employee_ssn",) if len(result.entities) == 1 else ()
            _from_entity(
                result,
                result.selection,
                confidence,
                tuple(name for name in _ENTITY_FIELDS if name not in deferred),
            )
            if len(result.entities) > 1:
                segment = _entity_segment(text, result.selection)
                if segment:
                    texts = [segment, text]

    for field_name, rules in rules_by_field.items():
        if field_name in result.fields:
            continue
        _apply(result, field_name, rules, texts, confidence)

    if deferred:
        _from_entity(result, result.selection, confidence, deferred)

    logger.debug(
        "text_fields_extracted",
        category=category.value,
        field_count=len(result.fields),
        entity_count=len(result.entities),
        rules=result.matched_rules,
    )
    return result


def normalize_recognized_text(text: str) -> str:
    """Normalize line endings and strip trailing spaces from each line."""
    lines = re.split(r"\r\n|\r|\n", text)
    return "\n".join(line.rstrip() for line in lines)


__all__ = [
    "TEXT_PATTERN_CONFIDENCE",
    "TextExtractionResult",
    "extract_text_fields",
    "normalize_recognized_text",
]
