"""Cross-source reconciliation of structured and text-pattern readings.

Each critical field gets exactly one tagged outcome:

- MATCH: both sources agree within the threshold; structured value kept.
- MISSING: structured reading absent (or zero while text found a positive
  amount); text value adopted.
- CONFLICT: both present and differ by more than the threshold; text value
  adopted, since it is read positionally from the printed layout.
- SWAP: an adjacent box pair whose structured values are each other's text
  values; both fields take their text values.
- STRUCTURED_ONLY: no text reading; structured value kept.

Fields outside the critical list are merged without comparison: the
structured value wins and text readings only fill gaps.

The threshold is an absolute currency amount (settings.reconciliation_threshold).

Example:
    >>> result = reconcile(structured, text, DocumentCategory.W2)
    >>> result.outcomes["wages"].kind
    <OutcomeKind.MATCH: 'match'>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from src.core.config import settings
from src.documents.models import DocumentCategory, ExtractionField
from src.documents.observability import CorrectionRecord, ObservabilitySink

# =============================================================================
# Critical fields and adjacent pairs per category
# =============================================================================

CRITICAL_FIELDS: dict[DocumentCategory, tuple[str, ...]] = {
    DocumentCategory.W2: (
        "wages",
        "federal_tax_withheld",
        "social_security_wages",
        "social_security_tax_withheld",
        "medicare_wages",
        "medicare_tax_withheld",
    ),
    DocumentCategory.FORM_1099_INT: (
        "interest_income",
        "early_withdrawal_penalty",
        "interest_on_us_savings_bonds",
        "federal_tax_withheld",
        "tax_exempt_interest",
    ),
    DocumentCategory.FORM_1099_DIV: (
        "ordinary_dividends",
        "qualified_dividends",
        "total_capital_gain",
        "federal_tax_withheld",
    ),
    DocumentCategory.FORM_1099_MISC: (
        "rents",
        "royalties",
        "other_income",
        "federal_tax_withheld",
        "fishing_boat_proceeds",
        "medical_health_payments",
    ),
    DocumentCategory.FORM_1099_NEC: (
        "nonemployee_compensation",
        "federal_tax_withheld",
    ),
    DocumentCategory.UNKNOWN: (),
}


def _box_order_pairs(fields: tuple[str, ...]) -> tuple[tuple[str, str], ...]:
    return tuple(zip(fields, fields[1:]))


# W-2 boxes sit in two columns (1/3/5 left, 2/4/6 right); neighbours are
# vertical within a column.
ADJACENT_PAIRS: dict[DocumentCategory, tuple[tuple[str, str], ...]] = {
    DocumentCategory.W2: (
        ("wages", "social_security_wages"),
        ("social_security_wages", "medicare_wages"),
        ("federal_tax_withheld", "social_security_tax_withheld"),
        ("social_security_tax_withheld", "medicare_tax_withheld"),
    ),
    DocumentCategory.FORM_1099_INT: _box_order_pairs(CRITICAL_FIELDS[DocumentCategory.FORM_1099_INT]),
    DocumentCategory.FORM_1099_DIV: _box_order_pairs(CRITICAL_FIELDS[DocumentCategory.FORM_1099_DIV]),
    DocumentCategory.FORM_1099_MISC: _box_order_pairs(CRITICAL_FIELDS[DocumentCategory.FORM_1099_MISC]),
    DocumentCategory.FORM_1099_NEC: (),
    DocumentCategory.UNKNOWN: (),
}


def get_critical_fields(category: DocumentCategory) -> tuple[str, ...]:
    """Critical (reconciled) fields of a category, in box order."""
    return CRITICAL_FIELDS.get(category, ())


def get_adjacent_pairs(category: DocumentCategory) -> tuple[tuple[str, str], ...]:
    return ADJACENT_PAIRS.get(category, ())


# =============================================================================
# Outcomes
# =============================================================================


class OutcomeKind(str, Enum):
    """Tag of a per-field reconciliation outcome."""

    MATCH = "match"
    MISSING = "missing"
    CONFLICT = "conflict"
    SWAP = "swap"
    STRUCTURED_ONLY = "structured_only"


CORRECTING_KINDS = frozenset({OutcomeKind.MISSING, OutcomeKind.CONFLICT, OutcomeKind.SWAP})


@dataclass(frozen=True)
class FieldOutcome:
    """Reconciliation outcome for one critical field.

    Attributes:
        field: Canonical field name.
        kind: Outcome tag.
        structured: Structured reading, if any.
        text: Text-pattern reading, if any.
        partner: The other field of a swapped pair.
    """

    field: str
    kind: OutcomeKind
    structured: Decimal | None
    text: Decimal | None
    partner: str | None = None

    @property
    def resolved(self) -> Decimal | None:
        """Value the final field map carries for this field."""
        if self.kind in CORRECTING_KINDS:
            return self.text
        return self.structured

    @property
    def corrected(self) -> bool:
        return self.kind in CORRECTING_KINDS


@dataclass
class ReconciliationResult:
    """Final field map plus per-field outcomes.

    Attributes:
        fields: Exactly one ExtractionField per canonical name.
        outcomes: Outcome per critical field that either source reported.
        corrections: Corrections applied, in the order they were made.
    """

    fields: dict[str, ExtractionField] = field(default_factory=dict)
    outcomes: dict[str, FieldOutcome] = field(default_factory=dict)
    corrections: list[CorrectionRecord] = field(default_factory=list)

    def outcomes_of(self, kind: OutcomeKind) -> list[FieldOutcome]:
        return [outcome for outcome in self.outcomes.values() if outcome.kind == kind]


def _amount(extracted: ExtractionField | None) -> Decimal | None:
    if extracted is None or not isinstance(extracted.value, Decimal):
        return None
    return extracted.value


def classify_field(
    name: str,
    structured: Decimal | None,
    text: Decimal | None,
    threshold: Decimal,
) -> FieldOutcome | None:
    """Tag one critical field from its two readings (no swap analysis).

    Returns:
        FieldOutcome, or None when neither source has a reading.
    """
    if structured is None and text is None:
        return None
    if structured is None:
        return FieldOutcome(name, OutcomeKind.MISSING, structured, text)
    if text is None:
        return FieldOutcome(name, OutcomeKind.STRUCTURED_ONLY, structured, text)
    # Zero from the structured reader is treated as unread when the page shows an amount.
    if structured == 0 and text > 0:
        return FieldOutcome(name, OutcomeKind.MISSING, structured, text)
    if abs(structured - text) > threshold:
        return FieldOutcome(name, OutcomeKind.CONFLICT, structured, text)
    return FieldOutcome(name, OutcomeKind.MATCH, structured, text)


def is_swap(
    structured_a: Decimal | None,
    structured_b: Decimal | None,
    text_a: Decimal | None,
    text_b: Decimal | None,
    threshold: Decimal,
) -> bool:
    """Detect the swap signature on an adjacent pair.

    All four readings must be positive, each structured value must match
    the other field's text value, and at least one field must disagree
    with its own text value (otherwise the readings simply agree).
    """
    values = (structured_a, structured_b, text_a, text_b)
    if any(value is None or value <= 0 for value in values):
        return False
    crossed = abs(structured_a - text_b) <= threshold and abs(structured_b - text_a) <= threshold
    straight = abs(structured_a - text_a) > threshold or abs(structured_b - text_b) > threshold
    return crossed and straight


def reconcile(
    structured: dict[str, ExtractionField],
    text: dict[str, ExtractionField],
    category: DocumentCategory,
    *,
    threshold: Decimal | None = None,
    sink: ObservabilitySink | None = None,
) -> ReconciliationResult:
    """Merge structured and text readings into one field map.

    Args:
        structured: Fields from the structured reader.
        text: Fields from the text-pattern extractor.
        category: Resolved document category.
        threshold: Absolute difference that counts as disagreement;
            defaults to settings.reconciliation_threshold.
        sink: Receives one CorrectionRecord per corrected field.

    Returns:
        ReconciliationResult with the final field map.
    """
    limit = settings.reconciliation_threshold if threshold is None else threshold
    result = ReconciliationResult()

    # Non-critical merge: structured wins, text fills gaps.
    result.fields = {**text, **structured}

    for name in get_critical_fields(category):
        outcome = classify_field(name, _amount(structured.get(name)), _amount(text.get(name)), limit)
        if outcome is not None:
            result.outcomes[name] = outcome

    swapped: set[str] = set()
    for first, second in get_adjacent_pairs(category):
        if first in swapped or second in swapped:
            continue
        s_first, s_second = _amount(structured.get(first)), _amount(structured.get(second))
        t_first, t_second = _amount(text.get(first)), _amount(text.get(second))
        if is_swap(s_first, s_second, t_first, t_second, limit):
            result.outcomes[first] = FieldOutcome(
                first, OutcomeKind.SWAP, s_first, t_first, partner=second
            )
            result.outcomes[second] = FieldOutcome(
                second, OutcomeKind.SWAP, s_second, t_second, partner=first
            )
            swapped.update((first, second))

    for name, outcome in result.outcomes.items():
        if not outcome.corrected:
            continue
        result.fields[name] = text[name]
        record = CorrectionRecord(
            field=name,
            before=outcome.structured,
            after=outcome.text,
            reason=outcome.kind.value,
        )
        result.corrections.append(record)
        if sink is not None:
            sink.correction(record)

    if sink is not None:
        sink.decision(
            "reconciliation_complete",
            category=category.value,
            outcomes={name: outcome.kind.value for name, outcome in result.outcomes.items()},
            corrections=len(result.corrections),
        )
    return result


__all__ = [
    "ADJACENT_PAIRS",
    "CRITICAL_FIELDS",
    "FieldOutcome",
    "OutcomeKind",
    "ReconciliationResult",
    "classify_field",
    "get_adjacent_pairs",
    "get_critical_fields",
    "is_swap",
    "reconcile",
]
