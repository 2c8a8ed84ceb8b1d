"""Confidence scoring for document extraction reliability.

This module calculates confidence scores for extracted document data based on
multiple factors: classifier confidence, field validation pass rates, and
presence of required fields.

The confidence score determines whether extractions need human review:
- HIGH: score >= 0.85 AND all required fields present
- MEDIUM: score >= 0.60
- LOW: score < 0.60

Example:
    >>> from src.documents.confidence import calculate_confidence
    >>> result = calculate_confidence(
    ...     classification_confidence=1.0,
    ...     field_validations={"employee_ssn": True, "wages": True},
    ...     required_fields_present={"employee_ssn": True, "wages": True},
    ... )
    >>> print(f"Level: {result.level}, Score: {result.score:.2f}")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from src.documents.issues import ExtractionIssue, IssueSeverity
from src.documents.models import ConfidenceLevel, DocumentCategory, ExtractedDocument


@dataclass
class ConfidenceResult:
    """Confidence scoring result for an extraction.

    Attributes:
        level: Overall confidence level (HIGH, MEDIUM, LOW).
        score: Numeric score between 0.0 and 1.0.
        factors: Individual factor scores contributing to overall score.
        notes: Explanation notes, especially for low confidence cases.
    """

    level: ConfidenceLevel
    score: float
    factors: dict[str, float] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)


# Fields that must be present for HIGH confidence by category
REQUIRED_FIELDS: dict[DocumentCategory, list[str]] = {
    DocumentCategory.W2: [
        "employee_ssn",
        "employer_ein",
        "wages",
        "federal_tax_withheld",
    ],
    DocumentCategory.FORM_1099_INT: [
        "payer_tin",
        "recipient_tin",
        "interest_income",
    ],
    DocumentCategory.FORM_1099_DIV: [
        "payer_tin",
        "recipient_tin",
        "ordinary_dividends",
    ],
    DocumentCategory.FORM_1099_MISC: [
        "payer_tin",
        "recipient_tin",
    ],
    DocumentCategory.FORM_1099_NEC: [
        "payer_tin",
        "recipient_tin",
        "nonemployee_compensation",
    ],
    DocumentCategory.UNKNOWN: [],
}

# Weights for each factor in confidence calculation
WEIGHT_CLASSIFICATION = 0.3  # Classifier confidence in the resolved category
WEIGHT_VALIDATION = 0.4  # Field format validation pass rate
WEIGHT_REQUIRED = 0.3  # Required field presence

# Thresholds for confidence levels
THRESHOLD_HIGH = 0.85
THRESHOLD_MEDIUM = 0.60


def get_required_fields(category: DocumentCategory) -> list[str]:
    """Get required field names for a category.

    If any required field is missing, the confidence level cannot be HIGH
    regardless of the numeric score.

    Example:
        >>> get_required_fields(DocumentCategory.W2)
        ['employee_ssn', 'employer_ein', 'wages', 'federal_tax_withheld']
    """
    return REQUIRED_FIELDS.get(category, [])


def calculate_confidence(
    classification_confidence: float,
    field_validations: dict[str, bool],
    required_fields_present: dict[str, bool],
) -> ConfidenceResult:
    """Calculate overall extraction confidence.

    Uses a weighted combination of three factors:
    - Classification confidence (30%): how strongly the classifier
      recognized the resolved category.
    - Field validation pass rate (40%): what share of fields passed format
      validation (e.g., SSN digit count).
    - Required field presence (30%): what share of required fields were
      extracted.

    Args:
        classification_confidence: Classifier score between 0.0 and 1.0.
        field_validations: Dict mapping field_name -> passed_validation.
        required_fields_present: Dict mapping required_field -> is_present.

    Returns:
        ConfidenceResult with level, score, factors breakdown, and notes.
    """
    notes: list[str] = []

    classification_score = min(max(classification_confidence, 0.0), 1.0)
    if classification_score == 0.0:
        notes.append("Category not recognized from document text")

    if field_validations:
        passed_count = sum(1 for v in field_validations.values() if v)
        validation_score = passed_count / len(field_validations)
        failed_fields = [k for k, v in field_validations.items() if not v]
        if failed_fields:
            notes.append(f"Validation failed for: {', '.join(failed_fields)}")
    else:
        # Nothing extracted, so nothing to vouch for
        validation_score = 0.0
        notes.append("No fields extracted")

    if required_fields_present:
        present_count = sum(1 for v in required_fields_present.values() if v)
        required_score = present_count / len(required_fields_present)
        missing_fields = [k for k, v in required_fields_present.items() if not v]
        if missing_fields:
            notes.append(f"Missing required fields: {', '.join(missing_fields)}")
    else:
        required_score = 1.0

    all_required_present = all(required_fields_present.values()) if required_fields_present else True

    score = (
        (WEIGHT_CLASSIFICATION * classification_score)
        + (WEIGHT_VALIDATION * validation_score)
        + (WEIGHT_REQUIRED * required_score)
    )

    # HIGH requires score >= 0.85 AND all required fields present
    if score >= THRESHOLD_HIGH and all_required_present:
        level = ConfidenceLevel.HIGH
    elif score >= THRESHOLD_MEDIUM:
        level = ConfidenceLevel.MEDIUM
        if not all_required_present and score >= THRESHOLD_HIGH:
            notes.append("Score meets HIGH threshold but required fields are missing")
    else:
        level = ConfidenceLevel.LOW

    factors = {
        "classification": classification_score,
        "field_validation": validation_score,
        "required_fields": required_score,
    }

    return ConfidenceResult(
        level=level,
        score=round(score, 4),
        factors=factors,
        notes=notes,
    )


def score_document(
    document: ExtractedDocument,
    classification_confidence: float,
    field_validations: dict[str, bool],
) -> ConfidenceResult:
    """Score a reconciled document using its category's required fields."""
    required = {name: document.has(name) for name in get_required_fields(document.category)}
    return calculate_confidence(classification_confidence, field_validations, required)


def needs_review(confidence: ConfidenceResult, issues: Iterable[ExtractionIssue]) -> bool:
    """True when a human should review the extraction before it is committed."""
    if confidence.level == ConfidenceLevel.LOW:
        return True
    return any(issue.severity != IssueSeverity.INFO for issue in issues)


__all__ = [
    "ConfidenceResult",
    "REQUIRED_FIELDS",
    "THRESHOLD_HIGH",
    "THRESHOLD_MEDIUM",
    "calculate_confidence",
    "get_required_fields",
    "needs_review",
    "score_document",
]
