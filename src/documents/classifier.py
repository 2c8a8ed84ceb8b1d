"""Document classifier based on keyword scoring of recognized text.

This module identifies the document category (W-2, 1099-INT, 1099-DIV,
1099-MISC, 1099-NEC) from raw recognized text, independent of any upstream
label. Classification runs in two passes:

1. Family pass: the wage-statement keywords are scored against the
   information-return (1099) keywords.
2. Subtype pass: when the 1099 family wins, subtype keyword sets pick the
   specific form.

Classification is a pure function of the text: the same text always yields
the same category and confidence, and nothing here raises.

Example:
    >>> from src.documents.classifier import classify_text
    >>> result = classify_text("Form W-2 Wage and Tax Statement ...")
    >>> print(f"Category: {result.category}, confidence: {result.confidence}")
"""

from __future__ import annotations

import re
from functools import lru_cache

from pydantic import BaseModel, Field

from src.documents.models import DocumentCategory


class ClassificationResult(BaseModel):
    """Document classification result.

    Attributes:
        category: The identified document category.
        confidence: Confidence score between 0.0 and 1.0.
        scores: Keyword hit counts per scored category.
        reasoning: Explanation for the classification decision.
    """

    category: DocumentCategory = Field(description="The identified tax document category")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence score for classification")
    scores: dict[str, int] = Field(default_factory=dict)
    reasoning: str = Field(default="", description="Explanation for the classification decision")


# Family keyword sets, in declaration order. Ties go to the earlier entry,
# so a text scoring equally for both families is treated as a 1099.
FAMILY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "1099": (
        "form 1099",
        "1099-",
        "payer",
        "recipient",
        "tin",
    ),
    "W2": (
        "form w-2",
        "wage and tax statement",
        "wages, tips, other compensation",
        "federal income tax withheld",
        "social security wages",
        "medicare wages",
    ),
}

# Subtype keyword sets for the 1099 family, in declaration order.
SUBTYPE_KEYWORDS: dict[DocumentCategory, tuple[str, ...]] = {
    DocumentCategory.FORM_1099_DIV: (
        "form 1099-div",
        "dividends and distributions",
        "ordinary dividends",
        "qualified dividends",
        "total capital gain distributions",
        "capital gain distributions",
    ),
    DocumentCategory.FORM_1099_INT: (
        "form 1099-int",
        "interest income",
        "early withdrawal penalty",
        "interest on u.s. treasury obligations",
        "investment expenses",
    ),
    DocumentCategory.FORM_1099_MISC: (
        "form 1099-misc",
        "miscellaneous income",
        "nonemployee compensation",
        "rents",
        "royalties",
        "fishing boat proceeds",
    ),
    DocumentCategory.FORM_1099_NEC: (
        "form 1099-nec",
        "nonemployee compensation",
        "nec",
    ),
}

# Subtype used when the 1099 family wins but no subtype keyword matches
DEFAULT_1099_CATEGORY = DocumentCategory.FORM_1099_MISC
DEFAULT_SUBTYPE_CONFIDENCE = 0.5


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Compile a keyword into a case-insensitive whole-token pattern.

    Word boundaries are only enforced on alphanumeric ends, so "1099-" still
    matches "1099-NEC" while "tin" no longer matches inside "continuing".
    """
    prefix = r"\b" if keyword[0].isalnum() else ""
    suffix = r"\b" if keyword[-1].isalnum() else ""
    return re.compile(prefix + re.escape(keyword) + suffix, re.IGNORECASE)


def count_keyword_hits(text: str, keywords: tuple[str, ...]) -> int:
    """Count how many keywords of a set occur in the text."""
    return sum(1 for keyword in keywords if _keyword_pattern(keyword).search(text))


def _best(scores: dict[str, int]) -> tuple[str | None, int]:
    """Highest scoring key; ties keep the first declared key."""
    best_key: str | None = None
    best_score = 0
    for key, score in scores.items():
        if score > best_score:
            best_key, best_score = key, score
    return best_key, best_score


def _share(winner: int, scores: dict[str, int]) -> float:
    total = sum(scores.values())
    return winner / total if total else 0.0


def classify_text(text: str | None) -> ClassificationResult:
    """Classify raw recognized text into a document category.

    Args:
        text: Raw recognized text; may be empty or None.

    Returns:
        ClassificationResult. UNKNOWN with confidence 0.0 when no family
        keyword matches.

    Example:
        >>> classify_text("").category
        <DocumentCategory.UNKNOWN: 'UNKNOWN'>
    """
    if not text or not text.strip():
        return ClassificationResult(
            category=DocumentCategory.UNKNOWN,
            confidence=0.0,
            reasoning="No recognized text to classify.",
        )

    family_scores = {
        family: count_keyword_hits(text, keywords)
        for family, keywords in FAMILY_KEYWORDS.items()
    }
    family, family_score = _best(family_scores)

    if family is None:
        return ClassificationResult(
            category=DocumentCategory.UNKNOWN,
            confidence=0.0,
            scores=family_scores,
            reasoning="No wage-statement or information-return keywords found.",
        )

    family_confidence = _share(family_score, family_scores)

    if family == "W2":
        return ClassificationResult(
            category=DocumentCategory.W2,
            confidence=round(family_confidence, 4),
            scores=family_scores,
            reasoning=f"Matched {family_score} wage-statement keywords.",
        )

    subtype_scores = {
        category.value: count_keyword_hits(text, keywords)
        for category, keywords in SUBTYPE_KEYWORDS.items()
    }
    subtype, subtype_score = _best(subtype_scores)

    if subtype is None:
        return ClassificationResult(
            category=DEFAULT_1099_CATEGORY,
            confidence=round(family_confidence * DEFAULT_SUBTYPE_CONFIDENCE, 4),
            scores={**family_scores, **subtype_scores},
            reasoning="Information return without subtype keywords; defaulted.",
        )

    return ClassificationResult(
        category=DocumentCategory(subtype),
        confidence=round(family_confidence * _share(subtype_score, subtype_scores), 4),
        scores={**family_scores, **subtype_scores},
        reasoning=f"Matched {subtype_score} {subtype} keywords.",
    )


def resolve_category(
    hint: DocumentCategory, classification: ClassificationResult
) -> DocumentCategory:
    """Pick the category downstream stages should use.

    The classifier wins when it recognized something; an UNKNOWN result
    leaves the caller's hint in place.
    """
    if classification.category == DocumentCategory.UNKNOWN:
        return hint
    return classification.category


__all__ = [
    "ClassificationResult",
    "DEFAULT_1099_CATEGORY",
    "FAMILY_KEYWORDS",
    "SUBTYPE_KEYWORDS",
    "classify_text",
    "count_keyword_hits",
    "resolve_category",
]
