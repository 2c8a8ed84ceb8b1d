"""Extraction issues and the engine's exception types.

Issues are data: they are collected on results and handed back to the
caller, who decides whether partial data is acceptable. Exceptions are kept
for terminal failures and contract violations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class IssueKind(str, Enum):
    """What went wrong (or changed) while extracting a document."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    EXTRACTION_INCOMPLETE = "extraction_incomplete"
    VALIDATION_FAILED = "validation_failed"
    CLASSIFICATION_MISMATCH = "classification_mismatch"
    NO_INCOME_DATA = "no_income_data"
    MISSING_IDENTITY = "missing_identity"


class IssueSeverity(str, Enum):
    """How much attention an issue needs."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ExtractionIssue:
    """One reported issue.

    Attributes:
        kind: Issue category.
        severity: INFO is informational, WARNING needs review, ERROR blocks mapping.
        message: Human-readable description.
        fields: Canonical fields the issue concerns.
    """

    kind: IssueKind
    severity: IssueSeverity
    message: str
    fields: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_blocking(self) -> bool:
        return self.severity == IssueSeverity.ERROR


class ProviderError(Exception):
    """Structured-extraction provider failed, including the text-only retry."""


class ProviderUnavailableError(ProviderError):
    """Provider model unavailable or timed out; text-only mode may still work."""


__all__ = [
    "ExtractionIssue",
    "IssueKind",
    "IssueSeverity",
    "ProviderError",
    "ProviderUnavailableError",
]
