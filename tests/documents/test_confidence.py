"""Tests for confidence scoring module."""

from __future__ import annotations

import pytest

from src.documents.confidence import (
    REQUIRED_FIELDS,
    THRESHOLD_HIGH,
    THRESHOLD_MEDIUM,
    ConfidenceResult,
    calculate_confidence,
    get_required_fields,
    needs_review,
    score_document,
)
from src.documents.issues import ExtractionIssue, IssueKind, IssueSeverity
from src.documents.models import ConfidenceLevel, DocumentCategory


class TestConfidenceResult:
    """Tests for ConfidenceResult dataclass."""

    def test_defaults(self) -> None:
        result = ConfidenceResult(level=ConfidenceLevel.HIGH, score=0.95)
        assert result.factors == {}
        assert result.notes == []


class TestGetRequiredFields:
    """Tests for get_required_fields function."""

    def test_w2_required_fields(self) -> None:
        assert get_required_fields(DocumentCategory.W2) == [
            "employee_ssn",
            "employer_ein",
            "wages",
            "federal_tax_withheld",
        ]

    @pytest.mark.parametrize(
        ("category", "amount_field"),
        [
            (DocumentCategory.FORM_1099_INT, "interest_income"),
            (DocumentCategory.FORM_1099_DIV, "ordinary_dividends"),
            (DocumentCategory.FORM_1099_NEC, "nonemployee_compensation"),
        ],
    )
    def test_1099_required_fields(self, category: DocumentCategory, amount_field: str) -> None:
        assert get_required_fields(category) == ["payer_tin", "recipient_tin", amount_field]

    def test_misc_requires_only_identifiers(self) -> None:
        assert get_required_fields(DocumentCategory.FORM_1099_MISC) == ["payer_tin", "recipient_tin"]

    def test_unknown_has_no_required_fields(self) -> None:
        assert get_required_fields(DocumentCategory.UNKNOWN) == []

    def test_every_category_listed(self) -> None:
        assert set(REQUIRED_FIELDS) == set(DocumentCategory)


class TestCalculateConfidence:
    """Tests for the weighted confidence score."""

    def test_perfect_extraction_is_high(self) -> None:
        result = calculate_confidence(
            classification_confidence=1.0,
            field_validations={"wages": True, "employee_ssn": True},
            required_fields_present={"wages": True, "employee_ssn": True},
        )
        assert result.level == ConfidenceLevel.HIGH
        assert result.score == 1.0
        assert result.notes == []
        assert result.factors == {
            "classification": 1.0,
            "field_validation": 1.0,
            "required_fields": 1.0,
        }

    def test_missing_required_field_caps_at_medium(self) -> None:
        result = calculate_confidence(
            classification_confidence=1.0,
            field_validations={"wages": True, "employee_ssn": True},
            required_fields_present={
                "employee_ssn": True,
                "employer_ein": False,
                "wages": True,
                "federal_tax_withheld": True,
            },
        )
        assert result.score >= THRESHOLD_HIGH
        assert result.level == ConfidenceLevel.MEDIUM
        assert "Missing required fields: employer_ein" in result.notes
        assert "Score meets HIGH threshold but required fields are missing" in result.notes

    def test_failed_validation_lowers_score(self) -> None:
        result = calculate_confidence(
            classification_confidence=1.0,
            field_validations={"wages": True, "employee_ssn": False},
            required_fields_present={"wages": True},
        )
        assert result.score == pytest.approx(0.8)
        assert result.level == ConfidenceLevel.MEDIUM
        assert "Validation failed for: employee_ssn" in result.notes

    def test_nothing_extracted_is_low(self) -> None:
        result = calculate_confidence(
            classification_confidence=0.0,
            field_validations={},
            required_fields_present={},
        )
        assert result.score < THRESHOLD_MEDIUM
        assert result.level == ConfidenceLevel.LOW
        assert result.factors["field_validation"] == 0.0
        assert "No fields extracted" in result.notes
        assert "Category not recognized from document text" in result.notes

    def test_classification_is_clamped(self) -> None:
        result = calculate_confidence(
            classification_confidence=1.7,
            field_validations={"wages": True},
            required_fields_present={},
        )
        assert result.factors["classification"] == 1.0


class TestScoreDocument:
    """Tests for scoring a reconciled document."""

    def test_complete_w2(self, make_document) -> None:
        document = make_document(
            DocumentCategory.W2,
            employee_ssn="123-45-6789",
            employer_ein="12-3456789",
            wages="50000.00",
            federal_tax_withheld="6000.00",
        )
        validations = {name: True for name in document.fields}
        result = score_document(document, 1.0, validations)
        assert result.level == ConfidenceLevel.HIGH

    def test_w2_without_employer_ein(self, make_document) -> None:
        document = make_document(
            DocumentCategory.W2,
            employee_ssn="123-45-6789",
            wages="50000.00",
            federal_tax_withheld="6000.00",
        )
        validations = {name: True for name in document.fields}
        result = score_document(document, 1.0, validations)
        assert result.level == ConfidenceLevel.MEDIUM
        assert result.factors["required_fields"] == 0.75


class TestNeedsReview:
    """Tests for the review flag."""

    def _result(self, level: ConfidenceLevel) -> ConfidenceResult:
        return ConfidenceResult(level=level, score=0.9)

    def test_high_without_issues(self) -> None:
        assert needs_review(self._result(ConfidenceLevel.HIGH), []) is False

    def test_low_always_needs_review(self) -> None:
        assert needs_review(self._result(ConfidenceLevel.LOW), []) is True

    def test_info_issue_does_not_trigger_review(self) -> None:
        issue = ExtractionIssue(
            IssueKind.MISSING_IDENTITY, IssueSeverity.INFO, "Missing recipient address"
        )
        assert needs_review(self._result(ConfidenceLevel.HIGH), [issue]) is False

    def test_warning_triggers_review(self) -> None:
        issue = ExtractionIssue(
            IssueKind.EXTRACTION_INCOMPLETE,
            IssueSeverity.WARNING,
            "Critical field wages not found by either source",
        )
        assert needs_review(self._result(ConfidenceLevel.MEDIUM), [issue]) is True
