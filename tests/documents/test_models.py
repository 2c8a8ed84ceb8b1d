"""Tests for tax document Pydantic models.

Covers:
- SSN/EIN validation and identifier formatting
- DocumentCategory parsing
- ExtractionField amount constraints
- ExtractedDocument accessors
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.documents.models import (
    DocumentCategory,
    ExtractedDocument,
    ExtractionField,
    FieldSource,
    RawDocument,
    UnknownCategoryError,
    format_identifier,
    is_masked_identifier,
    validate_ein,
    validate_ssn,
)


class TestSSNValidation:
    """Tests for SSN validation and formatting."""

    def test_valid_ssn_with_dashes(self) -> None:
        """SSN with dashes is accepted and formatted correctly."""
        assert validate_ssn("123-45-6789") == "123-45-6789"

    def test_valid_ssn_without_dashes(self) -> None:
        """SSN without dashes is accepted and formatted with dashes."""
        assert validate_ssn("123456789") == "123-45-6789"

    def test_valid_ssn_with_spaces(self) -> None:
        """SSN with spaces is accepted after cleaning."""
        assert validate_ssn("123 45 6789") == "123-45-6789"

    def test_invalid_ssn_too_few_digits(self) -> None:
        """SSN with too few digits raises ValueError."""
        with pytest.raises(ValueError, match="must be exactly 9 digits"):
            validate_ssn("12345678")

    def test_invalid_ssn_too_many_digits(self) -> None:
        """SSN with too many digits raises ValueError."""
        with pytest.raises(ValueError, match="must be exactly 9 digits"):
            validate_ssn("1234567890")


class TestEINValidation:
    """Tests for EIN validation and formatting."""

    def test_valid_ein_with_dash(self) -> None:
        assert validate_ein("12-3456789") == "12-3456789"

    def test_valid_ein_without_dash(self) -> None:
        assert validate_ein("123456789") == "12-3456789"

    def test_invalid_ein(self) -> None:
        with pytest.raises(ValueError, match="must be exactly 9 digits"):
            validate_ein("12-345678")


class TestFormatIdentifier:
    """Tests for display formatting of recognized identifiers."""

    def test_plain_digits_become_ssn(self) -> None:
        assert format_identifier("123456789") == "123-45-6789"

    def test_ein_shape_is_kept(self) -> None:
        assert format_identifier("98-7654321") == "98-7654321"

    def test_masked_identifier_is_unchanged(self) -> None:
        assert format_identifier("  XXX-XX-1234 ") == "XXX-XX-1234"

    def test_partial_identifier_is_unchanged(self) -> None:
        assert format_identifier("1234") == "1234"

    def test_is_masked_identifier(self) -> None:
        assert is_masked_identifier("XXX-XX-1234")
        assert not is_masked_identifier("123-45-6789")
        assert not is_masked_identifier("XXXX")


class TestDocumentCategory:
    """Tests for DocumentCategory parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("W2", DocumentCategory.W2),
            ("W-2", DocumentCategory.W2),
            ("1099-INT", DocumentCategory.FORM_1099_INT),
            ("1099int", DocumentCategory.FORM_1099_INT),
            ("FORM_1099_DIV", DocumentCategory.FORM_1099_DIV),
            ("form-1099-nec", DocumentCategory.FORM_1099_NEC),
            (DocumentCategory.FORM_1099_MISC, DocumentCategory.FORM_1099_MISC),
        ],
    )
    def test_parse_accepts_known_spellings(self, value, expected) -> None:
        assert DocumentCategory.parse(value) == expected

    def test_parse_rejects_unknown(self) -> None:
        """Unknown strings are rejected, not coerced."""
        with pytest.raises(UnknownCategoryError, match="1040"):
            DocumentCategory.parse("1040")

    def test_unknown_category_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            DocumentCategory.parse("K-1")

    def test_is_1099(self) -> None:
        assert DocumentCategory.FORM_1099_DIV.is_1099
        assert not DocumentCategory.W2.is_1099
        assert not DocumentCategory.UNKNOWN.is_1099


class TestExtractionField:
    """Tests for ExtractionField constraints."""

    def test_amount_field(self) -> None:
        extracted = ExtractionField(
            name="wages", value=Decimal("50000.00"), source=FieldSource.STRUCTURED
        )
        assert extracted.is_amount
        assert extracted.confidence == 1.0

    def test_text_field(self) -> None:
        extracted = ExtractionField(
            name="employee_name", value="Jordan Blake", source=FieldSource.TEXT_PATTERN
        )
        assert not extracted.is_amount

    def test_negative_amount_rejected(self) -> None:
        with pytest.raises(ValidationError, match="non-negative"):
            ExtractionField(name="wages", value=Decimal("-1"), source=FieldSource.STRUCTURED)

    def test_confidence_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ExtractionField(
                name="wages",
                value=Decimal("1"),
                source=FieldSource.STRUCTURED,
                confidence=1.5,
            )

    def test_field_is_frozen(self) -> None:
        extracted = ExtractionField(
            name="wages", value=Decimal("1"), source=FieldSource.STRUCTURED
        )
        with pytest.raises(ValidationError):
            extracted.value = Decimal("2")


class TestRawDocument:
    """Tests for RawDocument."""

    def test_document_id_generated(self) -> None:
        first = RawDocument(content=b"a", category_hint=DocumentCategory.W2)
        second = RawDocument(content=b"a", category_hint=DocumentCategory.W2)
        assert first.document_id != second.document_id
        assert len(first.document_id) == 32

    def test_raw_document_is_immutable(self) -> None:
        raw = RawDocument(content=b"pdf", category_hint=DocumentCategory.W2)
        with pytest.raises(ValidationError):
            raw.content = b"other"


class TestExtractedDocument:
    """Tests for ExtractedDocument accessors."""

    def test_accessors(self, make_document) -> None:
        document = make_document(
            DocumentCategory.W2, wages="50000", employee_name="Jordan Blake"
        )
        assert document.amount("wages") == Decimal("50000")
        assert document.amount("employee_name") is None
        assert document.text("employee_name") == "Jordan Blake"
        assert document.text("wages") is None
        assert document.amount("missing") is None
        assert document.amounts() == {"wages": Decimal("50000")}
        assert document.has("wages")
        assert not document.has("federal_tax_withheld")

    def test_category_corrected(self) -> None:
        document = ExtractedDocument(
            document_id="doc-1",
            category=DocumentCategory.FORM_1099_INT,
            category_hint=DocumentCategory.FORM_1099_DIV,
        )
        assert document.category_corrected
