"""Tests for reading canonical fields from provider labeled fields."""

from decimal import Decimal

from src.documents.models import DocumentCategory, FieldSource
from src.documents.structured_reader import (
    StructuredReadStatus,
    read_structured_fields,
    resolve_alias,
)


class TestReadStructuredFields:
    """Tests for read_structured_fields."""

    def test_reads_w2_fields(self, w2_labeled_fields) -> None:
        result = read_structured_fields(w2_labeled_fields, DocumentCategory.W2)

        assert result.status == StructuredReadStatus.POPULATED
        assert result.fields["wages"].value == Decimal("50000")
        assert result.fields["medicare_wages"].value == Decimal("50000.00")
        assert result.fields["medicare_tax_withheld"].value == Decimal("725.00")
        assert result.fields["employee_name"].value == "Jordan Blake"
        assert result.fields["employee_ssn"].value == "123-45-6789"
        assert result.fields["employer_name"].value == "Acme Manufacturing Inc"
        assert result.fields["employer_ein"].value == "12-3456789"
        assert result.matched_aliases["wages"] == "WagesAndTips"
        assert result.matched_aliases["employee_name"] == "Employee.Name"

    def test_fields_carry_source_and_confidence(self, w2_labeled_fields) -> None:
        result = read_structured_fields(w2_labeled_fields, DocumentCategory.W2, confidence=0.8)
        wages = result.fields["wages"]
        assert wages.source == FieldSource.STRUCTURED
        assert wages.confidence == 0.8

    def test_missing_fields_are_absent(self, w2_labeled_fields) -> None:
        """Nothing is invented for fields the provider did not populate."""
        result = read_structured_fields(w2_labeled_fields, DocumentCategory.W2)
        assert "state_tax_withheld" not in result.fields
        assert "allocated_tips" not in result.fields

    def test_none_is_unavailable(self) -> None:
        result = read_structured_fields(None, DocumentCategory.W2)
        assert result.status == StructuredReadStatus.UNAVAILABLE
        assert result.fields == {}

    def test_empty_map_is_unavailable(self) -> None:
        result = read_structured_fields({}, DocumentCategory.W2)
        assert result.status == StructuredReadStatus.UNAVAILABLE

    def test_no_matching_fields_is_empty(self) -> None:
        result = read_structured_fields({"Irrelevant": 1}, DocumentCategory.FORM_1099_INT)
        assert result.status == StructuredReadStatus.EMPTY

    def test_negative_amount_falls_through_to_next_alias(self) -> None:
        result = read_structured_fields(
            {"WagesAndTips": -5, "Wages": 100}, DocumentCategory.W2
        )
        assert result.fields["wages"].value == Decimal("100")
        assert result.matched_aliases["wages"] == "Wages"

    def test_negative_amount_without_fallback_is_absent(self) -> None:
        result = read_structured_fields({"BondPremium": "-12.00"}, DocumentCategory.FORM_1099_INT)
        assert "bond_premium" not in result.fields
        assert result.status == StructuredReadStatus.EMPTY

    def test_box_alias(self) -> None:
        result = read_structured_fields({"Box1": "1,000"}, DocumentCategory.FORM_1099_INT)
        assert result.fields["interest_income"].value == Decimal("1000")

    def test_per_state_list_uses_first_entry(self) -> None:
        result = read_structured_fields(
            {"StateTaxInfos": [{"StateIncomeTax": 1500}, {"StateIncomeTax": 300}]},
            DocumentCategory.W2,
        )
        assert result.fields["state_tax_withheld"].value == Decimal("1500")

    def test_identifiers_are_formatted(self) -> None:
        result = read_structured_fields(
            {"Payer.TIN": "987654321", "Recipient.TIN": "XXX-XX-6789"},
            DocumentCategory.FORM_1099_INT,
        )
        assert result.fields["payer_tin"].value == "98-7654321"
        assert result.fields["recipient_tin"].value == "XXX-XX-6789"

    def test_plain_digit_employer_ein_keeps_ein_shape(self) -> None:
        result = read_structured_fields(
            {"Employer.IdNumber": "987654321", "Employee.SSN": "123456789"},
            DocumentCategory.W2,
        )
        assert result.fields["employer_ein"].value == "98-7654321"
        assert result.fields["employee_ssn"].value == "123-45-6789"

    def test_dashed_payer_ssn_is_kept(self) -> None:
        result = read_structured_fields({"Payer.TIN": "987-65-4321"}, DocumentCategory.FORM_1099_INT)
        assert result.fields["payer_tin"].value == "987-65-4321"

    def test_unknown_category_reads_nothing(self, w2_labeled_fields) -> None:
        result = read_structured_fields(w2_labeled_fields, DocumentCategory.UNKNOWN)
        assert result.status == StructuredReadStatus.EMPTY


class TestResolveAlias:
    """Tests for resolve_alias."""

    def test_flat_dotted_key_wins(self) -> None:
        labeled = {"Employee.Name": "Alex Morgan", "Employee": {"Name": "Jordan Blake"}}
        assert resolve_alias(labeled, "Employee.Name") == "Alex Morgan"

    def test_nested_walk_through_value_wrapper(self) -> None:
        labeled = {"Payer": {"value": {"Name": {"content": "First Example Bank"}}}}
        assert resolve_alias(labeled, "Payer.Name") == {"content": "First Example Bank"}

    def test_missing_path(self) -> None:
        assert resolve_alias({"Payer": {"TIN": "1"}}, "Payer.Name") is None
        assert resolve_alias({"Payer": "text"}, "Payer.Name") is None
        assert resolve_alias({}, "Wages") is None
