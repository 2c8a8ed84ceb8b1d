"""Tests for provider value normalization."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from src.documents.normalizer import normalize_name, normalize_text, parse_amount, unwrap_value


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (50000, Decimal("50000")),
            (1234.5, Decimal("1234.5")),
            ("$50,000.00", Decimal("50000.00")),
            (" 1 234.56 ", Decimal("1234.56")),
            (Decimal("12.34"), Decimal("12.34")),
            ({"value": "12,500"}, Decimal("12500")),
            ({"value": None, "content": "$725.00"}, Decimal("725.00")),
            ({"value": {"amount": 5}, "content": "5"}, None),
        ],
    )
    def test_parses_provider_values(self, raw, expected) -> None:
        assert parse_amount(raw) == expected

    def test_attribute_wrapper(self) -> None:
        """Objects exposing value/content attributes are unwrapped."""
        assert parse_amount(SimpleNamespace(value=None, content="3,100.00")) == Decimal("3100.00")

    @pytest.mark.parametrize("raw", [None, "", "N/A", True, float("nan"), {"content": None}])
    def test_absence_is_preserved(self, raw) -> None:
        """Unparseable input yields None, never zero."""
        assert parse_amount(raw) is None

    def test_sign_is_preserved(self) -> None:
        assert parse_amount("-45.00") == Decimal("-45.00")

    def test_zero_is_a_value(self) -> None:
        assert parse_amount("0.00") == Decimal("0.00")

    @pytest.mark.parametrize(
        "raw", ["$50,000.00", {"value": "12,500"}, 1234.5, " 1 234.56 ", "-45.00"]
    )
    def test_reparsing_is_stable(self, raw) -> None:
        once = parse_amount(raw)
        assert parse_amount(once) == once


class TestNormalizeText:
    """Tests for normalize_text."""

    def test_collapses_whitespace(self) -> None:
        assert normalize_text("  Acme   Manufacturing\nInc ") == "Acme Manufacturing Inc"

    def test_unwraps_content(self) -> None:
        assert normalize_text({"content": "Jordan Blake"}) == "Jordan Blake"

    def test_joins_lists(self) -> None:
        assert normalize_text(["42 Maple Street", None, "Springfield, IL 62704"]) == (
            "42 Maple Street Springfield, IL 62704"
        )

    @pytest.mark.parametrize("raw", [None, "   ", {"Name": "x"}, True])
    def test_empty_values(self, raw) -> None:
        assert normalize_text(raw) is None


class TestUnwrapValue:
    """Tests for unwrap_value."""

    def test_nested_wrappers(self) -> None:
        assert unwrap_value({"value": {"value": {"content": "x"}}}) == "x"

    def test_plain_mapping_is_returned(self) -> None:
        nested = {"Name": {"content": "Acme"}}
        assert unwrap_value(nested) is nested


def test_normalize_name() -> None:
    assert normalize_name("  jordan   blake ") == "JORDAN BLAKE"
