"""Tests for US address parsing."""

import pytest

from src.documents.address import parse_address


class TestParseAddress:
    """Tests for parse_address layouts."""

    @pytest.mark.parametrize(
        ("address", "street", "city", "state", "zip_code"),
        [
            ("123 Main St, Springfield, IL 62701", "123 Main St", "Springfield", "IL", "62701"),
            ("123 Main St Springfield, IL 62701", "123 Main St", "Springfield", "IL", "62701"),
            ("123 MAIN ST SPRINGFIELD IL 62701", "123 MAIN ST", "SPRINGFIELD", "IL", "62701"),
            (
                "42 Oak Ave Apt 5 Portland, OR 97201-1234",
                "42 Oak Ave Apt 5",
                "Portland",
                "OR",
                "97201-1234",
            ),
            ("500 Elm Rd Dallas TX 75201 USA", "500 Elm Rd", "Dallas", "TX", "75201"),
        ],
    )
    def test_layouts(self, address, street, city, state, zip_code) -> None:
        parsed = parse_address(address)
        assert parsed.matched
        assert (parsed.street, parsed.city, parsed.state, parsed.zip_code) == (
            street,
            city,
            state,
            zip_code,
        )

    def test_multiline_address_is_flattened(self) -> None:
        parsed = parse_address("42 Maple Street\nSpringfield, IL 62704")
        assert parsed.street == "42 Maple Street"
        assert parsed.city == "Springfield"
        assert parsed.zip_code == "62704"

    def test_unmatched_keeps_whole_street(self) -> None:
        parsed = parse_address("Suite 400, Building B")
        assert not parsed.matched
        assert parsed.street == "Suite 400, Building B"
        assert parsed.city is None
        assert parsed.formatted() == "Suite 400, Building B"

    def test_formatted(self) -> None:
        parsed = parse_address("123 MAIN ST SPRINGFIELD IL 62701")
        assert parsed.formatted() == "123 MAIN ST, SPRINGFIELD, IL 62701"
