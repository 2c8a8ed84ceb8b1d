"""Tests for per-filer form state and the registry."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from src.documents.models import DocumentCategory
from src.tax import FilingStatus
from src.tax.form_state import FormStateRegistry, TaxFormState
from src.tax.mapping import MappingValidationError, map_document

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def w2(make_document):
    """Return a W-2: wages 50,000, withholding 6,000."""
    return make_document(
        DocumentCategory.W2,
        document_id="w2",
        employee_name="Jordan Blake",
        employee_ssn="123-45-6789",
        employee_address="42 Maple Street, Springfield, IL 62704",
        wages="50000.00",
        federal_tax_withheld="6000.00",
    )


@pytest.fixture
def interest(make_document):
    """Return a 1099-INT whose bond premium exceeds its interest."""
    return make_document(
        DocumentCategory.FORM_1099_INT,
        document_id="int-premium",
        recipient_name="J Blake",
        recipient_tin="987-65-4321",
        interest_income="400.00",
        bond_premium="600.00",
    )


@pytest.fixture
def more_interest(make_document):
    """Return a plain 1099-INT with 500 of interest."""
    return make_document(
        DocumentCategory.FORM_1099_INT,
        document_id="int-plain",
        interest_income="500.00",
        foreign_tax_paid="12.00",
    )


@pytest.fixture
def registry() -> FormStateRegistry:
    """Return a registry for tax year 2023."""
    return FormStateRegistry(tax_year=2023)


def state_with(*documents) -> TaxFormState:
    state = TaxFormState(filer_id="filer-1", tax_year=2023)
    for document in documents:
        state.apply(map_document(document).delta)
    return state


# =============================================================================
# TaxFormState
# =============================================================================


class TestTaxFormState:
    """Tests for applying and removing contributions."""

    def test_w2_refund(self, w2) -> None:
        state = state_with(w2)
        assert state.line("line1") == Decimal("50000.00")
        assert state.line("line25a") == Decimal("6000.00")
        assert state.line("line15") == Decimal("36150.00")
        assert state.derived.refund == Decimal("1882.00")

    def test_reductions_floor_at_zero(self, interest) -> None:
        state = state_with(interest)
        assert state.line("line2b") == Decimal("0")

    def test_order_independent(self, w2, interest, more_interest) -> None:
        forward = state_with(w2, interest, more_interest)
        backward = state_with(more_interest, interest, w2)
        # 400 + 500 - 600, whatever the arrival order
        assert forward.line("line2b") == Decimal("300.00")
        assert forward.lines == backward.lines
        assert forward.side_schedules == backward.side_schedules
        assert forward.header == backward.header
        assert forward.derived == backward.derived

    def test_header_prefers_w2(self, w2, interest) -> None:
        state = state_with(interest, w2)
        assert state.header.first_name == "Jordan"
        assert state.header.last_name == "Blake"
        assert state.header.ssn == "123-45-6789"
        assert state.header.city == "Springfield"
        assert state.header.source_document_id == "w2"

    def test_header_from_1099_alone(self, interest) -> None:
        state = state_with(interest)
        assert state.header.first_name == "J"
        assert state.header.ssn == "987-65-4321"

    def test_reprocess_replaces_contribution(self, w2, make_document) -> None:
        state = state_with(w2)
        corrected = make_document(
            DocumentCategory.W2,
            document_id="w2",
            wages="52000.00",
            federal_tax_withheld="6000.00",
        )
        state.apply(map_document(corrected).delta)
        assert len(state.contributions) == 1
        assert state.line("line1") == Decimal("52000.00")

    def test_remove(self, w2, more_interest) -> None:
        state = state_with(w2, more_interest)
        assert state.remove("int-plain") is True
        assert state.line("line2b") == Decimal("0")
        assert state.side_entry("foreign_tax_credit", "foreign_tax_paid") == Decimal("0")
        assert state.derived.refund == Decimal("1882.00")
        assert state.remove("int-plain") is False

    def test_side_entries(self, more_interest) -> None:
        state = state_with(more_interest)
        assert state.side_entry("foreign_tax_credit", "foreign_tax_paid") == Decimal("12.00")
        assert state.line("line1") == Decimal("0")

    def test_empty_state_lines_are_zero(self) -> None:
        state = TaxFormState(filer_id="filer-1", tax_year=2023)
        assert state.line("line1") == Decimal("0")
        assert state.line("line34") == Decimal("0")
        assert state.header.is_empty


# =============================================================================
# FormStateRegistry
# =============================================================================


class TestFormStateRegistry:
    """Tests for serialized per-filer updates."""

    @pytest.mark.asyncio
    async def test_apply_document(self, registry, w2) -> None:
        result = await registry.apply_document("filer-1", w2)
        assert result.document_id == "w2"
        state = registry.get("filer-1")
        assert state.tax_year == 2023
        assert state.derived.refund == Decimal("1882.00")

    @pytest.mark.asyncio
    async def test_invalid_document_leaves_form_untouched(
        self, registry, w2, make_document
    ) -> None:
        await registry.apply_document("filer-1", w2)
        empty = make_document(DocumentCategory.W2, document_id="blank", employee_name="X Y")
        with pytest.raises(MappingValidationError):
            await registry.apply_document("filer-1", empty)
        state = registry.get("filer-1")
        assert list(state.contributions) == ["w2"]
        assert state.derived.refund == Decimal("1882.00")

    @pytest.mark.asyncio
    async def test_cancelled_apply_leaves_form_untouched(self, registry, w2, interest) -> None:
        await registry.apply_document("filer-1", w2)
        lock = registry.lock("filer-1")
        await lock.acquire()
        task = asyncio.create_task(registry.apply_document("filer-1", interest))
        await asyncio.sleep(0)
        task.cancel()
        lock.release()

        with pytest.raises(asyncio.CancelledError):
            await task
        state = registry.get("filer-1")
        assert list(state.contributions) == ["w2"]
        assert state.derived.refund == Decimal("1882.00")

        await registry.apply_document("filer-1", interest)
        assert set(state.contributions) == {"w2", "int-premium"}

    @pytest.mark.asyncio
    async def test_concurrent_documents(self, registry, w2, interest, more_interest) -> None:
        await asyncio.gather(
            registry.apply_document("filer-1", w2),
            registry.apply_document("filer-1", interest),
            registry.apply_document("filer-1", more_interest),
        )
        state = registry.get("filer-1")
        assert set(state.contributions) == {"w2", "int-premium", "int-plain"}
        assert state.line("line2b") == Decimal("300.00")
        assert state.derived == state_with(w2, interest, more_interest).derived

    @pytest.mark.asyncio
    async def test_filers_are_isolated(self, registry, w2, more_interest) -> None:
        await registry.apply_document("filer-1", w2)
        await registry.apply_document("filer-2", more_interest)
        assert registry.get("filer-1").line("line2b") == Decimal("0")
        assert registry.get("filer-2").line("line1") == Decimal("0")

    @pytest.mark.asyncio
    async def test_remove_document(self, registry, w2) -> None:
        await registry.apply_document("filer-1", w2)
        assert await registry.remove_document("filer-1", "w2") is True
        assert registry.get("filer-1").line("line1") == Decimal("0")
        assert await registry.remove_document("filer-1", "w2") is False
        assert await registry.remove_document("nobody", "w2") is False

    @pytest.mark.asyncio
    async def test_set_filing_status(self, registry, w2) -> None:
        await registry.apply_document("filer-1", w2)
        derived = await registry.set_filing_status("filer-1", FilingStatus.MARRIED_FILING_JOINTLY)
        assert derived.filing_status == FilingStatus.MARRIED_FILING_JOINTLY
        assert derived.taxable_income == Decimal("22300.00")
        assert registry.get("filer-1").filing_status == FilingStatus.MARRIED_FILING_JOINTLY

    @pytest.mark.asyncio
    async def test_filing_status_on_apply(self, registry, w2) -> None:
        await registry.apply_document(
            "filer-1", w2, filing_status=FilingStatus.HEAD_OF_HOUSEHOLD
        )
        state = registry.get("filer-1")
        assert state.filing_status == FilingStatus.HEAD_OF_HOUSEHOLD
        assert state.derived.deduction == Decimal("20800")
