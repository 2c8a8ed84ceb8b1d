"""Per-filer form state and the registry that serializes updates to it.

A TaxFormState keeps each document's FormDelta. Primitive lines, side
schedules and the header are rebuilt from the full set of contributions
on every change, and derived totals are then recomputed from scratch, so
the result depends only on which documents contribute, not on the order
they arrived in. Reprocessing a document replaces its contribution
wholesale.

FormStateRegistry owns one state and one asyncio.Lock per filer. Mapping
runs before the lock is taken; applying the delta and recomputing happen
under the lock with no suspension point in between.

Example:
    >>> registry = FormStateRegistry()
    >>> await registry.apply_document("filer-1", document)
    >>> registry.get("filer-1").derived.refund
    Decimal('1882.00')
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from src.core.config import settings
from src.core.logging import filer_id_ctx
from src.documents.models import DocumentCategory, ExtractedDocument
from src.tax.calculator import DerivedTotals, compute
from src.tax.mapping import FormDelta, MappingResult, map_document
from src.tax.year_config import FilingStatus

logger = structlog.get_logger()

ZERO = Decimal("0")


@dataclass
class FilerHeader:
    """Identity block at the top of the form."""

    first_name: str | None = None
    last_name: str | None = None
    ssn: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    source_document_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not any((self.first_name, self.last_name, self.ssn, self.street))


@dataclass
class TaxFormState:
    """One filer's in-progress return.

    Attributes:
        filer_id: Owning filer.
        filing_status: Filing status used for computation.
        tax_year: Tax year of the return.
        lines: Primitive lines rebuilt from contributions.
        side_schedules: Side ledgers rebuilt from contributions.
        header: Filer identity.
        contributions: FormDelta per document_id.
        derived: Totals from the last recompute.
    """

    filer_id: str
    filing_status: FilingStatus = FilingStatus.SINGLE
    tax_year: int = field(default_factory=lambda: settings.default_tax_year)
    lines: dict[str, Decimal] = field(default_factory=dict)
    side_schedules: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    header: FilerHeader = field(default_factory=FilerHeader)
    contributions: dict[str, FormDelta] = field(default_factory=dict)
    derived: DerivedTotals | None = None

    def line(self, name: str) -> Decimal:
        """Primitive or derived line value (0 when nothing contributed)."""
        if name in self.lines:
            return self.lines[name]
        if self.derived is not None:
            return self.derived.as_lines().get(name, ZERO)
        return ZERO

    def side_entry(self, schedule: str, key: str) -> Decimal:
        return self.side_schedules.get(schedule, {}).get(key, ZERO)

    def apply(self, delta: FormDelta) -> DerivedTotals:
        """Add or replace a document's contribution, then recompute."""
        self.contributions[delta.document_id] = delta
        return self.recompute()

    def remove(self, document_id: str) -> bool:
        """Drop a document's contribution; returns False if it was not present."""
        if self.contributions.pop(document_id, None) is None:
            return False
        self.recompute()
        return True

    def recompute(self) -> DerivedTotals:
        """Rebuild primitive data from every contribution and recompute totals."""
        additions: dict[str, Decimal] = {}
        reductions: dict[str, Decimal] = {}
        side: dict[str, dict[str, Decimal]] = {}

        for delta in self.contributions.values():
            for line, value in delta.additions.items():
                additions[line] = additions.get(line, ZERO) + value
            for line, value in delta.reductions.items():
                reductions[line] = reductions.get(line, ZERO) + value
            for schedule, entries in delta.side_entries.items():
                ledger = side.setdefault(schedule, {})
                for key, value in entries.items():
                    ledger[key] = ledger.get(key, ZERO) + value

        # Reductions never drive a line below zero
        self.lines = {
            line: max(ZERO, additions.get(line, ZERO) - reductions.get(line, ZERO))
            for line in sorted(set(additions) | set(reductions))
        }
        self.side_schedules = side
        self.header = self._build_header()
        self.derived = compute(self)
        return self.derived

    def _build_header(self) -> FilerHeader:
        # W-2s fill the header first; each field comes from the first document that has it
        ordered = sorted(
            self.contributions.values(),
            key=lambda delta: delta.category != DocumentCategory.W2,
        )
        header = FilerHeader()
        for delta in ordered:
            if not delta.header:
                continue
            for name, value in delta.header.items():
                if getattr(header, name, None) is None and value:
                    setattr(header, name, value)
            if header.source_document_id is None:
                header.source_document_id = delta.document_id
        return header


class FormStateRegistry:
    """Holds each filer's form state behind a per-filer lock.

    Example:
        >>> registry = FormStateRegistry(tax_year=2023)
        >>> result = await registry.apply_document("filer-1", w2_document)
        >>> registry.get("filer-1").line("line1")
    """

    def __init__(self, tax_year: int | None = None):
        self.tax_year = tax_year or settings.default_tax_year
        self._states: dict[str, TaxFormState] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, filer_id: str) -> TaxFormState | None:
        return self._states.get(filer_id)

    def get_or_create(
        self, filer_id: str, filing_status: FilingStatus = FilingStatus.SINGLE
    ) -> TaxFormState:
        if filer_id not in self._states:
            self._states[filer_id] = TaxFormState(
                filer_id=filer_id,
                filing_status=filing_status,
                tax_year=self.tax_year,
            )
        return self._states[filer_id]

    def lock(self, filer_id: str) -> asyncio.Lock:
        if filer_id not in self._locks:
            self._locks[filer_id] = asyncio.Lock()
        return self._locks[filer_id]

    async def apply_document(
        self,
        filer_id: str,
        document: ExtractedDocument,
        *,
        filing_status: FilingStatus | None = None,
    ) -> MappingResult:
        """Map a document and apply it to the filer's form as one atomic step.

        Raises:
            MappingValidationError: If the document has no usable data; the
                form is left untouched.
        """
        token = filer_id_ctx.set(filer_id)
        try:
            result = map_document(document)
            async with self.lock(filer_id):
                state = self.get_or_create(filer_id, filing_status or FilingStatus.SINGLE)
                if filing_status is not None:
                    state.filing_status = filing_status
                derived = state.apply(result.delta)
            logger.info(
                "document_applied",
                document_id=document.document_id,
                contributions=len(state.contributions),
                refund=str(derived.refund),
                amount_owed=str(derived.amount_owed),
            )
            return result
        finally:
            filer_id_ctx.reset(token)

    async def remove_document(self, filer_id: str, document_id: str) -> bool:
        """Remove a document's contribution and recompute; False if unknown."""
        async with self.lock(filer_id):
            state = self._states.get(filer_id)
            if state is None:
                return False
            removed = state.remove(document_id)
        if removed:
            logger.info("document_removed", filer_id=filer_id, document_id=document_id)
        return removed

    async def set_filing_status(self, filer_id: str, filing_status: FilingStatus) -> DerivedTotals:
        """Change the filing status and recompute."""
        async with self.lock(filer_id):
            state = self.get_or_create(filer_id, filing_status)
            state.filing_status = filing_status
            return state.recompute()


__all__ = [
    "FilerHeader",
    "FormStateRegistry",
    "TaxFormState",
]
