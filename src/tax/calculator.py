"""Form 1040 computation from accumulated primitive lines.

compute() is a pure function of the form's primitive lines, side schedules,
tax year and filing status. It never reads previous derived values, so
calling it again on the same inputs returns an identical DerivedTotals.

Steps:
1. Total income (line 9) from the primary income lines
2. Adjustments (line 10) and AGI (line 11)
3. Deduction (line 12): larger of standard and SALT-capped itemized
4. QBI deduction (line 13) from section 199A dividends
5. Taxable income (line 15), clamped at zero
6. Bracket tax (line 16), rounded half-up to cents
7. Total tax, payments and the refund/owed branch

Example:
    >>> from src.tax.calculator import compute
    >>> totals = compute(state, FilingStatus.SINGLE)
    >>> print(totals.taxable_income, totals.refund)
    36150 1882.00
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

import structlog

from src.tax.year_config import FilingStatus, TaxBracket, TaxBracketSchedule, get_tax_year_config

if TYPE_CHECKING:
    from src.tax.form_state import TaxFormState

logger = structlog.get_logger()

CENTS = Decimal("0.01")
ZERO = Decimal("0")

INCOME_LINES: tuple[str, ...] = (
    "line1",
    "line2b",
    "line3b",
    "line4b",
    "line5b",
    "line6b",
    "line7",
    "line8",
)
WITHHOLDING_LINES: tuple[str, ...] = ("line25a", "line25b", "line25c")


@dataclass(frozen=True)
class BracketTax:
    """Tax owed within one bracket."""

    bracket: TaxBracket
    taxable_amount: Decimal
    tax: Decimal


@dataclass(frozen=True)
class DerivedTotals:
    """Every derived line of the form, recomputed in full.

    Attributes:
        total_income: Line 9.
        adjustments: Line 10.
        agi: Line 11 (not clamped).
        standard_deduction: Standard deduction for the filing status.
        itemized_deduction: SALT-capped Schedule A total.
        deduction: Line 12, the larger of the two.
        qbi_deduction: Line 13.
        taxable_income: Line 15, never negative.
        tax: Line 16, rounded half-up to cents.
        total_tax: Line 24.
        total_withholding: Line 25d.
        total_payments: Line 33.
        refund: Line 34.
        amount_owed: Line 37.
        brackets: Per-bracket breakdown of line 16.
        effective_rate: Total tax over total income (0 when no income).
    """

    tax_year: int
    filing_status: FilingStatus
    total_income: Decimal
    adjustments: Decimal
    agi: Decimal
    standard_deduction: Decimal
    itemized_deduction: Decimal
    deduction: Decimal
    qbi_deduction: Decimal
    taxable_income: Decimal
    tax: Decimal
    other_taxes: Decimal
    total_tax: Decimal
    total_withholding: Decimal
    total_payments: Decimal
    refund: Decimal
    amount_owed: Decimal
    brackets: tuple[BracketTax, ...] = field(default_factory=tuple)
    effective_rate: Decimal = ZERO

    def as_lines(self) -> dict[str, Decimal]:
        """Derived values keyed by form line."""
        return {
            "line9": self.total_income,
            "line10": self.adjustments,
            "line11": self.agi,
            "line12": self.deduction,
            "line13": self.qbi_deduction,
            "line15": self.taxable_income,
            "line16": self.tax,
            "line24": self.total_tax,
            "line25d": self.total_withholding,
            "line33": self.total_payments,
            "line34": self.refund,
            "line37": self.amount_owed,
        }


def calculate_bracket_tax(
    taxable_income: Decimal, schedule: TaxBracketSchedule
) -> tuple[Decimal, tuple[BracketTax, ...]]:
    """Evaluate a progressive bracket schedule.

    Args:
        taxable_income: Income to tax; values at or below zero owe nothing.
        schedule: Contiguous brackets in ascending order.

    Returns:
        (tax rounded half-up to cents, per-bracket breakdown).

    Example:
        >>> tax, _ = calculate_bracket_tax(Decimal("36150"), schedule_2023_single)
        >>> tax
        Decimal('4118.00')
    """
    remaining = taxable_income
    total = ZERO
    breakdown: list[BracketTax] = []
    for bracket in schedule:
        if remaining <= 0:
            break
        width = bracket.width
        portion = remaining if width is None else min(remaining, width)
        bracket_tax = portion * bracket.rate
        breakdown.append(BracketTax(bracket=bracket, taxable_amount=portion, tax=bracket_tax))
        total += bracket_tax
        remaining -= portion
    return total.quantize(CENTS, rounding=ROUND_HALF_UP), tuple(breakdown)


def _sum(values: Mapping[str, Decimal], names: tuple[str, ...] | None = None) -> Decimal:
    keys = values.keys() if names is None else names
    return sum((values.get(name, ZERO) for name in keys), ZERO)


def compute(state: TaxFormState, filing_status: FilingStatus | None = None) -> DerivedTotals:
    """Recompute every derived line from the form's primitive lines.

    Args:
        state: Form state; only primitive lines and side schedules are read.
        filing_status: Overrides the state's filing status when given.

    Returns:
        DerivedTotals for the form.

    Raises:
        ValueError: If the tax year or filing status has no configuration.
    """
    status = filing_status or state.filing_status
    config = get_tax_year_config(state.tax_year)
    lines = state.lines
    schedules = state.side_schedules

    total_income = _sum(lines, INCOME_LINES)
    adjustments = lines.get("line10", ZERO) + _sum(schedules.get("schedule_1", {}))
    agi = total_income - adjustments

    standard = config.standard_deduction(status)
    salt = schedules.get("schedule_a", {}).get("state_local_taxes", ZERO)
    itemized = min(salt, config.salt_limit(status))
    deduction = max(standard, itemized)

    section_199a = schedules.get("qbi", {}).get("section_199a_dividends", ZERO)
    qbi_limit = max(ZERO, agi - deduction) * config.qbi_rate
    qbi_deduction = lines.get("line13", ZERO) + min(section_199a * config.qbi_rate, qbi_limit)

    taxable_income = max(ZERO, agi - deduction - qbi_deduction)
    tax, breakdown = calculate_bracket_tax(taxable_income, config.brackets(status))

    other_taxes = lines.get("line17", ZERO)
    total_tax = tax + other_taxes + lines.get("line23", ZERO)
    total_withholding = _sum(lines, WITHHOLDING_LINES)
    total_payments = total_withholding + lines.get("line26", ZERO)

    if total_payments > total_tax:
        refund, owed = total_payments - total_tax, ZERO
    else:
        refund, owed = ZERO, total_tax - total_payments

    effective_rate = (
        (total_tax / total_income).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
        if total_income > 0
        else ZERO
    )

    totals = DerivedTotals(
        tax_year=state.tax_year,
        filing_status=status,
        total_income=total_income,
        adjustments=adjustments,
        agi=agi,
        standard_deduction=standard,
        itemized_deduction=itemized,
        deduction=deduction,
        qbi_deduction=qbi_deduction,
        taxable_income=taxable_income,
        tax=tax,
        other_taxes=other_taxes,
        total_tax=total_tax,
        total_withholding=total_withholding,
        total_payments=total_payments,
        refund=refund,
        amount_owed=owed,
        brackets=breakdown,
        effective_rate=effective_rate,
    )
    logger.debug(
        "form_computed",
        filing_status=status.value,
        taxable_income=str(taxable_income),
        total_tax=str(total_tax),
        refund=str(refund),
        amount_owed=str(owed),
    )
    return totals


__all__ = [
    "BracketTax",
    "DerivedTotals",
    "INCOME_LINES",
    "WITHHOLDING_LINES",
    "calculate_bracket_tax",
    "compute",
]
