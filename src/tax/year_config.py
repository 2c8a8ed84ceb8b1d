"""Tax year-specific constants and thresholds.

This module centralizes tax year-specific values like wage bases, standard
deductions and bracket schedules to avoid hardcoding values throughout the
codebase.

Example:
    >>> from src.tax.year_config import FilingStatus, get_tax_year_config
    >>> config = get_tax_year_config(2023)
    >>> print(config.standard_deduction(FilingStatus.SINGLE))
    13850
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class FilingStatus(str, Enum):
    """Filing status on the individual return."""

    SINGLE = "single"
    MARRIED_FILING_JOINTLY = "married_filing_jointly"
    MARRIED_FILING_SEPARATELY = "married_filing_separately"
    HEAD_OF_HOUSEHOLD = "head_of_household"
    QUALIFYING_SURVIVING_SPOUSE = "qualifying_surviving_spouse"

    @classmethod
    def parse(cls, value: str | FilingStatus) -> FilingStatus:
        """Resolve a status from its value, its name or a common short form.

        Raises:
            ValueError: If the value names no filing status.
        """
        if isinstance(value, FilingStatus):
            return value
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        for status in cls:
            if key in (status.value, status.name.lower()):
                return status
        if key in _SHORT_FORMS:
            return _SHORT_FORMS[key]
        raise ValueError(f"Unknown filing status: {value!r}")


_SHORT_FORMS: dict[str, FilingStatus] = {
    "mfj": FilingStatus.MARRIED_FILING_JOINTLY,
    "mfs": FilingStatus.MARRIED_FILING_SEPARATELY,
    "hoh": FilingStatus.HEAD_OF_HOUSEHOLD,
    "qss": FilingStatus.QUALIFYING_SURVIVING_SPOUSE,
    "qw": FilingStatus.QUALIFYING_SURVIVING_SPOUSE,
}


@dataclass(frozen=True)
class TaxBracket:
    """One marginal rate band; upper is None for the open top bracket."""

    lower: Decimal
    upper: Decimal | None
    rate: Decimal

    @property
    def width(self) -> Decimal | None:
        if self.upper is None:
            return None
        return self.upper - self.lower


@dataclass(frozen=True)
class TaxBracketSchedule:
    """Ordered brackets covering [0, infinity) without gaps or overlap.

    Raises:
        ValueError: On construction, if the brackets are empty, do not start
            at zero, are not contiguous, or the last bracket is bounded.
    """

    brackets: tuple[TaxBracket, ...]

    def __post_init__(self) -> None:
        if not self.brackets:
            raise ValueError("Bracket schedule must contain at least one bracket")
        if self.brackets[0].lower != 0:
            raise ValueError("First bracket must start at 0")
        for current, following in zip(self.brackets, self.brackets[1:]):
            if current.upper is None:
                raise ValueError("Only the last bracket may be unbounded")
            if current.upper <= current.lower:
                raise ValueError(f"Bracket upper bound {current.upper} must exceed {current.lower}")
            if following.lower != current.upper:
                raise ValueError(
                    f"Brackets not contiguous: {current.upper} followed by {following.lower}"
                )
        if self.brackets[-1].upper is not None:
            raise ValueError("Last bracket must be unbounded")
        for bracket in self.brackets:
            if not Decimal("0") <= bracket.rate <= Decimal("1"):
                raise ValueError(f"Bracket rate {bracket.rate} outside [0, 1]")

    @classmethod
    def from_thresholds(
        cls, thresholds: Sequence[str | int], rates: Sequence[str]
    ) -> TaxBracketSchedule:
        """Build a schedule from the upper thresholds and one more rate than thresholds.

        Example:
            >>> TaxBracketSchedule.from_thresholds([11000], ["0.10", "0.12"])
        """
        if len(rates) != len(thresholds) + 1:
            raise ValueError("Need exactly one more rate than thresholds")
        bounds = [Decimal("0"), *(Decimal(str(t)) for t in thresholds)]
        uppers: list[Decimal | None] = [*bounds[1:], None]
        return cls(
            tuple(
                TaxBracket(lower=lower, upper=upper, rate=Decimal(rate))
                for lower, upper, rate in zip(bounds, uppers, rates)
            )
        )

    def __iter__(self):
        return iter(self.brackets)

    def __len__(self) -> int:
        return len(self.brackets)


# Marginal rates shared by every status since 2018
_RATES = ("0.10", "0.12", "0.22", "0.24", "0.32", "0.35", "0.37")


@dataclass(frozen=True)
class TaxYearConfig:
    """Tax year-specific constants and thresholds.

    All monetary values are Decimal for precision in tax calculations.
    This dataclass is frozen to prevent accidental modification.

    Attributes:
        tax_year: The tax year these values apply to.
        ss_wage_base: Social Security wage base limit.
        ss_rate_employee: Employee Social Security rate (6.2%).
        medicare_rate: Medicare tax rate (1.45%).
        standard_deductions: Standard deduction per filing status.
        bracket_schedules: Ordinary income brackets per filing status.
        salt_cap: State and local tax deduction limit.
        salt_cap_mfs: SALT limit for married filing separately.
        qbi_rate: Qualified business income deduction rate.
    """

    tax_year: int

    # Social Security / Medicare
    ss_wage_base: Decimal
    ss_rate_employee: Decimal = Decimal("0.062")
    medicare_rate: Decimal = Decimal("0.0145")

    # Deductions and brackets
    standard_deductions: dict[FilingStatus, Decimal] = field(default_factory=dict)
    bracket_schedules: dict[FilingStatus, TaxBracketSchedule] = field(default_factory=dict)

    # Itemized deduction limits
    salt_cap: Decimal = Decimal("10000")
    salt_cap_mfs: Decimal = Decimal("5000")

    # Section 199A
    qbi_rate: Decimal = Decimal("0.20")

    def standard_deduction(self, status: FilingStatus) -> Decimal:
        """Standard deduction for a filing status.

        Raises:
            ValueError: If the year has no value for the status.
        """
        if status not in self.standard_deductions:
            raise ValueError(f"No standard deduction for {status.value} in {self.tax_year}")
        return self.standard_deductions[status]

    def brackets(self, status: FilingStatus) -> TaxBracketSchedule:
        """Bracket schedule for a filing status.

        Raises:
            ValueError: If the year has no schedule for the status.
        """
        if status not in self.bracket_schedules:
            raise ValueError(f"No bracket schedule for {status.value} in {self.tax_year}")
        return self.bracket_schedules[status]

    def salt_limit(self, status: FilingStatus) -> Decimal:
        if status == FilingStatus.MARRIED_FILING_SEPARATELY:
            return self.salt_cap_mfs
        return self.salt_cap


# 2023 Configuration - IRS published values (Rev. Proc. 2022-38)
_JOINT_2023 = TaxBracketSchedule.from_thresholds(
    [22000, 89450, 190750, 364200, 462500, 693750], _RATES
)
TAX_YEAR_2023 = TaxYearConfig(
    tax_year=2023,
    ss_wage_base=Decimal("160200"),
    standard_deductions={
        FilingStatus.SINGLE: Decimal("13850"),
        FilingStatus.MARRIED_FILING_JOINTLY: Decimal("27700"),
        FilingStatus.MARRIED_FILING_SEPARATELY: Decimal("13850"),
        FilingStatus.HEAD_OF_HOUSEHOLD: Decimal("20800"),
        FilingStatus.QUALIFYING_SURVIVING_SPOUSE: Decimal("27700"),
    },
    bracket_schedules={
        FilingStatus.SINGLE: TaxBracketSchedule.from_thresholds(
            [11000, 44725, 95375, 182100, 231250, 578125], _RATES
        ),
        FilingStatus.MARRIED_FILING_JOINTLY: _JOINT_2023,
        FilingStatus.MARRIED_FILING_SEPARATELY: TaxBracketSchedule.from_thresholds(
            [11000, 44725, 95375, 182100, 231250, 346875], _RATES
        ),
        FilingStatus.HEAD_OF_HOUSEHOLD: TaxBracketSchedule.from_thresholds(
            [15700, 59850, 95350, 182100, 231250, 578100], _RATES
        ),
        FilingStatus.QUALIFYING_SURVIVING_SPOUSE: _JOINT_2023,
    },
)

# 2024 Configuration - IRS published values (Rev. Proc. 2023-34)
_JOINT_2024 = TaxBracketSchedule.from_thresholds(
    [23200, 94300, 201050, 383900, 487450, 731200], _RATES
)
TAX_YEAR_2024 = TaxYearConfig(
    tax_year=2024,
    ss_wage_base=Decimal("168600"),
    standard_deductions={
        FilingStatus.SINGLE: Decimal("14600"),
        FilingStatus.MARRIED_FILING_JOINTLY: Decimal("29200"),
        FilingStatus.MARRIED_FILING_SEPARATELY: Decimal("14600"),
        FilingStatus.HEAD_OF_HOUSEHOLD: Decimal("21900"),
        FilingStatus.QUALIFYING_SURVIVING_SPOUSE: Decimal("29200"),
    },
    bracket_schedules={
        FilingStatus.SINGLE: TaxBracketSchedule.from_thresholds(
            [11600, 47150, 100525, 191950, 243725, 609350], _RATES
        ),
        FilingStatus.MARRIED_FILING_JOINTLY: _JOINT_2024,
        FilingStatus.MARRIED_FILING_SEPARATELY: TaxBracketSchedule.from_thresholds(
            [11600, 47150, 100525, 191950, 243725, 365600], _RATES
        ),
        FilingStatus.HEAD_OF_HOUSEHOLD: TaxBracketSchedule.from_thresholds(
            [16550, 63100, 100500, 191950, 243700, 609350], _RATES
        ),
        FilingStatus.QUALIFYING_SURVIVING_SPOUSE: _JOINT_2024,
    },
)

# Registry of available tax year configurations
TAX_YEAR_CONFIGS: dict[int, TaxYearConfig] = {
    2023: TAX_YEAR_2023,
    2024: TAX_YEAR_2024,
}


def get_tax_year_config(year: int) -> TaxYearConfig:
    """Get configuration for a specific tax year.

    Args:
        year: The tax year (e.g., 2023).

    Returns:
        TaxYearConfig for the specified year.

    Raises:
        ValueError: If no configuration exists for the requested year.

    Example:
        >>> config = get_tax_year_config(2024)
        >>> print(config.ss_wage_base)
        168600
    """
    if year not in TAX_YEAR_CONFIGS:
        available = sorted(TAX_YEAR_CONFIGS.keys())
        raise ValueError(
            f"No tax configuration for year {year}. Available years: {available}"
        )
    return TAX_YEAR_CONFIGS[year]


__all__ = [
    "FilingStatus",
    "TAX_YEAR_2023",
    "TAX_YEAR_2024",
    "TAX_YEAR_CONFIGS",
    "TaxBracket",
    "TaxBracketSchedule",
    "TaxYearConfig",
    "get_tax_year_config",
]
