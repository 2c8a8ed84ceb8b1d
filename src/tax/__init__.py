"""Tax-line mapping, form state and year-specific configurations.

Mapping, form state and computation live in src.tax.mapping,
src.tax.form_state and src.tax.calculator.
"""

from src.tax.year_config import (
    TAX_YEAR_2023,
    TAX_YEAR_2024,
    TAX_YEAR_CONFIGS,
    FilingStatus,
    TaxBracket,
    TaxBracketSchedule,
    TaxYearConfig,
    get_tax_year_config,
)

__all__ = [
    "FilingStatus",
    "TaxBracket",
    "TaxBracketSchedule",
    "TaxYearConfig",
    "TAX_YEAR_2023",
    "TAX_YEAR_2024",
    "TAX_YEAR_CONFIGS",
    "get_tax_year_config",
]
