"""Canonical field tables per document category.

Each category maps its canonical fields to the provider field names that may
carry them, in priority order. The structured reader tries the aliases in
order and keeps the first populated one, so adding a provider spelling is a
one-line data change here rather than a new code path.

Dotted aliases ("Employee.Name") address nested provider objects.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.documents.models import DocumentCategory, FieldKind


@dataclass(frozen=True)
class FieldSpec:
    """Canonical field definition.

    Attributes:
        name: Canonical field name.
        kind: Whether the field holds an amount or text.
        aliases: Provider field names, highest priority first.
        box: Box label on the printed form ("1", "2a", "e"), if any.
        label: Human-readable field label.
    """

    name: str
    kind: FieldKind
    aliases: tuple[str, ...]
    box: str | None = None
    label: str = ""


def _amount(name: str, box: str | None, label: str, *aliases: str) -> FieldSpec:
    box_aliases = (f"Box{box}", f"Box {box}") if box else ()
    return FieldSpec(name, FieldKind.AMOUNT, tuple(aliases) + box_aliases, box, label)


def _text(name: str, box: str | None, label: str, *aliases: str) -> FieldSpec:
    box_aliases = (f"Box{box}", f"Box {box}") if box else ()
    return FieldSpec(name, FieldKind.TEXT, tuple(aliases) + box_aliases, box, label)


# =============================================================================
# Shared 1099 identity fields
# =============================================================================

_1099_IDENTITY: tuple[FieldSpec, ...] = (
    _text("payer_name", None, "Payer name", "Payer.Name", "PayerName", "Payer_Name"),
    _text("payer_tin", None, "Payer TIN", "Payer.TIN", "PayerTIN", "Payer_TIN", "PayerTin"),
    _text(
        "payer_address", None, "Payer address",
        "Payer.Address", "PayerAddress", "Payer_Address",
    ),
    _text(
        "recipient_name", None, "Recipient name",
        "Recipient.Name", "RecipientName", "Recipient_Name",
    ),
    _text(
        "recipient_tin", None, "Recipient TIN",
        "Recipient.TIN", "RecipientTIN", "Recipient_TIN", "RecipientTin",
    ),
    _text(
        "recipient_address", None, "Recipient address",
        "Recipient.Address", "RecipientAddress", "Recipient_Address",
    ),
    _text("account_number", None, "Account number", "AccountNumber", "Account_Number"),
)


# =============================================================================
# Category tables
# =============================================================================

W2_FIELDS: tuple[FieldSpec, ...] = (
    _text(
        "employee_name", "e", "Employee name",
        "Employee.Name", "EmployeeName", "Employee_Name", "RecipientName",
    ),
    _text(
        "employee_ssn", "a", "Employee SSN",
        "Employee.SSN", "EmployeeSSN", "Employee_SSN", "SSN", "RecipientTIN",
    ),
    _text(
        "employee_address", "f", "Employee address",
        "Employee.Address", "EmployeeAddress", "Employee_Address", "RecipientAddress",
    ),
    _text("employer_name", "c", "Employer name", "Employer.Name", "EmployerName", "Employer_Name"),
    _text("employer_ein", "b", "Employer EIN", "Employer.IdNumber", "Employer.EIN", "EmployerEIN"),
    _text(
        "employer_address", None, "Employer address",
        "Employer.Address", "EmployerAddress", "Employer_Address",
    ),
    _amount("wages", "1", "Wages, tips, other compensation", "WagesAndTips", "Wages"),
    _amount(
        "federal_tax_withheld", "2", "Federal income tax withheld",
        "FederalIncomeTaxWithheld", "FederalTaxWithheld",
    ),
    _amount("social_security_wages", "3", "Social security wages", "SocialSecurityWages"),
    _amount(
        "social_security_tax_withheld", "4", "Social security tax withheld",
        "SocialSecurityTaxWithheld",
    ),
    _amount(
        "medicare_wages", "5", "Medicare wages and tips",
        "MedicareWagesAndTips", "MedicareWages",
    ),
    _amount("medicare_tax_withheld", "6", "Medicare tax withheld", "MedicareTaxWithheld"),
    _amount("social_security_tips", "7", "Social security tips", "SocialSecurityTips"),
    _amount("allocated_tips", "8", "Allocated tips", "AllocatedTips"),
    _amount(
        "state_wages", "16", "State wages, tips, etc.",
        "StateTaxInfos.StateWagesTipsEtc", "StateWagesTipsEtc", "StateWages",
    ),
    _amount(
        "state_tax_withheld", "17", "State income tax",
        "StateTaxInfos.StateIncomeTax", "StateIncomeTax", "StateTaxWithheld",
    ),
    _amount(
        "local_wages", "18", "Local wages, tips, etc.",
        "LocalTaxInfos.LocalWagesTipsEtc", "LocalWagesTipsEtc", "LocalWages",
    ),
    _amount(
        "local_tax_withheld", "19", "Local income tax",
        "LocalTaxInfos.LocalIncomeTax", "LocalIncomeTax", "LocalTaxWithheld",
    ),
)

FORM_1099_INT_FIELDS: tuple[FieldSpec, ...] = _1099_IDENTITY + (
    _amount("interest_income", "1", "Interest income", "InterestIncome"),
    _amount("early_withdrawal_penalty", "2", "Early withdrawal penalty", "EarlyWithdrawalPenalty"),
    _amount(
        "interest_on_us_savings_bonds", "3",
        "Interest on U.S. Savings Bonds and Treasury obligations",
        "InterestOnUSTreasuryObligations",
        "InterestOnUSavingsBonds",
        "InterestOnUSTreasury",
        "USavingsBondsInterest",
    ),
    _amount("federal_tax_withheld", "4", "Federal income tax withheld", "FederalIncomeTaxWithheld"),
    _amount("investment_expenses", "5", "Investment expenses", "InvestmentExpenses"),
    _amount("foreign_tax_paid", "6", "Foreign tax paid", "ForeignTaxPaid"),
    _text(
        "foreign_country", "7", "Foreign country or U.S. possession",
        "ForeignCountry", "ForeignCountryOrUSPossession",
    ),
    _amount("tax_exempt_interest", "8", "Tax-exempt interest", "TaxExemptInterest"),
    _amount(
        "specified_private_activity_bond_interest", "9",
        "Specified private activity bond interest",
        "SpecifiedPrivateActivityBondInterest",
        "PrivateActivityBondInterest",
        "PABInterest",
    ),
    _amount("market_discount", "10", "Market discount", "MarketDiscount"),
    _amount("bond_premium", "11", "Bond premium", "BondPremium"),
    _amount("state_tax_withheld", "13", "State tax withheld", "StateTaxWithheld", "StateWithholding"),
    _text("state_payer_number", "14", "State/Payer's state no.", "StatePayerNumber", "StateNumber"),
    _amount("state_interest", "15", "State interest", "StateInterest"),
)

FORM_1099_DIV_FIELDS: tuple[FieldSpec, ...] = _1099_IDENTITY + (
    _amount("ordinary_dividends", "1a", "Total ordinary dividends", "OrdinaryDividends"),
    _amount("qualified_dividends", "1b", "Qualified dividends", "QualifiedDividends"),
    _amount(
        "total_capital_gain", "2a", "Total capital gain distributions",
        "TotalCapitalGainDistributions", "TotalCapitalGain",
    ),
    _amount(
        "nondividend_distributions", "3", "Nondividend distributions",
        "NondividendDistributions",
    ),
    _amount("federal_tax_withheld", "4", "Federal income tax withheld", "FederalIncomeTaxWithheld"),
    _amount("section_199a_dividends", "5", "Section 199A dividends", "Section199ADividends"),
)

FORM_1099_MISC_FIELDS: tuple[FieldSpec, ...] = _1099_IDENTITY + (
    _amount("rents", "1", "Rents", "Rents"),
    _amount("royalties", "2", "Royalties", "Royalties"),
    _amount("other_income", "3", "Other income", "OtherIncome"),
    _amount("federal_tax_withheld", "4", "Federal income tax withheld", "FederalIncomeTaxWithheld"),
    _amount("fishing_boat_proceeds", "5", "Fishing boat proceeds", "FishingBoatProceeds"),
    _amount(
        "medical_health_payments", "6", "Medical and health care payments",
        "MedicalAndHealthCarePayments", "MedicalHealthPayments",
    ),
    _amount(
        "nonemployee_compensation", "7", "Nonemployee compensation",
        "NonemployeeCompensation",
    ),
    _amount(
        "substitute_payments", "8", "Substitute payments in lieu of dividends or interest",
        "SubstitutePayments",
    ),
    _amount("crop_insurance_proceeds", "9", "Crop insurance proceeds", "CropInsuranceProceeds"),
    _amount(
        "gross_proceeds_attorney", "10", "Gross proceeds paid to an attorney",
        "GrossProceedsPaidToAttorney", "GrossProceedsAttorney",
    ),
    _amount("fish_purchases", "11", "Fish purchased for resale", "FishPurchasedForResale", "FishPurchases"),
    _amount("section_409a_deferrals", "12", "Section 409A deferrals", "Section409ADeferrals"),
    _amount(
        "excess_golden_parachute_payments", "13", "Excess golden parachute payments",
        "ExcessGoldenParachutePayments",
    ),
    _amount(
        "nonqualified_deferred_compensation", "14", "Nonqualified deferred compensation",
        "NonqualifiedDeferredCompensation",
    ),
    _amount("section_409a_income", "15a", "Section 409A income", "Section409AIncome"),
    _amount("state_tax_withheld", "16", "State tax withheld", "StateTaxWithheld"),
    _text("state_payer_number", "17", "State/Payer's state no.", "StatePayerNumber"),
    _amount("state_income", "18", "State income", "StateIncome"),
)

FORM_1099_NEC_FIELDS: tuple[FieldSpec, ...] = _1099_IDENTITY + (
    _amount(
        "nonemployee_compensation", "1", "Nonemployee compensation",
        "NonemployeeCompensation",
    ),
    _amount("federal_tax_withheld", "4", "Federal income tax withheld", "FederalIncomeTaxWithheld"),
)

FIELD_TABLES: dict[DocumentCategory, tuple[FieldSpec, ...]] = {
    DocumentCategory.W2: W2_FIELDS,
    DocumentCategory.FORM_1099_INT: FORM_1099_INT_FIELDS,
    DocumentCategory.FORM_1099_DIV: FORM_1099_DIV_FIELDS,
    DocumentCategory.FORM_1099_MISC: FORM_1099_MISC_FIELDS,
    DocumentCategory.FORM_1099_NEC: FORM_1099_NEC_FIELDS,
    DocumentCategory.UNKNOWN: (),
}


def get_field_specs(category: DocumentCategory) -> tuple[FieldSpec, ...]:
    """Return the canonical field table for a category (empty for UNKNOWN)."""
    return FIELD_TABLES.get(category, ())


def get_field_spec(category: DocumentCategory, name: str) -> FieldSpec | None:
    """Look up one canonical field of a category."""
    for spec in get_field_specs(category):
        if spec.name == name:
            return spec
    return None


__all__ = [
    "FIELD_TABLES",
    "FieldSpec",
    "get_field_spec",
    "get_field_specs",
]
