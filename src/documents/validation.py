"""Document validation for extracted tax form data.

This module catches extraction errors and data gaps before a document is
mapped onto the return. Results carry plain-text errors and warnings plus
the matching ExtractionIssue records.

Two outcomes matter most to the mapping step:
- No usable data at all (no positive amount anywhere): blocking
  VALIDATION_FAILED error; the mapping step refuses the document.
- Amounts present but none on a primary income field (e.g. a 1099-INT
  reporting only foreign tax paid): NO_INCOME_DATA warning; mapping still
  routes the side-schedule values.

Example:
    >>> from src.documents.validation import DocumentValidator
    >>> validator = DocumentValidator()
    >>> result = validator.validate_for_mapping(document)
    >>> if not result.is_valid:
    ...     print(f"Errors: {result.errors}")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal

from src.core.config import settings
from src.documents.issues import ExtractionIssue, IssueKind, IssueSeverity
from src.documents.models import DocumentCategory, ExtractedDocument, is_masked_identifier
from src.tax.year_config import get_tax_year_config

NO_INCOME_MESSAGE = "No income data found"

# Fields that feed a primary income line when positive
PRIMARY_INCOME_FIELDS: dict[DocumentCategory, tuple[str, ...]] = {
    DocumentCategory.W2: ("wages",),
    DocumentCategory.FORM_1099_INT: (
        "interest_income",
        "interest_on_us_savings_bonds",
        "market_discount",
        "tax_exempt_interest",
    ),
    DocumentCategory.FORM_1099_DIV: (
        "ordinary_dividends",
        "qualified_dividends",
        "total_capital_gain",
    ),
    DocumentCategory.FORM_1099_MISC: (
        "rents",
        "royalties",
        "other_income",
        "nonemployee_compensation",
    ),
    DocumentCategory.FORM_1099_NEC: ("nonemployee_compensation",),
    DocumentCategory.UNKNOWN: (),
}

# (field, label, severity) identity checks per family
_W2_IDENTITY = (
    ("employee_name", "employee name", IssueSeverity.WARNING),
    ("employee_ssn", "employee SSN", IssueSeverity.WARNING),
    ("employer_name", "employer name", IssueSeverity.WARNING),
)
_1099_IDENTITY = (
    ("recipient_name", "recipient name", IssueSeverity.WARNING),
    ("recipient_tin", "recipient TIN", IssueSeverity.WARNING),
    ("recipient_address", "recipient address", IssueSeverity.INFO),
    ("payer_name", "payer name", IssueSeverity.WARNING),
    ("payer_tin", "payer TIN", IssueSeverity.WARNING),
    ("federal_tax_withheld", "federal income tax withheld", IssueSeverity.INFO),
)

_PERSON_IDENTIFIERS = ("employee_ssn", "recipient_tin")
_ENTITY_IDENTIFIERS = ("employer_ein", "payer_tin")


@dataclass
class ValidationResult:
    """Result of document validation.

    Attributes:
        is_valid: True if no errors were found.
        errors: Critical errors that must be resolved.
        warnings: Potential issues that should be reviewed.
        issues: The same findings as ExtractionIssue records.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    issues: list[ExtractionIssue] = field(default_factory=list)


def is_valid_person_identifier(value: str) -> bool:
    """SSN/TIN: nine digits, or a masked value such as XXX-XX-1234."""
    if is_masked_identifier(value):
        return True
    return len(re.sub(r"\D", "", value)) == 9 and not re.search(r"[A-Za-z]", value)


def is_valid_ein(value: str) -> bool:
    """EIN (or a payer TIN printed as SSN): exactly nine digits."""
    return len(re.sub(r"\D", "", value)) == 9 and not re.search(r"[A-Za-z]", value)


def validate_field_formats(document: ExtractedDocument) -> dict[str, bool]:
    """Format check per extracted field.

    Identifiers must have the right digit count; amounts must be
    non-negative; text must be non-empty.

    Returns:
        Mapping of field name -> passed.
    """
    checks: dict[str, bool] = {}
    for name, extracted in document.fields.items():
        value = extracted.value
        if isinstance(value, Decimal):
            checks[name] = value.is_finite() and value >= 0
        elif name in _PERSON_IDENTIFIERS:
            checks[name] = is_valid_person_identifier(value)
        elif name in _ENTITY_IDENTIFIERS:
            checks[name] = is_valid_ein(value) or is_masked_identifier(value)
        else:
            checks[name] = bool(value.strip())
    return checks


class DocumentValidator:
    """Validate extracted document data before it is mapped.

    Example:
        >>> validator = DocumentValidator()
        >>> result = validator.validate_w2_consistency(document)
        >>> if result.warnings:
        ...     print(f"Review these issues: {result.warnings}")
    """

    TOLERANCE = Decimal("10")

    def validate_for_mapping(self, document: ExtractedDocument) -> ValidationResult:
        """Check that a document carries usable income data and identity.

        Args:
            document: Reconciled document.

        Returns:
            ValidationResult. is_valid is False only when the document has
            no positive amount at all.
        """
        errors: list[str] = []
        warnings: list[str] = []
        issues: list[ExtractionIssue] = []

        primary = PRIMARY_INCOME_FIELDS.get(document.category, ())
        amounts = document.amounts()
        has_primary_income = any(amounts.get(name, Decimal("0")) > 0 for name in primary)
        has_any_amount = any(value > 0 for value in amounts.values())

        if not has_any_amount:
            errors.append(NO_INCOME_MESSAGE)
            issues.append(
                ExtractionIssue(
                    IssueKind.VALIDATION_FAILED,
                    IssueSeverity.ERROR,
                    NO_INCOME_MESSAGE,
                    primary,
                )
            )
        elif not has_primary_income:
            warnings.append(NO_INCOME_MESSAGE)
            issues.append(
                ExtractionIssue(
                    IssueKind.NO_INCOME_DATA,
                    IssueSeverity.WARNING,
                    NO_INCOME_MESSAGE,
                    primary,
                )
            )

        if document.category == DocumentCategory.W2:
            identity = _W2_IDENTITY
        elif document.category.is_1099:
            identity = _1099_IDENTITY
        else:
            identity = ()

        for name, label, severity in identity:
            if document.has(name):
                continue
            message = f"Missing {label}"
            if severity == IssueSeverity.WARNING:
                warnings.append(message)
            issues.append(ExtractionIssue(IssueKind.MISSING_IDENTITY, severity, message, (name,)))

        for name, passed in validate_field_formats(document).items():
            if passed:
                continue
            message = f"Invalid format for {name}: {document.fields[name].value}"
            warnings.append(message)
            issues.append(
                ExtractionIssue(IssueKind.VALIDATION_FAILED, IssueSeverity.WARNING, message, (name,))
            )

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            issues=issues,
        )

    def validate_w2_consistency(
        self, document: ExtractedDocument, tax_year: int | None = None
    ) -> ValidationResult:
        """Validate W-2 amounts against each other.

        Checks:
        - Federal withholding doesn't exceed wages
        - Social Security wages don't exceed the annual cap
        - Social Security tax is approximately 6.2% of SS wages
        - Medicare tax is approximately 1.45% of Medicare wages

        Args:
            document: Reconciled W-2 document.
            tax_year: Tax year for Social Security wage base checks;
                defaults to settings.default_tax_year.

        Returns:
            ValidationResult with any errors or warnings.
        """
        errors: list[str] = []
        warnings: list[str] = []
        tax_year = tax_year or settings.default_tax_year
        config = get_tax_year_config(tax_year)
        ss_wage_cap = config.ss_wage_base

        wages = document.amount("wages")
        federal = document.amount("federal_tax_withheld")
        ss_wages = document.amount("social_security_wages")
        ss_tax = document.amount("social_security_tax_withheld")
        medicare_wages = document.amount("medicare_wages")
        medicare_tax = document.amount("medicare_tax_withheld")

        # Federal withholding shouldn't exceed wages
        if federal and wages and federal > wages:
            errors.append(f"Federal withholding ({federal}) exceeds wages ({wages})")

        # Social Security wages have a cap
        if ss_wages and ss_wages > ss_wage_cap:
            warnings.append(
                f"Social Security wages ({ss_wages}) exceed {tax_year} cap ({ss_wage_cap})"
            )

        # SS tax should be ~6.2% of SS wages (with tolerance for rounding)
        if ss_wages and ss_tax:
            expected_ss_tax = min(ss_wages, ss_wage_cap) * config.ss_rate_employee
            if abs(ss_tax - expected_ss_tax) > self.TOLERANCE:
                warnings.append(
                    f"Social Security tax ({ss_tax}) "
                    f"doesn't match expected ({expected_ss_tax:.2f} at 6.2%)"
                )

        # Medicare tax should be ~1.45% of Medicare wages
        if medicare_wages and medicare_tax:
            expected_medicare_tax = medicare_wages * config.medicare_rate
            if abs(medicare_tax - expected_medicare_tax) > self.TOLERANCE:
                warnings.append(
                    f"Medicare tax ({medicare_tax}) "
                    f"doesn't match expected ({expected_medicare_tax:.2f} at 1.45%)"
                )

        issues = [
            ExtractionIssue(IssueKind.VALIDATION_FAILED, IssueSeverity.ERROR, message)
            for message in errors
        ] + [
            ExtractionIssue(IssueKind.VALIDATION_FAILED, IssueSeverity.WARNING, message)
            for message in warnings
        ]
        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            issues=issues,
        )


__all__ = [
    "DocumentValidator",
    "NO_INCOME_MESSAGE",
    "PRIMARY_INCOME_FIELDS",
    "ValidationResult",
    "is_valid_ein",
    "is_valid_person_identifier",
    "validate_field_formats",
]
