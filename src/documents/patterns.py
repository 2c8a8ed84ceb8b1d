"""Text-pattern rule tables for the fallback extractor.

Every canonical field has an ordered tuple of PatternRule entries, most
structural first and most permissive last. A rule is a (pattern, parser,
validator) triple: the first match whose parsed value passes the validator
wins, and the remaining rules are skipped.

Numeric validators reject negative values and anything above
`settings.max_reasonable_amount`, which guards against a neighbouring box's
digits (or an EIN) being read as an amount.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from src.core.config import settings
from src.documents.models import DocumentCategory, format_identifier, validate_ein
from src.documents.normalizer import parse_amount

FieldValue = Decimal | str
Parser = Callable[[re.Match[str]], FieldValue | None]
Validator = Callable[[FieldValue], bool]

# A printed amount: grouped thousands, a decimal amount, or a bare integer
# that is not immediately followed by a word (a bare "5 Fishing" is the
# next box's number, not an amount).
AMOUNT = (
    r"(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?(?!\d)"
    r"|\d+\.\d{1,2}(?!\d)"
    r"|\d+(?![\w.,])(?!\s+[A-Za-z]))"
)
_AMOUNT_RE = re.compile(AMOUNT)

APOS = r"['’]?"
SSN = r"((?:\d{3}|[X*]{3})[-\s]?(?:\d{2}|[X*]{2})[-\s]?\d{4})(?![\d-])"
EIN = r"(\d{2}-?\d{7})(?!\d)"
PERSON_NAME = r"([A-Za-z][A-Za-z .'-]*[A-Za-z])"
STREET_LINE = r"([^\n]*\d[^\n]*)"
CITY_LINE = r"([A-Za-z][A-Za-z .'-]*,?\s+[A-Z]{2}\s+\d{5}(?:-\d{4})?)"
# Name, street and "City, ST ZIP" on one line after a box header.
INLINE_ADDRESS = r"[A-Za-z][^\n\d]*?\s+(\d[^\n,]*?),\s*" + CITY_LINE

# Captures containing these phrases are form labels, not data.
FORM_LABEL_PHRASES = (
    "street address",
    "including apt",
    "city or town",
    "state or province",
    "foreign postal",
    "zip code",
    "name, address",
    "identification number",
    "account number",
    "see instructions",
    "telephone no",
)


@dataclass(frozen=True)
class PatternRule:
    """One way of recovering a field from recognized text.

    Attributes:
        name: Rule name, reported in diagnostics.
        pattern: Compiled pattern; the parser decides which groups matter.
        parser: Turns a match into a value, or None when it cannot.
        validator: Accepts or rejects the parsed value.
    """

    name: str
    pattern: re.Pattern[str]
    parser: Parser
    validator: Validator

    def apply(self, text: str) -> FieldValue | None:
        """Return the first validated value this rule finds, if any."""
        for match in self.pattern.finditer(text):
            value = self.parser(match)
            if value is not None and self.validator(value):
                return value
        return None


def apply_rules(
    text: str, rules: tuple[PatternRule, ...]
) -> tuple[FieldValue, str] | None:
    """Run rules in priority order.

    Returns:
        (value, rule name) for the first rule that yields a valid value,
        or None when no rule does.
    """
    for rule in rules:
        value = rule.apply(text)
        if value is not None:
            return value, rule.name
    return None


# =============================================================================
# Parsers
# =============================================================================


def _amount_group(match: re.Match[str]) -> Decimal | None:
    return parse_amount(match.group(1))


def _first_amount_in_section(match: re.Match[str]) -> Decimal | None:
    found = _AMOUNT_RE.search(match.group("section"))
    return parse_amount(found.group(1)) if found else None


def _first_words_in_section(match: re.Match[str]) -> str | None:
    found = re.search(r"[A-Za-z][A-Za-z .'-]*[A-Za-z]", match.group("section"))
    return found.group(0).strip() if found else None


def _text_group(match: re.Match[str]) -> str | None:
    text = re.sub(r"\s+", " ", match.group(1)).strip(" ,")
    return text or None


def _identifier_group(match: re.Match[str]) -> str | None:
    return format_identifier(match.group(1))


def _ein_group(match: re.Match[str]) -> str | None:
    return validate_ein(match.group(1))


def _address_groups(match: re.Match[str]) -> str | None:
    parts = [re.sub(r"\s+", " ", part).strip(" ,") for part in match.groups() if part]
    joined = ", ".join(part for part in parts if part)
    return joined or None


# =============================================================================
# Validators
# =============================================================================


def amount_in_range(*, positive: bool = False) -> Validator:
    """Accept finite amounts up to the configured sanity bound."""

    def validate(value: FieldValue) -> bool:
        if not isinstance(value, Decimal) or not value.is_finite():
            return False
        if value < 0 or (positive and value == 0):
            return False
        return value <= settings.max_reasonable_amount

    return validate


def _has_form_label(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in FORM_LABEL_PHRASES)


def plausible_person_name(value: FieldValue) -> bool:
    return (
        isinstance(value, str)
        and len(value) > 2
        and re.fullmatch(r"[A-Za-z][A-Za-z .'-]*", value) is not None
        and not _has_form_label(value)
        and not re.search(r"\b(?:employee|employer|payer|recipient)\b", value, re.IGNORECASE)
    )


def plausible_business_name(value: FieldValue) -> bool:
    return (
        isinstance(value, str)
        and 2 < len(value) <= 80
        and re.search(r"[A-Za-z]{2}", value) is not None
        and not _has_form_label(value)
    )


def plausible_identifier(value: FieldValue) -> bool:
    if not isinstance(value, str):
        return False
    cleaned = re.sub(r"[\s-]", "", value)
    return len(cleaned) == 9 and re.fullmatch(r"[\dXx*]+", cleaned) is not None


def plausible_address(value: FieldValue) -> bool:
    return (
        isinstance(value, str)
        and len(value) > 5
        and any(char.isdigit() for char in value)
        and not _has_form_label(value)
    )


def plausible_account_number(value: FieldValue) -> bool:
    return isinstance(value, str) and len(value) >= 3 and any(char.isdigit() for char in value)


def plausible_short_text(value: FieldValue) -> bool:
    return isinstance(value, str) and 2 <= len(value) <= 40 and not _has_form_label(value)


# =============================================================================
# Rule builders
# =============================================================================


def _rx(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def _amount_rule(name: str, pattern: str, *, positive: bool = False) -> PatternRule:
    return PatternRule(name, _rx(pattern), _amount_group, amount_in_range(positive=positive))


def labelled_amount_rules(
    field_name: str,
    box: str,
    label: str,
    *,
    line_fallback: bool = False,
    positive: bool = False,
) -> tuple[PatternRule, ...]:
    """Standard rules for an amount printed beside its box label.

    Args:
        field_name: Canonical field name, used to name the rules.
        box: Box number as printed ("1", "2a").
        label: Regex for the box label.
        line_fallback: Also accept a line starting with the bare box number
            followed by an amount.
        positive: Reject zero.

    Returns:
        Rules in priority order: box number + label, "Box N ... label",
        optional line-anchored box number, label alone.
    """
    box_rx = re.escape(box)
    rules = [
        _amount_rule(
            f"{field_name}_box_label",
            r"(?<![\w.])" + box_rx + r"\s+" + label + r"[\s$:]*" + AMOUNT,
            positive=positive,
        ),
        _amount_rule(
            f"{field_name}_box_explicit",
            r"\bBox\s*" + box_rx + r"\b[^\d\n]*?" + label + r"[^\d]*?" + AMOUNT,
            positive=positive,
        ),
    ]
    if line_fallback:
        rules.append(
            _amount_rule(
                f"{field_name}_line_anchored",
                r"(?:^|\n)[ \t]*" + box_rx + r"[ \t]+\$?[ \t]*" + AMOUNT,
                positive=positive,
            )
        )
    rules.append(
        _amount_rule(f"{field_name}_label_only", label + r"[\s$:]*" + AMOUNT, positive=positive)
    )
    return tuple(rules)


def section_rules(
    field_name: str,
    box: str,
    label: str,
    next_box: str,
    *,
    text: bool = False,
) -> tuple[PatternRule, ...]:
    """Rules that read a box's section up to where the next box starts.

    The section is everything between "<box> <label>" and "<next_box> ";
    its first amount (or first words, for text boxes) is the value. An
    empty section leaves the field absent.
    """
    pattern = _rx(
        r"(?<![\w.])"
        + re.escape(box)
        + r"\s+"
        + label
        + r"(?P<section>[\s\S]*?)(?=\s"
        + re.escape(next_box)
        + r"\s|\Z)"
    )
    if text:
        return (
            PatternRule(
                f"{field_name}_section", pattern, _first_words_in_section, plausible_short_text
            ),
        )
    return (
        PatternRule(
            f"{field_name}_section", pattern, _first_amount_in_section, amount_in_range()
        ),
        _amount_rule(
            f"{field_name}_box_explicit",
            r"\bBox\s*" + re.escape(box) + r"\b[^\d\n]*?" + label + r"[^\d]*?" + AMOUNT,
        ),
    )


def _text_rule(name: str, pattern: str, validator: Validator, parser: Parser = _text_group) -> PatternRule:
    return PatternRule(name, _rx(pattern), parser, validator)


# =============================================================================
# W-2
# =============================================================================

_WAGES_LABEL = r"Wages,?\s*tips,?\s*other\s+comp(?:ensation|\.)?"
_FEDERAL_WITHHELD_LABEL = r"Federal\s+income\s+tax\s+withheld"

W2_RULES: dict[str, tuple[PatternRule, ...]] = {
    "wages": (
        _amount_rule(
            "wages_box1_multiline",
            r"(?:^|\n)\s*1\s*\n\s*" + _WAGES_LABEL + r"[\s$]*" + AMOUNT,
            positive=True,
        ),
        _amount_rule("wages_direct", _WAGES_LABEL + r"[\s$:]*" + AMOUNT, positive=True),
        _amount_rule(
            "wages_box1_standard",
            r"(?<![\w.])1\s+" + _WAGES_LABEL + r"[\s$:]*" + AMOUNT,
            positive=True,
        ),
        _amount_rule("wages_box1_explicit", r"\bBox\s*1\b[:\s]*\$?\s*" + AMOUNT, positive=True),
        _amount_rule(
            "wages_box1_simple", r"(?:^|\n)[ \t]*1[ \t]+\$?[ \t]*" + AMOUNT, positive=True
        ),
    ),
    "federal_tax_withheld": labelled_amount_rules(
        "federal_tax_withheld", "2", _FEDERAL_WITHHELD_LABEL, line_fallback=True
    ),
    "social_security_wages": labelled_amount_rules(
        "social_security_wages", "3", r"Social\s+security\s+wages", line_fallback=True
    ),
    "social_security_tax_withheld": labelled_amount_rules(
        "social_security_tax_withheld",
        "4",
        r"Social\s+security\s+tax\s+withheld",
        line_fallback=True,
    ),
    "medicare_wages": labelled_amount_rules(
        "medicare_wages", "5", r"Medicare\s+wages\s+and\s+tips", line_fallback=True
    ),
    "medicare_tax_withheld": labelled_amount_rules(
        "medicare_tax_withheld", "6", r"Medicare\s+tax\s+withheld", line_fallback=True
    ),
    "social_security_tips": labelled_amount_rules(
        "social_security_tips", "7", r"Social\s+security\s+tips"
    ),
    "allocated_tips": labelled_amount_rules("allocated_tips", "8", r"Allocated\s+tips"),
    "state_wages": labelled_amount_rules(
        "state_wages", "16", r"State\s+wages,?\s*tips,?\s*etc\.?"
    ),
    "state_tax_withheld": labelled_amount_rules(
        "state_tax_withheld", "17", r"State\s+income\s+tax"
    ),
    "local_wages": labelled_amount_rules(
        "local_wages", "18", r"Local\s+wages,?\s*tips,?\s*etc\.?"
    ),
    "local_tax_withheld": labelled_amount_rules(
        "local_tax_withheld", "19", r"Local\s+income\s+tax"
    ),
    "employee_name": (
        _text_rule(
            "employee_name_ef_format",
            r"e/f\s+Employee" + APOS + r"s?\s+name,?\s+address,?\s+and\s+ZIP\s+code\s+"
            + PERSON_NAME,
            plausible_person_name,
        ),
        _text_rule(
            "employee_name_first_last",
            r"\be\s+Employee" + APOS + r"s?\s+first\s+name\s+and\s+initial\s+Last\s+name\s+"
            + PERSON_NAME,
            plausible_person_name,
        ),
        _text_rule(
            "employee_name_multiline",
            r"Employee" + APOS + r"s?\s+name[^\n]*\n\s*" + PERSON_NAME,
            plausible_person_name,
        ),
        _text_rule(
            "employee_name_colon",
            r"Employee" + APOS + r"s?\s+name\s*:\s*" + PERSON_NAME,
            plausible_person_name,
        ),
    ),
    "employee_ssn": (
        _text_rule(
            "employee_ssn_ssa_number",
            r"\ba\s+Employee" + APOS + r"s?\s+(?:SSA|social\s+security)\s+number\s*:?\s*" + SSN,
            plausible_identifier,
            _identifier_group,
        ),
        _text_rule("employee_ssn_label", r"\bSSN\s*[:#]?\s*" + SSN, plausible_identifier, _identifier_group),
        _text_rule(
            "employee_ssn_masked",
            r"(?<![\w-])((?:XXX|\*{3})-(?:XX|\*{2})-\d{4})(?![\w-])",
            plausible_identifier,
            _identifier_group,
        ),
    ),
    "employee_address": (
        PatternRule(
            "employee_address_ef_inline",
            _rx(
                r"e/f\s+Employee" + APOS + r"s?\s+name,?\s+address,?\s+and\s+ZIP\s+code\s+"
                + INLINE_ADDRESS
            ),
            _address_groups,
            plausible_address,
        ),
        PatternRule(
            "employee_address_ef_format",
            _rx(
                r"e/f\s+Employee" + APOS + r"s?\s+name,?\s+address,?\s+and\s+ZIP\s+code\s+"
                r"[A-Za-z][A-Za-z .'-]*\n\s*" + STREET_LINE + r"\n\s*" + CITY_LINE
            ),
            _address_groups,
            plausible_address,
        ),
        PatternRule(
            "employee_address_label",
            _rx(r"Employee" + APOS + r"s?\s+address\s*:?\s*" + STREET_LINE + r"\n\s*" + CITY_LINE),
            _address_groups,
            plausible_address,
        ),
        PatternRule(
            "employee_address_after_name",
            _rx(
                r"Employee" + APOS + r"s?\s+name[^\n]*\n[^\n]+\n\s*" + STREET_LINE + r"\n\s*"
                + CITY_LINE
            ),
            _address_groups,
            plausible_address,
        ),
    ),
    "employer_name": (
        _text_rule(
            "employer_name_c_format",
            r"\bc\s+Employer" + APOS + r"s?\s+name,?\s+address,?\s+and\s+ZIP\s+code\s+"
            r"([A-Za-z][^\n\d]*?)(?=\s+\d)",
            plausible_business_name,
        ),
        _text_rule(
            "employer_name_multiline",
            r"Employer" + APOS + r"s?\s+name[^\n]*\n\s*([^\n]+)",
            plausible_business_name,
        ),
        _text_rule(
            "employer_name_colon",
            r"Employer" + APOS + r"s?\s+name\s*:\s*([^\n]+)",
            plausible_business_name,
        ),
    ),
    "employer_address": (
        PatternRule(
            "employer_address_c_inline",
            _rx(
                r"\bc\s+Employer" + APOS + r"s?\s+name,?\s+address,?\s+and\s+ZIP\s+code\s+"
                + INLINE_ADDRESS
            ),
            _address_groups,
            plausible_address,
        ),
        PatternRule(
            "employer_address_after_name",
            _rx(
                r"Employer" + APOS + r"s?\s+name[^\n]*\n[^\n]+\n\s*" + STREET_LINE + r"\n\s*"
                + CITY_LINE
            ),
            _address_groups,
            plausible_address,
        ),
    ),
    "employer_ein": (
        _text_rule(
            "employer_ein_box_b",
            r"\bb\s+Employer" + APOS + r"s?\s+identification\s+number\s*(?:\(EIN\))?\s*:?\s*" + EIN,
            plausible_identifier,
            _ein_group,
        ),
        _text_rule("employer_ein_label", r"\bEIN\s*[:#)]?\s*" + EIN, plausible_identifier, _ein_group),
    ),
}

# =============================================================================
# 1099 identity (shared by every 1099 category)
# =============================================================================

IDENTITY_1099_RULES: dict[str, tuple[PatternRule, ...]] = {
    "recipient_name": (
        _text_rule(
            "recipient_name_label",
            r"RECIPIENT" + APOS + r"S\s+name\s*:?\s*" + PERSON_NAME,
            plausible_person_name,
        ),
        _text_rule("recipient_name_colon", r"\bRecipient\s*:\s*" + PERSON_NAME, plausible_person_name),
    ),
    "recipient_tin": (
        _text_rule(
            "recipient_tin_label",
            r"RECIPIENT" + APOS + r"S\s+(?:TIN|taxpayer\s+identification\s+(?:number|no\.?))\s*:?\s*"
            r"((?:\d{3}|[X*]{3})[-\s]?(?:\d{2}|[X*]{2})[-\s]?\d{4}|\d{2}-\d{7})(?![\d-])",
            plausible_identifier,
            _identifier_group,
        ),
    ),
    "recipient_address": (
        PatternRule(
            "recipient_address_form_labels",
            _rx(
                r"Street\s+address\s*\(including\s+apt\.?\s*no\.?\)\s*" + STREET_LINE
                + r"\n\s*City\s+or\s+town[^\n]*\n\s*([^\n]+)"
            ),
            _address_groups,
            plausible_address,
        ),
        PatternRule(
            "recipient_address_after_name",
            _rx(
                r"RECIPIENT" + APOS + r"S\s+name[^\n]*\n[^\n]+\n\s*" + STREET_LINE + r"\n\s*"
                + CITY_LINE
            ),
            _address_groups,
            plausible_address,
        ),
    ),
    "payer_name": (
        _text_rule(
            "payer_name_after_header",
            r"PAYER" + APOS + r"S\s+name[^\n]*\n\s*([^\n]+)",
            plausible_business_name,
        ),
        _text_rule("payer_name_colon", r"\bPayer\s*:\s*([^\n]+)", plausible_business_name),
    ),
    "payer_tin": (
        _text_rule(
            "payer_tin_label",
            r"PAYER" + APOS + r"S\s+(?:TIN|federal\s+identification\s+(?:number|no\.?))\s*:?\s*"
            r"(\d{2}-?\d{7}|\d{3}-?\d{2}-?\d{4})(?![\d-])",
            plausible_identifier,
            _identifier_group,
        ),
    ),
    "payer_address": (
        PatternRule(
            "payer_address_after_name",
            _rx(
                r"PAYER" + APOS + r"S\s+name[^\n]*\n[^\n]+\n\s*" + STREET_LINE + r"\n\s*"
                + CITY_LINE
            ),
            _address_groups,
            plausible_address,
        ),
    ),
    "account_number": (
        _text_rule(
            "account_number_label",
            r"Account\s+number\s*(?:\(see\s+instructions\))?\s*:?\s*([A-Z0-9][A-Z0-9-]{2,})",
            plausible_account_number,
        ),
    ),
}

# =============================================================================
# 1099-INT
# =============================================================================

INT_RULES: dict[str, tuple[PatternRule, ...]] = {
    **IDENTITY_1099_RULES,
    "interest_income": section_rules("interest_income", "1", r"Interest\s+income", "2"),
    "early_withdrawal_penalty": section_rules(
        "early_withdrawal_penalty", "2", r"Early\s+withdrawal\s+penalty", "3"
    ),
    "interest_on_us_savings_bonds": section_rules(
        "interest_on_us_savings_bonds",
        "3",
        r"Interest\s+on\s+U\.?\s?S\.?\s+[A-Za-z.\s]*?(?:obligations|bonds)",
        "4",
    ),
    "federal_tax_withheld": section_rules(
        "federal_tax_withheld", "4", _FEDERAL_WITHHELD_LABEL, "5"
    ),
    "investment_expenses": section_rules(
        "investment_expenses", "5", r"Investment\s+expenses", "6"
    ),
    "foreign_tax_paid": section_rules("foreign_tax_paid", "6", r"Foreign\s+tax\s+paid", "7"),
    "foreign_country": section_rules(
        "foreign_country", "7", r"Foreign\s+country\s+or\s+U\.?\s?S\.?\s+possession", "8", text=True
    ),
    "tax_exempt_interest": section_rules(
        "tax_exempt_interest", "8", r"Tax[-\s]exempt\s+interest", "9"
    ),
    "specified_private_activity_bond_interest": section_rules(
        "specified_private_activity_bond_interest",
        "9",
        r"Specified\s+private\s+activity\s+bond\s+interest",
        "10",
    ),
    "market_discount": section_rules("market_discount", "10", r"Market\s+discount", "11"),
    "bond_premium": section_rules("bond_premium", "11", r"Bond\s+premium", "12"),
    "state_tax_withheld": labelled_amount_rules(
        "state_tax_withheld", "13", r"State\s+tax\s+withheld"
    ),
    "state_interest": labelled_amount_rules("state_interest", "15", r"State\s+interest"),
}

# =============================================================================
# 1099-DIV
# =============================================================================

DIV_RULES: dict[str, tuple[PatternRule, ...]] = {
    **IDENTITY_1099_RULES,
    "ordinary_dividends": labelled_amount_rules(
        "ordinary_dividends", "1a", r"Total\s+ordinary\s+dividends", line_fallback=True
    ),
    "qualified_dividends": labelled_amount_rules(
        "qualified_dividends", "1b", r"Qualified\s+dividends", line_fallback=True
    ),
    "total_capital_gain": labelled_amount_rules(
        "total_capital_gain",
        "2a",
        r"Total\s+capital\s+gain\s+distr(?:ibutions|\.)?",
        line_fallback=True,
    ),
    "nondividend_distributions": labelled_amount_rules(
        "nondividend_distributions", "3", r"Nondividend\s+distributions"
    ),
    "federal_tax_withheld": labelled_amount_rules(
        "federal_tax_withheld", "4", _FEDERAL_WITHHELD_LABEL, line_fallback=True
    ),
    "section_199a_dividends": labelled_amount_rules(
        "section_199a_dividends", "5", r"Section\s+199A\s+dividends"
    ),
}

# =============================================================================
# 1099-MISC
# =============================================================================

_MISC_LABELS: tuple[tuple[str, str, str], ...] = (
    ("rents", "1", r"Rents"),
    ("royalties", "2", r"Royalties"),
    ("other_income", "3", r"Other\s+income"),
    ("federal_tax_withheld", "4", _FEDERAL_WITHHELD_LABEL),
    ("fishing_boat_proceeds", "5", r"Fishing\s+boat\s+proceeds"),
    ("medical_health_payments", "6", r"Medical\s+and\s+health\s+care\s+payments"),
    ("nonemployee_compensation", "7", r"Nonemployee\s+compensation"),
    (
        "substitute_payments",
        "8",
        r"Substitute\s+payments\s+in\s+lieu\s+of\s+dividends\s+or\s+interest",
    ),
    ("crop_insurance_proceeds", "9", r"Crop\s+insurance\s+proceeds"),
    ("gross_proceeds_attorney", "10", r"Gross\s+proceeds\s+paid\s+to\s+an\s+attorney"),
    ("fish_purchases", "11", r"Fish\s+purchased\s+for\s+resale"),
    ("section_409a_deferrals", "12", r"Section\s+409A\s+deferrals"),
    ("excess_golden_parachute_payments", "13", r"Excess\s+golden\s+parachute\s+payments"),
    ("nonqualified_deferred_compensation", "14", r"Nonqualified\s+deferred\s+compensation"),
    ("section_409a_income", "15a", r"Section\s+409A\s+income"),
    ("state_tax_withheld", "16", r"State\s+tax\s+withheld"),
    ("state_income", "18", r"State\s+income"),
)

MISC_RULES: dict[str, tuple[PatternRule, ...]] = {
    **IDENTITY_1099_RULES,
    **{name: labelled_amount_rules(name, box, label) for name, box, label in _MISC_LABELS},
}

# =============================================================================
# 1099-NEC
# =============================================================================

NEC_RULES: dict[str, tuple[PatternRule, ...]] = {
    **IDENTITY_1099_RULES,
    "nonemployee_compensation": labelled_amount_rules(
        "nonemployee_compensation", "1", r"Nonemployee\s+compensation", line_fallback=True
    ),
    "federal_tax_withheld": labelled_amount_rules(
        "federal_tax_withheld", "4", _FEDERAL_WITHHELD_LABEL, line_fallback=True
    ),
}

PATTERN_TABLES: dict[DocumentCategory, dict[str, tuple[PatternRule, ...]]] = {
    DocumentCategory.W2: W2_RULES,
    DocumentCategory.FORM_1099_INT: INT_RULES,
    DocumentCategory.FORM_1099_DIV: DIV_RULES,
    DocumentCategory.FORM_1099_MISC: MISC_RULES,
    DocumentCategory.FORM_1099_NEC: NEC_RULES,
}


def get_pattern_rules(category: DocumentCategory) -> dict[str, tuple[PatternRule, ...]]:
    """Return the field -> rules table for a category (empty for UNKNOWN)."""
    return PATTERN_TABLES.get(category, {})


__all__ = [
    "AMOUNT",
    "PATTERN_TABLES",
    "PatternRule",
    "amount_in_range",
    "apply_rules",
    "get_pattern_rules",
    "labelled_amount_rules",
    "section_rules",
]
