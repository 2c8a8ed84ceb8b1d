"""Tax-line mapping for extracted documents.

Maps reconciled document fields onto Form 1040 lines through declarative
rule tables, one per category. Mapping never touches a form state: it
produces a FormDelta held fully in memory, which the form state applies
atomically and then recomputes from scratch.

Operations:
- add: accumulate into a primary line
- subtract: reduce a primary line; the line is floored at zero
- set: fill a header identity field, only while the header is empty
- route: post to a named side schedule instead of a primary line

Example:
    >>> from src.tax.mapping import map_document
    >>> result = map_document(document)
    >>> for entry in result.summary:
    ...     print(entry.source_label, "->", entry.target_label, entry.value)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

import structlog

from src.documents.aliases import get_field_spec
from src.documents.address import parse_address
from src.documents.issues import ExtractionIssue
from src.documents.models import DocumentCategory, ExtractedDocument, format_identifier
from src.documents.validation import DocumentValidator, ValidationResult

logger = structlog.get_logger()


class MappingOperation(str, Enum):
    """How a field value lands on the form."""

    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"
    ROUTE = "route-to-side-schedule"


class MappingValidationError(Exception):
    """Raised when a document without usable data is submitted for mapping."""

    def __init__(self, document_id: str, errors: list[str], fields: tuple[str, ...] = ()):
        self.document_id = document_id
        self.errors = errors
        self.fields = fields
        super().__init__(f"Document {document_id} failed validation: {'; '.join(errors)}")


# ============================================================================
# Lines and ledgers
# ============================================================================

# Primitive lines: only documents write these; everything else is derived
PRIMARY_LINES: tuple[str, ...] = (
    "line1",
    "line2a",
    "line2b",
    "line3a",
    "line3b",
    "line4b",
    "line5b",
    "line6b",
    "line7",
    "line8",
    "line10",
    "line13",
    "line17",
    "line23",
    "line25a",
    "line25b",
    "line25c",
    "line26",
)

SIDE_SCHEDULES: dict[str, str] = {
    "schedule_a": "Schedule A",
    "schedule_1": "Schedule 1",
    "foreign_tax_credit": "Form 1116",
    "amt_adjustments": "Form 6251",
    "state_data": "State return",
    "qbi": "Form 8995",
}

HEADER_FIELDS: tuple[str, ...] = ("name", "ssn", "address")

LINE_DESCRIPTIONS: dict[str, str] = {
    "line1": "Wages, salaries, tips",
    "line2a": "Tax-exempt interest",
    "line2b": "Taxable interest income",
    "line3a": "Qualified dividends",
    "line3b": "Ordinary dividends",
    "line7": "Capital gain or (loss)",
    "line8": "Other income from Schedule 1",
    "line25a": "Federal income tax withheld from Forms W-2",
    "line25b": "Federal income tax withheld from Forms 1099",
}


# ============================================================================
# Rules
# ============================================================================


@dataclass(frozen=True)
class MappingRule:
    """One declarative mapping from a document field to a form target.

    Attributes:
        source_field: Canonical field name on the document.
        target_line: Primary line, side-schedule key, or header field.
        operation: How the value lands.
        side_schedule: Ledger name; required for ROUTE and only for ROUTE.
        description: Text shown in the mapping summary.
    """

    source_field: str
    target_line: str
    operation: MappingOperation
    side_schedule: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if self.operation == MappingOperation.ROUTE:
            if self.side_schedule not in SIDE_SCHEDULES:
                raise ValueError(f"Unknown side schedule: {self.side_schedule!r}")
        elif self.side_schedule is not None:
            raise ValueError(f"{self.operation.value} rules do not take a side schedule")
        if self.operation in (MappingOperation.ADD, MappingOperation.SUBTRACT):
            if self.target_line not in PRIMARY_LINES:
                raise ValueError(f"Unknown form line: {self.target_line!r}")
        if self.operation == MappingOperation.SET and self.target_line not in HEADER_FIELDS:
            raise ValueError(f"Unknown header field: {self.target_line!r}")

    @property
    def target_label(self) -> str:
        if self.operation == MappingOperation.ROUTE:
            return f"{SIDE_SCHEDULES[self.side_schedule]} ({self.target_line})"
        if self.operation == MappingOperation.SET:
            return f"Header ({self.target_line})"
        label = f"Line {self.target_line.removeprefix('line')}"
        if self.operation == MappingOperation.SUBTRACT:
            return f"{label} (reduction)"
        return label


def _add(source: str, line: str, description: str | None = None) -> MappingRule:
    return MappingRule(
        source, line, MappingOperation.ADD, description=description or LINE_DESCRIPTIONS.get(line, "")
    )


def _subtract(source: str, line: str, description: str) -> MappingRule:
    return MappingRule(source, line, MappingOperation.SUBTRACT, description=description)


def _route(source: str, schedule: str, key: str, description: str) -> MappingRule:
    return MappingRule(
        source, key, MappingOperation.ROUTE, side_schedule=schedule, description=description
    )


def _header(name: str, identifier: str, address: str) -> tuple[MappingRule, ...]:
    return (
        MappingRule(name, "name", MappingOperation.SET, description="Filer name"),
        MappingRule(identifier, "ssn", MappingOperation.SET, description="Filer SSN"),
        MappingRule(address, "address", MappingOperation.SET, description="Filer address"),
    )


_1099_HEADER = _header("recipient_name", "recipient_tin", "recipient_address")
_1099_WITHHOLDING = _add("federal_tax_withheld", "line25b")
_STATE_WITHHOLDING = _route(
    "state_tax_withheld", "schedule_a", "state_local_taxes", "State income tax withheld"
)

MAPPING_RULES: dict[DocumentCategory, tuple[MappingRule, ...]] = {
    DocumentCategory.W2: (
        *_header("employee_name", "employee_ssn", "employee_address"),
        _add("wages", "line1"),
        _add("federal_tax_withheld", "line25a"),
        _STATE_WITHHOLDING,
    ),
    DocumentCategory.FORM_1099_INT: (
        *_1099_HEADER,
        _add("interest_income", "line2b"),
        _add("interest_on_us_savings_bonds", "line2b", "U.S. Savings Bonds interest"),
        _add("market_discount", "line2b", "Market discount"),
        _subtract("bond_premium", "line2b", "Bond premium reduces taxable interest"),
        _add("tax_exempt_interest", "line2a"),
        _1099_WITHHOLDING,
        _route(
            "early_withdrawal_penalty",
            "schedule_1",
            "early_withdrawal_penalty",
            "Penalty on early withdrawal of savings",
        ),
        _route(
            "specified_private_activity_bond_interest",
            "amt_adjustments",
            "private_activity_bond_interest",
            "Private activity bond interest (AMT preference)",
        ),
        _STATE_WITHHOLDING,
        _route("investment_expenses", "schedule_a", "investment_expenses", "Investment expenses"),
        _route("foreign_tax_paid", "foreign_tax_credit", "foreign_tax_paid", "Foreign tax paid"),
        _route("state_interest", "state_data", "interest_income", "State interest income"),
    ),
    DocumentCategory.FORM_1099_DIV: (
        *_1099_HEADER,
        _add("ordinary_dividends", "line3b"),
        _add("qualified_dividends", "line3a"),
        _add("total_capital_gain", "line7", "Capital gain distributions"),
        _1099_WITHHOLDING,
        _route(
            "section_199a_dividends",
            "qbi",
            "section_199a_dividends",
            "Section 199A dividends",
        ),
    ),
    DocumentCategory.FORM_1099_MISC: (
        *_1099_HEADER,
        _add("rents", "line8", "Rents"),
        _add("royalties", "line8", "Royalties"),
        _add("other_income", "line8", "Other income"),
        _add("nonemployee_compensation", "line8", "Nonemployee compensation"),
        _1099_WITHHOLDING,
        _STATE_WITHHOLDING,
    ),
    DocumentCategory.FORM_1099_NEC: (
        *_1099_HEADER,
        _add("nonemployee_compensation", "line8", "Nonemployee compensation"),
        _1099_WITHHOLDING,
    ),
    DocumentCategory.UNKNOWN: (),
}


def get_mapping_rules(category: DocumentCategory) -> tuple[MappingRule, ...]:
    """Return the rule table for a category (empty for UNKNOWN)."""
    return MAPPING_RULES.get(category, ())


# ============================================================================
# Deltas and results
# ============================================================================


@dataclass
class FormDelta:
    """One document's contribution to a form, computed in memory.

    Additions and reductions are kept apart so a form can rebuild each line
    as max(0, additions - reductions) regardless of document order.

    Attributes:
        document_id: Contributing document.
        category: Resolved category of that document.
        additions: Line -> amount added.
        reductions: Line -> amount subtracted.
        side_entries: Schedule -> key -> amount.
        header: Header field -> value (first_name, last_name, ssn, street...).
    """

    document_id: str
    category: DocumentCategory
    additions: dict[str, Decimal] = field(default_factory=dict)
    reductions: dict[str, Decimal] = field(default_factory=dict)
    side_entries: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    header: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.additions or self.reductions or self.side_entries or self.header)

    @property
    def touches_primary_lines(self) -> bool:
        return any(value > 0 for value in self.additions.values())


@dataclass(frozen=True)
class MappingSummaryEntry:
    """Human-readable audit line: which field went where."""

    source_field: str
    source_label: str
    value: Decimal | str
    target_line: str
    target_label: str
    operation: MappingOperation
    description: str


@dataclass
class MappingResult:
    """Mapping outcome for one document.

    Attributes:
        delta: Contribution to apply to the filer's form.
        summary: Audit entries in rule order.
        unmapped_fields: Amount fields with no rule for the category.
        validation: Mapping-readiness validation of the document.
    """

    delta: FormDelta
    summary: list[MappingSummaryEntry] = field(default_factory=list)
    unmapped_fields: list[str] = field(default_factory=list)
    validation: ValidationResult | None = None

    @property
    def document_id(self) -> str:
        return self.delta.document_id

    @property
    def issues(self) -> list[ExtractionIssue]:
        return list(self.validation.issues) if self.validation else []

    @property
    def warnings(self) -> list[str]:
        return list(self.validation.warnings) if self.validation else []


# ============================================================================
# Engine
# ============================================================================


def _source_label(category: DocumentCategory, name: str) -> str:
    spec = get_field_spec(category, name)
    if spec is None:
        return name
    if spec.box:
        return f"{spec.label} (Box {spec.box})"
    return spec.label


def _header_values(target: str, value: str) -> dict[str, str]:
    if target == "name":
        parts = value.split()
        if not parts:
            return {}
        return {"first_name": parts[0], "last_name": " ".join(parts[1:])}
    if target == "ssn":
        return {"ssn": format_identifier(value)}
    parsed = parse_address(value)
    header = {"street": parsed.street}
    if parsed.matched:
        header.update(city=parsed.city, state=parsed.state, zip_code=parsed.zip_code)
    return header


def map_document(document: ExtractedDocument) -> MappingResult:
    """Compute a document's form contribution without touching any form.

    Args:
        document: Reconciled document; its resolved category picks the rules.

    Returns:
        MappingResult with the delta, the audit summary and validation
        warnings (including "No income data found" when only side
        schedules were fed).

    Raises:
        MappingValidationError: If the document carries no usable amounts.
    """
    validation = DocumentValidator().validate_for_mapping(document)
    if not validation.is_valid:
        fields = tuple(name for issue in validation.issues for name in issue.fields)
        logger.warning(
            "mapping_rejected",
            document_id=document.document_id,
            errors=validation.errors,
        )
        raise MappingValidationError(document.document_id, validation.errors, fields)

    category = document.category
    delta = FormDelta(document_id=document.document_id, category=category)
    result = MappingResult(delta=delta, validation=validation)
    ruled: set[str] = set()

    for rule in get_mapping_rules(category):
        ruled.add(rule.source_field)
        extracted = document.fields.get(rule.source_field)
        if extracted is None:
            continue
        value = extracted.value

        if rule.operation == MappingOperation.SET:
            if not isinstance(value, str) or not value.strip():
                continue
            delta.header.update(_header_values(rule.target_line, value))
        elif not isinstance(value, Decimal) or value == 0:
            continue
        elif rule.operation == MappingOperation.ADD:
            delta.additions[rule.target_line] = (
                delta.additions.get(rule.target_line, Decimal("0")) + value
            )
        elif rule.operation == MappingOperation.SUBTRACT:
            delta.reductions[rule.target_line] = (
                delta.reductions.get(rule.target_line, Decimal("0")) + value
            )
        else:
            ledger = delta.side_entries.setdefault(rule.side_schedule, {})
            ledger[rule.target_line] = ledger.get(rule.target_line, Decimal("0")) + value

        result.summary.append(
            MappingSummaryEntry(
                source_field=rule.source_field,
                source_label=_source_label(category, rule.source_field),
                value=value,
                target_line=rule.target_line,
                target_label=rule.target_label,
                operation=rule.operation,
                description=rule.description,
            )
        )

    result.unmapped_fields = [name for name in document.amounts() if name not in ruled]

    logger.info(
        "document_mapped",
        document_id=document.document_id,
        category=category.value,
        entries=len(result.summary),
        primary_lines=sorted(delta.additions),
        side_schedules=sorted(delta.side_entries),
        unmapped=result.unmapped_fields,
    )
    return result


__all__ = [
    "FormDelta",
    "HEADER_FIELDS",
    "MAPPING_RULES",
    "MappingOperation",
    "MappingResult",
    "MappingRule",
    "MappingSummaryEntry",
    "MappingValidationError",
    "PRIMARY_LINES",
    "SIDE_SCHEDULES",
    "get_mapping_rules",
    "map_document",
]
