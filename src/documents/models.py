"""Pydantic models for tax document extraction.

This module defines the data shapes that flow through the extraction engine:
- RawDocument: submitted bytes plus the caller's category hint
- ExtractionField: one canonical field reading and where it came from
- EntityRecord: one person block found in a multi-person document
- ExtractedDocument: the final field map for a document

All monetary fields use Decimal for precision.
SSN and EIN helpers validate and format identifiers consistently.
"""

from __future__ import annotations

import re
import uuid
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UnknownCategoryError(ValueError):
    """Raised when a category string is not part of the closed enumeration."""


class DocumentCategory(str, Enum):
    """Category of tax document."""

    W2 = "W2"
    FORM_1099_INT = "1099-INT"
    FORM_1099_DIV = "1099-DIV"
    FORM_1099_MISC = "1099-MISC"
    FORM_1099_NEC = "1099-NEC"
    UNKNOWN = "UNKNOWN"

    @property
    def is_1099(self) -> bool:
        """True for the information-return family."""
        return self.value.startswith("1099-")

    @classmethod
    def parse(cls, value: str | DocumentCategory) -> DocumentCategory:
        """Resolve a category from its value or member name.

        Accepts "1099-INT", "FORM_1099_INT", "form-1099-int" and similar
        spellings. Anything else is rejected rather than coerced.

        Raises:
            UnknownCategoryError: If the value names no category.

        Example:
            >>> DocumentCategory.parse("FORM_1099_DIV")
            <DocumentCategory.FORM_1099_DIV: '1099-DIV'>
        """
        if isinstance(value, DocumentCategory):
            return value

        key = re.sub(r"[\s_-]", "", str(value)).upper()
        for member in cls:
            if key in (
                re.sub(r"[\s_-]", "", member.value).upper(),
                re.sub(r"[\s_-]", "", member.name).upper(),
            ):
                return member
        raise UnknownCategoryError(f"Unknown document category: {value!r}")


class FieldSource(str, Enum):
    """Where an extracted value came from."""

    STRUCTURED = "structured"
    TEXT_PATTERN = "text-pattern"


class FieldKind(str, Enum):
    """Value shape of a canonical field."""

    AMOUNT = "amount"
    TEXT = "text"


class ConfidenceLevel(str, Enum):
    """Extraction confidence level."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


def validate_ssn(value: str) -> str:
    """Validate and format SSN.

    Args:
        value: SSN string, with or without dashes/spaces.

    Returns:
        Formatted SSN as XXX-XX-XXXX.

    Raises:
        ValueError: If SSN is not exactly 9 digits after cleaning.
    """
    digits = re.sub(r"\D", "", value)

    if len(digits) != 9:
        raise ValueError(f"SSN must be exactly 9 digits, got {len(digits)}")

    return f"{digits[:3]}-{digits[3:5]}-{digits[5:]}"


def validate_ein(value: str) -> str:
    """Validate and format EIN.

    Args:
        value: EIN string, with or without dash.

    Returns:
        Formatted EIN as XX-XXXXXXX.

    Raises:
        ValueError: If EIN is not exactly 9 digits after cleaning.
    """
    digits = re.sub(r"\D", "", value)

    if len(digits) != 9:
        raise ValueError(f"EIN must be exactly 9 digits, got {len(digits)}")

    return f"{digits[:2]}-{digits[2:]}"


def is_masked_identifier(value: str) -> bool:
    """Return True for identifiers printed with masking (XXX-XX-1234)."""
    cleaned = re.sub(r"[\s-]", "", value.upper())
    return len(cleaned) == 9 and "X" in cleaned and bool(re.fullmatch(r"[X\d]+", cleaned))


def format_identifier(value: str) -> str:
    """Format a recognized SSN/TIN for display.

    Nine plain digits become XXX-XX-XXXX (or XX-XXXXXXX when the input was
    already written in EIN shape). Masked or partial identifiers are
    returned stripped but otherwise unchanged.
    """
    cleaned = value.strip()
    digits = re.sub(r"\D", "", cleaned)
    if len(digits) != 9 or re.search(r"[A-Za-z]", cleaned):
        return re.sub(r"\s+", " ", cleaned)
    if re.fullmatch(r"\d{2}-\d{7}", cleaned):
        return validate_ein(digits)
    return validate_ssn(digits)


class RawDocument(BaseModel):
    """A submitted document: immutable bytes plus the caller's category hint."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(description="Document bytes as uploaded")
    category_hint: DocumentCategory = Field(description="Category supplied by the caller")
    document_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    target_name: str | None = Field(
        default=None,
        description="Person the caller expects this document to belong to",
    )


class ExtractionField(BaseModel):
    """One reading of a canonical field.

    Amounts are non-negative Decimals, text values are normalized strings.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    value: Decimal | str
    source: FieldSource
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("value")
    @classmethod
    def reject_negative_amounts(cls, v: Decimal | str) -> Decimal | str:
        """Amounts must be finite and non-negative."""
        if isinstance(v, Decimal):
            if not v.is_finite():
                raise ValueError("amount must be finite")
            if v < 0:
                raise ValueError(f"amount must be non-negative, got {v}")
        return v

    @property
    def is_amount(self) -> bool:
        return isinstance(self.value, Decimal)


class EntityRecord(BaseModel):
    """One person's identity block detected in a multi-person document.

    Attributes:
        name: Person name as printed.
        identifier: SSN/TIN found near the name, if any.
        address: Street plus city/state/ZIP line, if found.
        confidence: Detection confidence on a 0-100 scale.
        source_text: Lines the block was built from.
        line_index: Index of the name line among the non-blank lines.
    """

    name: str
    identifier: str | None = None
    address: str | None = None
    confidence: int = Field(default=0, ge=0, le=100)
    source_text: str = ""
    line_index: int = 0


class ExtractedDocument(BaseModel):
    """Final field map for one RawDocument.

    Replaced wholesale when a document is reprocessed; never patched.
    """

    document_id: str
    category: DocumentCategory
    category_hint: DocumentCategory
    fields: dict[str, ExtractionField] = Field(default_factory=dict)
    raw_text: str = ""
    entities: list[EntityRecord] = Field(default_factory=list)
    primary_entity_index: int | None = None

    @property
    def category_corrected(self) -> bool:
        return self.category != self.category_hint

    def has(self, name: str) -> bool:
        return name in self.fields

    def amount(self, name: str) -> Decimal | None:
        """Return the amount for a field, or None when absent or textual."""
        extracted = self.fields.get(name)
        if extracted is None or not isinstance(extracted.value, Decimal):
            return None
        return extracted.value

    def text(self, name: str) -> str | None:
        """Return the text for a field, or None when absent or numeric."""
        extracted = self.fields.get(name)
        if extracted is None or not isinstance(extracted.value, str):
            return None
        return extracted.value

    def amounts(self) -> dict[str, Decimal]:
        """All amount fields keyed by canonical name."""
        return {
            name: extracted.value
            for name, extracted in self.fields.items()
            if isinstance(extracted.value, Decimal)
        }


__all__ = [
    "ConfidenceLevel",
    "DocumentCategory",
    "EntityRecord",
    "ExtractedDocument",
    "ExtractionField",
    "FieldKind",
    "FieldSource",
    "RawDocument",
    "UnknownCategoryError",
    "format_identifier",
    "is_masked_identifier",
    "validate_ein",
    "validate_ssn",
]
