"""Pytest configuration and shared fixtures for tests."""

from collections.abc import Callable, Iterator
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.documents.models import (
    DocumentCategory,
    ExtractedDocument,
    ExtractionField,
    FieldSource,
)
from src.documents.provider import ProviderResponse
from src.orchestration.circuit_breaker import reset_all_breakers

W2_TEXT = """Form W-2 Wage and Tax Statement 2023
a Employee's social security number 123-45-6789
b Employer identification number (EIN) 12-3456789
c Employer's name, address, and ZIP code
Acme Manufacturing Inc
100 Industrial Way
Springfield, IL 62701
e/f Employee's name, address, and ZIP code
Jordan Blake
42 Maple Street
Springfield, IL 62704
1 Wages, tips, other compensation 50000.00
2 Federal income tax withheld 6000.00
3 Social security wages 50000.00
4 Social security tax withheld 3100.00
5 Medicare wages and tips 50000.00
6 Medicare tax withheld 725.00
"""

MULTI_ENTITY_W2_TEXT = """Form W-2 Wage and Tax Statement 2023
e/f Employee's name, address, and ZIP code
Alex Morgan
12 Pine Road
Austin, TX 78701
SSN: 111-22-3333
1 Wages, tips, other compensation 41000.00
2 Federal income tax withheld 4100.00
Jordan Blake
88 Cedar Lane
Denver, CO 80202
SSN: 222-33-4444
1 Wages, tips, other compensation 62000.00
2 Federal income tax withheld 7400.00
"""

FOREIGN_TAX_ONLY_INT_TEXT = """Form 1099-INT Interest Income 2023
PAYER'S name
First Example Bank
PAYER'S TIN 98-7654321
RECIPIENT'S TIN 123-45-6789
RECIPIENT'S name Jordan Blake
1 Interest income
2 Early withdrawal penalty
3 Interest on U.S. Savings Bonds and Treasury obligations
4 Federal income tax withheld
5 Investment expenses
6 Foreign tax paid 45.00
7 Foreign country or U.S. possession Canada
8 Tax-exempt interest
9 Specified private activity bond interest
10 Market discount
11 Bond premium
12 Bond premium on Treasury obligations
"""

W2_LABELED_FIELDS = {
    "Employee": {
        "value": {
            "Name": {"value": "Jordan Blake"},
            "SocialSecurityNumber": {"content": "123-45-6789"},
        }
    },
    "Employee.SSN": {"content": "123-45-6789"},
    "Employer": {"value": {"Name": {"content": "Acme Manufacturing Inc"}}},
    "Employer.IdNumber": {"content": "12-3456789"},
    "WagesAndTips": {"value": 50000.0, "content": "50000.00"},
    "FederalIncomeTaxWithheld": {"value": 6000.0, "content": "6000.00"},
    "SocialSecurityWages": 50000.0,
    "SocialSecurityTaxWithheld": 3100.0,
    "MedicareWagesAndTips": "50,000.00",
    "MedicareTaxWithheld": "$725.00",
}


@pytest.fixture(autouse=True)
def reset_breakers() -> Iterator[None]:
    """Start every test with a fresh circuit breaker registry."""
    reset_all_breakers()
    yield
    reset_all_breakers()


@pytest.fixture
def w2_text() -> str:
    """Single-employee W-2 text: wages 50,000, withholding 6,000."""
    return W2_TEXT


@pytest.fixture
def multi_entity_w2_text() -> str:
    """Batch W-2 text with two employee blocks (Alex Morgan, Jordan Blake)."""
    return MULTI_ENTITY_W2_TEXT


@pytest.fixture
def foreign_tax_only_text() -> str:
    """1099-INT text reporting only Box 6 foreign tax paid."""
    return FOREIGN_TAX_ONLY_INT_TEXT


@pytest.fixture
def w2_labeled_fields() -> dict:
    """Provider labeled fields agreeing with the W-2 text."""
    return dict(W2_LABELED_FIELDS)


@pytest.fixture
def make_field() -> Callable[..., ExtractionField]:
    """Factory for ExtractionField values.

    Returns:
        Callable taking (name, value, source="structured"); numeric values
        become Decimal amounts.
    """

    def _make(
        name: str, value: str | int | Decimal, source: str = "structured"
    ) -> ExtractionField:
        if isinstance(value, (int, Decimal)):
            value = Decimal(value)
        return ExtractionField(
            name=name,
            value=value,
            source=FieldSource(source),
            confidence=0.9 if source == "structured" else 0.7,
        )

    return _make


@pytest.fixture
def make_document(make_field) -> Callable[..., ExtractedDocument]:
    """Factory for reconciled ExtractedDocument values.

    Returns:
        Callable taking (category, document_id=..., **fields). String
        numbers are converted to Decimal amounts; other strings stay text.
    """
    counter = {"next": 0}

    def _make(
        category: DocumentCategory,
        document_id: str | None = None,
        **values: str | int,
    ) -> ExtractedDocument:
        counter["next"] += 1
        fields: dict[str, ExtractionField] = {}
        for name, value in values.items():
            if isinstance(value, str) and value.replace(".", "", 1).isdigit():
                value = Decimal(value)
            fields[name] = make_field(name, value)
        return ExtractedDocument(
            document_id=document_id or f"doc-{counter['next']}",
            category=category,
            category_hint=category,
            fields=fields,
        )

    return _make


@pytest.fixture
def mock_provider() -> AsyncMock:
    """Create a provider double returning the W-2 response.

    Returns:
        AsyncMock whose `extract` coroutine returns a ProviderResponse.
    """
    provider = AsyncMock()
    provider.extract.return_value = ProviderResponse(
        raw_text=W2_TEXT,
        labeled_fields=dict(W2_LABELED_FIELDS),
        detected_category="W2",
    )
    return provider
