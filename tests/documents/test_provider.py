"""Tests for the resilient structured-extraction client."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.documents.issues import IssueKind, IssueSeverity, ProviderError
from src.documents.model_resolver import TEXT_ONLY_MODEL, W2_MODEL
from src.documents.models import DocumentCategory, RawDocument
from src.documents.provider import ProviderResponse, StructuredExtractionClient
from src.orchestration.circuit_breaker import CircuitBreaker, CircuitState

# =============================================================================
# Fixtures
# =============================================================================


class ModelNotFoundError(Exception):
    """Error shaped like a provider's missing-model response."""


@pytest.fixture
def raw_w2() -> RawDocument:
    """Return a raw W-2 submission."""
    return RawDocument(content=b"%PDF-w2", category_hint=DocumentCategory.W2, document_id="w2-1")


@pytest.fixture
def breaker() -> CircuitBreaker:
    """Return an isolated breaker that opens after two failures."""
    return CircuitBreaker("test-provider", fail_max=2, reset_timeout=60)


@pytest.fixture
def text_response(w2_text) -> ProviderResponse:
    """Return what the read model produces."""
    return ProviderResponse(raw_text=w2_text, labeled_fields={"Ignored": 1}, detected_category="W2")


def fail_structured(error: Exception, text_response: ProviderResponse):
    """Provider side effect failing every model except the read model."""

    async def _extract(content: bytes, model_id: str) -> ProviderResponse:
        if model_id == TEXT_ONLY_MODEL:
            return text_response
        raise error

    return _extract


# =============================================================================
# Tests
# =============================================================================


class TestStructuredCall:
    """Tests for the normal structured path."""

    @pytest.mark.asyncio
    async def test_success(self, mock_provider, raw_w2, breaker) -> None:
        client = StructuredExtractionClient(mock_provider, breaker=breaker)
        call = await client.extract(raw_w2)

        mock_provider.extract.assert_awaited_once_with(b"%PDF-w2", W2_MODEL)
        assert call.text_only is False
        assert call.issues == []
        assert call.detected_category == DocumentCategory.W2
        assert call.response.labeled_fields is not None

    @pytest.mark.asyncio
    async def test_unrecognized_category_is_dropped(self, raw_w2, breaker) -> None:
        provider = AsyncMock()
        provider.extract.return_value = ProviderResponse(
            raw_text="text", labeled_fields={}, detected_category="Form 1040"
        )
        client = StructuredExtractionClient(provider, breaker=breaker)
        call = await client.extract(raw_w2)
        assert call.detected_category is None

    @pytest.mark.asyncio
    async def test_category_spelling_is_normalized(self, raw_w2, breaker) -> None:
        provider = AsyncMock()
        provider.extract.return_value = ProviderResponse(
            raw_text="text", labeled_fields={}, detected_category="FORM_1099_INT"
        )
        client = StructuredExtractionClient(provider, breaker=breaker)
        call = await client.extract(raw_w2)
        assert call.detected_category == DocumentCategory.FORM_1099_INT


class TestTextOnlyRetry:
    """Tests for the single text-only fallback."""

    @pytest.mark.asyncio
    async def test_timeout_retries_text_only(self, raw_w2, breaker, text_response) -> None:
        async def _extract(content: bytes, model_id: str) -> ProviderResponse:
            if model_id == TEXT_ONLY_MODEL:
                return text_response
            await asyncio.sleep(1)
            return text_response

        provider = AsyncMock()
        provider.extract.side_effect = _extract
        client = StructuredExtractionClient(provider, timeout_seconds=0.01, breaker=breaker)

        call = await client.extract(raw_w2)

        assert call.text_only is True
        assert call.model.model_id == TEXT_ONLY_MODEL
        assert call.response.labeled_fields is None
        assert call.response.text_only is True
        assert call.response.raw_text == text_response.raw_text
        assert len(call.issues) == 1
        issue = call.issues[0]
        assert issue.kind == IssueKind.PROVIDER_UNAVAILABLE
        assert issue.severity == IssueSeverity.WARNING
        assert "timed out" in issue.message
        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_unavailable_model_retries_text_only(
        self, raw_w2, breaker, text_response
    ) -> None:
        provider = AsyncMock()
        provider.extract.side_effect = fail_structured(
            ModelNotFoundError("model prebuilt-tax.us.w2 missing"), text_response
        )
        client = StructuredExtractionClient(provider, breaker=breaker)

        call = await client.extract(raw_w2)

        assert call.text_only is True
        assert call.issues[0].message.startswith("Structured extraction unavailable:")

    @pytest.mark.asyncio
    async def test_other_failure_retries_text_only(self, raw_w2, breaker, text_response) -> None:
        provider = AsyncMock()
        provider.extract.side_effect = fail_structured(RuntimeError("bad gateway"), text_response)
        client = StructuredExtractionClient(provider, breaker=breaker)

        call = await client.extract(raw_w2)

        assert call.text_only is True
        assert call.issues[0].message == "Structured extraction failed: bad gateway"

    @pytest.mark.asyncio
    async def test_open_circuit_skips_structured_call(
        self, raw_w2, breaker, text_response
    ) -> None:
        provider = AsyncMock()
        provider.extract.side_effect = fail_structured(RuntimeError("down"), text_response)
        client = StructuredExtractionClient(provider, breaker=breaker)

        await client.extract(raw_w2)
        await client.extract(raw_w2)
        assert breaker.state == CircuitState.OPEN

        provider.extract.reset_mock()
        call = await client.extract(raw_w2)

        # Only the read model was called
        provider.extract.assert_awaited_once_with(b"%PDF-w2", TEXT_ONLY_MODEL)
        assert call.text_only is True
        assert call.issues[0].message.startswith("Structured extraction skipped:")

    @pytest.mark.asyncio
    async def test_failed_retry_raises(self, raw_w2, breaker) -> None:
        provider = AsyncMock()
        provider.extract.side_effect = RuntimeError("service down")
        client = StructuredExtractionClient(provider, breaker=breaker)

        with pytest.raises(ProviderError, match="Text-only extraction failed: service down"):
            await client.extract(raw_w2)
        assert provider.extract.await_count == 2


class TestUnavailableMarkers:
    """Tests for unavailable-model detection."""

    def test_default_markers(self, mock_provider, breaker) -> None:
        client = StructuredExtractionClient(mock_provider, breaker=breaker)
        assert client.is_unavailable_error(ModelNotFoundError("x"))
        assert client.is_unavailable_error(RuntimeError("Resource not found"))
        assert not client.is_unavailable_error(RuntimeError("bad gateway"))

    def test_custom_markers(self, mock_provider, breaker) -> None:
        client = StructuredExtractionClient(
            mock_provider, breaker=breaker, unavailable_markers=["deprecated"]
        )
        assert client.is_unavailable_error(RuntimeError("Model DEPRECATED"))
        assert not client.is_unavailable_error(RuntimeError("Resource not found"))

    def test_error_code_is_checked(self, mock_provider, breaker) -> None:
        error = RuntimeError("request failed")
        error.code = "NotFound"
        client = StructuredExtractionClient(mock_provider, breaker=breaker)
        assert client.is_unavailable_error(error)
