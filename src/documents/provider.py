"""Structured-extraction provider contract and resilient client.

The provider is an external forms-understanding service. Anything with an
async `extract(document_bytes, model_id)` returning a ProviderResponse can
play that role; tests use AsyncMock doubles.

StructuredExtractionClient wraps every call with:
- a bounded timeout (settings.provider_timeout_seconds),
- a circuit breaker shared across calls,
- one retry in text-only mode when the structured call fails for any
  reason (timeout, unavailable model, open circuit, other provider error).

A failure of the text-only retry is terminal and raises ProviderError.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
from pydantic import BaseModel

from src.core.config import settings
from src.documents.issues import (
    ExtractionIssue,
    IssueKind,
    IssueSeverity,
    ProviderError,
    ProviderUnavailableError,
)
from src.documents.model_resolver import ProviderModelSpec, resolve_provider_model
from src.documents.models import DocumentCategory, RawDocument, UnknownCategoryError
from src.orchestration.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerError,
    get_circuit_breaker,
)

logger = structlog.get_logger()

PROVIDER_BREAKER_NAME = "structured-provider"


class ProviderResponse(BaseModel):
    """What the provider returns for one document.

    Attributes:
        raw_text: Full recognized text stream.
        labeled_fields: Provider field map (name -> raw value); None when the
            provider produced no labeled data.
        detected_category: Category string the provider inferred, if any.
        text_only: True when produced by the text-only read model.
    """

    raw_text: str = ""
    labeled_fields: dict[str, Any] | None = None
    detected_category: str | None = None
    text_only: bool = False


class StructuredProvider(Protocol):
    """Engine-facing provider interface."""

    async def extract(self, document_bytes: bytes, model_id: str) -> ProviderResponse: ...


@dataclass
class ProviderCallResult:
    """Provider response plus what it took to get it.

    Attributes:
        response: Response used downstream (labeled fields cleared in
            text-only mode).
        model: Model that produced the response.
        detected_category: Provider's category, validated against the
            closed enumeration (None when absent or unrecognized).
        issues: PROVIDER_UNAVAILABLE issues raised on the way.
    """

    response: ProviderResponse
    model: ProviderModelSpec
    detected_category: DocumentCategory | None = None
    issues: list[ExtractionIssue] = field(default_factory=list)

    @property
    def text_only(self) -> bool:
        return self.model.text_only


class StructuredExtractionClient:
    """Calls the provider with timeout, circuit breaker and text-only retry.

    Example:
        >>> client = StructuredExtractionClient(provider)
        >>> call = await client.extract(raw_document)
        >>> call.response.raw_text[:40]
    """

    def __init__(
        self,
        provider: StructuredProvider,
        *,
        timeout_seconds: float | None = None,
        breaker: CircuitBreaker | None = None,
        unavailable_markers: list[str] | None = None,
    ):
        self._provider = provider
        self._timeout = (
            timeout_seconds if timeout_seconds is not None else settings.provider_timeout_seconds
        )
        self._breaker = breaker or get_circuit_breaker(PROVIDER_BREAKER_NAME)
        self._markers = (
            unavailable_markers
            if unavailable_markers is not None
            else settings.provider_unavailable_markers
        )

    def is_unavailable_error(self, exc: BaseException) -> bool:
        """True when an error's message or code names an unavailable model."""
        haystack = " ".join(
            str(part) for part in (exc, getattr(exc, "code", None), type(exc).__name__) if part
        )
        return any(marker.lower() in haystack.lower() for marker in self._markers)

    async def _call(self, content: bytes, model: ProviderModelSpec) -> ProviderResponse:
        try:
            return await asyncio.wait_for(
                self._provider.extract(content, model.model_id),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            raise ProviderUnavailableError(
                f"Provider timed out after {self._timeout}s using {model.model_id}"
            ) from exc

    async def extract(self, raw: RawDocument) -> ProviderCallResult:
        """Run structured extraction, falling back to text-only mode once.

        Raises:
            ProviderError: If the text-only retry also fails.
        """
        model = resolve_provider_model(raw.category_hint)
        issues: list[ExtractionIssue] = []

        try:
            response = await self._breaker.call(self._call, raw.content, model)
        except CircuitBreakerError as exc:
            issues.append(self._unavailable_issue(f"Structured extraction skipped: {exc}"))
        except ProviderUnavailableError as exc:
            issues.append(self._unavailable_issue(f"Structured extraction unavailable: {exc}"))
        except Exception as exc:
            reason = "unavailable" if self.is_unavailable_error(exc) else "failed"
            logger.warning(
                "provider_structured_call_failed",
                model=model.model_id,
                reason=reason,
                error=str(exc),
            )
            issues.append(self._unavailable_issue(f"Structured extraction {reason}: {exc}"))
        else:
            return ProviderCallResult(
                response=response,
                model=model,
                detected_category=self._validated_category(response.detected_category),
            )

        text_model = resolve_provider_model(raw.category_hint, text_only=True)
        logger.info("provider_text_only_retry", model=text_model.model_id)
        try:
            response = await self._call(raw.content, text_model)
        except Exception as exc:
            logger.error("provider_text_only_failed", model=text_model.model_id, error=str(exc))
            raise ProviderError(f"Text-only extraction failed: {exc}") from exc

        # Text-only mode never carries labeled fields.
        response = response.model_copy(update={"labeled_fields": None, "text_only": True})
        return ProviderCallResult(
            response=response,
            model=text_model,
            detected_category=self._validated_category(response.detected_category),
            issues=issues,
        )

    @staticmethod
    def _unavailable_issue(message: str) -> ExtractionIssue:
        return ExtractionIssue(IssueKind.PROVIDER_UNAVAILABLE, IssueSeverity.WARNING, message)

    @staticmethod
    def _validated_category(value: str | None) -> DocumentCategory | None:
        if not value:
            return None
        try:
            return DocumentCategory.parse(value)
        except UnknownCategoryError:
            logger.warning("provider_category_rejected", detected_category=value)
            return None


__all__ = [
    "PROVIDER_BREAKER_NAME",
    "ProviderCallResult",
    "ProviderResponse",
    "StructuredExtractionClient",
    "StructuredProvider",
]
