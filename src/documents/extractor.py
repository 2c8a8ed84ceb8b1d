"""Document extraction pipeline.

Turns a RawDocument into a reconciled ExtractedDocument:

1. Provider call (structured, or text-only after a failure)
2. Classification of the raw text; a recognized category overrides the hint
3. Structured read of the provider's labeled fields
4. Text-pattern extraction (always, whenever raw text exists)
5. Reconciliation of the two readings
6. Validation, completeness check and confidence scoring

Issues are collected on the result rather than raised; only a terminal
provider failure propagates (as ProviderError).

Example:
    >>> from src.documents.extractor import extract_document
    >>> client = StructuredExtractionClient(provider)
    >>> result = await extract_document(raw, client)
    >>> print(result.document.amount("wages"), result.needs_review)
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from src.core.config import settings
from src.core.logging import category_ctx, document_id_ctx
from src.documents.classifier import ClassificationResult, classify_text, resolve_category
from src.documents.confidence import ConfidenceResult, needs_review, score_document
from src.documents.issues import ExtractionIssue, IssueKind, IssueSeverity, ProviderError
from src.documents.models import DocumentCategory, ExtractedDocument, RawDocument
from src.documents.observability import ObservabilitySink
from src.documents.provider import ProviderResponse, StructuredExtractionClient
from src.documents.reconciliation import ReconciliationResult, get_critical_fields, reconcile
from src.documents.structured_reader import StructuredReadStatus, read_structured_fields
from src.documents.text_extractor import extract_text_fields
from src.documents.validation import (
    DocumentValidator,
    ValidationResult,
    validate_field_formats,
)

logger = structlog.get_logger()


@dataclass
class ExtractionResult:
    """Everything the pipeline learned about one document.

    Attributes:
        document: Reconciled field map and resolved category.
        classification: Classifier verdict on the raw text.
        structured_status: Whether labeled fields were available and useful.
        reconciliation: Per-field reconciliation outcomes.
        validation: Mapping-readiness validation.
        confidence: Document confidence score.
        issues: Every issue raised, in pipeline order.
        text_only: True when the provider ran in text-only mode.
    """

    document: ExtractedDocument
    classification: ClassificationResult
    structured_status: StructuredReadStatus
    reconciliation: ReconciliationResult
    validation: ValidationResult
    confidence: ConfidenceResult
    issues: list[ExtractionIssue] = field(default_factory=list)
    text_only: bool = False

    @property
    def needs_review(self) -> bool:
        """True when a human should confirm the values before they are committed."""
        return needs_review(self.confidence, self.issues)

    @property
    def is_blocked(self) -> bool:
        """True when an ERROR issue prevents mapping."""
        return any(issue.is_blocking for issue in self.issues)

    def issues_of(self, kind: IssueKind) -> list[ExtractionIssue]:
        return [issue for issue in self.issues if issue.kind == kind]


def _resolve(
    hint: DocumentCategory,
    classification: ClassificationResult,
    detected: DocumentCategory | None,
) -> DocumentCategory:
    # Classifier first, then the provider's own guess, then the hint.
    if classification.category == DocumentCategory.UNKNOWN and detected is not None:
        return detected
    return resolve_category(hint, classification)


def process_provider_response(
    raw: RawDocument,
    response: ProviderResponse,
    *,
    detected_category: DocumentCategory | None = None,
    target_name: str | None = None,
    sink: ObservabilitySink | None = None,
    issues: Sequence[ExtractionIssue] = (),
) -> ExtractionResult:
    """Run every post-provider stage on a provider response.

    Args:
        raw: Submitted document.
        response: Provider output (raw text plus optional labeled fields).
        detected_category: Provider's validated category guess, if any.
        target_name: Person the caller expects; overrides raw.target_name.
        sink: Receives corrections and decisions.
        issues: Issues already raised by the provider call.

    Returns:
        ExtractionResult for the document.
    """
    sink = sink or ObservabilitySink()
    collected = list(issues)

    classification = classify_text(response.raw_text)
    category = _resolve(raw.category_hint, classification, detected_category)
    category_token = category_ctx.set(category.value)
    try:
        if category != raw.category_hint:
            collected.append(
                ExtractionIssue(
                    IssueKind.CLASSIFICATION_MISMATCH,
                    IssueSeverity.INFO,
                    f"Category corrected from {raw.category_hint.value} to {category.value}",
                )
            )
            sink.decision(
                "category_corrected",
                hint=raw.category_hint.value,
                category=category.value,
                confidence=classification.confidence,
            )

        structured = read_structured_fields(response.labeled_fields, category)
        text = extract_text_fields(
            response.raw_text,
            category,
            target_name=target_name or raw.target_name,
        )
        if text.selection is not None and len(text.entities) > 1:
            sink.decision(
                "primary_entity_selected",
                name=text.selection.primary.name,
                index=text.selection.primary_index,
                reason=text.selection.reason.value,
                candidates=[record.name for record in text.entities],
            )

        reconciliation = reconcile(structured.fields, text.fields, category, sink=sink)

        document = ExtractedDocument(
            document_id=raw.document_id,
            category=category,
            category_hint=raw.category_hint,
            fields=reconciliation.fields,
            raw_text=response.raw_text,
            entities=text.entities,
            primary_entity_index=text.primary_index,
        )

        missing = [name for name in get_critical_fields(category) if not document.has(name)]
        for name in missing:
            collected.append(
                ExtractionIssue(
                    IssueKind.EXTRACTION_INCOMPLETE,
                    IssueSeverity.WARNING,
                    f"Critical field {name} not found by either source",
                    (name,),
                )
            )

        validator = DocumentValidator()
        validation = validator.validate_for_mapping(document)
        collected.extend(validation.issues)
        if category == DocumentCategory.W2:
            collected.extend(validator.validate_w2_consistency(document).issues)

        confidence = score_document(
            document, classification.confidence, validate_field_formats(document)
        )

        result = ExtractionResult(
            document=document,
            classification=classification,
            structured_status=structured.status,
            reconciliation=reconciliation,
            validation=validation,
            confidence=confidence,
            issues=collected,
            text_only=response.text_only,
        )
        sink.decision(
            "document_extracted",
            category=category.value,
            structured_status=structured.status.value,
            field_count=len(document.fields),
            confidence=confidence.level.value,
            needs_review=result.needs_review,
        )
        return result
    finally:
        category_ctx.reset(category_token)


async def extract_document(
    raw: RawDocument,
    client: StructuredExtractionClient,
    *,
    target_name: str | None = None,
    sink: ObservabilitySink | None = None,
) -> ExtractionResult:
    """Extract one document end to end.

    Args:
        raw: Submitted document.
        client: Provider client (timeout, breaker, text-only retry).
        target_name: Person the caller expects the document to belong to.
        sink: Receives corrections and decisions.

    Returns:
        ExtractionResult; partial data comes back with issues attached.

    Raises:
        ProviderError: If the provider failed even in text-only mode.
    """
    document_token = document_id_ctx.set(raw.document_id)
    category_token = category_ctx.set(raw.category_hint.value)
    try:
        call = await client.extract(raw)
        return process_provider_response(
            raw,
            call.response,
            detected_category=call.detected_category,
            target_name=target_name,
            sink=sink,
            issues=call.issues,
        )
    finally:
        category_ctx.reset(category_token)
        document_id_ctx.reset(document_token)


@dataclass
class BatchExtraction:
    """Results of extracting several documents.

    Attributes:
        results: Successful extractions in submission order.
        failures: Terminal provider failures keyed by document_id.
    """

    results: list[ExtractionResult] = field(default_factory=list)
    failures: dict[str, ProviderError] = field(default_factory=dict)


async def extract_documents(
    raws: Sequence[RawDocument],
    client: StructuredExtractionClient,
    *,
    concurrency: int | None = None,
    sink: ObservabilitySink | None = None,
) -> BatchExtraction:
    """Extract documents concurrently.

    Each document is independent; at most `concurrency` provider calls run
    at once (default settings.extraction_concurrency).
    """
    semaphore = asyncio.Semaphore(max(1, concurrency or settings.extraction_concurrency))

    async def _run(raw: RawDocument) -> ExtractionResult:
        async with semaphore:
            return await extract_document(raw, client, sink=sink)

    tasks = [asyncio.create_task(_run(raw)) for raw in raws]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    batch = BatchExtraction()
    for raw, outcome in zip(raws, outcomes, strict=True):
        if isinstance(outcome, ProviderError):
            logger.error("extraction_failed", document_id=raw.document_id, error=str(outcome))
            batch.failures[raw.document_id] = outcome
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        batch.results.append(outcome)
    return batch


__all__ = [
    "BatchExtraction",
    "ExtractionResult",
    "extract_document",
    "extract_documents",
    "process_provider_response",
]
