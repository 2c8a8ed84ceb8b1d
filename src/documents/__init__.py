"""Tax document field extraction.

This package provides:
- Document and field models with identifier validation
- Keyword classifier for W-2 and 1099 variants
- Structured reading of provider labeled fields through alias tables
- Text-pattern extraction and multi-entity disambiguation
- Reconciliation of the structured and text readings
- Validation, confidence scoring and the async extraction pipeline
"""

from src.documents.classifier import ClassificationResult, classify_text, resolve_category
from src.documents.confidence import ConfidenceResult, calculate_confidence, needs_review
from src.documents.entities import (
    EntitySelection,
    SelectionReason,
    detect_entities,
    select_primary_entity,
)
from src.documents.extractor import (
    BatchExtraction,
    ExtractionResult,
    extract_document,
    extract_documents,
    process_provider_response,
)
from src.documents.issues import (
    ExtractionIssue,
    IssueKind,
    IssueSeverity,
    ProviderError,
    ProviderUnavailableError,
)
from src.documents.models import (
    ConfidenceLevel,
    DocumentCategory,
    EntityRecord,
    ExtractedDocument,
    ExtractionField,
    FieldKind,
    FieldSource,
    RawDocument,
    UnknownCategoryError,
    validate_ein,
    validate_ssn,
)
from src.documents.observability import ObservabilitySink, RecordingSink
from src.documents.provider import (
    ProviderResponse,
    StructuredExtractionClient,
    StructuredProvider,
)
from src.documents.reconciliation import OutcomeKind, ReconciliationResult, reconcile
from src.documents.validation import DocumentValidator, ValidationResult

__all__ = [
    # Models
    "ConfidenceLevel",
    "DocumentCategory",
    "EntityRecord",
    "ExtractedDocument",
    "ExtractionField",
    "FieldKind",
    "FieldSource",
    "RawDocument",
    "UnknownCategoryError",
    "validate_ein",
    "validate_ssn",
    # Classification
    "ClassificationResult",
    "classify_text",
    "resolve_category",
    # Entities
    "EntitySelection",
    "SelectionReason",
    "detect_entities",
    "select_primary_entity",
    # Reconciliation
    "OutcomeKind",
    "ReconciliationResult",
    "reconcile",
    # Issues
    "ExtractionIssue",
    "IssueKind",
    "IssueSeverity",
    "ProviderError",
    "ProviderUnavailableError",
    # Validation and confidence
    "ConfidenceResult",
    "DocumentValidator",
    "ValidationResult",
    "calculate_confidence",
    "needs_review",
    # Provider
    "ProviderResponse",
    "StructuredExtractionClient",
    "StructuredProvider",
    # Observability
    "ObservabilitySink",
    "RecordingSink",
    # Pipeline
    "BatchExtraction",
    "ExtractionResult",
    "extract_document",
    "extract_documents",
    "process_provider_response",
]
