"""Model resolution helpers for the structured-extraction provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

import structlog

from src.documents.models import DocumentCategory

logger = structlog.get_logger()

W2_MODEL: Final[str] = "prebuilt-tax.us.w2"
FORM_1099_MODEL: Final[str] = "prebuilt-tax.us.1099"
GENERAL_DOCUMENT_MODEL: Final[str] = "prebuilt-document"
TEXT_ONLY_MODEL: Final[str] = "prebuilt-read"


@dataclass(frozen=True)
class ProviderModelSpec:
    """Resolved provider model for one extraction call."""

    model_id: str
    text_only: bool = False


_CATEGORY_MODELS: Final[dict[DocumentCategory, str]] = {
    DocumentCategory.W2: W2_MODEL,
    DocumentCategory.FORM_1099_INT: FORM_1099_MODEL,
    DocumentCategory.FORM_1099_DIV: FORM_1099_MODEL,
    DocumentCategory.FORM_1099_MISC: FORM_1099_MODEL,
    DocumentCategory.FORM_1099_NEC: FORM_1099_MODEL,
}


def resolve_provider_model(
    category: DocumentCategory, *, text_only: bool = False
) -> ProviderModelSpec:
    """Pick the provider model for a category hint.

    Text-only mode always uses the read model, which returns recognized
    text without labeled fields.
    """
    if text_only:
        return ProviderModelSpec(model_id=TEXT_ONLY_MODEL, text_only=True)

    model_id = _CATEGORY_MODELS.get(category)
    if model_id is None:
        logger.info(
            "resolved_model_fallback",
            category=category.value,
            resolved_model=GENERAL_DOCUMENT_MODEL,
        )
        return ProviderModelSpec(model_id=GENERAL_DOCUMENT_MODEL)
    return ProviderModelSpec(model_id=model_id)


__all__ = [
    "FORM_1099_MODEL",
    "GENERAL_DOCUMENT_MODEL",
    "ProviderModelSpec",
    "TEXT_ONLY_MODEL",
    "W2_MODEL",
    "resolve_provider_model",
]
