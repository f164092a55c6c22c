"""Document flows: analysis, dated events and question answering."""

from __future__ import annotations

import asyncio

import structlog

from docflow.core.config import settings
from docflow.engine.client import ExtractionClient
from docflow.engine.retry import policy_for
from docflow.engine.runner import Sleep, extract_with_retry
from docflow.modules.documents.decoder import DocumentDecoder
from docflow.modules.documents.prompts import (
    ANALYZE_DOCUMENT,
    CHAT_WITH_DOCUMENT,
    EXTRACT_DOCUMENT_EVENTS,
)
from docflow.modules.documents.schemas import (
    AnalyzeDocumentRequest,
    ChatAnswer,
    ChatWithDocumentRequest,
    DocumentEvents,
    DocumentPayload,
    DocumentPromptInput,
    DocumentQuestionPromptInput,
    DocumentReference,
    DocumentSummary,
)
from docflow.modules.documents.shaper import shape_document, shape_request

logger = structlog.get_logger()


def _decoder() -> DocumentDecoder:
    return DocumentDecoder(max_size_bytes=settings.max_document_size_bytes)


def _optional_document(encoded: str | None, file_name: str | None) -> DocumentPayload:
    """Decode ``encoded`` if given; otherwise an explicit no-content payload."""
    if not encoded:
        return shape_document(None, file_name)
    return shape_document(_decoder().decode_encoded(encoded), file_name)


async def analyze_document(
    request: AnalyzeDocumentRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> DocumentSummary:
    document = _optional_document(request.document, request.file_name)
    logger.info("analyze_document", file_name=request.file_name, has_content=document.has_content)
    return await extract_with_retry(
        client,
        ANALYZE_DOCUMENT,
        shape_request(document),
        DocumentPromptInput,
        DocumentSummary,
        policy=policy_for("document"),
        sleep=sleep,
    )


async def extract_document_events(
    request: AnalyzeDocumentRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> DocumentEvents:
    document = _optional_document(request.document, request.file_name)
    result = await extract_with_retry(
        client,
        EXTRACT_DOCUMENT_EVENTS,
        shape_request(document),
        DocumentPromptInput,
        DocumentEvents,
        policy=policy_for("document"),
        sleep=sleep,
    )
    logger.info("document_events_extracted", file_name=request.file_name, count=len(result.events))
    return result


async def chat_with_document(
    request: ChatWithDocumentRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> ChatAnswer:
    """Answer a question from the document alone.

    A document carrier is required. When the encoded document has a type the
    engine cannot read, supplied ``document_text`` is used instead.
    """
    reference = DocumentReference(
        encoded_payload=request.document,
        raw_text=request.document_text or None,
        file_name=request.file_name,
    )
    decoded = _decoder().decode(reference, text_fallback=True)
    document = shape_document(decoded, request.file_name)
    return await extract_with_retry(
        client,
        CHAT_WITH_DOCUMENT,
        shape_request(document, user_question=request.user_question),
        DocumentQuestionPromptInput,
        ChatAnswer,
        policy=policy_for("interactive", retry_no_output=True),
        sleep=sleep,
    )
