from __future__ import annotations

from fastapi import APIRouter, Depends

from docflow.core.dependencies import get_extraction_client
from docflow.engine.client import ExtractionClient
from docflow.modules.documents import service
from docflow.modules.documents.schemas import (
    AnalyzeDocumentRequest,
    ChatAnswer,
    ChatWithDocumentRequest,
    DocumentEvents,
    DocumentSummary,
)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/analyze", response_model=DocumentSummary)
async def analyze_document(
    body: AnalyzeDocumentRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> DocumentSummary:
    """Summarize a document and identify its type."""
    return await service.analyze_document(body, client)


@router.post("/events", response_model=DocumentEvents)
async def extract_document_events(
    body: AnalyzeDocumentRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> DocumentEvents:
    """Extract dated events from a document."""
    return await service.extract_document_events(body, client)


@router.post("/chat", response_model=ChatAnswer)
async def chat_with_document(
    body: ChatWithDocumentRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> ChatAnswer:
    """Answer a question using only the supplied document."""
    return await service.chat_with_document(body, client)
