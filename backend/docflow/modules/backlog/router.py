from __future__ import annotations

from fastapi import APIRouter, Depends

from docflow.core.dependencies import get_extraction_client
from docflow.engine.client import ExtractionClient
from docflow.modules.backlog import service
from docflow.modules.backlog.schemas import (
    AnalyzeBacklogRequest,
    BacklogAnswer,
    BacklogCompletenessReport,
    BrainstormBacklog,
    BrainstormRequest,
    ChatWithBacklogRequest,
)

router = APIRouter(prefix="/backlog", tags=["backlog"])


@router.post("/completeness", response_model=BacklogCompletenessReport)
async def analyze_backlog_completeness(
    body: AnalyzeBacklogRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> BacklogCompletenessReport:
    """Check user story, goal and acceptance criteria of every backlog item.

    The response holds one entry per submitted id; items the engine skipped
    come back with ``processed: false``.
    """
    return await service.analyze_backlog_completeness(body, client)


@router.post("/chat", response_model=BacklogAnswer)
async def chat_with_backlog(
    body: ChatWithBacklogRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> BacklogAnswer:
    return await service.chat_with_backlog(body, client)


@router.post("/brainstorm", response_model=BrainstormBacklog)
async def generate_backlog_from_brainstorm(
    body: BrainstormRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> BrainstormBacklog:
    """Turn a brainstorm PDF into an ICE-scored backlog."""
    return await service.generate_backlog_from_brainstorm(body, client)
