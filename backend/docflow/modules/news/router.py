from __future__ import annotations

from fastapi import APIRouter, Depends

from docflow.core.dependencies import get_extraction_client, get_news_source
from docflow.engine.client import ExtractionClient
from docflow.modules.news import service
from docflow.modules.news.schemas import AnalyzeNewsFeedRequest, NewsFeedResult
from docflow.modules.news.sources import NewsSource

router = APIRouter(prefix="/news", tags=["news"])


@router.post("/feed", response_model=NewsFeedResult)
async def analyze_news_feed(
    body: AnalyzeNewsFeedRequest,
    client: ExtractionClient = Depends(get_extraction_client),
    source: NewsSource = Depends(get_news_source),
) -> NewsFeedResult:
    """Assess the latest news for relevance and sentiment; only relevant items are returned."""
    return await service.analyze_news_feed(body, client, source)
