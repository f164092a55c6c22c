from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Sentiment = Literal["positive", "negative", "neutral"]


# --- Source output ---


class RawNewsArticle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    link: str | None = None
    source: str
    publish_date: str = Field(..., description="YYYY-MM-DD")
    full_text: str = Field(..., description="Full text or a substantial snippet")


# --- Engine output ---


class NewsAssessment(BaseModel):
    is_relevant: bool
    summary: str
    sentiment: Sentiment
    negativity_reason: str | None = None


class NewsPromptInput(BaseModel):
    id: str
    title: str
    source: str
    publish_date: str
    link: str
    full_text: str


# --- Public API ---


class AnalyzeNewsFeedRequest(BaseModel):
    keywords: list[str] | None = Field(None, description="Defaults to the configured keywords")
    max_items: int | None = Field(None, ge=1, le=100)


class ProcessedNewsItem(BaseModel):
    id: str
    title: str
    summary: str
    source: str
    publish_date: str
    link: str | None = None
    sentiment: Sentiment
    negativity_reason: str | None = None
    is_relevant: bool


class NewsFeedResult(BaseModel):
    processed_news: list[ProcessedNewsItem]
    analyzed_count: int = 0
    failed_count: int = 0
