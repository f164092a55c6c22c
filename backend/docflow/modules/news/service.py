"""News feed analysis: keyword filter, then one engine call per article."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

import structlog

from docflow.core.config import settings
from docflow.engine.client import ExtractionClient
from docflow.engine.fanout import FanOutProcessor
from docflow.engine.prompts import PromptTemplate, register_template
from docflow.engine.retry import policy_for
from docflow.engine.runner import Sleep, extract_with_retry
from docflow.modules.news.schemas import (
    AnalyzeNewsFeedRequest,
    NewsAssessment,
    NewsFeedResult,
    NewsPromptInput,
    ProcessedNewsItem,
    RawNewsArticle,
)
from docflow.modules.news.sources import NewsSource

logger = structlog.get_logger()

FAILED_ITEM_SUMMARY = "The news item could not be processed."
NO_LINK = "(none)"

NEWS_ITEM = register_template(
    PromptTemplate(
        id="assess_news_item",
        system="You monitor the press for Bank DOM.RF.",
        instructions="""\
Analyze the news item below. Decide whether it directly concerns Bank DOM.RF or \
affiliated entities (for example DOM.RF itself).

Title: {title}
Source: {source}
Published: {publish_date}
Link: {link}
Text:
{full_text}

Provide:
1. is_relevant: true if the item concerns Bank DOM.RF (mentions of "Банк ДОМ.РФ", \
"ДОМ.РФ" or their activities), otherwise false.
2. summary: one or two sentences. For an irrelevant item, say that it does not \
concern Bank DOM.RF.
3. sentiment: "positive", "negative" or "neutral", toward Bank DOM.RF when \
relevant, otherwise the overall tone.
4. negativity_reason: only when the item is relevant AND negative, one sentence \
explaining what is negative. Otherwise leave it empty.

Write summary and negativity_reason in {language}.
""",
    )
)


def filter_articles(
    articles: Iterable[RawNewsArticle],
    keywords: Sequence[str],
) -> list[RawNewsArticle]:
    """Case-insensitive keyword match on title or text. No keywords keeps everything."""
    lowered = [keyword.lower() for keyword in keywords if keyword.strip()]
    if not lowered:
        return list(articles)
    return [
        article
        for article in articles
        if any(kw in article.title.lower() or kw in article.full_text.lower() for kw in lowered)
    ]


def _prompt_input(article: RawNewsArticle) -> NewsPromptInput:
    return NewsPromptInput(
        id=article.id,
        title=article.title,
        source=article.source,
        publish_date=article.publish_date,
        link=article.link or NO_LINK,
        full_text=article.full_text,
    )


def merge_assessment(article: RawNewsArticle, assessment: NewsAssessment) -> ProcessedNewsItem:
    keep_reason = assessment.is_relevant and assessment.sentiment == "negative"
    return ProcessedNewsItem(
        id=article.id,
        title=article.title,
        summary=assessment.summary,
        source=article.source,
        publish_date=article.publish_date,
        link=article.link,
        sentiment=assessment.sentiment,
        negativity_reason=(assessment.negativity_reason or None) if keep_reason else None,
        is_relevant=assessment.is_relevant,
    )


def failed_item(article: RawNewsArticle, exc: Exception) -> ProcessedNewsItem:
    return ProcessedNewsItem(
        id=article.id,
        title=article.title,
        summary=FAILED_ITEM_SUMMARY,
        source=article.source,
        publish_date=article.publish_date,
        link=article.link,
        sentiment="neutral",
        is_relevant=False,
    )


async def analyze_news_feed(
    request: AnalyzeNewsFeedRequest,
    client: ExtractionClient,
    source: NewsSource,
    *,
    sleep: Sleep = asyncio.sleep,
) -> NewsFeedResult:
    keywords = request.keywords if request.keywords is not None else settings.news_default_keywords
    max_items = request.max_items or settings.news_default_max_items

    fetched = await source.fetch()
    articles = filter_articles(fetched, keywords)[:max_items]
    logger.info("news_feed_selected", fetched=len(fetched), selected=len(articles), keywords=keywords)
    if not articles:
        return NewsFeedResult(processed_news=[])

    policy = policy_for("news_item")

    async def assess(article: RawNewsArticle) -> ProcessedNewsItem:
        assessment = await extract_with_retry(
            client,
            NEWS_ITEM,
            _prompt_input(article),
            NewsPromptInput,
            NewsAssessment,
            policy=policy,
            sleep=sleep,
        )
        return merge_assessment(article, assessment)

    processor = FanOutProcessor(assess, failed_item, name="news_feed")
    outcomes = await processor.run(articles)

    processed = [outcomes[article.id].result for article in articles]
    relevant = [item for item in processed if item.is_relevant]
    failed = sum(1 for outcome in outcomes.values() if outcome.failed)
    logger.info("news_feed_analyzed", analyzed=len(processed), relevant=len(relevant), failed=failed)
    return NewsFeedResult(processed_news=relevant, analyzed_count=len(processed), failed_count=failed)
