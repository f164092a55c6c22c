from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from urllib.parse import urlparse

import feedparser
import httpx
import structlog

from docflow.core.config import Settings, settings
from docflow.modules.news.corpus import NewsCorpus, build_simulated_corpus
from docflow.modules.news.schemas import RawNewsArticle

logger = structlog.get_logger()

DEFAULT_FEED_TITLE = "RSS"
UNTITLED = "Untitled"


class NewsSource(ABC):
    """Abstract base class for news sources."""

    @abstractmethod
    async def fetch(self) -> list[RawNewsArticle]:
        """Return the current articles, unfiltered."""
        ...


class SimulatedNewsSource(NewsSource):
    """Serves the read-only simulated corpus."""

    def __init__(self, corpus: NewsCorpus):
        self.corpus = corpus

    async def fetch(self) -> list[RawNewsArticle]:
        return list(self.corpus.articles)


def _valid_link(link: str | None) -> str | None:
    if not link or not isinstance(link, str):
        return None
    parsed = urlparse(link)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return link


def _parse_date(entry: dict) -> str:
    published = entry.get("published_parsed")
    if published:
        try:
            return datetime(*published[:6]).date().isoformat()
        except (TypeError, ValueError):
            pass
    return date.today().isoformat()


def truncate_snippet(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3] + "..."


class RssNewsSource(NewsSource):
    """Reads an RSS feed; falls back to the simulated corpus when the feed is unusable."""

    def __init__(
        self,
        url: str,
        fallback: NewsCorpus,
        *,
        timeout_s: float | None = None,
        snippet_max_chars: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.fallback = fallback
        self.timeout_s = timeout_s or settings.news_fetch_timeout_s
        self.snippet_max_chars = snippet_max_chars or settings.news_snippet_max_chars
        self.transport = transport

    async def fetch(self) -> list[RawNewsArticle]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, follow_redirects=True, transport=self.transport
            ) as client:
                response = await client.get(self.url)
                response.raise_for_status()
            feed = feedparser.parse(response.content)
            if feed.bozo and not feed.entries:
                raise ValueError(f"Unreadable feed: {feed.get('bozo_exception')}")
        except (httpx.HTTPError, ValueError):
            logger.warning("news_source_fallback", url=self.url, exc_info=True)
            return list(self.fallback.articles)

        articles = self._to_articles(feed)
        logger.info("rss_news_collected", url=self.url, total=len(articles))
        return articles

    def _to_articles(self, feed: feedparser.FeedParserDict) -> list[RawNewsArticle]:
        source = feed.feed.get("title") or DEFAULT_FEED_TITLE
        articles: list[RawNewsArticle] = []
        seen_ids: set[str] = set()

        for entry in feed.entries:
            link = entry.get("link")
            article_id = entry.get("id") or link or uuid.uuid4().hex
            if article_id in seen_ids:
                continue
            seen_ids.add(article_id)

            title = entry.get("title") or UNTITLED
            articles.append(
                RawNewsArticle(
                    id=article_id,
                    title=title,
                    link=_valid_link(link),
                    source=source,
                    publish_date=_parse_date(entry),
                    full_text=truncate_snippet(entry.get("summary") or title, self.snippet_max_chars),
                )
            )
        return articles


def build_news_source(config: Settings = settings) -> NewsSource:
    """Factory: build the configured news source around a fresh simulated corpus."""
    corpus = build_simulated_corpus()
    kind = config.news_source.lower()
    if kind == "simulated":
        return SimulatedNewsSource(corpus)
    if kind == "rss":
        return RssNewsSource(
            config.news_rss_url,
            corpus,
            timeout_s=config.news_fetch_timeout_s,
            snippet_max_chars=config.news_snippet_max_chars,
        )
    raise ValueError(f"Unknown news source: {config.news_source}")
