#!/usr/bin/env python3
"""News feed runner.

Fetches articles from the configured source (simulated corpus or RSS),
assesses each matching article with the inference engine and prints the
relevant ones as JSON.

Usage:
    python -m scripts.run_news_feed
    python -m scripts.run_news_feed --source rss --max-items 5
    python -m scripts.run_news_feed --keywords "ДОМ.РФ" "ипотека"
    python -m scripts.run_news_feed --dry-run
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add backend to path for imports
_backend = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_backend))

# Load .env before importing docflow modules
from dotenv import load_dotenv
load_dotenv(_backend / ".env")

import structlog

from docflow.core.config import settings
from docflow.core.logging import configure_logging
from docflow.engine.client import ExtractionClient
from docflow.engine.gateway import build_engine
from docflow.modules.news.schemas import AnalyzeNewsFeedRequest
from docflow.modules.news.service import analyze_news_feed, filter_articles
from docflow.modules.news.sources import build_news_source

logger = structlog.get_logger()


async def run(keywords: list[str] | None, max_items: int | None, source_kind: str | None, dry_run: bool) -> None:
    config = settings.model_copy(update={"news_source": source_kind}) if source_kind else settings
    source = build_news_source(config)

    if dry_run:
        articles = filter_articles(await source.fetch(), keywords or settings.news_default_keywords)
        for article in articles[: max_items or settings.news_default_max_items]:
            logger.info("dry_run_article", id=article.id, title=article.title, source=article.source)
        logger.info("dry_run_complete", total=len(articles))
        return

    client = ExtractionClient(build_engine())
    result = await analyze_news_feed(
        AnalyzeNewsFeedRequest(keywords=keywords, max_items=max_items),
        client,
        source,
    )
    print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
    logger.info(
        "news_feed_complete",
        relevant=len(result.processed_news),
        analyzed=result.analyzed_count,
        failed=result.failed_count,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Analyze the news feed for relevance and sentiment")
    parser.add_argument("--keywords", nargs="+", help="Keywords to filter articles by")
    parser.add_argument("--max-items", type=int, help="Maximum number of articles to analyze")
    parser.add_argument(
        "--source",
        choices=["simulated", "rss"],
        help="Override the configured news source",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the selected articles without calling the engine",
    )
    parser.add_argument("--debug", action="store_true", help="Console log output")
    args = parser.parse_args()

    configure_logging(args.debug or settings.debug)
    asyncio.run(run(args.keywords, args.max_items, args.source, args.dry_run))


if __name__ == "__main__":
    main()
