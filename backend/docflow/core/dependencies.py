"""FastAPI dependencies.

The engine and the news source are built once in the app lifespan and kept
on ``app.state``. When the lifespan did not run (ASGI transports in tests do
not run it) they are built on first use.
"""

from __future__ import annotations

from fastapi import Depends, Request

from docflow.engine.client import ExtractionClient
from docflow.engine.gateway import InferenceEngine, build_engine
from docflow.modules.news.sources import NewsSource, build_news_source


def get_engine(request: Request) -> InferenceEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        engine = build_engine()
        request.app.state.engine = engine
    return engine


def get_extraction_client(engine: InferenceEngine = Depends(get_engine)) -> ExtractionClient:
    return ExtractionClient(engine)


def get_news_source(request: Request) -> NewsSource:
    source = getattr(request.app.state, "news_source", None)
    if source is None:
        source = build_news_source()
        request.app.state.news_source = source
    return source
