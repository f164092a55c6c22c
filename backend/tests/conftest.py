"""Shared test fixtures for the Docflow backend test suite."""

from __future__ import annotations

import base64
from collections.abc import AsyncGenerator, Callable
from datetime import date
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from docflow.core.dependencies import get_engine, get_news_source
from docflow.engine.client import ExtractionClient
from docflow.engine.gateway import InferenceEngine
from docflow.engine.prompts import PromptTemplate
from docflow.main import app
from docflow.modules.news.corpus import build_simulated_corpus
from docflow.modules.news.sources import SimulatedNewsSource

TODAY = date(2026, 10, 19)


def data_uri(content_type: str, raw: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(raw).decode('ascii')}"


# ---------------------------------------------------------------------------
# Scripted engine
# ---------------------------------------------------------------------------


class ScriptedEngine(InferenceEngine):
    """Deterministic stand-in for the inference engine.

    Queued responses are consumed one per call: a dict (or None) is returned,
    an exception is raised. ``responder`` overrides the queue and gets
    ``(template, payload)``, which suits concurrent callers.
    """

    def __init__(
        self,
        *responses: Any,
        responder: Callable[[PromptTemplate, BaseModel], Any] | None = None,
    ) -> None:
        self.responses = list(responses)
        self.responder = responder
        self.calls: list[tuple[str, BaseModel]] = []
        self.output_models: list[type[BaseModel]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def generate(
        self,
        template: PromptTemplate,
        payload: BaseModel,
        output_model: type[BaseModel],
    ) -> dict[str, Any] | None:
        self.calls.append((template.id, payload))
        self.output_models.append(output_model)
        if self.responder is not None:
            response = self.responder(template, payload)
        elif self.responses:
            response = self.responses.pop(0)
        else:
            raise AssertionError(f"Unexpected engine call for template {template.id}")
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


class RecordingSleep:
    """Async sleep replacement that records the requested delays (seconds)."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> ScriptedEngine:
    return ScriptedEngine()


@pytest.fixture
def extraction_client(engine: ScriptedEngine) -> ExtractionClient:
    return ExtractionClient(engine)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def news_source() -> SimulatedNewsSource:
    return SimulatedNewsSource(build_simulated_corpus(TODAY))


@pytest.fixture
async def client(
    engine: ScriptedEngine, news_source: SimulatedNewsSource
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client that talks directly to the FastAPI ASGI app."""
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_news_source] = lambda: news_source
    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def encode() -> Callable[[str, bytes], str]:
    """``encode(content_type, raw) -> 'data:<content_type>;base64,...'``."""
    return data_uri
