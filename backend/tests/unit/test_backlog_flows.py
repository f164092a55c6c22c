"""Unit tests for the backlog flows: completeness, chat and brainstorm."""

from __future__ import annotations

import json

import pytest

from docflow.core.errors import EngineNoOutputError, MalformedInputError, UnsupportedFormatError
from docflow.engine.client import ExtractionClient
from docflow.modules.backlog.schemas import (
    AnalyzeBacklogRequest,
    BacklogAnalysisBatch,
    BacklogItemData,
    BrainstormRequest,
    ChatWithBacklogRequest,
)
from docflow.modules.backlog.service import (
    NOT_PROCESSED_NOTE,
    analyze_backlog_completeness,
    chat_with_backlog,
    generate_backlog_from_brainstorm,
    ice_score,
)


def items(*ids: str) -> AnalyzeBacklogRequest:
    return AnalyzeBacklogRequest(
        backlog_items=[BacklogItemData(id=i, row_data={"Task": f"task {i}", "Goal": ""}) for i in ids]
    )


# ---------------------------------------------------------------------------
# analyze_backlog_completeness
# ---------------------------------------------------------------------------


async def test_engine_dropping_an_item_yields_placeholder(engine, extraction_client: ExtractionClient, sleep) -> None:
    """Items [a, b], engine answers only a → [a, b(not processed)]."""
    engine.queue({"analyzed_items": [{"id": "a", "suggested_goal": "Speed up checkout", "analysis_notes": "Goal added"}]})

    report = await analyze_backlog_completeness(items("a", "b"), extraction_client, sleep=sleep)

    assert [r.id for r in report.analyzed_items] == ["a", "b"]
    first, second = report.analyzed_items
    assert first.processed is True
    assert first.suggested_goal == "Speed up checkout"
    assert second.processed is False
    assert second.analysis_notes == NOT_PROCESSED_NOTE
    assert report.missing_ids == ["b"]


async def test_orphan_results_are_not_returned(engine, extraction_client: ExtractionClient, sleep) -> None:
    engine.queue({"analyzed_items": [{"id": "ghost"}, {"id": "a"}]})
    report = await analyze_backlog_completeness(items("a"), extraction_client, sleep=sleep)
    assert [r.id for r in report.analyzed_items] == ["a"]


async def test_items_are_sent_as_one_json_batch(engine, extraction_client: ExtractionClient, sleep) -> None:
    engine.queue({"analyzed_items": []})
    await analyze_backlog_completeness(items("a", "b", "c"), extraction_client, sleep=sleep)

    assert engine.call_count == 1
    _, prompt_input = engine.calls[0]
    sent = json.loads(prompt_input.backlog_items_json)
    assert [item["id"] for item in sent] == ["a", "b", "c"]


async def test_malformed_entry_does_not_fail_the_batch(engine, extraction_client: ExtractionClient, sleep) -> None:
    engine.queue({"analyzed_items": [{"id": "a", "analysis_notes": "complete"}, {"analysis_notes": "no id"}]})

    report = await analyze_backlog_completeness(items("a", "b"), extraction_client, sleep=sleep)

    assert [(r.id, r.processed) for r in report.analyzed_items] == [("a", True), ("b", False)]
    assert report.missing_ids == ["b"]
    assert engine.call_count == 1


async def test_engine_is_asked_for_the_strict_batch_schema(engine, extraction_client: ExtractionClient, sleep) -> None:
    engine.queue({"analyzed_items": []})
    await analyze_backlog_completeness(items("a"), extraction_client, sleep=sleep)
    assert engine.output_models == [BacklogAnalysisBatch]


async def test_empty_backlog_skips_engine(engine, extraction_client: ExtractionClient) -> None:
    report = await analyze_backlog_completeness(AnalyzeBacklogRequest(), extraction_client)
    assert report.analyzed_items == []
    assert engine.call_count == 0


async def test_duplicate_ids_are_rejected(engine, extraction_client: ExtractionClient) -> None:
    with pytest.raises(MalformedInputError):
        await analyze_backlog_completeness(items("a", "a"), extraction_client)
    assert engine.call_count == 0


async def test_missing_batch_output_is_retried(engine, extraction_client: ExtractionClient, sleep) -> None:
    engine.queue(None, {"analyzed_items": [{"id": "a"}]})
    report = await analyze_backlog_completeness(items("a"), extraction_client, sleep=sleep)
    assert report.analyzed_items[0].processed is True
    assert engine.call_count == 2


# ---------------------------------------------------------------------------
# chat_with_backlog
# ---------------------------------------------------------------------------


async def test_backlog_chat(engine, extraction_client: ExtractionClient, sleep) -> None:
    engine.queue({"answer": "Two tasks are overdue."})
    request = ChatWithBacklogRequest(user_question="What is overdue?", backlog_json='[{"id": 1}]')
    result = await chat_with_backlog(request, extraction_client, sleep=sleep)
    assert result.answer == "Two tasks are overdue."


async def test_backlog_chat_no_output_is_not_retried(engine, extraction_client: ExtractionClient, sleep) -> None:
    engine.queue(None)
    request = ChatWithBacklogRequest(user_question="What is overdue?", backlog_json="[]")
    with pytest.raises(EngineNoOutputError):
        await chat_with_backlog(request, extraction_client, sleep=sleep)
    assert engine.call_count == 1


# ---------------------------------------------------------------------------
# generate_backlog_from_brainstorm
# ---------------------------------------------------------------------------


async def test_brainstorm_recomputes_ice_and_fills_ids(engine, extraction_client: ExtractionClient, encode, sleep) -> None:
    engine.queue(
        {
            "backlog_items": [
                {"id": "item-1", "feature_name": "Search", "impact": 8, "confidence": 7, "ease": 5, "ice_score": 1},
                {"feature_name": "Bot", "impact": 5, "confidence": 5, "ease": 9},
            ]
        }
    )
    request = BrainstormRequest(document=encode("application/pdf", b"%PDF"), file_name="session.pdf")

    result = await generate_backlog_from_brainstorm(request, extraction_client, sleep=sleep)

    search, bot = result.backlog_items
    assert search.id == "item-1"
    assert search.ice_score == 280
    assert bot.id.startswith("item-")
    assert bot.ice_score == 225


async def test_brainstorm_accepts_pdf_only(engine, extraction_client: ExtractionClient, encode) -> None:
    for content_type in ("text/plain", "image/png", "application/msword"):
        with pytest.raises(UnsupportedFormatError):
            await generate_backlog_from_brainstorm(
                BrainstormRequest(document=encode(content_type, b"data")), extraction_client
            )
    assert engine.call_count == 0


async def test_brainstorm_scores_out_of_range_are_no_output(
    engine, extraction_client: ExtractionClient, encode, sleep
) -> None:
    bad = {"backlog_items": [{"feature_name": "X", "impact": 11, "confidence": 1, "ease": 1}]}
    engine.queue(bad, bad, bad)
    with pytest.raises(EngineNoOutputError):
        await generate_backlog_from_brainstorm(
            BrainstormRequest(document=encode("application/pdf", b"%PDF")), extraction_client, sleep=sleep
        )
    assert engine.call_count == 3


def test_ice_score() -> None:
    assert ice_score(10, 10, 10) == 1000
    assert ice_score(1, 1, 1) == 1
