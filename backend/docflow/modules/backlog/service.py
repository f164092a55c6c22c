"""Backlog flows: completeness analysis, backlog chat, backlog from a brainstorm."""

from __future__ import annotations

import asyncio
import json
import uuid

import structlog

from docflow.core.config import settings
from docflow.core.errors import MalformedInputError
from docflow.engine.client import ExtractionClient
from docflow.engine.prompts import PromptTemplate, register_template
from docflow.engine.reconcile import reconcile, validate_entries
from docflow.engine.retry import policy_for
from docflow.engine.runner import Sleep, extract_with_retry
from docflow.modules.backlog.schemas import (
    AnalyzeBacklogRequest,
    BacklogAnalysisBatch,
    BacklogAnalysisResult,
    BacklogAnswer,
    BacklogCompletenessReport,
    BacklogItem,
    BacklogItemAnalysis,
    BacklogPromptInput,
    BrainstormBacklog,
    BrainstormPromptInput,
    BrainstormRequest,
    ChatWithBacklogRequest,
    GeneratedBacklog,
    RawBacklogAnalysisBatch,
)
from docflow.modules.documents.decoder import DocumentDecoder
from docflow.modules.documents.shaper import shape_document, shape_request

logger = structlog.get_logger()

NOT_PROCESSED_NOTE = "The engine could not process this backlog item."

BRAINSTORM_MEDIA_TYPES = frozenset({"application/pdf"})

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

BACKLOG_COMPLETENESS = register_template(
    PromptTemplate(
        id="analyze_backlog_completeness",
        system="You are an experienced Product Owner and Agile coach.",
        instructions="""\
Below is a JSON array of backlog items. Each item has an "id" and "row_data" \
(one spreadsheet row). In row_data look for the user story, the goal and the \
acceptance criteria, including their usual variations in naming.

For EVERY item:
1. Copy the existing user story, goal and acceptance criteria into \
identified_user_story, identified_goal and identified_acceptance_criteria. Leave \
a field empty when row_data has nothing for it.
2. When one of these three is empty, missing or obviously incomplete (a single \
word, a placeholder such as "fill in later"), write a short suggestion into \
suggested_user_story, suggested_goal or suggested_acceptance_criteria. A \
suggestion contains ONLY the wording of that field: no deadlines, priorities or \
assignees.
3. Base suggestions SOLELY on the other fields of the SAME item. Never use other \
items.
4. Do not suggest anything for a field that is already well filled.
5. Add short analysis_notes explaining what was suggested and why, or that the \
item looks complete.
6. Keep the original "id".

Items:
{backlog_items_json}

Return an object with "analyzed_items" holding one entry for EACH input item. \
Write all suggestions and notes in {language}.
""",
    )
)

CHAT_WITH_BACKLOG = register_template(
    PromptTemplate(
        id="chat_with_backlog",
        system=(
            "You are an assistant built into a team task tracker. Answer questions using "
            "ONLY the backlog provided. If the answer is not in the data, say so."
        ),
        instructions="""\
Current backlog (JSON):
{backlog_json}

User question:
"{user_question}"

Answer briefly and precisely, in {language}.
""",
    )
)

BACKLOG_FROM_BRAINSTORM = register_template(
    PromptTemplate(
        id="generate_backlog_from_brainstorm",
        system="You are an experienced product manager and analyst.",
        instructions="""\
Analyze the attached results of a product team brainstorm session and turn them \
into an initial backlog of features and improvements.

{document_block}

For each backlog item provide:
1. feature_name: a short, clear name.
2. description (optional): the problem it solves or the value for the user.
3. user_story (optional): "As a <role>, I want <action> so that <value>".
4. impact: effect on users or business, 1 (minimal) to 10 (maximal).
5. confidence: confidence the feature is needed and will work, 1 to 10.
6. ease: ease of implementation, 1 (very hard) to 10 (very easy).
7. ice_score: impact * confidence * ease.
8. id: a unique identifier such as "item-<number>".

Use ICE estimates from the document where it states them; otherwise estimate \
from context. Write all text in {language}.
""",
    )
)


# ---------------------------------------------------------------------------
# Completeness analysis
# ---------------------------------------------------------------------------


def _not_processed(item_id: str) -> BacklogAnalysisResult:
    return BacklogAnalysisResult(id=item_id, analysis_notes=NOT_PROCESSED_NOTE, processed=False)


async def analyze_backlog_completeness(
    request: AnalyzeBacklogRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> BacklogCompletenessReport:
    """Analyze all items in one engine call and return exactly one result per item."""
    items = request.backlog_items
    if not items:
        return BacklogCompletenessReport(analyzed_items=[])

    item_ids = [item.id for item in items]
    if len(set(item_ids)) != len(item_ids):
        raise MalformedInputError("Backlog item ids must be unique.")

    items_json = json.dumps([item.model_dump() for item in items], ensure_ascii=False, default=str)
    batch = await extract_with_retry(
        client,
        BACKLOG_COMPLETENESS,
        {"backlog_items_json": items_json},
        BacklogPromptInput,
        RawBacklogAnalysisBatch,
        policy=policy_for("batch", retry_no_output=True),
        sleep=sleep,
        response_model=BacklogAnalysisBatch,
    )

    analyses = validate_entries(batch.analyzed_items, BacklogItemAnalysis, batch=BACKLOG_COMPLETENESS.id)
    outcome = reconcile(
        item_ids,
        [BacklogAnalysisResult(**analysis.model_dump()) for analysis in analyses],
        placeholder=_not_processed,
    )
    logger.info(
        "backlog_completeness_analyzed",
        items=len(items),
        missing=len(outcome.missing_ids),
        orphans=len(outcome.orphan_ids),
    )
    return BacklogCompletenessReport(analyzed_items=outcome.results, missing_ids=outcome.missing_ids)


# ---------------------------------------------------------------------------
# Backlog chat
# ---------------------------------------------------------------------------


async def chat_with_backlog(
    request: ChatWithBacklogRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> BacklogAnswer:
    return await extract_with_retry(
        client,
        CHAT_WITH_BACKLOG,
        request,
        ChatWithBacklogRequest,
        BacklogAnswer,
        policy=policy_for("interactive"),
        sleep=sleep,
    )


# ---------------------------------------------------------------------------
# Backlog from a brainstorm session
# ---------------------------------------------------------------------------


def ice_score(impact: int, confidence: int, ease: int) -> int:
    return impact * confidence * ease


async def generate_backlog_from_brainstorm(
    request: BrainstormRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> BrainstormBacklog:
    """Build a scored backlog from a brainstorm PDF.

    Items without an id get a generated one; ``ice_score`` is always
    recomputed from its three components.
    """
    decoder = DocumentDecoder(
        BRAINSTORM_MEDIA_TYPES,
        allow_text=False,
        max_size_bytes=settings.max_document_size_bytes,
    )
    document = shape_document(decoder.decode_encoded(request.document), request.file_name)
    generated = await extract_with_retry(
        client,
        BACKLOG_FROM_BRAINSTORM,
        shape_request(document),
        BrainstormPromptInput,
        GeneratedBacklog,
        policy=policy_for("brainstorm", retry_no_output=True),
        sleep=sleep,
    )

    backlog = [
        BacklogItem(
            id=item.id or f"item-{uuid.uuid4().hex[:10]}",
            feature_name=item.feature_name,
            description=item.description,
            user_story=item.user_story,
            impact=item.impact,
            confidence=item.confidence,
            ease=item.ease,
            ice_score=ice_score(item.impact, item.confidence, item.ease),
        )
        for item in generated.backlog_items
    ]
    logger.info("brainstorm_backlog_generated", file_name=request.file_name, items=len(backlog))
    return BrainstormBacklog(backlog_items=backlog)
