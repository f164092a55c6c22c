"""DDU verification: a draft participation agreement checked against a checklist.

The whole checklist goes to the engine in one call. Answers are matched back
to checklist items by id; an item without a usable answer is reported as
"could not be determined" with ``processed: false``.
"""

from __future__ import annotations

import asyncio
import json
from operator import attrgetter

import structlog

from docflow.core.config import settings
from docflow.core.errors import MalformedInputError
from docflow.engine.client import ExtractionClient
from docflow.engine.prompts import PromptTemplate, register_template
from docflow.engine.reconcile import reconcile, validate_entries
from docflow.engine.retry import policy_for
from docflow.engine.runner import Sleep, extract_with_retry
from docflow.modules.documents.decoder import DocumentDecoder
from docflow.modules.documents.shaper import shape_document, shape_request
from docflow.modules.verification.schemas import (
    ChecklistVerification,
    DduPromptInput,
    DduVerificationBatch,
    DduVerificationReport,
    RawDduVerificationBatch,
    VerificationStatus,
    VerifiedChecklistItem,
    VerifyDduRequest,
)

logger = structlog.get_logger()

DDU_MEDIA_TYPES = frozenset({"application/pdf"})
NOT_VERIFIED_COMMENT = "The engine did not return an analysis for this checklist item."

VERIFY_DDU = register_template(
    PromptTemplate(
        id="verify_ddu",
        system=(
            "You are an assistant that reviews legal documents, in particular shared "
            "construction participation agreements (DDU) for residential housing."
        ),
        instructions="""\
Check the draft DDU below against every item of the checklist.

Planned commissioning date of the building: {project_completion_date}

{document_block}

Checklist (JSON array of objects with "id" and "text"):
{checklist_json}

For each checklist item:
1. Read the item and find the parts of the DDU that concern it.
2. Set status to one of:
   - "compliant": the condition is fully and unambiguously reflected in the DDU;
   - "non-compliant": the condition is missing from the DDU or contradicts it;
   - "partially compliant": the condition is reflected incompletely or ambiguously;
   - "could not be determined": the DDU lacks the information to decide.
3. Write a short comment explaining the status. For "compliant" or "partially \
compliant" quote the DDU briefly where useful; otherwise explain the reason.

Return an object with "verified_items" holding one entry for EACH checklist item, \
in checklist order, each with "checklist_item_id" (the item's id), \
"checklist_item_text", "status" and "comment". Write comments in {language}.
""",
    )
)


def _decoder() -> DocumentDecoder:
    return DocumentDecoder(DDU_MEDIA_TYPES, allow_text=False, max_size_bytes=settings.max_document_size_bytes)


async def verify_ddu(
    request: VerifyDduRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> DduVerificationReport:
    item_ids = [item.id for item in request.checklist]
    if len(set(item_ids)) != len(item_ids):
        raise MalformedInputError("Checklist item ids must be unique.")
    texts = {item.id: item.text for item in request.checklist}

    document = shape_document(_decoder().decode_encoded(request.document), request.file_name)
    checklist_json = json.dumps(
        [item.model_dump() for item in request.checklist], ensure_ascii=False, indent=2
    )
    batch = await extract_with_retry(
        client,
        VERIFY_DDU,
        shape_request(
            document,
            project_completion_date=request.project_completion_date.isoformat(),
            checklist_json=checklist_json,
        ),
        DduPromptInput,
        RawDduVerificationBatch,
        policy=policy_for("verification", retry_no_output=True),
        sleep=sleep,
        response_model=DduVerificationBatch,
    )

    answers = validate_entries(batch.verified_items, ChecklistVerification, batch=VERIFY_DDU.id)
    outcome = reconcile(
        item_ids,
        [
            VerifiedChecklistItem(
                checklist_item_id=answer.checklist_item_id,
                checklist_item_text=answer.checklist_item_text or texts.get(answer.checklist_item_id, ""),
                status=answer.status,
                comment=answer.comment,
            )
            for answer in answers
        ],
        placeholder=lambda item_id: VerifiedChecklistItem(
            checklist_item_id=item_id,
            checklist_item_text=texts[item_id],
            status=VerificationStatus.undetermined,
            comment=NOT_VERIFIED_COMMENT,
            processed=False,
        ),
        result_id=attrgetter("checklist_item_id"),
    )
    logger.info(
        "ddu_verified",
        file_name=request.file_name,
        items=len(item_ids),
        missing=len(outcome.missing_ids),
        orphans=len(outcome.orphan_ids),
    )
    return DduVerificationReport(verified_items=outcome.results, missing_ids=outcome.missing_ids)
