from __future__ import annotations

import asyncio

import structlog

from docflow.core.config import settings
from docflow.core.errors import MalformedInputError
from docflow.engine.client import ExtractionClient
from docflow.engine.prompts import PromptTemplate, register_template
from docflow.engine.retry import policy_for
from docflow.engine.runner import Sleep, extract_with_retry
from docflow.modules.contracts.schemas import (
    ContractPromptInput,
    DispositionCard,
    ProcessContractRequest,
    ProcessedContract,
)
from docflow.modules.documents.decoder import DocumentDecoder
from docflow.modules.documents.schemas import DocumentReference
from docflow.modules.documents.shaper import shape_document, shape_request

logger = structlog.get_logger()

CONTRACT_MEDIA_TYPES = frozenset({"application/pdf"})
MANUAL_INPUT_FILE_NAME = "manual_input.txt"

PROCESS_CONTRACT = register_template(
    PromptTemplate(
        id="process_contract",
        system=(
            "You are an assistant that analyzes legal documents, in particular "
            "project finance agreements."
        ),
        no_content_instruction=(
            "[Instruction: no contract was provided. Say that the analysis is not "
            "possible without the document or its text.]"
        ),
        instructions="""\
Analyze the contract below and extract the following information.

{document_block}

Provide:
1. contract_summary: the gist and subject of the contract.
2. parties: every party, each with "name" (full name) and "role" (bank, client, \
borrower, contractor, ...).
3. key_events: deadlines, dates and obligations, each with "date", "description" \
and "responsible_party" when stated. Look for exact dates, terms ("within X days") \
and periodicity ("monthly").
4. disposition_card: contract_number, contract_date, parties_info (short), \
object_info (subject of the contract), deal_amount (with currency), start_date, \
bank_executor_name. Leave out whatever the contract does not state.

Normalize dates to YYYY-MM-DD or DD.MM.YYYY where possible, otherwise keep the \
textual term. Write all text in {language}.
""",
    )
)


async def process_contract(
    request: ProcessContractRequest,
    client: ExtractionClient,
    *,
    sleep: Sleep = asyncio.sleep,
) -> ProcessedContract:
    """Extract summary, parties, key events and the disposition card of a contract.

    Takes a PDF or TXT file, or manually entered text; at least one is required.
    """
    decoder = DocumentDecoder(CONTRACT_MEDIA_TYPES, max_size_bytes=settings.max_document_size_bytes)
    if request.document:
        decoded = decoder.decode_encoded(request.document)
        file_name = request.file_name
    elif request.document_text and request.document_text.strip():
        decoded = decoder.decode(DocumentReference(raw_text=request.document_text))
        file_name = request.file_name or MANUAL_INPUT_FILE_NAME
    else:
        raise MalformedInputError("Provide either the contract file or its text.")

    document = shape_document(decoded, file_name)
    result = await extract_with_retry(
        client,
        PROCESS_CONTRACT,
        shape_request(document),
        ContractPromptInput,
        ProcessedContract,
        policy=policy_for("document", retry_no_output=True),
        sleep=sleep,
    )
    if result.disposition_card is None:
        result = result.model_copy(update={"disposition_card": DispositionCard()})

    logger.info(
        "contract_processed",
        file_name=file_name,
        parties=len(result.parties),
        key_events=len(result.key_events),
    )
    return result
