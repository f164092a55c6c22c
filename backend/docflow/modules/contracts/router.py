from __future__ import annotations

from fastapi import APIRouter, Depends

from docflow.core.dependencies import get_extraction_client
from docflow.engine.client import ExtractionClient
from docflow.modules.contracts import service
from docflow.modules.contracts.schemas import ProcessContractRequest, ProcessedContract

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.post("/process", response_model=ProcessedContract)
async def process_contract(
    body: ProcessContractRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> ProcessedContract:
    """Upload a contract (PDF/TXT or text) and extract its structured card."""
    return await service.process_contract(body, client)
