from __future__ import annotations

from fastapi import APIRouter, Depends

from docflow.core.dependencies import get_extraction_client
from docflow.engine.client import ExtractionClient
from docflow.modules.credit import service
from docflow.modules.credit.schemas import CreditDisposition, CreditDispositionRequest

router = APIRouter(prefix="/credit", tags=["credit"])


@router.post("/disposition", response_model=CreditDisposition)
async def generate_credit_disposition(
    body: CreditDispositionRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> CreditDisposition:
    """Extract the registration order card from a credit agreement PDF."""
    return await service.generate_credit_disposition(body, client)
