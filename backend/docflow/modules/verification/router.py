from __future__ import annotations

from fastapi import APIRouter, Depends

from docflow.core.dependencies import get_extraction_client
from docflow.engine.client import ExtractionClient
from docflow.modules.verification import service
from docflow.modules.verification.schemas import DduVerificationReport, VerifyDduRequest

router = APIRouter(prefix="/verification", tags=["verification"])


@router.post("/ddu", response_model=DduVerificationReport)
async def verify_ddu(
    body: VerifyDduRequest,
    client: ExtractionClient = Depends(get_extraction_client),
) -> DduVerificationReport:
    """Check a draft DDU (PDF) against a checklist; one entry per checklist item."""
    return await service.verify_ddu(body, client)
