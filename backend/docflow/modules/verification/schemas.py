from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from docflow.modules.documents.schemas import DocumentPayload


class VerificationStatus(str, Enum):
    compliant = "compliant"
    non_compliant = "non-compliant"
    partially_compliant = "partially compliant"
    undetermined = "could not be determined"


# --- Request ---


class ChecklistItem(BaseModel):
    id: str = Field(..., min_length=1, description="Unique checklist item id")
    text: str = Field(..., min_length=1, description="Requirement the contract is checked against")


class VerifyDduRequest(BaseModel):
    """A draft shared-construction participation agreement (DDU) and its checklist."""

    project_completion_date: date = Field(..., description="Planned commissioning date of the building")
    document: str = Field(..., description="Draft DDU as 'data:application/pdf;base64,<payload>'")
    file_name: str | None = None
    checklist: list[ChecklistItem] = Field(..., min_length=1)


# --- Engine output ---


class ChecklistVerification(BaseModel):
    checklist_item_id: str = Field(..., description="Id of the checklist item this entry answers")
    checklist_item_text: str | None = None
    status: VerificationStatus
    comment: str | None = Field(None, description="Explanation, or a short quote from the contract")


class DduVerificationBatch(BaseModel):
    """Response schema the engine is asked to follow."""

    verified_items: list[ChecklistVerification]


class RawDduVerificationBatch(BaseModel):
    verified_items: list[Any]


# --- Result ---


class VerifiedChecklistItem(BaseModel):
    checklist_item_id: str
    checklist_item_text: str
    status: VerificationStatus
    comment: str | None = None
    # False for placeholders standing in for items the engine did not return
    processed: bool = True


class DduVerificationReport(BaseModel):
    verified_items: list[VerifiedChecklistItem]
    missing_ids: list[str] = Field(default_factory=list)


# --- Prompt input ---


class DduPromptInput(BaseModel):
    document: DocumentPayload
    project_completion_date: str = Field(..., min_length=1)
    checklist_json: str = Field(..., min_length=1)

    @field_validator("document")
    @classmethod
    def _require_media(cls, document: DocumentPayload) -> DocumentPayload:
        if not document.is_media_document:
            raise ValueError("DDU verification needs an attached document")
        return document
