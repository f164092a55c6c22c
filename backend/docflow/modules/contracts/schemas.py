from __future__ import annotations

from pydantic import BaseModel, Field

from docflow.modules.documents.schemas import DocumentPayload


class ProcessContractRequest(BaseModel):
    document: str | None = Field(
        None, description="Contract as 'data:<content-type>;base64,<payload>' (PDF or TXT)"
    )
    document_text: str | None = Field(None, description="Contract text entered manually")
    file_name: str | None = None


# --- Engine output ---


class ContractParty(BaseModel):
    name: str = Field(..., description="Full name of the party")
    role: str = Field(..., description="Role in the contract: bank, client, borrower, contractor, ...")


class ContractKeyEvent(BaseModel):
    date: str = Field(..., description="Date or deadline, or a textual description of the term")
    description: str
    responsible_party: str | None = None


class DispositionCard(BaseModel):
    """Fields of the "registration order" card; any of them may be unknown."""

    contract_number: str | None = None
    contract_date: str | None = None
    parties_info: str | None = None
    object_info: str | None = None
    deal_amount: str | None = Field(None, description="Deal amount with currency")
    start_date: str | None = None
    bank_executor_name: str | None = None


class ProcessedContract(BaseModel):
    contract_summary: str
    parties: list[ContractParty] = Field(default_factory=list)
    key_events: list[ContractKeyEvent] = Field(default_factory=list)
    disposition_card: DispositionCard | None = None


# --- Prompt input ---


class ContractPromptInput(BaseModel):
    document: DocumentPayload
