from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from docflow.modules.documents.schemas import DocumentPayload

# ---------------------------------------------------------------------------
# Completeness analysis
# ---------------------------------------------------------------------------


class BacklogItemData(BaseModel):
    id: str = Field(..., min_length=1, description="Unique item id, e.g. the spreadsheet row")
    row_data: dict[str, Any] = Field(default_factory=dict, description="Spreadsheet row as key-value pairs")


class AnalyzeBacklogRequest(BaseModel):
    backlog_items: list[BacklogItemData] = Field(default_factory=list)


class BacklogItemAnalysis(BaseModel):
    id: str
    identified_user_story: str | None = None
    suggested_user_story: str | None = None
    identified_goal: str | None = None
    suggested_goal: str | None = None
    identified_acceptance_criteria: str | None = None
    suggested_acceptance_criteria: str | None = None
    analysis_notes: str | None = None


class BacklogAnalysisBatch(BaseModel):
    """Response schema the engine is asked to follow."""

    analyzed_items: list[BacklogItemAnalysis]


class RawBacklogAnalysisBatch(BaseModel):
    """The same envelope with entries left unvalidated; each is checked on its own."""

    analyzed_items: list[Any]


class BacklogAnalysisResult(BacklogItemAnalysis):
    # False for placeholders standing in for items the engine did not return
    processed: bool = True


class BacklogCompletenessReport(BaseModel):
    analyzed_items: list[BacklogAnalysisResult]
    missing_ids: list[str] = Field(default_factory=list)


class BacklogPromptInput(BaseModel):
    backlog_items_json: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Backlog chat
# ---------------------------------------------------------------------------


class ChatWithBacklogRequest(BaseModel):
    user_question: str = Field(..., min_length=1)
    backlog_json: str = Field(..., min_length=1, description="Current backlog as a JSON string")


class BacklogAnswer(BaseModel):
    answer: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Backlog from a brainstorm session
# ---------------------------------------------------------------------------


class BrainstormRequest(BaseModel):
    document: str = Field(..., description="Brainstorm results as 'data:application/pdf;base64,<payload>'")
    file_name: str | None = None


class GeneratedBacklogItem(BaseModel):
    id: str | None = None
    feature_name: str
    description: str | None = None
    user_story: str | None = None
    impact: int = Field(..., ge=1, le=10)
    confidence: int = Field(..., ge=1, le=10)
    ease: int = Field(..., ge=1, le=10, description="1 = very hard, 10 = very easy")
    ice_score: int | None = None


class GeneratedBacklog(BaseModel):
    backlog_items: list[GeneratedBacklogItem]


class BacklogItem(BaseModel):
    id: str
    feature_name: str
    description: str | None = None
    user_story: str | None = None
    impact: int
    confidence: int
    ease: int
    ice_score: int


class BrainstormBacklog(BaseModel):
    backlog_items: list[BacklogItem]


class BrainstormPromptInput(BaseModel):
    document: DocumentPayload

    @field_validator("document")
    @classmethod
    def _require_media(cls, document: DocumentPayload) -> DocumentPayload:
        if not document.is_media_document:
            raise ValueError("brainstorm analysis needs an attached document")
        return document
