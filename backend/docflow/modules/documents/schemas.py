"""Document payload models shared by every document-bearing flow."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field


class ContentClass(str, Enum):
    binary_media = "binary-media"
    decodable_text = "decodable-text"
    unsupported = "unsupported"


# ---------------------------------------------------------------------------
# Public input
# ---------------------------------------------------------------------------


class DocumentReference(BaseModel):
    """A document as supplied by the caller: an encoded data URI and/or raw text."""

    encoded_payload: str | None = Field(
        None, description="Self-describing 'data:<content-type>;base64,<payload>' string"
    )
    raw_text: str | None = Field(None, description="Already-decoded document text")
    file_name: str | None = Field(None, description="Original file name, used as a hint")

    @property
    def has_content(self) -> bool:
        return bool(self.encoded_payload) or self.raw_text is not None


# ---------------------------------------------------------------------------
# Normalized content carriers
# ---------------------------------------------------------------------------


class MediaContent(BaseModel):
    """Binary media the engine consumes directly (the original data URI)."""

    kind: Literal["media"] = "media"
    data_uri: str
    mime_type: str


class TextContent(BaseModel):
    """Decoded document text."""

    kind: Literal["text"] = "text"
    text: str


DocumentContent = Annotated[Union[MediaContent, TextContent], Field(discriminator="kind")]


class DecodedDocument(BaseModel):
    content_class: ContentClass
    content: DocumentContent


class DocumentPayload(BaseModel):
    """Internal shape handed to prompt construction.

    ``content`` holds at most one carrier. It is None when nothing usable was
    supplied; the prompt then takes its explicit no-content branch.
    """

    content: DocumentContent | None = None
    file_name: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_media_document(self) -> bool:
        return isinstance(self.content, MediaContent)

    @property
    def has_content(self) -> bool:
        return self.content is not None


# ---------------------------------------------------------------------------
# Flow requests and results
# ---------------------------------------------------------------------------


class AnalyzeDocumentRequest(BaseModel):
    document: str | None = Field(
        None, description="Document as 'data:<content-type>;base64,<payload>'"
    )
    file_name: str | None = None


class DocumentSummary(BaseModel):
    summary: str = Field(..., description="Concise summary of the document")
    document_type: str = Field(..., description="Document type, e.g. contract, statement, specification")


class DocumentEvent(BaseModel):
    date: str = Field(
        "",
        description="YYYY-MM-DD, DD.MM.YYYY or a textual period; empty when no date is given",
    )
    description: str


class DocumentEvents(BaseModel):
    events: list[DocumentEvent] = Field(default_factory=list)


class ChatWithDocumentRequest(BaseModel):
    document: str | None = Field(
        None, description="Document as 'data:<content-type>;base64,<payload>'"
    )
    document_text: str | None = Field(None, description="Plain document text")
    file_name: str | None = None
    user_question: str = Field(..., min_length=1)


class ChatAnswer(BaseModel):
    answer: str = Field(..., min_length=1)


# --- Prompt inputs ---


class DocumentPromptInput(BaseModel):
    document: DocumentPayload


class DocumentQuestionPromptInput(BaseModel):
    document: DocumentPayload
    user_question: str = Field(..., min_length=1)
