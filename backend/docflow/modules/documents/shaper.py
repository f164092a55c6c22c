"""Request Shaper: builds the engine-facing document payload.

Consumes the Decoder's carrier and produces a ``DocumentPayload`` with at
most one carrier set. Empty text counts as no content, so the prompt takes
its explicit "no content provided" branch rather than inlining nothing.
"""

from __future__ import annotations

from typing import Any

from docflow.modules.documents.schemas import (
    DecodedDocument,
    DocumentPayload,
    MediaContent,
    TextContent,
)


def shape_document(
    decoded: DecodedDocument | None,
    file_name: str | None = None,
) -> DocumentPayload:
    """Build the document part of a request from a decoded document (or none)."""
    if decoded is None:
        return DocumentPayload(content=None, file_name=file_name)

    content = decoded.content
    if isinstance(content, MediaContent):
        return DocumentPayload(content=content, file_name=file_name)
    if isinstance(content, TextContent):
        if not content.text.strip():
            return DocumentPayload(content=None, file_name=file_name)
        return DocumentPayload(content=content, file_name=file_name)
    raise TypeError(f"Unhandled document carrier: {type(content).__name__}")


def shape_request(document: DocumentPayload, **fields: Any) -> dict[str, Any]:
    """Combine the document payload with task-specific fields.

    The result is the raw internal payload; the Extraction Client validates it
    against the flow's declared input model before the engine sees it.
    """
    return {"document": document.model_dump(mode="json"), **fields}
