"""Prompt templates.

A template is plain text with ``str.format`` placeholders over the validated
prompt input. ``{document_block}`` expands to one of three explicit branches:
attached media, inlined text, or a "no content provided" instruction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from docflow.modules.documents.schemas import DocumentPayload, MediaContent, TextContent

DEFAULT_NO_CONTENT_INSTRUCTION = (
    "[Instruction: no document content was provided, neither as an attached file "
    "nor as extracted text. If a file name is given below, you may make a cautious "
    "guess from it, but state clearly that the content itself was not available. "
    "Otherwise, report that the analysis is not possible.]"
)


@dataclass(frozen=True)
class PromptTemplate:
    """A named prompt.

    ``instructions`` may reference any top-level field of the prompt input,
    plus ``{language}`` and ``{document_block}``. Literal braces must be
    doubled.
    """

    id: str
    instructions: str
    system: str = ""
    no_content_instruction: str = DEFAULT_NO_CONTENT_INSTRUCTION

    def render(self, payload: BaseModel, language: str) -> str:
        fields: dict[str, Any] = payload.model_dump(mode="json")
        document = getattr(payload, "document", None)
        fields["document_block"] = (
            render_document_block(document, self.no_content_instruction)
            if isinstance(document, DocumentPayload)
            else ""
        )
        fields["language"] = language
        return self.instructions.format(**fields)


def render_document_block(
    document: DocumentPayload,
    no_content_instruction: str = DEFAULT_NO_CONTENT_INSTRUCTION,
) -> str:
    content = document.content
    if isinstance(content, MediaContent):
        block = f"Document to analyze: the attached {content.mime_type} file."
    elif isinstance(content, TextContent):
        block = f"Document to analyze (text):\n{content.text}"
    elif content is None:
        block = no_content_instruction
    else:
        raise TypeError(f"Unhandled document carrier: {type(content).__name__}")

    if document.file_name:
        block += f"\n\nFile name: {document.file_name}"
    return block


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_TEMPLATES: dict[str, PromptTemplate] = {}


def register_template(template: PromptTemplate) -> PromptTemplate:
    if template.id in _TEMPLATES and _TEMPLATES[template.id] != template:
        raise ValueError(f"Prompt template '{template.id}' is already registered")
    _TEMPLATES[template.id] = template
    return template


def get_template(template_id: str) -> PromptTemplate:
    try:
        return _TEMPLATES[template_id]
    except KeyError:
        raise KeyError(f"Unknown prompt template: {template_id}") from None


def registered_templates() -> list[str]:
    return sorted(_TEMPLATES)
