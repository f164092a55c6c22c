from __future__ import annotations

import pytest

from docflow.engine.prompts import (
    DEFAULT_NO_CONTENT_INSTRUCTION,
    PromptTemplate,
    get_template,
    register_template,
    registered_templates,
    render_document_block,
)
from docflow.modules.documents.schemas import (
    DocumentPayload,
    DocumentQuestionPromptInput,
    MediaContent,
    TextContent,
)

# Importing the flow modules registers their templates
import docflow.modules.backlog.service  # noqa: F401
import docflow.modules.contracts.service  # noqa: F401
import docflow.modules.documents.prompts  # noqa: F401
import docflow.modules.news.service  # noqa: F401


def test_media_branch_mentions_attachment() -> None:
    document = DocumentPayload(
        content=MediaContent(data_uri="data:application/pdf;base64,AA==", mime_type="application/pdf"),
        file_name="deal.pdf",
    )
    block = render_document_block(document)
    assert "attached application/pdf file" in block
    assert "AA==" not in block
    assert block.endswith("File name: deal.pdf")


def test_text_branch_inlines_text() -> None:
    block = render_document_block(DocumentPayload(content=TextContent(text="Clause 1. {braces} stay.")))
    assert "Clause 1. {braces} stay." in block
    assert "File name" not in block


def test_no_content_branch_is_explicit() -> None:
    block = render_document_block(DocumentPayload(file_name="lost.pdf"))
    assert block.startswith(DEFAULT_NO_CONTENT_INSTRUCTION)
    assert "File name: lost.pdf" in block


def test_render_substitutes_fields_and_language() -> None:
    template = PromptTemplate(id="t", instructions="{document_block}\nQ: {user_question}\nLang: {language}")
    payload = DocumentQuestionPromptInput(
        document=DocumentPayload(content=TextContent(text="body")),
        user_question="What is {this}?",
    )
    rendered = template.render(payload, "Russian")
    assert "Document to analyze (text):\nbody" in rendered
    assert "Q: What is {this}?" in rendered
    assert rendered.endswith("Lang: Russian")


def test_flow_templates_are_registered() -> None:
    assert {
        "analyze_document",
        "extract_document_events",
        "chat_with_document",
        "process_contract",
        "analyze_backlog_completeness",
        "chat_with_backlog",
        "generate_backlog_from_brainstorm",
        "assess_news_item",
    } <= set(registered_templates())
    assert get_template("process_contract").id == "process_contract"


def test_conflicting_registration_is_rejected() -> None:
    with pytest.raises(ValueError):
        register_template(PromptTemplate(id="analyze_document", instructions="something else"))


def test_unknown_template() -> None:
    with pytest.raises(KeyError):
        get_template("does_not_exist")
