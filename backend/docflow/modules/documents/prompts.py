from __future__ import annotations

from docflow.engine.prompts import PromptTemplate, register_template

ANALYZE_DOCUMENT = register_template(
    PromptTemplate(
        id="analyze_document",
        system="You are an assistant that specializes in analyzing business documents.",
        instructions="""\
Analyze the document below, summarize its content and identify its type.

{document_block}

Provide:
1. summary: the main points and the gist of the document.
2. document_type: the kind of document (contract, application, technical \
specification, report, presentation, letter, ...).

Answer in {language}. Follow the output fields exactly.
""",
    )
)

EXTRACT_DOCUMENT_EVENTS = register_template(
    PromptTemplate(
        id="extract_document_events",
        system="You are an assistant that extracts structured information from documents.",
        instructions="""\
Find every event in the document below that comes with a date or a time reference.

{document_block}

For each event provide:
1. date: YYYY-MM-DD, DD.MM.YYYY, or a textual period ("May 2023", "within a week", \
"by the end of the year"). Leave it empty when no date can be determined.
2. description: a short description of the event.

Return the events as the "events" array. Write descriptions in {language}.
""",
    )
)

CHAT_WITH_DOCUMENT = register_template(
    PromptTemplate(
        id="chat_with_document",
        system=(
            "You answer questions about a legal document using ONLY the information in "
            "that document. Do not use outside knowledge. If the answer is not in the "
            "document, say so."
        ),
        no_content_instruction=(
            "[Instruction: no document context was provided. Say that an answer is not "
            "possible without the document.]"
        ),
        instructions="""\
{document_block}

User question:
{user_question}

Answer the question strictly from the document above, in {language}.
""",
    )
)
