"""Unit tests for the document decoder (data-URI parsing and classification)."""

from __future__ import annotations

import base64

import pytest

from docflow.core.errors import DocumentTooLargeError, MalformedInputError, UnsupportedFormatError
from docflow.modules.documents.decoder import (
    LEGACY_WORD_MESSAGE,
    LEGACY_WORD_PDF_ONLY_MESSAGE,
    MEDIA_CONTENT_TYPES,
    DocumentDecoder,
    classify,
    parse_data_uri,
)
from docflow.modules.documents.schemas import (
    ContentClass,
    DocumentReference,
    MediaContent,
    TextContent,
)

HELLO_URI = f"data:text/plain;base64,{base64.b64encode(b'hello').decode()}"


# ---------------------------------------------------------------------------
# parse_data_uri / classify
# ---------------------------------------------------------------------------


def test_parse_data_uri_splits_type_and_payload() -> None:
    parsed = parse_data_uri("data:application/pdf;base64,JVBERi0=")
    assert parsed.content_type == "application/pdf"
    assert parsed.payload == "JVBERi0="


@pytest.mark.parametrize(
    "encoded",
    [
        "application/pdf;base64,JVBERi0=",
        "data:application/pdf,JVBERi0=",
        "data:;base64,JVBERi0=",
        " data:application/pdf;base64,JVBERi0=",
        "",
    ],
)
def test_parse_data_uri_rejects_other_shapes(encoded: str) -> None:
    with pytest.raises(MalformedInputError):
        parse_data_uri(encoded)


def test_media_type_drops_parameters_and_case() -> None:
    parsed = parse_data_uri("data:Text/Plain; charset=utf-8;base64,aGk=")
    assert parsed.media_type == "text/plain"


@pytest.mark.parametrize("content_type", sorted(MEDIA_CONTENT_TYPES))
def test_classify_media(content_type: str) -> None:
    assert classify(content_type) is ContentClass.binary_media


def test_classify_text_and_unsupported() -> None:
    assert classify("text/plain") is ContentClass.decodable_text
    assert classify("application/msword") is ContentClass.unsupported
    assert classify("text/csv") is ContentClass.unsupported


# ---------------------------------------------------------------------------
# DocumentDecoder
# ---------------------------------------------------------------------------


def test_legacy_word_gets_conversion_hint() -> None:
    """data:application/msword;base64,AAAA → DOC/DOCX remediation message."""
    with pytest.raises(UnsupportedFormatError) as exc_info:
        DocumentDecoder().decode_encoded("data:application/msword;base64,AAAA")
    assert exc_info.value.legacy_word_format is True
    assert exc_info.value.user_message == LEGACY_WORD_MESSAGE
    assert "PDF" in exc_info.value.user_message


def test_legacy_word_hint_for_pdf_only_flow() -> None:
    decoder = DocumentDecoder({"application/pdf"}, allow_text=False)
    with pytest.raises(UnsupportedFormatError) as exc_info:
        decoder.decode_encoded("data:application/msword;base64,AAAA")
    assert exc_info.value.user_message == LEGACY_WORD_PDF_ONLY_MESSAGE
    assert "TXT" not in exc_info.value.user_message
    assert "convert the file to PDF and upload" in exc_info.value.user_message


def test_docx_gets_conversion_hint() -> None:
    docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    with pytest.raises(UnsupportedFormatError) as exc_info:
        DocumentDecoder().decode_encoded(f"data:{docx};base64,AAAA")
    assert exc_info.value.legacy_word_format is True


def test_other_unsupported_type_gets_generic_message() -> None:
    with pytest.raises(UnsupportedFormatError) as exc_info:
        DocumentDecoder().decode_encoded("data:application/zip;base64,AAAA")
    error = exc_info.value
    assert error.legacy_word_format is False
    assert error.content_type == "application/zip"
    assert "'application/zip' is not supported" in error.user_message
    assert "TXT, PDF" in error.user_message


def test_unsupported_is_raised_before_payload_is_decoded() -> None:
    """An unsupported type fails on the type alone, even with a broken payload."""
    with pytest.raises(UnsupportedFormatError):
        DocumentDecoder().decode_encoded("data:application/msword;base64,!!!not-base64!!!")


def test_plain_text_is_decoded() -> None:
    """data:text/plain;base64,<"hello"> → decodable-text, "hello"."""
    decoded = DocumentDecoder().decode_encoded(HELLO_URI)
    assert decoded.content_class is ContentClass.decodable_text
    assert decoded.content == TextContent(text="hello")


def test_text_decoding_is_idempotent() -> None:
    decoder = DocumentDecoder()
    assert decoder.decode_encoded(HELLO_URI) == decoder.decode_encoded(HELLO_URI)


@pytest.mark.parametrize("content_type", sorted(MEDIA_CONTENT_TYPES))
def test_media_payload_passes_through_unchanged(content_type: str) -> None:
    encoded = f"data:{content_type};base64,{base64.b64encode(b'binary-bytes').decode()}"
    decoded = DocumentDecoder().decode_encoded(encoded)
    assert decoded.content_class is ContentClass.binary_media
    assert isinstance(decoded.content, MediaContent)
    assert decoded.content.data_uri == encoded
    assert decoded.content.mime_type == content_type


def test_invalid_base64_is_malformed() -> None:
    with pytest.raises(MalformedInputError):
        DocumentDecoder().decode_encoded("data:text/plain;base64,not*base64")


def test_narrowed_media_set_rejects_images() -> None:
    decoder = DocumentDecoder({"application/pdf"})
    with pytest.raises(UnsupportedFormatError) as exc_info:
        decoder.decode_encoded("data:image/png;base64,AAAA")
    assert exc_info.value.user_message.endswith("TXT, PDF.")


def test_text_disabled_rejects_plain_text_without_txt_hint() -> None:
    decoder = DocumentDecoder({"application/pdf"}, allow_text=False)
    with pytest.raises(UnsupportedFormatError) as exc_info:
        decoder.decode_encoded(HELLO_URI)
    assert "TXT" not in exc_info.value.user_message


def test_unknown_media_types_are_rejected_at_construction() -> None:
    with pytest.raises(ValueError):
        DocumentDecoder({"application/zip"})


def test_size_limit() -> None:
    decoder = DocumentDecoder(max_size_bytes=4)
    with pytest.raises(DocumentTooLargeError) as exc_info:
        decoder.decode_encoded(HELLO_URI)
    assert exc_info.value.status_code == 413


# ---------------------------------------------------------------------------
# decode(reference)
# ---------------------------------------------------------------------------


def test_raw_text_skips_classification() -> None:
    decoded = DocumentDecoder().decode(DocumentReference(raw_text="typed by hand"))
    assert decoded.content_class is ContentClass.decodable_text
    assert decoded.content == TextContent(text="typed by hand")


def test_encoded_payload_wins_over_raw_text() -> None:
    decoded = DocumentDecoder().decode(DocumentReference(encoded_payload=HELLO_URI, raw_text="other"))
    assert decoded.content == TextContent(text="hello")


def test_text_fallback_for_unsupported_encoded_payload() -> None:
    reference = DocumentReference(encoded_payload="data:application/zip;base64,AAAA", raw_text="fallback")
    decoded = DocumentDecoder().decode(reference, text_fallback=True)
    assert decoded.content == TextContent(text="fallback")


def test_no_text_fallback_by_default() -> None:
    reference = DocumentReference(encoded_payload="data:application/zip;base64,AAAA", raw_text="fallback")
    with pytest.raises(UnsupportedFormatError):
        DocumentDecoder().decode(reference)


def test_reference_without_content_is_rejected() -> None:
    with pytest.raises(MalformedInputError):
        DocumentDecoder().decode(DocumentReference(file_name="empty.pdf"))
