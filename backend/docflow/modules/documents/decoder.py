"""Document Decoder: data-URI parsing and content classification.

Turns a ``DocumentReference`` into a ``DecodedDocument``:

  binary-media    → the original data URI, unchanged (the engine reads it directly)
  decodable-text  → base64 payload decoded as UTF-8
  unsupported     → UnsupportedFormatError (DOC/DOCX get a conversion hint)

Pure functions only; nothing here touches the engine.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Collection
from dataclasses import dataclass

from docflow.core.errors import (
    DocumentTooLargeError,
    MalformedInputError,
    UnsupportedFormatError,
)
from docflow.modules.documents.schemas import (
    ContentClass,
    DecodedDocument,
    DocumentReference,
    MediaContent,
    TextContent,
)

MEDIA_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/webp",
        "image/heic",
        "image/heif",
        "application/pdf",
    }
)
TEXT_CONTENT_TYPES: frozenset[str] = frozenset({"text/plain"})
LEGACY_WORD_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)

# Display names used in the generic "not supported" message
_FORMAT_LABELS: dict[str, str] = {
    "text/plain": "TXT",
    "application/pdf": "PDF",
    "image/png": "PNG",
    "image/jpeg": "JPG",
    "image/webp": "WebP",
    "image/heic": "HEIC",
    "image/heif": "HEIF",
}

_DATA_URI_RE = re.compile(r"data:(.+?);base64,(.*)")

LEGACY_WORD_TEMPLATE = (
    "DOC/DOCX files cannot be analyzed directly. "
    "Please convert the file to {formats} and upload it again."
)
LEGACY_WORD_MESSAGE = LEGACY_WORD_TEMPLATE.format(formats="PDF or TXT")
LEGACY_WORD_PDF_ONLY_MESSAGE = LEGACY_WORD_TEMPLATE.format(formats="PDF")


@dataclass(frozen=True)
class ParsedDataUri:
    content_type: str
    payload: str

    @property
    def media_type(self) -> str:
        """Content type without parameters, lower-cased (``text/plain;charset=x`` → ``text/plain``)."""
        return self.content_type.split(";", 1)[0].strip().lower()


def parse_data_uri(encoded: str) -> ParsedDataUri:
    """Split ``data:<content-type>;base64,<payload>``; anything else is malformed."""
    match = _DATA_URI_RE.fullmatch(encoded)
    if match is None:
        raise MalformedInputError(
            "Invalid document reference: expected 'data:<content-type>;base64,<payload>'."
        )
    return ParsedDataUri(content_type=match.group(1), payload=match.group(2))


def decode_base64(payload: str) -> bytes:
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedInputError("Invalid document reference: payload is not valid base64.") from exc


def classify(media_type: str, media_types: Collection[str] = MEDIA_CONTENT_TYPES) -> ContentClass:
    if media_type in media_types:
        return ContentClass.binary_media
    if media_type in TEXT_CONTENT_TYPES:
        return ContentClass.decodable_text
    return ContentClass.unsupported


def unsupported_format_error(
    media_type: str,
    media_types: Collection[str] = MEDIA_CONTENT_TYPES,
    *,
    allow_text: bool = True,
) -> UnsupportedFormatError:
    """Build the user-facing error for a content type the flow cannot take."""
    if media_type in LEGACY_WORD_CONTENT_TYPES:
        message = LEGACY_WORD_MESSAGE if allow_text else LEGACY_WORD_PDF_ONLY_MESSAGE
        return UnsupportedFormatError(message, content_type=media_type, legacy_word_format=True)

    labels = sorted({_FORMAT_LABELS[t] for t in media_types}, key=_label_order)
    if allow_text:
        labels.insert(0, "TXT")
    return UnsupportedFormatError(
        f"File type '{media_type}' is not supported. "
        f"Please upload the document as {', '.join(labels)}.",
        content_type=media_type,
    )


def _label_order(label: str) -> tuple[int, str]:
    # PDF first, then images alphabetically
    return (0 if label == "PDF" else 1, label)


class DocumentDecoder:
    """Parses and classifies encoded documents.

    ``media_types`` narrows the binary-media set for flows that accept fewer
    formats (contracts and brainstorm sessions take PDF only). ``allow_text``
    disables the text branch for media-only flows.
    """

    def __init__(
        self,
        media_types: Collection[str] = MEDIA_CONTENT_TYPES,
        *,
        allow_text: bool = True,
        max_size_bytes: int | None = None,
    ) -> None:
        unknown = set(media_types) - MEDIA_CONTENT_TYPES
        if unknown:
            raise ValueError(f"Not binary-media content types: {sorted(unknown)}")
        self.media_types = frozenset(media_types)
        self.allow_text = allow_text
        self.max_size_bytes = max_size_bytes

    def decode(
        self, reference: DocumentReference, *, text_fallback: bool = False
    ) -> DecodedDocument:
        """Classify a document reference and produce its normalized carrier.

        An encoded payload wins over raw text. Raw text alone skips
        classification and is taken as decodable text. With ``text_fallback``
        an unsupported encoded payload yields to the raw text when one was
        supplied alongside it.
        """
        if reference.encoded_payload:
            try:
                return self.decode_encoded(reference.encoded_payload)
            except UnsupportedFormatError:
                if not text_fallback or reference.raw_text is None:
                    raise
        if reference.raw_text is not None:
            self._check_size(len(reference.raw_text.encode("utf-8")))
            return DecodedDocument(
                content_class=ContentClass.decodable_text,
                content=TextContent(text=reference.raw_text),
            )
        raise MalformedInputError("Provide either an encoded document or its text.")

    def decode_encoded(self, encoded: str) -> DecodedDocument:
        parsed = parse_data_uri(encoded)
        media_type = parsed.media_type
        content_class = classify(media_type, self.media_types)
        if content_class is ContentClass.decodable_text and not self.allow_text:
            content_class = ContentClass.unsupported

        if content_class is ContentClass.unsupported:
            raise unsupported_format_error(
                media_type, self.media_types, allow_text=self.allow_text
            )

        raw = decode_base64(parsed.payload)
        self._check_size(len(raw))

        if content_class is ContentClass.binary_media:
            return DecodedDocument(
                content_class=content_class,
                content=MediaContent(data_uri=encoded, mime_type=media_type),
            )
        return DecodedDocument(
            content_class=content_class,
            content=TextContent(text=raw.decode("utf-8", errors="replace")),
        )

    def _check_size(self, size: int) -> None:
        if self.max_size_bytes is not None and size > self.max_size_bytes:
            size_mb = size / (1024 * 1024)
            limit_mb = self.max_size_bytes / (1024 * 1024)
            raise DocumentTooLargeError(
                f"File too large: {size_mb:.1f} MB (max {limit_mb:.0f} MB)."
            )
