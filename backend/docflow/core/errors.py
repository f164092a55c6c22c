"""Docflow error taxonomy.

Every error the orchestration layer raises on purpose derives from
``DocflowError`` and carries an HTTP status plus a stable ``user_message``.
The message is what API callers see; raw engine diagnostics stay in logs.

  MalformedInputError      - bad input, fixed by the user (422)
    InputContractError     - payload does not match a flow's input model
    DocumentTooLargeError  - decoded document above the size limit (413)
  UnsupportedFormatError   - content type outside the supported sets (415)
  EngineError              - the engine call failed (502), tagged with a kind
    TransientEngineError   - availability / rate / deadline conditions
    EngineNoOutputError    - engine ran but produced nothing schema-conformant
  ServiceOverloadedError   - transient failures outlasted the retry budget (503)
"""

from __future__ import annotations

from enum import Enum


class DocflowError(Exception):
    """Base class for all errors surfaced by the extraction layer."""

    status_code: int = 500
    default_message: str = "The request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


# ---------------------------------------------------------------------------
# Input errors (raised before any engine call)
# ---------------------------------------------------------------------------


class MalformedInputError(DocflowError):
    status_code = 422
    default_message = "The request is malformed."


class InputContractError(MalformedInputError):
    default_message = "The request does not match the expected input shape."

    def __init__(self, message: str | None = None, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class DocumentTooLargeError(MalformedInputError):
    status_code = 413
    default_message = "The document is too large."


class UnsupportedFormatError(DocflowError):
    status_code = 415
    default_message = "This file format is not supported."

    def __init__(
        self,
        message: str | None = None,
        content_type: str = "",
        legacy_word_format: bool = False,
    ) -> None:
        super().__init__(message)
        self.content_type = content_type
        self.legacy_word_format = legacy_word_format


# ---------------------------------------------------------------------------
# Engine errors
# ---------------------------------------------------------------------------


class EngineErrorKind(str, Enum):
    transient = "transient"
    terminal = "terminal"
    no_output = "no_output"


class EngineError(DocflowError):
    status_code = 502
    default_message = "The extraction engine failed to process the request."
    kind: EngineErrorKind = EngineErrorKind.terminal

    def __init__(
        self,
        message: str | None = None,
        kind: EngineErrorKind | None = None,
        detail: str = "",
    ) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        # Raw provider text, for logs only
        self.detail = detail


class TransientEngineError(EngineError):
    default_message = "The extraction engine is temporarily unavailable."
    kind = EngineErrorKind.transient


class EngineNoOutputError(EngineError):
    default_message = "The extraction engine did not return a usable result."
    kind = EngineErrorKind.no_output


class ServiceOverloadedError(DocflowError):
    status_code = 503
    default_message = (
        "The service is temporarily overloaded or the request limit has been reached. "
        "Please try again later."
    )
