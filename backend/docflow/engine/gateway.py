"""Inference engine boundary.

``InferenceEngine`` is the only non-deterministic dependency of the system.
``GeminiEngine``, ``OpenAIEngine`` and ``AnthropicEngine`` wrap the provider
SDKs, imported lazily so only the configured one needs credentials. Tests
plug in scripted engines instead.

Provider failures are translated here, once, into ``EngineError`` values
tagged with an ``EngineErrorKind``. Nothing downstream inspects error text.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import structlog
from pydantic import BaseModel

from docflow.core.config import settings
from docflow.core.errors import EngineError, EngineErrorKind, TransientEngineError
from docflow.engine.prompts import PromptTemplate
from docflow.modules.documents.decoder import decode_base64, parse_data_uri
from docflow.modules.documents.schemas import DocumentPayload, MediaContent

logger = structlog.get_logger()

# Default models per provider
DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4.1-mini",
    "anthropic": "claude-haiku-4-5-20251001",
    "google": "gemini-2.0-flash",
}

# Case-insensitive markers of availability / quota / deadline conditions
TRANSIENT_FAILURE_MARKERS: tuple[str, ...] = (
    "503",
    "service unavailable",
    "overloaded",
    "rate limit",
    "resource has been exhausted",
    "deadline exceeded",
    "try again later",
    "429",
)

# 529 is Anthropic's "overloaded" status
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({429, 503, 529})


# ---------------------------------------------------------------------------
# Failure classification
# ---------------------------------------------------------------------------


def classify_failure_message(message: str) -> EngineErrorKind:
    lowered = message.lower()
    if any(marker in lowered for marker in TRANSIENT_FAILURE_MARKERS):
        return EngineErrorKind.transient
    return EngineErrorKind.terminal


def translate_engine_failure(exc: Exception) -> EngineError:
    """Map any provider exception onto the engine error taxonomy."""
    if isinstance(exc, EngineError):
        return exc

    message = str(exc) or type(exc).__name__
    code = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    if code in TRANSIENT_STATUS_CODES or classify_failure_message(message) is EngineErrorKind.transient:
        return TransientEngineError(detail=message)
    return EngineError(kind=EngineErrorKind.terminal, detail=message)


def strip_code_fences(raw_text: str) -> str:
    """Strip markdown code fences (```json ... ```) from a model response."""
    text = raw_text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        text = text[first_newline + 1:] if first_newline != -1 else text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


# ---------------------------------------------------------------------------
# Engine abstraction
# ---------------------------------------------------------------------------


class InferenceEngine(ABC):
    """Abstract base for inference providers."""

    provider: str = ""

    @abstractmethod
    async def generate(
        self,
        template: PromptTemplate,
        payload: BaseModel,
        output_model: type[BaseModel],
    ) -> dict[str, Any] | None:
        """Run one prompt and return the parsed JSON value, or None when the engine gave nothing."""
        ...

    def _fail(self, template: PromptTemplate, model: str, exc: Exception) -> EngineError:
        error = translate_engine_failure(exc)
        logger.warning(
            "provider_call_failed",
            provider=self.provider,
            template=template.id,
            model=model,
            kind=error.kind.value,
            error=error.detail,
        )
        return error

    def _parse_output(self, template: PromptTemplate, raw_text: str | None) -> dict[str, Any] | None:
        if not raw_text:
            return None
        try:
            value = json.loads(strip_code_fences(raw_text))
        except json.JSONDecodeError:
            logger.warning("provider_output_not_json", provider=self.provider, template=template.id, chars=len(raw_text))
            return None
        return value if isinstance(value, dict) else None


def attached_media(payload: BaseModel) -> MediaContent | None:
    """Return the media carrier of a payload's document, if it has one."""
    document = getattr(payload, "document", None)
    if isinstance(document, DocumentPayload) and isinstance(document.content, MediaContent):
        return document.content
    return None


def json_schema_instruction(output_model: type[BaseModel]) -> str:
    """Prompt suffix for providers without native response schemas."""
    schema = json.dumps(output_model.model_json_schema(), ensure_ascii=False)
    return f"\n\nRespond with a single JSON object matching this JSON schema:\n{schema}"


def _resolve_model(provider: str, model: str | None) -> str:
    return model or settings.llm_model or DEFAULT_MODELS[provider]


class GeminiEngine(InferenceEngine):
    provider = "google"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        temperature: float | None = None,
        timeout_ms: int | None = None,
        language: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_ai_api_key
        self.model = _resolve_model(self.provider, model)
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.timeout_ms = timeout_ms or settings.llm_timeout_ms
        self.language = language or settings.response_language

        # Lazy-initialized client
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai
            from google.genai import types as genai_types

            self._client = genai.Client(
                api_key=self.api_key,
                http_options=genai_types.HttpOptions(timeout=self.timeout_ms),
            )
        return self._client

    async def generate(
        self,
        template: PromptTemplate,
        payload: BaseModel,
        output_model: type[BaseModel],
    ) -> dict[str, Any] | None:
        from google.genai import types

        client = self._get_client()
        contents: list[Any] = []

        media = attached_media(payload)
        if media is not None:
            parsed = parse_data_uri(media.data_uri)
            contents.append(types.Part.from_bytes(data=decode_base64(parsed.payload), mime_type=media.mime_type))
        contents.append(template.render(payload, self.language))

        config_kwargs: dict[str, Any] = {
            "temperature": self.temperature,
            "response_mime_type": "application/json",
            "response_schema": output_model,
        }
        if template.system:
            config_kwargs["system_instruction"] = template.system

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except Exception as exc:
            raise self._fail(template, self.model, exc) from exc

        usage = getattr(response, "usage_metadata", None)
        logger.info(
            "provider_call",
            provider=self.provider,
            template=template.id,
            model=self.model,
            input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
        )
        return self._parse_output(template, response.text)


class OpenAIEngine(InferenceEngine):
    provider = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        temperature: float | None = None,
        timeout_ms: int | None = None,
        language: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = _resolve_model(self.provider, model)
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.timeout_ms = timeout_ms or settings.llm_timeout_ms
        self.language = language or settings.response_language
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout_ms / 1000)
        return self._client

    def _user_content(self, template: PromptTemplate, payload: BaseModel, output_model: type[BaseModel]) -> list[dict]:
        content: list[dict] = []
        media = attached_media(payload)
        if media is not None:
            if media.mime_type.startswith("image/"):
                content.append({"type": "image_url", "image_url": {"url": media.data_uri}})
            else:
                file_name = payload.document.file_name or "document.pdf"  # type: ignore[attr-defined]
                content.append({"type": "file", "file": {"filename": file_name, "file_data": media.data_uri}})
        text = template.render(payload, self.language) + json_schema_instruction(output_model)
        content.append({"type": "text", "text": text})
        return content

    async def generate(
        self,
        template: PromptTemplate,
        payload: BaseModel,
        output_model: type[BaseModel],
    ) -> dict[str, Any] | None:
        client = self._get_client()
        messages: list[dict] = []
        if template.system:
            messages.append({"role": "system", "content": template.system})
        messages.append({"role": "user", "content": self._user_content(template, payload, output_model)})

        try:
            response = await client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=messages,
                temperature=self.temperature,
            )
        except Exception as exc:
            raise self._fail(template, self.model, exc) from exc

        usage = getattr(response, "usage", None)
        logger.info(
            "provider_call",
            provider=self.provider,
            template=template.id,
            model=self.model,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
        if not response.choices:
            return None
        return self._parse_output(template, response.choices[0].message.content)


class AnthropicEngine(InferenceEngine):
    provider = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        temperature: float | None = None,
        timeout_ms: int | None = None,
        max_tokens: int | None = None,
        language: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.model = _resolve_model(self.provider, model)
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.timeout_ms = timeout_ms or settings.llm_timeout_ms
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.language = language or settings.response_language
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from anthropic import AsyncAnthropic

            self._client = AsyncAnthropic(api_key=self.api_key, timeout=self.timeout_ms / 1000)
        return self._client

    def _user_content(self, template: PromptTemplate, payload: BaseModel, output_model: type[BaseModel]) -> list[dict]:
        content: list[dict] = []
        media = attached_media(payload)
        if media is not None:
            source = {
                "type": "base64",
                "media_type": media.mime_type,
                "data": parse_data_uri(media.data_uri).payload,
            }
            block_type = "image" if media.mime_type.startswith("image/") else "document"
            content.append({"type": block_type, "source": source})
        text = template.render(payload, self.language) + json_schema_instruction(output_model)
        content.append({"type": "text", "text": text})
        return content

    async def generate(
        self,
        template: PromptTemplate,
        payload: BaseModel,
        output_model: type[BaseModel],
    ) -> dict[str, Any] | None:
        client = self._get_client()
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": self._user_content(template, payload, output_model)}],
        }
        if template.system:
            kwargs["system"] = template.system

        try:
            response = await client.messages.create(**kwargs)
        except Exception as exc:
            raise self._fail(template, self.model, exc) from exc

        usage = getattr(response, "usage", None)
        logger.info(
            "provider_call",
            provider=self.provider,
            template=template.id,
            model=self.model,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
        )
        text = "".join(getattr(block, "text", "") for block in response.content or [])
        return self._parse_output(template, text)


ENGINES: dict[str, type[InferenceEngine]] = {
    "google": GeminiEngine,
    "openai": OpenAIEngine,
    "anthropic": AnthropicEngine,
}


def build_engine(provider: str | None = None) -> InferenceEngine:
    """Factory: return the configured inference engine."""
    name = (provider or settings.llm_provider).lower()
    engine_cls = ENGINES.get(name)
    if engine_cls is None:
        raise ValueError(f"Unknown llm provider: {name}")
    return engine_cls()
