"""Extraction Client: the input/output contract around a single engine call.

No retries here: one ``invoke`` is exactly one ``InferenceEngine.generate``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from docflow.core.errors import DocflowError, EngineNoOutputError, InputContractError
from docflow.engine.gateway import InferenceEngine, translate_engine_failure
from docflow.engine.prompts import PromptTemplate

logger = structlog.get_logger()

OutputT = TypeVar("OutputT", bound=BaseModel)


class ExtractionClient:
    """Validates the payload, calls the engine once, validates the answer."""

    def __init__(self, engine: InferenceEngine) -> None:
        self.engine = engine

    async def invoke(
        self,
        template: PromptTemplate,
        payload: Mapping[str, Any] | BaseModel,
        input_model: type[BaseModel],
        output_model: type[OutputT],
        *,
        response_model: type[BaseModel] | None = None,
    ) -> OutputT:
        """Run ``template`` over ``payload`` and return an ``output_model`` instance.

        ``response_model`` is the schema the engine is asked to follow when it
        differs from the one the answer is validated against (batch envelopes
        validated entry by entry).

        Raises:
            InputContractError: payload does not fit ``input_model`` (engine not called).
            EngineNoOutputError: engine returned nothing, or nothing that fits ``output_model``.
            EngineError: the call itself failed (kind tells transient from terminal).
        """
        prompt_input = self._validate_input(template, payload, input_model)

        try:
            raw = await self.engine.generate(template, prompt_input, response_model or output_model)
        except DocflowError:
            raise
        except Exception as exc:
            raise translate_engine_failure(exc) from exc

        if raw is None:
            logger.warning("engine_no_output", template=template.id)
            raise EngineNoOutputError()

        try:
            return output_model.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "engine_output_rejected",
                template=template.id,
                output_model=output_model.__name__,
                error_count=exc.error_count(),
            )
            raise EngineNoOutputError(detail=str(exc)) from exc

    @staticmethod
    def _validate_input(
        template: PromptTemplate,
        payload: Mapping[str, Any] | BaseModel,
        input_model: type[BaseModel],
    ) -> BaseModel:
        data = payload.model_dump(mode="json") if isinstance(payload, BaseModel) else payload
        try:
            return input_model.model_validate(data)
        except ValidationError as exc:
            logger.warning(
                "engine_input_rejected",
                template=template.id,
                input_model=input_model.__name__,
                error_count=exc.error_count(),
            )
            raise InputContractError(
                errors=exc.errors(include_url=False, include_context=False, include_input=False)
            ) from exc
