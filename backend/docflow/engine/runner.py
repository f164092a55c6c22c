from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from docflow.engine.client import ExtractionClient
from docflow.engine.prompts import PromptTemplate
from docflow.engine.retry import RetryController, RetryPolicy

OutputT = TypeVar("OutputT", bound=BaseModel)

Sleep = Callable[[float], Awaitable[object]]


async def extract_with_retry(
    client: ExtractionClient,
    template: PromptTemplate,
    payload: Mapping[str, Any] | BaseModel,
    input_model: type[BaseModel],
    output_model: type[OutputT],
    *,
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
    response_model: type[BaseModel] | None = None,
) -> OutputT:
    """One logical extraction: ``client.invoke`` under a fresh RetryController."""
    controller = RetryController(policy, sleep=sleep, name=template.id)
    return await controller.run(
        lambda: client.invoke(template, payload, input_model, output_model, response_model=response_model)
    )
