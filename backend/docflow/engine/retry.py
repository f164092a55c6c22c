"""Retry/Backoff Controller.

One controller run wraps one logical engine call:

    idle -> attempting -> succeeded
                       -> retrying -> attempting ...
                       -> exhausted   (retryable failure, no attempts left)
                       -> failed      (terminal failure, re-raised unchanged)

The delay before attempt k+1 (k counted from 0) is ``base_delay_ms * 2**k``.
No jitter, no delay after the last attempt.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

import structlog

from docflow.core.config import Settings, settings
from docflow.core.errors import EngineError, EngineErrorKind, ServiceOverloadedError

logger = structlog.get_logger()

T = TypeVar("T")

PROFILES = ("interactive", "document", "batch", "brainstorm", "news_item", "verification", "credit")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    base_delay_ms: int
    # Also retry when the engine answered with nothing usable
    retry_no_output: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must not be negative")

    def delay_ms(self, attempt_index: int) -> int:
        """Delay before attempt ``attempt_index + 1`` (0-based index of the failed attempt)."""
        return self.base_delay_ms * 2**attempt_index


def policy_for(profile: str, config: Settings = settings, *, retry_no_output: bool = False) -> RetryPolicy:
    """Resolve a named retry profile from settings."""
    if profile not in PROFILES:
        raise ValueError(f"Unknown retry profile: {profile}")
    return RetryPolicy(
        max_attempts=getattr(config, f"{profile}_max_attempts"),
        base_delay_ms=getattr(config, f"{profile}_base_delay_ms"),
        retry_no_output=retry_no_output,
    )


class RetryPhase(str, Enum):
    idle = "idle"
    attempting = "attempting"
    retrying = "retrying"
    succeeded = "succeeded"
    exhausted = "exhausted"
    failed = "failed"


@dataclass
class RetryState:
    max_attempts: int
    base_delay_ms: int
    attempt: int = 0
    phase: RetryPhase = RetryPhase.idle
    delays_ms: list[int] = field(default_factory=list)


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, EngineError) and exc.kind is EngineErrorKind.transient


class RetryController:
    """Bounded exponential backoff around an async operation.

    ``classify`` decides whether a failure is retryable; by default only
    transient engine errors are. ``sleep`` takes seconds, like
    ``asyncio.sleep``, and is injectable so tests never wait.

    The controller holds no per-run state, so concurrent ``run`` calls may
    share it. Pass a ``RetryState`` from ``new_state()`` to observe a run.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        classify: Callable[[BaseException], bool] = is_transient,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        name: str = "engine_call",
    ) -> None:
        self.policy = policy
        self.classify = classify
        self.sleep = sleep
        self.name = name

    def _retryable(self, exc: BaseException) -> bool:
        if self.policy.retry_no_output and isinstance(exc, EngineError) and exc.kind is EngineErrorKind.no_output:
            return True
        return self.classify(exc)

    def new_state(self) -> RetryState:
        return RetryState(
            max_attempts=self.policy.max_attempts,
            base_delay_ms=self.policy.base_delay_ms,
        )

    async def run(self, operation: Callable[[], Awaitable[T]], state: RetryState | None = None) -> T:
        if state is None:
            state = self.new_state()

        while True:
            state.phase = RetryPhase.attempting
            try:
                result = await operation()
            except Exception as exc:
                if not self._retryable(exc):
                    state.phase = RetryPhase.failed
                    logger.warning(
                        "engine_call_failed",
                        operation=self.name,
                        attempt=state.attempt + 1,
                        error_type=type(exc).__name__,
                    )
                    raise

                if state.attempt + 1 >= self.policy.max_attempts:
                    state.phase = RetryPhase.exhausted
                    logger.error(
                        "engine_retries_exhausted",
                        operation=self.name,
                        attempts=state.attempt + 1,
                        error_type=type(exc).__name__,
                        error=getattr(exc, "detail", "") or str(exc),
                    )
                    if isinstance(exc, EngineError) and exc.kind is EngineErrorKind.no_output:
                        raise
                    raise ServiceOverloadedError() from exc

                delay_ms = self.policy.delay_ms(state.attempt)
                state.phase = RetryPhase.retrying
                state.delays_ms.append(delay_ms)
                logger.warning(
                    "engine_retry_scheduled",
                    operation=self.name,
                    attempt=state.attempt + 1,
                    max_attempts=self.policy.max_attempts,
                    delay_ms=delay_ms,
                    error_type=type(exc).__name__,
                )
                await self.sleep(delay_ms / 1000)
                state.attempt += 1
                continue

            state.phase = RetryPhase.succeeded
            return result
