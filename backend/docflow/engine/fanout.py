"""Fan-out Processor: one engine call per item, run concurrently."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger()

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


@dataclass
class ItemOutcome(Generic[ItemT, ResultT]):
    item: ItemT
    result: ResultT
    failed: bool = False
    error: str | None = None


class FanOutProcessor(Generic[ItemT, ResultT]):
    """Runs ``worker`` for every item at once and isolates per-item failures.

    A failing item gets ``fallback(item, exc)`` instead of aborting its
    siblings. Outcomes are keyed by item id, not by completion order.
    """

    def __init__(
        self,
        worker: Callable[[ItemT], Awaitable[ResultT]],
        fallback: Callable[[ItemT, Exception], ResultT],
        *,
        key: Callable[[ItemT], Any] = attrgetter("id"),
        name: str = "fan_out",
    ) -> None:
        self.worker = worker
        self.fallback = fallback
        self.key = key
        self.name = name

    async def run(self, items: Sequence[ItemT]) -> dict[Any, ItemOutcome[ItemT, ResultT]]:
        keys = [self.key(item) for item in items]
        if len(set(keys)) != len(keys):
            raise ValueError(f"{self.name}: item ids must be unique")

        outcomes = await asyncio.gather(*(self._process(item) for item in items))
        by_key = dict(zip(keys, outcomes))

        failed = sum(1 for outcome in outcomes if outcome.failed)
        logger.info("fan_out_complete", operation=self.name, total=len(items), failed=failed)
        return by_key

    async def _process(self, item: ItemT) -> ItemOutcome[ItemT, ResultT]:
        try:
            result = await self.worker(item)
        except Exception as exc:
            logger.warning(
                "fan_out_item_failed",
                operation=self.name,
                item_id=self.key(item),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return ItemOutcome(item=item, result=self.fallback(item, exc), failed=True, error=str(exc))
        return ItemOutcome(item=item, result=result)
