"""Completeness reconciliation for single-call batch extraction."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

logger = structlog.get_logger()

R = TypeVar("R")
M = TypeVar("M", bound=BaseModel)


@dataclass
class Reconciliation(Generic[R]):
    results: list[R]
    missing_ids: list[str] = field(default_factory=list)
    orphan_ids: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing_ids


def reconcile(
    item_ids: Sequence[str],
    results: Iterable[R],
    *,
    placeholder: Callable[[str], R],
    result_id: Callable[[R], str] = attrgetter("id"),
) -> Reconciliation[R]:
    """Return exactly one result per input id, in input order.

    Results are matched by id, never by position. Ids the engine dropped get
    ``placeholder(id)``. Results whose id matches no input are left out of
    the output and reported as ``orphan_ids``; on duplicate result ids the
    first one wins.
    """
    wanted = set(item_ids)
    by_id: dict[str, R] = {}
    orphan_ids: list[str] = []
    for result in results:
        rid = result_id(result)
        if rid not in wanted:
            orphan_ids.append(rid)
            continue
        by_id.setdefault(rid, result)

    reconciled: list[R] = []
    missing_ids: list[str] = []
    for item_id in item_ids:
        found = by_id.get(item_id)
        if found is None:
            missing_ids.append(item_id)
            reconciled.append(placeholder(item_id))
        else:
            reconciled.append(found)

    if missing_ids:
        logger.warning("batch_items_missing", count=len(missing_ids), ids=missing_ids)
    if orphan_ids:
        logger.warning("batch_orphan_results", count=len(orphan_ids), ids=orphan_ids)

    return Reconciliation(results=reconciled, missing_ids=missing_ids, orphan_ids=orphan_ids)


def validate_entries(entries: Iterable[Any], model: type[M], *, batch: str = "batch") -> list[M]:
    """Validate raw batch entries one at a time.

    An entry that does not fit ``model`` is logged and dropped, so ``reconcile``
    replaces it with a placeholder instead of the whole batch failing.
    """
    valid: list[M] = []
    for index, entry in enumerate(entries):
        try:
            valid.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning(
                "batch_entry_rejected",
                batch=batch,
                index=index,
                model=model.__name__,
                error_count=exc.error_count(),
            )
    return valid
