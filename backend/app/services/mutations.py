"""Optimistic local updates paired with a backend confirmation.

Writes return a ``MutationResult`` instead of raising; whoever patched
local state first is expected to roll it back when ``ok`` is False.
"""
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field, replace
import logging
from typing import Any, TypeVar

from app.database import BackendError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MutationResult:
    ok: bool
    error: str | None = None
    rows: list[dict] = field(default_factory=list)


async def run_mutation(write: Callable[[], Awaitable[Any]]) -> MutationResult:
    """Run a backend write and turn a failure into a result."""
    try:
        rows = await write()
    except BackendError as exc:
        logger.warning("Backend write failed: %s", exc.message)
        return MutationResult(ok=False, error=exc.message)
    if isinstance(rows, dict):
        rows = [rows]
    return MutationResult(ok=True, rows=rows if isinstance(rows, list) else [])


def patch_items(items: list[T], ids: Iterable[str], **changes: Any) -> tuple[list[T], list[T]]:
    """Return (patched list, untouched copies of the changed items)."""
    targets = set(ids)
    patched = []
    previous = []
    for item in items:
        if getattr(item, "id", None) in targets:
            previous.append(item)
            patched.append(replace(item, **changes))
        else:
            patched.append(item)
    return patched, previous


def revert_items(items: list[T], previous: Iterable[T]) -> list[T]:
    """Put the pre-patch versions back in place."""
    originals = {getattr(item, "id"): item for item in previous}
    return [originals.get(getattr(item, "id", None), item) for item in items]


async def apply_optimistic(
    items: list[T],
    ids: Iterable[str],
    mutate: Callable[[], Awaitable[MutationResult]],
    **changes: Any,
) -> tuple[list[T], MutationResult]:
    """Patch ``items`` now, run ``mutate`` and roll back if it fails."""
    patched, previous = patch_items(items, ids, **changes)
    result = await mutate()
    if not result.ok:
        return revert_items(patched, previous), result
    return patched, result
