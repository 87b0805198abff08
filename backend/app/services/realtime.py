"""Keep in-memory lists current from the hosted change feed.

The hosted database posts row changes (database webhooks or a feed relay)
to the API. Each watched table has a ``LiveCollection`` that either merges
row events directly (INSERT/UPDATE/DELETE) or, when it has no row decoder,
re-fetches itself after a short quiet period so a burst of changes costs
one query. Reads serve the collection while it is younger than the
registry's max age and reload it otherwise.
"""
import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import asdict, dataclass, field
import inspect
import logging
import time
from typing import Any, Generic, TypeVar

from app.config import Settings
from app.database import BackendError
from app.services.normalizers import normalize_notification, normalize_support_request

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")


@dataclass(frozen=True)
class ChangeEvent:
    """One row change delivered by the change feed."""

    event_type: str
    table: str
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "ChangeEvent | None":
        """Decode a feed message; anything unrecognised yields None.

        Accepts both the realtime shape (``eventType``/``new``/``old``) and
        the database webhook shape (``type``/``record``/``old_record``).
        """
        if not isinstance(payload, dict):
            return None
        event_type = str(payload.get("eventType") or payload.get("type") or "").upper()
        if event_type not in EVENT_TYPES:
            return None
        new = payload.get("new", payload.get("record"))
        old = payload.get("old", payload.get("old_record"))
        return cls(
            event_type=event_type,
            table=str(payload.get("table") or ""),
            new=new if isinstance(new, dict) else {},
            old=old if isinstance(old, dict) else {},
        )


class Debouncer:
    """Run ``callback`` once ``delay`` seconds after the last ``trigger()``.

    Each trigger cancels the pending timer and schedules a new one. Must be
    triggered from inside a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None] | None]):
        self.delay = delay
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Future | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        result = self.callback()
        if inspect.isawaitable(result):
            self._task = asyncio.ensure_future(result)
            self._task.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced callback failed", exc_info=exc)

    async def wait(self) -> None:
        """Wait for the callback started by the last fire, if any."""
        if self._task is not None:
            await self._task


class LiveCollection(Generic[T]):
    """A fetched list of records kept in sync with change events.

    With ``normalize`` set, events are merged into ``items`` by id.
    Without it, every event schedules a debounced ``refresh()``.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[T]]] | None = None,
        normalize: Callable[[dict], T | None] | None = None,
        debounce_seconds: float = 0.25,
        key: str = "id",
    ):
        self._fetch = fetch
        self.normalize = normalize
        self.key = key
        self.items: list[T] = []
        self.error: str | None = None
        self.loaded_at: float | None = None
        self.debouncer = Debouncer(debounce_seconds, self.refresh)

    def bind(self, fetch: Callable[[], Awaitable[list[T]]]) -> None:
        """Use ``fetch`` for later reloads, e.g. with the latest admin's credentials."""
        self._fetch = fetch

    def is_fresh(self, max_age: float) -> bool:
        return self.loaded_at is not None and time.monotonic() - self.loaded_at <= max_age

    def invalidate(self) -> None:
        self.loaded_at = None

    def _store(self, items: list[T]) -> None:
        self.items = items
        self.error = None
        self.loaded_at = time.monotonic()

    async def current(self, max_age: float) -> list[T]:
        """Items, reloaded first when older than ``max_age`` seconds. Raises BackendError."""
        if not self.is_fresh(max_age):
            if self._fetch is None:
                raise BackendError("Live collection has nothing to load from.")
            self._store(await self._fetch())
        return self.items

    async def refresh(self) -> None:
        """Reload from the backend; on failure keep the current items."""
        if self._fetch is None:
            return
        try:
            items = await self._fetch()
        except BackendError as exc:
            logger.warning("Live refresh failed: %s", exc.message)
            self.error = exc.message
            return
        self._store(items)

    def _id(self, item: T) -> Any:
        return getattr(item, self.key, None)

    def apply(self, event: ChangeEvent) -> None:
        if self.normalize is None:
            if self._fetch is None:
                self.invalidate()
            else:
                self.debouncer.trigger()
            return

        if event.event_type == "INSERT":
            record = self.normalize(event.new)
            if record is None:
                return
            record_id = self._id(record)
            self.items = [record, *(item for item in self.items if self._id(item) != record_id)]

        elif event.event_type == "UPDATE":
            record_id = event.new.get(self.key)
            updated = []
            for item in self.items:
                if self._id(item) == record_id:
                    merged = self.normalize({**asdict(item), **event.new})
                    updated.append(merged if merged is not None else item)
                else:
                    updated.append(item)
            self.items = updated

        elif event.event_type == "DELETE":
            record_id = event.old.get(self.key)
            if record_id is not None:
                self.items = [item for item in self.items if self._id(item) != record_id]

    def close(self) -> None:
        self.debouncer.cancel()


class LiveRegistry:
    """Live collections by table name, fed from decoded change-feed payloads."""

    def __init__(self, debounce_seconds: float = 0.25, max_age_seconds: float = 60.0):
        self.debounce_seconds = debounce_seconds
        self.max_age_seconds = max_age_seconds
        self.collections: dict[str, LiveCollection] = {}

    def register(self, table: str, normalize: Callable[[dict], Any] | None = None) -> LiveCollection:
        collection = LiveCollection(normalize=normalize, debounce_seconds=self.debounce_seconds)
        self.collections[table] = collection
        return collection

    def collection(self, table: str) -> LiveCollection:
        return self.collections[table]

    async def current(self, table: str, fetch: Callable[[], Awaitable[list]]) -> list:
        """Items for ``table``, loading through ``fetch`` when stale."""
        collection = self.collections[table]
        collection.bind(fetch)
        return await collection.current(self.max_age_seconds)

    def invalidate(self, table: str) -> None:
        self.collections[table].invalidate()

    def dispatch(self, payloads: Iterable[Any]) -> int:
        """Apply feed payloads to their tables; returns how many were applied."""
        applied = 0
        for payload in payloads:
            event = ChangeEvent.from_payload(payload)
            if event is None:
                logger.debug("Ignored change feed payload: %r", payload)
                continue
            collection = self.collections.get(event.table)
            if collection is None:
                continue
            collection.apply(event)
            applied += 1
        return applied

    def close(self) -> None:
        for collection in self.collections.values():
            collection.close()


def build_live_registry(settings: Settings) -> LiveRegistry:
    """Registry for the inbox and support queue (merged) and raffles (re-fetched)."""
    registry = LiveRegistry(settings.realtime_debounce_seconds, settings.live_cache_max_age_seconds)
    registry.register("notifications", normalize=normalize_notification)
    registry.register("support_requests", normalize=normalize_support_request)
    registry.register("raffles")
    return registry
