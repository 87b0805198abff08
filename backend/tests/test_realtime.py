import asyncio
import logging

from app.config import get_settings
from app.database import BackendError
from app.models.notification import Notification
from app.services.normalizers import normalize_notification
from app.services.realtime import ChangeEvent, Debouncer, LiveCollection, LiveRegistry, build_live_registry


def notification(notification_id, title="Hello", is_read=False):
    return Notification(id=notification_id, created_at="2025-01-01T00:00:00Z", title=title, is_read=is_read)


def test_debouncer_collapses_bursts():
    calls = []

    async def run():
        debouncer = Debouncer(0.05, lambda: calls.append("fired"))
        for _ in range(5):
            debouncer.trigger()
            await asyncio.sleep(0)
        assert debouncer.pending
        await asyncio.sleep(0.15)
        assert not debouncer.pending

    asyncio.run(run())
    assert calls == ["fired"]


def test_debouncer_cancel():
    calls = []

    async def run():
        debouncer = Debouncer(0.02, lambda: calls.append("fired"))
        debouncer.trigger()
        debouncer.cancel()
        await asyncio.sleep(0.06)

    asyncio.run(run())
    assert calls == []


def test_change_event_decoding():
    event = ChangeEvent.from_payload(
        {"eventType": "update", "table": "notifications", "new": {"id": "n1"}, "old": None}
    )
    assert event == ChangeEvent("UPDATE", "notifications", {"id": "n1"}, {})
    assert ChangeEvent.from_payload({"eventType": "TRUNCATE"}) is None
    assert ChangeEvent.from_payload("INSERT") is None


def test_merge_mode_applies_row_events():
    async def fetch():
        return []

    live = LiveCollection(fetch, normalize=normalize_notification)
    live.items = [notification("n1"), notification("n2")]

    live.apply(ChangeEvent("INSERT", "notifications", new={"id": "n3", "created_at": "2025-01-02T00:00:00Z", "title": "New"}))
    live.apply(ChangeEvent("INSERT", "notifications", new={"id": "n4", "title": "missing created_at"}))
    live.apply(ChangeEvent("UPDATE", "notifications", new={"id": "n1", "is_read": True}))
    live.apply(ChangeEvent("DELETE", "notifications", old={"id": "n2"}))

    assert [n.id for n in live.items] == ["n3", "n1"]
    assert live.items[1].is_read is True
    assert live.items[1].title == "Hello"


def test_insert_replaces_existing_copy():
    async def fetch():
        return []

    live = LiveCollection(fetch, normalize=normalize_notification)
    live.items = [notification("n1", title="Old")]
    live.apply(ChangeEvent("INSERT", "notifications", new={"id": "n1", "created_at": "2025-01-01T00:00:00Z", "title": "New"}))

    assert [(n.id, n.title) for n in live.items] == [("n1", "New")]


def test_refetch_mode_debounces_reload():
    fetches = []

    async def fetch():
        fetches.append(1)
        return [notification(f"n{len(fetches)}")]

    async def run():
        live = LiveCollection(fetch, debounce_seconds=0.02)
        for _ in range(4):
            live.apply(ChangeEvent("UPDATE", "support_requests", new={"id": "s1"}))
        await asyncio.sleep(0.08)
        await live.debouncer.wait()
        return live

    live = asyncio.run(run())
    assert len(fetches) == 1
    assert [n.id for n in live.items] == ["n1"]


def test_refresh_failure_keeps_items():
    async def fetch():
        raise BackendError("Request failed with status 500", status_code=500)

    live = LiveCollection(fetch)
    live.items = [notification("n1")]
    asyncio.run(live.refresh())

    assert live.error == "Request failed with status 500"
    assert [n.id for n in live.items] == ["n1"]


def test_webhook_payload_shape_is_decoded():
    event = ChangeEvent.from_payload(
        {"type": "DELETE", "table": "support_requests", "record": None, "old_record": {"id": "s1"}}
    )
    assert event == ChangeEvent("DELETE", "support_requests", {}, {"id": "s1"})


def test_failed_debounced_callback_is_logged(caplog):
    async def explode():
        raise RuntimeError("refresh blew up")

    async def run():
        debouncer = Debouncer(0.01, explode)
        debouncer.trigger()
        await asyncio.sleep(0.05)
        try:
            await debouncer.wait()
        except RuntimeError as exc:
            return exc
        return None

    with caplog.at_level(logging.ERROR, logger="app.services.realtime"):
        raised = asyncio.run(run())

    assert str(raised) == "refresh blew up"
    failures = [r for r in caplog.records if r.getMessage() == "Debounced callback failed"]
    assert len(failures) == 1
    assert failures[0].exc_info[1] is raised


def test_current_reloads_only_when_stale():
    fetches = []

    async def fetch():
        fetches.append(1)
        return [notification(f"n{len(fetches)}")]

    async def run():
        live = LiveCollection(fetch)
        first = await live.current(max_age=60)
        again = await live.current(max_age=60)
        live.invalidate()
        reloaded = await live.current(max_age=60)
        return first, again, reloaded

    first, again, reloaded = asyncio.run(run())
    assert [n.id for n in first] == ["n1"]
    assert [n.id for n in again] == ["n1"]
    assert [n.id for n in reloaded] == ["n2"]
    assert len(fetches) == 2


def test_registry_dispatch_routes_by_table():
    registry = LiveRegistry(debounce_seconds=0.01, max_age_seconds=60)
    inbox = registry.register("notifications", normalize=normalize_notification)
    raffles = registry.register("raffles")
    inbox.items = [notification("n1")]
    raffles.loaded_at = 1.0

    applied = registry.dispatch(
        [
            {"type": "UPDATE", "table": "notifications", "record": {"id": "n1", "is_read": True}},
            {"type": "INSERT", "table": "raffles", "record": {"id": "r1"}},
            {"type": "INSERT", "table": "admin_users", "record": {"id": "a1"}},
            {"type": "TRUNCATE", "table": "notifications"},
            "not a payload",
        ]
    )

    assert applied == 2
    assert inbox.items[0].is_read is True
    # no fetch bound yet, so the change just marks the list stale
    assert raffles.loaded_at is None


def test_registry_refetches_raffles_after_a_burst():
    fetches = []

    async def fetch():
        fetches.append(1)
        return [f"raffle-{len(fetches)}"]

    async def run():
        registry = LiveRegistry(debounce_seconds=0.02, max_age_seconds=60)
        registry.register("raffles")
        await registry.current("raffles", fetch)
        registry.dispatch({"type": "UPDATE", "table": "raffles", "record": {"id": "r1"}} for _ in range(3))
        await asyncio.sleep(0.08)
        await registry.collection("raffles").debouncer.wait()
        items = await registry.current("raffles", fetch)
        registry.close()
        return items

    items = asyncio.run(run())
    assert items == ["raffle-2"]
    assert len(fetches) == 2


def test_registry_is_built_from_settings():
    settings = get_settings().model_copy(update={"realtime_debounce_seconds": 0.5, "live_cache_max_age_seconds": 5.0})

    registry = build_live_registry(settings)

    assert set(registry.collections) == {"notifications", "support_requests", "raffles"}
    assert registry.max_age_seconds == 5.0
    assert all(c.debouncer.delay == 0.5 for c in registry.collections.values())
    assert registry.collection("notifications").normalize is normalize_notification
    assert registry.collection("raffles").normalize is None
