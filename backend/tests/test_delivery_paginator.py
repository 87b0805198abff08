import asyncio

import httpx

from app.schemas.campaign import DeliveryStatusFilter
from app.services.delivery_paginator import CustomerCache, DeliveryPaginator

DELIVERIES = "/rest/v1/admin_notification_deliveries"
CUSTOMERS = "/rest/v1/customers"


def delivery_rows(count, start=0, customer_prefix="u"):
    return [
        {
            "id": f"d{start + i}",
            "created_at": f"2025-01-01T00:{(start + i) % 60:02d}:00Z",
            "campaign_id": "c1",
            "customer_id": f"{customer_prefix}{(start + i) % 3}",
            "push_attempted": False,
            "push_ok": False,
        }
        for i in range(count)
    ]


def customers_for(request: httpx.Request):
    ids = request.url.params["id"].removeprefix("in.(").removesuffix(")").split(",")
    return [{"id": cid, "name": f"Name {cid}", "email": f"{cid}@example.com"} for cid in ids]


def test_exactly_full_page_means_more_pages(make_backend):
    backend, fake = make_backend({("GET", DELIVERIES): delivery_rows(50), ("GET", CUSTOMERS): customers_for})
    paginator = DeliveryPaginator(backend, "c1")

    asyncio.run(paginator.load(reset=True))

    assert paginator.has_more is True
    assert len(paginator.deliveries) == 50
    assert paginator.page == 1
    params = fake.calls("GET", DELIVERIES)[0].url.params
    assert params["campaign_id"] == "eq.c1"
    assert params["order"] == "created_at.desc"
    assert params["offset"] == "0"
    assert params["limit"] == "50"


def test_short_page_means_no_more(make_backend):
    backend, _ = make_backend({("GET", DELIVERIES): delivery_rows(49), ("GET", CUSTOMERS): customers_for})
    paginator = DeliveryPaginator(backend, "c1")

    asyncio.run(paginator.load(reset=True))

    assert paginator.has_more is False


def test_append_accumulates_and_advances(make_backend):
    backend, fake = make_backend(
        {
            ("GET", DELIVERIES): [delivery_rows(50), delivery_rows(10, start=50)],
            ("GET", CUSTOMERS): customers_for,
        }
    )
    paginator = DeliveryPaginator(backend, "c1")

    async def run():
        await paginator.load(reset=True)
        await paginator.load()

    asyncio.run(run())

    assert [d.id for d in paginator.deliveries][:2] == ["d0", "d1"]
    assert len(paginator.deliveries) == 60
    assert paginator.page == 2
    assert paginator.has_more is False
    assert fake.calls("GET", DELIVERIES)[1].url.params["offset"] == "50"


def test_failed_page_keeps_earlier_pages(make_backend):
    backend, _ = make_backend(
        {
            ("GET", DELIVERIES): [delivery_rows(50), httpx.Response(500, json={"message": "statement timeout"})],
            ("GET", CUSTOMERS): customers_for,
        }
    )
    paginator = DeliveryPaginator(backend, "c1")

    async def run():
        await paginator.load(reset=True)
        return await paginator.load()

    fetched = asyncio.run(run())

    assert fetched == []
    assert paginator.error == "statement timeout"
    assert len(paginator.deliveries) == 50
    assert paginator.page == 1


def test_status_filters_use_stored_flags(make_backend):
    backend, fake = make_backend({("GET", DELIVERIES): [], ("GET", CUSTOMERS): []})

    expected = {
        DeliveryStatusFilter.ALL: {},
        DeliveryStatusFilter.PENDING: {"push_attempted": ["eq.false"]},
        DeliveryStatusFilter.OK: {"push_attempted": ["eq.true"], "push_ok": ["eq.true"]},
        DeliveryStatusFilter.FAILED: {"push_attempted": ["eq.true"], "push_ok": ["eq.false"]},
    }
    for status, flags in expected.items():
        paginator = DeliveryPaginator(backend, "c1", status)
        asyncio.run(paginator.load(reset=True))
        params = fake.requests[-1].url.params
        for column in ("push_attempted", "push_ok"):
            assert params.get_list(column) == flags.get(column, [])


def test_customers_resolved_once_and_merged(make_backend):
    backend, fake = make_backend(
        {
            ("GET", DELIVERIES): [delivery_rows(3), delivery_rows(3, start=3, customer_prefix="v")],
            ("GET", CUSTOMERS): customers_for,
        }
    )
    paginator = DeliveryPaginator(backend, "c1", page_size=3)

    async def run():
        await paginator.load(reset=True)
        await paginator.load()

    asyncio.run(run())

    assert paginator.customers.get("u0").name == "Name u0"
    assert paginator.customers.get("v2").email == "v2@example.com"
    assert len(paginator.customers.entries) == 6
    assert len(fake.calls("GET", CUSTOMERS)) == 2


def test_customer_lookup_batches(make_backend):
    backend, fake = make_backend({("GET", CUSTOMERS): customers_for})
    cache = CustomerCache(backend, batch_size=2)

    added = asyncio.run(cache.resolve(["a", "b", "b", " ", "c", "d", "e"]))

    assert added == 5
    batches = [r.url.params["id"] for r in fake.calls("GET", CUSTOMERS)]
    assert batches == ["in.(a,b)", "in.(c,d)", "in.(e)"]

    asyncio.run(cache.resolve(["a", "e"]))
    assert len(fake.calls("GET", CUSTOMERS)) == 3


def test_customer_lookup_failure_keeps_rows(make_backend):
    backend, _ = make_backend(
        {("GET", DELIVERIES): delivery_rows(2), ("GET", CUSTOMERS): httpx.Response(500, json={"message": "denied"})}
    )
    paginator = DeliveryPaginator(backend, "c1")

    asyncio.run(paginator.load(reset=True))

    assert len(paginator.deliveries) == 2
    assert paginator.error == "denied"
