import asyncio
import json
from datetime import datetime, timezone

import pytest

from app.models.raffle import Raffle, Ticket
from app.schemas.raffle import RaffleCreate, RaffleUpdate
from app.services import raffles as raffle_service
from app.services.raffles import (
    create_raffle,
    default_draw_date,
    fetch_raffles,
    filter_raffles,
    image_path,
    raffle_stats,
    validate_raffle,
    validate_raffle_update,
)

RAFFLES = "/rest/v1/raffles"


def make_form(**overrides):
    data = {
        "item_name": "  Weekend in Kerry ",
        "item_description": "Two nights, dinner included",
        "ticket_price": 5.0,
        "total_tickets": 200,
        "max_tickets_per_customer": 3,
        "draw_date": "2025-06-01T18:00:00Z",
    }
    data.update(overrides)
    return RaffleCreate(**data)


def test_valid_form_builds_insert_row():
    row = validate_raffle(make_form())

    assert row == {
        "item_name": "Weekend in Kerry",
        "item_description": "Two nights, dinner included",
        "ticket_price": 5.0,
        "total_tickets": 200,
        "sold_tickets": 0,
        "status": "active",
        "draw_date": "2025-06-01T18:00:00+00:00",
        "max_tickets_per_customer": 3,
    }


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"item_name": "   "}, "Item name is required."),
        ({"item_description": ""}, "Item description is required."),
        ({"ticket_price": 0}, "Ticket price must be a positive number."),
        ({"ticket_price": float("nan")}, "Ticket price must be a positive number."),
        ({"total_tickets": 0}, "Total tickets must be a positive integer."),
        ({"max_tickets_per_customer": 1001}, "Max tickets per customer must be an integer between 1 and 1000."),
        ({"draw_date": "next friday"}, "Draw date must be an ISO date/time."),
    ],
)
def test_invalid_form_is_rejected(overrides, message):
    with pytest.raises(ValueError) as exc:
        validate_raffle(make_form(**overrides))
    assert str(exc.value) == message


def test_default_draw_date_is_a_week_out_at_six():
    now = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert default_draw_date(now) == datetime(2025, 3, 8, 18, 0, tzinfo=timezone.utc)


def test_image_path_keeps_extension_or_defaults_to_jpg():
    assert image_path("r1", "prize.png", millis=123) == "raffles/r1-123.png"
    assert image_path("r1", "photo", millis=123) == "raffles/r1-123.jpg"
    assert image_path("r1", "", millis=123) == "raffles/r1-123.jpg"


def test_fetch_and_filter_raffles_by_status_and_name(make_backend):
    backend, _ = make_backend(
        {
            ("GET", RAFFLES): [
                {"id": "r1", "item_name": "Kerry Weekend", "status": "active"},
                {"id": "r2", "item_name": "Kerry Hamper", "status": "drawn"},
                {"id": "r3", "item_name": "Games console", "status": "active"},
                {"id": "", "item_name": "broken"},
            ]
        }
    )

    everything = asyncio.run(fetch_raffles(backend))
    active_kerry = filter_raffles(everything, status="active", search="kerry")

    assert [r.id for r in everything] == ["r1", "r2", "r3"]
    assert [r.id for r in active_kerry] == ["r1"]


def test_create_without_image_only_inserts(make_backend):
    backend, fake = make_backend(
        {("POST", RAFFLES): [{"id": "r9", "item_name": "Weekend in Kerry", "status": "active"}]}
    )

    raffle = asyncio.run(create_raffle(backend, make_form()))

    assert raffle.id == "r9"
    assert raffle.item_image_url is None
    assert json.loads(fake.calls("POST", RAFFLES)[0].content)["sold_tickets"] == 0
    assert fake.calls("PATCH", RAFFLES) == []


def test_create_uploads_image_then_points_row_at_it(make_backend, monkeypatch):
    monkeypatch.setattr(raffle_service.time, "time", lambda: 1700000000.0)
    upload_path = "/storage/v1/object/raffle-images/raffles/r9-1700000000000.png"
    public_url = "https://backend.test/storage/v1/object/public/raffle-images/raffles/r9-1700000000000.png"
    backend, fake = make_backend(
        {
            ("POST", RAFFLES): [{"id": "r9", "item_name": "Weekend in Kerry", "status": "active"}],
            ("POST", upload_path): {"Key": "raffle-images/raffles/r9-1700000000000.png"},
            ("PATCH", RAFFLES): [{"id": "r9", "item_name": "Weekend in Kerry", "item_image_url": public_url}],
        }
    )

    raffle = asyncio.run(
        create_raffle(backend, make_form(), image=b"\x89PNG", image_filename="prize.png", image_content_type="image/png")
    )

    upload = fake.calls("POST", upload_path)[0]
    update = fake.calls("PATCH", RAFFLES)[0]
    assert raffle.item_image_url == public_url
    assert upload.content == b"\x89PNG"
    assert upload.headers["Content-Type"] == "image/png"
    assert upload.headers["x-upsert"] == "false"
    assert update.url.params["id"] == "eq.r9"
    assert json.loads(update.content) == {"item_image_url": public_url}


def make_edit(**overrides):
    data = {
        "item_name": "Weekend in Kerry",
        "item_description": "Two nights",
        "ticket_price": 5.0,
        "total_tickets": 200,
        "draw_date": "2025-06-01T18:00:00Z",
    }
    data.update(overrides)
    return RaffleUpdate(**data)


def test_edit_builds_patch_and_keeps_status_unless_given():
    values = validate_raffle_update(make_edit(), sold_tickets=10)
    with_status = validate_raffle_update(make_edit(status="cancelled", draw_date=""), sold_tickets=10)

    assert values["draw_date"] == "2025-06-01T18:00:00+00:00"
    assert "status" not in values
    assert "updated_at" in values
    assert with_status["status"] == "cancelled"
    assert with_status["draw_date"] is None


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"item_name": ""}, "Item name is required."),
        ({"ticket_price": -1}, "Ticket price must be a positive number."),
        ({"total_tickets": 9}, "Total tickets cannot be lower than sold tickets (10)."),
        ({"draw_date": "soon"}, "Draw date must be an ISO date/time."),
    ],
)
def test_invalid_edit_is_rejected(overrides, message):
    with pytest.raises(ValueError) as exc:
        validate_raffle_update(make_edit(**overrides), sold_tickets=10)
    assert str(exc.value) == message


def test_raffle_stats():
    raffle = Raffle(id="r1", item_name="Hamper", total_tickets=3, sold_tickets=2, ticket_price=2.5)
    tickets = [
        Ticket(id="t1", raffle_id="r1", payment_status="completed"),
        Ticket(id="t2", raffle_id="r1", payment_status="failed"),
    ]

    stats = raffle_stats(raffle, tickets)

    assert stats.sold_percent == 67
    assert stats.revenue == 5.0
    assert (stats.completed_payments, stats.failed_payments) == (1, 1)
    assert raffle_stats(Raffle(id="r2", item_name="Empty"), []).sold_percent == 0
