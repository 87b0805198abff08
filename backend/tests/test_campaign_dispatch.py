import asyncio
import json

import httpx
import pytest
from pydantic import ValidationError

from app.schemas.campaign import SendCampaignRequest
from app.services.campaign_dispatch import (
    DispatchError,
    MalformedResponseError,
    NotAuthenticatedError,
    build_dispatch_payload,
    send_campaign,
)

FUNCTION_PATH = "/functions/v1/admin-send-notification"


def test_success_values_pass_through_unchanged(make_backend):
    backend, fake = make_backend({("POST", FUNCTION_PATH): {"ok": True, "campaign_id": "c1", "recipient_count": 12}})
    request = SendCampaignRequest(mode="all_users", title="Hello", body="Draw tonight")

    result = asyncio.run(send_campaign(backend, request, "admin-token"))

    assert result.ok is True
    assert result.campaign_id == "c1"
    assert result.recipient_count == 12

    sent = fake.calls("POST", FUNCTION_PATH)[0]
    assert sent.headers["Authorization"] == "Bearer admin-token"
    assert json.loads(sent.content) == {
        "mode": "all_users",
        "title": "Hello",
        "body": "Draw tonight",
        "data": {},
        "only_completed_tickets": True,
    }


def test_error_body_message_is_raised_verbatim(make_backend):
    backend, _ = make_backend({("POST", FUNCTION_PATH): httpx.Response(400, json={"error": "bad mode"})})
    request = SendCampaignRequest(mode="all_users", body="x")

    with pytest.raises(DispatchError) as exc_info:
        asyncio.run(send_campaign(backend, request, "admin-token"))

    assert str(exc_info.value) == "bad mode"
    assert exc_info.value.status_code == 400


def test_error_details_are_appended(make_backend):
    backend, _ = make_backend(
        {("POST", FUNCTION_PATH): httpx.Response(500, json={"message": "Insert failed", "details": "rls"})}
    )

    with pytest.raises(DispatchError, match=r"^Insert failed \| rls$"):
        asyncio.run(send_campaign(backend, SendCampaignRequest(mode="all_users", body="x"), "t"))


def test_error_without_body_uses_status(make_backend):
    backend, _ = make_backend({("POST", FUNCTION_PATH): httpx.Response(503, text="upstream down")})

    with pytest.raises(DispatchError, match="^Request failed with status 503$"):
        asyncio.run(send_campaign(backend, SendCampaignRequest(mode="all_users", body="x"), "t"))


def test_malformed_success_body(make_backend):
    backend, _ = make_backend({("POST", FUNCTION_PATH): {"campaign": "c1"}})

    with pytest.raises(MalformedResponseError, match="Malformed response from admin-send-notification."):
        asyncio.run(send_campaign(backend, SendCampaignRequest(mode="all_users", body="x"), "t"))


def test_missing_token_fails_before_any_call(make_backend):
    backend, fake = make_backend()

    with pytest.raises(NotAuthenticatedError):
        asyncio.run(send_campaign(backend, SendCampaignRequest(mode="all_users", body="x"), None))
    assert fake.requests == []


def test_mode_requirements_are_checked_before_sending():
    with pytest.raises(ValueError, match="Select a raffle"):
        build_dispatch_payload(SendCampaignRequest(mode="raffle_users", body="x"))
    with pytest.raises(ValueError, match="at least 2 raffle IDs"):
        build_dispatch_payload(SendCampaignRequest(mode="multi_raffle_union", body="x", raffle_ids="r1\nr1"))
    with pytest.raises(ValueError, match="at least one customer"):
        build_dispatch_payload(SendCampaignRequest(mode="selected_customers", body="x", customer_ids=" , "))


def test_only_mode_fields_are_forwarded():
    request = SendCampaignRequest(
        mode="attempt_status",
        body="Try again!",
        raffle_id="r1",
        raffle_ids=["r2", "r3"],
        customer_ids=["u1"],
        only_completed_tickets=False,
    )
    payload = build_dispatch_payload(request)

    assert payload["raffle_id"] == "r1"
    assert payload["attempt_passed"] is True
    assert payload["only_completed_tickets"] is False
    assert "raffle_ids" not in payload
    assert "customer_ids" not in payload

    union = build_dispatch_payload(SendCampaignRequest(mode="multi_raffle_union", body="x", raffle_ids="a, b, a"))
    assert union["raffle_ids"] == ["a", "b"]


def test_request_validation():
    assert SendCampaignRequest(mode="all_users", title="  ", body=" hi ").title == "SnapWin"
    assert SendCampaignRequest(mode="all_users", body=" hi ").body == "hi"
    with pytest.raises(ValidationError):
        SendCampaignRequest(mode="all_users", body="   ")
    with pytest.raises(ValidationError):
        SendCampaignRequest(mode="unknown", body="x")
    with pytest.raises(ValidationError):
        SendCampaignRequest(mode="everyone", body="x")
