"""Send notification campaigns through the hosted dispatch function.

The function creates the campaign row and one delivery row per recipient;
this module only validates the targeting input, forwards it with the
admin's bearer token and interprets the answer. Nothing is retried.
"""
import logging
from typing import Any

from app.database import BackendClient
from app.models.campaign import CampaignMode
from app.schemas.campaign import SendCampaignRequest, SendCampaignResult
from app.services.normalizers import to_int

logger = logging.getLogger(__name__)

DISPATCH_FUNCTION = "admin-send-notification"


class NotAuthenticatedError(Exception):
    """No admin session token to send with the request."""


class DispatchError(Exception):
    """The dispatch function answered with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedResponseError(Exception):
    """The dispatch function answered 2xx with an unexpected body."""


def build_dispatch_payload(request: SendCampaignRequest) -> dict[str, Any]:
    """Validate mode requirements and keep only the fields the mode uses.

    Raises ValueError before any network call when required targeting
    input is missing.
    """
    raffle_ids = request.raffle_ids or []
    customer_ids = request.customer_ids or []

    payload: dict[str, Any] = {
        "mode": request.mode.value,
        "title": request.title,
        "body": request.body,
        "data": request.data or {},
        "only_completed_tickets": request.only_completed_tickets,
    }

    if request.mode is CampaignMode.RAFFLE_USERS:
        if not request.raffle_id:
            raise ValueError("Select a raffle for raffle participant targeting.")
        payload["raffle_id"] = request.raffle_id

    elif request.mode is CampaignMode.ATTEMPT_STATUS:
        if request.raffle_id:
            payload["raffle_id"] = request.raffle_id
        payload["attempt_passed"] = request.attempt_passed if request.attempt_passed is not None else True

    elif request.mode is CampaignMode.MULTI_RAFFLE_UNION:
        if len(raffle_ids) < 2:
            raise ValueError("Union targeting needs at least 2 raffle IDs.")
        payload["raffle_ids"] = raffle_ids

    elif request.mode is CampaignMode.SELECTED_CUSTOMERS:
        if not customer_ids:
            raise ValueError("Select at least one customer.")
        payload["customer_ids"] = customer_ids

    return payload


def _error_message(status_code: int, body: Any) -> str:
    message = f"Request failed with status {status_code}"
    if isinstance(body, dict) and any(key in body for key in ("error", "message", "details")):
        if body.get("error"):
            message = str(body["error"])
        elif body.get("message"):
            message = str(body["message"])
        if body.get("details"):
            message += f" | {body['details']}"
    return message


async def send_campaign(
    backend: BackendClient,
    request: SendCampaignRequest,
    access_token: str | None,
    function_name: str = DISPATCH_FUNCTION,
) -> SendCampaignResult:
    """Create a campaign and return its id and recipient count."""
    if not access_token:
        raise NotAuthenticatedError("Not signed in (missing access token).")

    payload = build_dispatch_payload(request)
    response = await backend.invoke_function(function_name, payload, access_token)

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.is_error:
        message = _error_message(response.status_code, body)
        logger.warning("Campaign dispatch failed (%s): %s", response.status_code, message)
        raise DispatchError(message, response.status_code)

    if not isinstance(body, dict) or "ok" not in body:
        raise MalformedResponseError(f"Malformed response from {function_name}.")

    campaign_id = body.get("campaign_id")
    recipient_count = body.get("recipient_count")
    result = SendCampaignResult(
        ok=bool(body["ok"]),
        campaign_id=str(campaign_id) if campaign_id is not None else None,
        recipient_count=to_int(recipient_count),
    )
    logger.info(
        "Campaign %s sent in mode %s to %d recipient(s)",
        result.campaign_id,
        payload["mode"],
        result.recipient_count,
    )
    return result
