from app.models.campaign import Delivery
from app.services.delivery_status import DeliveryStatus, infer_delivery_outcome, infer_delivery_status
from app.services.normalizers import normalize_delivery


def make_delivery(**fields):
    base = {"id": "d1", "created_at": "2025-01-01T00:00:00Z", "campaign_id": "c1", "customer_id": "u1"}
    base.update(fields)
    return Delivery(**base)


def test_stored_flags_win_when_attempted():
    for push_ok in (True, False):
        delivery = make_delivery(
            push_attempted=True,
            push_ok=push_ok,
            error="provider said no",
            push_response={"status": "ok" if not push_ok else "error"},
        )
        outcome = infer_delivery_outcome(delivery)
        assert outcome.attempted is True
        assert outcome.ok is push_ok


def test_nothing_recorded_is_pending():
    assert infer_delivery_status(make_delivery()) is DeliveryStatus.PENDING
    assert infer_delivery_status(make_delivery(push_response={})) is DeliveryStatus.PENDING
    assert infer_delivery_status(make_delivery(error="")) is DeliveryStatus.PENDING


def test_error_without_flag_is_failed():
    outcome = infer_delivery_outcome(make_delivery(error="DeviceNotRegistered", push_response={"status": "ok"}))
    assert outcome.attempted is True
    assert outcome.ok is False
    assert outcome.status is DeliveryStatus.FAILED


def test_response_status_is_case_insensitive():
    assert infer_delivery_status(make_delivery(push_response={"status": "OK"})) is DeliveryStatus.OK
    assert infer_delivery_status(make_delivery(push_response={"status": "Success"})) is DeliveryStatus.OK
    assert infer_delivery_status(make_delivery(push_response={"status": "Error"})) is DeliveryStatus.FAILED
    assert infer_delivery_status(make_delivery(push_response={"status": "failed"})) is DeliveryStatus.FAILED


def test_response_ok_field_used_when_status_unrecognised():
    assert infer_delivery_status(make_delivery(push_response={"status": "queued", "ok": True})) is DeliveryStatus.OK
    assert infer_delivery_status(make_delivery(push_response={"ok": False})) is DeliveryStatus.FAILED


def test_response_without_signal_is_attempted_unknown():
    outcome = infer_delivery_outcome(make_delivery(push_response={"id": "ticket-1"}))
    assert outcome.attempted is True
    assert outcome.ok is None
    assert outcome.status is DeliveryStatus.ATTEMPTED_UNKNOWN


def test_inference_does_not_modify_record():
    delivery = make_delivery(error="boom")
    infer_delivery_outcome(delivery)
    assert delivery.push_attempted is False
    assert delivery.push_ok is False


def test_whitespace_error_from_a_row_is_still_failed():
    delivery = normalize_delivery({"id": "d1", "created_at": "t", "push_attempted": False, "error": "   "})

    assert delivery.error == "   "
    assert infer_delivery_status(delivery) is DeliveryStatus.FAILED
