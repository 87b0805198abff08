import pytest

from app.models.payment import Payment
from app.services.payments import filter_payments, summarize_payments


def payment(ticket_id, status="completed", amount=5.0, currency=None, **extra):
    return Payment(ticket_id=ticket_id, payment_status=status, payment_amount=amount, payment_currency=currency, **extra)


def test_search_covers_raffle_customer_and_payment_ids():
    payments = [
        payment("t1", raffle_item_name="Kerry Weekend", customer_county="Kerry"),
        payment("t2", payment_intent_id="pi_123", customer_email="cian@example.org"),
        payment("t3", checkout_session_id="cs_789"),
    ]

    assert [p.ticket_id for p in filter_payments(payments, search="KERRY")] == ["t1"]
    assert [p.ticket_id for p in filter_payments(payments, search="pi_1")] == ["t2"]
    assert [p.ticket_id for p in filter_payments(payments, search="cs_7")] == ["t3"]
    assert [p.ticket_id for p in filter_payments(payments, search="t2")] == ["t2"]
    assert filter_payments(payments, search="  ") == payments


def test_unknown_status_filter_is_rejected():
    with pytest.raises(ValueError):
        filter_payments([], status="refunded")


def test_summary_prefers_euro_currency():
    summary = summarize_payments(
        [
            payment("t1", currency="gbp"),
            payment("t2", currency="EUR", amount=10.0),
            payment("t3", status="pending", currency="eur"),
        ]
    )

    assert summary.total == 3
    assert summary.completed == 2
    assert summary.pending == 1
    assert summary.revenue == 15.0
    assert summary.currency == "EUR"


def test_summary_falls_back_to_first_currency_then_default():
    assert summarize_payments([payment("t1", currency="gbp")]).currency == "gbp"
    assert summarize_payments([]).currency == "eur"
