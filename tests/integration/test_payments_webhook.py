import json
import time

import stripe
import pytest

WEBHOOK_SECRET = "whsec_test_secret"


def _signed(payload: dict):
    """Corps + en-tête Stripe-Signature calculés comme le fait Stripe."""
    body = json.dumps(payload)
    timestamp = int(time.time())
    signature = stripe.WebhookSignature._compute_signature(f"{timestamp}.{body}", WEBHOOK_SECRET)
    return body, {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


def _completed_event(session_id="cs_1", trip_id="trip-1", intent="pi_cs_1", payment_status="paid"):
    return {
        "id": "evt_1",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": payment_status,
                "payment_intent": intent,
                "amount_total": 5700,
                "currency": "usd",
                "metadata": {"trip_id": trip_id, "tier_name": "Standard", "user_id": "test-user", "amount": "57"},
            }
        },
    }


@pytest.fixture(autouse=True)
def _webhook_secret(monkeypatch):
    monkeypatch.setattr("backend.payments.stripe_client.STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)


def test_completed_event_settles_trip(anonymous_client, store):
    store.add_trip("trip-1", status="checkout_pending", quoted_price=57)
    body, headers = _signed(_completed_event())

    res = anonymous_client.post("/api/v1/payments/webhook", content=body, headers=headers)

    assert res.status_code == 200
    assert res.json()["status"] == "settled"
    assert store.trips["trip-1"]["status"] == "paid"
    assert store.attempts_for("trip-1")[0]["stripe_payment_id"] == "pi_cs_1"


def test_redelivered_event_is_noop(anonymous_client, store):
    store.add_trip("trip-1", status="checkout_pending", quoted_price=57)
    body, headers = _signed(_completed_event())
    anonymous_client.post("/api/v1/payments/webhook", content=body, headers=headers)
    res = anonymous_client.post("/api/v1/payments/webhook", content=body, headers=headers)
    assert res.json()["status"] == "already_settled"
    assert len(store.attempts_for("trip-1")) == 1


def test_other_event_types_are_ignored(anonymous_client, store):
    body, headers = _signed({"id": "evt_2", "object": "event", "type": "customer.created", "data": {"object": {}}})
    res = anonymous_client.post("/api/v1/payments/webhook", content=body, headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "ignored"
    assert store.payments == []


def test_bad_signature_is_rejected(anonymous_client, store):
    body, headers = _signed(_completed_event())
    headers["Stripe-Signature"] = "t=1,v1=deadbeef"
    res = anonymous_client.post("/api/v1/payments/webhook", content=body, headers=headers)
    assert res.status_code == 400
    assert store.payments == []


def test_unpaid_completed_session_is_acknowledged_as_pending(anonymous_client, store):
    store.add_trip("trip-1", status="checkout_pending", quoted_price=57)
    body, headers = _signed(_completed_event(payment_status="unpaid", intent=None))
    res = anonymous_client.post("/api/v1/payments/webhook", content=body, headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "pending"
    assert store.payments == []
    assert store.trips["trip-1"]["status"] == "checkout_pending"


def test_fully_discounted_session_settles_trip(anonymous_client, store):
    store.add_trip("trip-1", status="checkout_pending", quoted_price=57)
    event = _completed_event(session_id="cs_promo", payment_status="no_payment_required", intent=None)
    event["data"]["object"]["amount_total"] = 0
    body, headers = _signed(event)

    res = anonymous_client.post("/api/v1/payments/webhook", content=body, headers=headers)

    assert res.status_code == 200
    assert res.json()["status"] == "settled"
    assert res.json()["charge_id"] == "cs_promo"
    assert store.trips["trip-1"]["status"] == "paid"
