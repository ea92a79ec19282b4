import pytest

from backend.payments import service as payments_service
from backend.trips.models import TripStatus
from backend.utils.errors import Forbidden, InvalidRequest

USER = {"id": "test-user", "email": "test@example.com"}


def _paid_session(fake_stripe, store, amount=57, user_id="test-user"):
    store.add_trip("trip-1", status=TripStatus.CHECKOUT_PENDING, quoted_price=amount)
    created = fake_stripe.create_checkout_session(
        customer_id=None,
        customer_email="test@example.com",
        line_items=[{"price_data": {"currency": "usd", "unit_amount": amount * 100}, "quantity": 1}],
        success_url="s",
        cancel_url="c",
        metadata={"trip_id": "trip-1", "tier_name": "Standard", "user_id": user_id, "amount": str(amount)},
    )
    return fake_stripe.pay_session(created["id"], intent_id="pi_checkout_1")


def test_settle_paid_session_marks_trip_paid(store, fake_stripe):
    session = _paid_session(fake_stripe, store)
    outcome = payments_service.settle_checkout_session(session)

    assert outcome == {"status": "settled", "trip_id": "trip-1", "charge_id": "pi_checkout_1", "trip_status": "paid"}
    assert store.trips["trip-1"]["status"] == TripStatus.PAID
    assert store.trips["trip-1"]["price_paid"] == 57
    assert store.attempts_for("trip-1")[0]["status"] == "succeeded"


def test_settlement_replay_is_a_noop(store, fake_stripe):
    session = _paid_session(fake_stripe, store)
    payments_service.settle_checkout_session(session)
    again = payments_service.settle_checkout_session(session)
    assert again["status"] == "already_settled"
    assert len(store.attempts_for("trip-1")) == 1


def test_unpaid_session_is_pending(store, fake_stripe):
    store.add_trip("t", status=TripStatus.CHECKOUT_PENDING, quoted_price=57)
    outcome = payments_service.settle_checkout_session(
        {"id": "cs_1", "payment_status": "unpaid", "metadata": {"trip_id": "t"}}
    )
    assert outcome == {"status": "pending", "trip_id": "t", "charge_id": None, "trip_status": None}
    assert store.payments == []
    assert store.trips["t"]["status"] == TripStatus.CHECKOUT_PENDING


def test_fully_discounted_session_settles_with_session_id(store):
    store.add_trip("trip-2", status=TripStatus.CHECKOUT_PENDING, quoted_price=57)
    session = {
        "id": "cs_promo",
        "payment_status": "no_payment_required",
        "payment_intent": None,
        "amount_total": 0,
        "metadata": {"trip_id": "trip-2", "tier_name": "Standard", "user_id": "test-user", "amount": "57"},
    }
    outcome = payments_service.settle_checkout_session(session)

    assert outcome["status"] == "settled"
    assert outcome["charge_id"] == "cs_promo"
    assert store.trips["trip-2"]["status"] == TripStatus.PAID
    assert store.trips["trip-2"]["price_paid"] == 0
    assert store.attempts_for("trip-2")[0]["stripe_payment_id"] == "cs_promo"


def test_session_without_trip_id_is_refused(store):
    with pytest.raises(InvalidRequest):
        payments_service.settle_checkout_session({"id": "cs_1", "payment_status": "paid", "metadata": {}})


def test_handle_event_settles_completed_session(store, fake_stripe):
    session = _paid_session(fake_stripe, store)
    event = {"type": "checkout.session.completed", "data": {"object": session}}
    assert payments_service.handle_event(event)["status"] == "settled"


def test_handle_event_ignores_other_types(store):
    outcome = payments_service.handle_event({"type": "payment_intent.created", "data": {"object": {}}})
    assert outcome == {"status": "ignored", "type": "payment_intent.created"}
    assert store.payments == []


def test_confirm_session(store, fake_stripe):
    session = _paid_session(fake_stripe, store)
    outcome = payments_service.confirm_session(session["id"], "test-user")
    assert outcome["status"] == "settled"
    assert store.trips["trip-1"]["status"] == TripStatus.PAID


def test_confirm_then_webhook_records_once(store, fake_stripe):
    session = _paid_session(fake_stripe, store)
    payments_service.confirm_session(session["id"], "test-user")
    event = {"type": "checkout.session.completed", "data": {"object": session}}
    assert payments_service.handle_event(event)["status"] == "already_settled"
    assert len(store.attempts_for("trip-1")) == 1


def test_confirm_other_users_session_is_forbidden(store, fake_stripe):
    session = _paid_session(fake_stripe, store, user_id="someone-else")
    with pytest.raises(Forbidden):
        payments_service.confirm_session(session["id"], "test-user")
    assert store.payments == []


def test_confirm_unpaid_session_is_pending(store, fake_stripe):
    store.add_trip("trip-1", quoted_price=57)
    created = fake_stripe.create_checkout_session(
        customer_id=None, customer_email=None,
        line_items=[{"price_data": {"currency": "usd", "unit_amount": 5700}, "quantity": 1}],
        success_url="s", cancel_url="c", metadata={"trip_id": "trip-1", "user_id": "test-user"},
    )
    outcome = payments_service.confirm_session(created["id"], "test-user")
    assert outcome["status"] == "pending"
    assert store.payments == []


def test_confirm_session_without_owner_is_forbidden(store, fake_stripe):
    session = _paid_session(fake_stripe, store, user_id="")
    with pytest.raises(Forbidden):
        payments_service.confirm_session(session["id"], "test-user")
    assert store.payments == []


def test_handle_event_settles_delayed_payment(store, fake_stripe):
    session = _paid_session(fake_stripe, store)
    event = {"type": "checkout.session.async_payment_succeeded", "data": {"object": session}}
    assert payments_service.handle_event(event)["status"] == "settled"
    assert store.trips["trip-1"]["status"] == TripStatus.PAID


def test_confirm_unknown_session(store, fake_stripe):
    with pytest.raises(InvalidRequest):
        payments_service.confirm_session("cs_missing", "test-user")


def test_amount_falls_back_to_amount_total(store, fake_stripe):
    store.add_trip("trip-2")
    session = {
        "id": "cs_legacy",
        "payment_status": "paid",
        "payment_intent": None,
        "amount_total": 2500,
        "metadata": {"tripId": "trip-2"},
    }
    outcome = payments_service.settle_checkout_session(session)
    assert outcome["charge_id"] == "cs_legacy"
    assert store.trips["trip-2"]["price_paid"] == 25
