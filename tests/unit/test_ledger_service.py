import pytest

from backend.ledger import service as ledger
from backend.trips.models import TripStatus
from backend.utils.errors import InvalidRequest


def test_record_validates_status(store):
    with pytest.raises(InvalidRequest):
        ledger.record("t1", 57, "pi_1", "refunded")
    assert store.payments == []


def test_history_is_latest_first(store):
    store.add_trip("t1")
    ledger.record("t1", 57, "pi_1", "failed")
    ledger.record("t1", 57, "pi_2", "requires_action")
    ledger.record("t1", 57, "pi_3", "succeeded")
    assert [a.charge_id for a in ledger.history("t1")] == ["pi_3", "pi_2", "pi_1"]
    assert ledger.latest_status("t1").status == "succeeded"
    assert ledger.attempt_epoch("t1") == 3


def test_record_same_charge_twice_keeps_one_row(store):
    ledger.record("t1", 57, "pi_1", "succeeded")
    ledger.record("t1", 57, "pi_1", "succeeded")
    assert len(store.attempts_for("t1")) == 1
    assert ledger.is_settled("pi_1")
    assert not ledger.is_settled("pi_2")


def test_rebuild_without_attempts_leaves_trip_unchanged(store):
    store.add_trip("t1", status=TripStatus.CHECKOUT_PENDING)
    assert ledger.rebuild_trip_status("t1") is None
    assert store.trips["t1"]["status"] == TripStatus.CHECKOUT_PENDING


def test_rebuild_after_failures(store):
    store.add_trip("t1", status=TripStatus.QUOTED)
    ledger.record("t1", 57, "pi_1", "failed")
    assert ledger.rebuild_trip_status("t1") == TripStatus.PAYMENT_FAILED
    assert store.trips["t1"]["status"] == TripStatus.PAYMENT_FAILED


def test_succeeded_attempt_wins_over_later_failure(store):
    store.add_trip("t1", status=TripStatus.QUOTED)
    ledger.record("t1", 57, "pi_ok", "succeeded")
    ledger.record("t1", 57, "pi_late", "failed")

    assert ledger.rebuild_trip_status("t1") == TripStatus.PAID
    assert store.trips["t1"]["status"] == TripStatus.PAID
    assert store.trips["t1"]["price_paid"] == 57
    assert ledger.succeeded_attempt("t1").charge_id == "pi_ok"


def test_rebuild_repairs_drift(store):
    # Registre payé mais projection restée en checkout_pending
    store.add_trip("t1", status=TripStatus.CHECKOUT_PENDING)
    store.insert_attempt(trip_id="t1", amount=25, charge_id="pi_1", status="succeeded")
    ledger.rebuild_trip_status("t1")
    assert store.trips["t1"]["status"] == TripStatus.PAID


def test_paid_trip_never_downgraded(store):
    store.add_trip("t1", status=TripStatus.PAID, price_paid=57)
    store.update_trip_unless_paid("t1", {"status": TripStatus.PAYMENT_FAILED})
    assert store.trips["t1"]["status"] == TripStatus.PAID
