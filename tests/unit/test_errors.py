import pytest

from backend.utils import errors


@pytest.mark.parametrize("cls, status", [
    (errors.Unauthorized, 401),
    (errors.Forbidden, 403),
    (errors.InvalidRequest, 400),
    (errors.InvalidTier, 400),
    (errors.TripNotFound, 404),
    (errors.NoCustomer, 409),
    (errors.NoPaymentMethod, 409),
    (errors.AttachRejected, 402),
    (errors.ChargeDeclined, 402),
    (errors.ProcessorUnavailable, 503),
    (errors.PersistenceFailure, 500),
])
def test_status_codes(cls, status):
    assert cls.status_code == status
    assert issubclass(cls, errors.BillingError)


def test_payload_drops_empty_extras():
    exc = errors.ChargeDeclined(None, status="failed", charge_id=None)
    assert exc.to_payload() == {"error": "charge_declined", "detail": exc.default_detail, "status": "failed"}


def test_custom_detail():
    assert str(errors.InvalidRequest("amount doit être positif")) == "amount doit être positif"
