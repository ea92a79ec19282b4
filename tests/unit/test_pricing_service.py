from decimal import Decimal
import pytest

from backend.pricing import service as pricing
from backend.pricing.tiers import EXECUTIVE, STANDARD, get_tier, list_tiers
from backend.trips.models import TripAttributes
from backend.utils.errors import InvalidRequest, InvalidTier


def _attrs(group_size=1, start="2024-06-01", end=None, destinations=None):
    return TripAttributes.from_payload(
        {"group_size": group_size, "start_date": start, "end_date": end, "destinations": destinations or []}
    )


def test_standard_solo_three_days_single_destination_is_base_price():
    quote = pricing.quote(_attrs(1, "2024-06-01", "2024-06-04", ["Paris"]), STANDARD)
    assert (quote.per_person, quote.duration, quote.destination) == (0, 0, 0)
    assert quote.total == 25


def test_standard_group_of_six_twelve_days_three_destinations():
    quote = pricing.quote(_attrs(6, "2024-06-01", "2024-06-13", ["Rome", "Florence", "Venice"]), STANDARD)
    assert quote.per_person == 13  # 4 * 3 + 1 * 1
    assert quote.duration == 4  # floor(12 / 5) * 2
    assert quote.destination == 15  # 2 * 7.5
    assert quote.total == 57


def test_standard_solo_one_week_one_destination():
    quote = pricing.quote(_attrs(1, "2024-06-01", "2024-06-08", ["Paris"]), STANDARD)
    assert quote.per_person == 0
    assert quote.duration == 2
    assert quote.destination == 0
    assert quote.total == 27


def test_standard_family_ten_days_three_destinations():
    quote = pricing.quote(_attrs(4, "2024-06-01", "2024-06-11", ["Paris", "Lyon", "Nice"]), STANDARD)
    assert quote.per_person == 9
    assert quote.duration == 4
    assert quote.destination == 15
    assert quote.total == 53


def test_standard_large_group_crosses_per_person_band():
    # 8 voyageurs: 4 * 3 + 3 * 1
    assert pricing.per_person_surcharge(8) == 15
    quote = pricing.quote(_attrs(8, "2024-06-01", "2024-06-02"), STANDARD)
    assert quote.total == 25 + 15


def test_half_destination_is_rounded_half_up_on_total_only():
    quote = pricing.quote(_attrs(1, "2024-06-01", "2024-06-02", ["A", "B"]), STANDARD)
    assert quote.destination == Decimal("7.5")
    assert quote.total == 33  # 32.5 -> 33


def test_executive_is_flat_base_price():
    quote = pricing.quote(_attrs(12, "2024-06-01", "2024-07-01", ["A", "B", "C", "D"]), EXECUTIVE)
    assert quote.total == 500
    assert (quote.per_person, quote.duration, quote.destination) == (0, 0, 0)


def test_flexible_dates_count_as_one_day():
    quote = pricing.quote(_attrs(1, None, None), STANDARD)
    assert quote.duration == 0
    assert quote.total == 25


def test_partial_day_rounds_duration_up():
    attrs = TripAttributes.from_payload({"startDate": "2024-06-01T00:00:00Z", "endDate": "2024-06-05T12:00:00Z"})
    assert attrs.duration_days == 5
    assert pricing.duration_surcharge(attrs.duration_days) == 2


def test_duration_blocks_are_not_prorated():
    assert pricing.duration_surcharge(4) == 0
    assert pricing.duration_surcharge(5) == 2
    assert pricing.duration_surcharge(9) == 2
    assert pricing.duration_surcharge(10) == 4


def test_unknown_tier_is_rejected():
    with pytest.raises(InvalidTier):
        pricing.quote(_attrs(), "platinum")


def test_invalid_tier_is_an_invalid_request():
    assert issubclass(InvalidTier, InvalidRequest)


def test_tier_lookup_is_case_insensitive():
    assert get_tier("Standard").id == STANDARD
    assert [t.id for t in list_tiers()] == [STANDARD, EXECUTIVE]


@pytest.mark.parametrize("group_size", [1, 2, 5, 6, 20])
def test_total_never_below_base_and_grows_with_group(group_size):
    smaller = pricing.quote(_attrs(group_size), STANDARD).total
    larger = pricing.quote(_attrs(group_size + 1), STANDARD).total
    assert smaller >= 25
    assert larger >= smaller


def test_quote_is_deterministic():
    attrs = _attrs(3, "2024-06-01", "2024-06-20", ["A", "B"])
    assert pricing.quote(attrs, STANDARD) == pricing.quote(attrs, STANDARD)


def test_to_minor_units():
    assert pricing.to_minor_units(57) == 5700
    assert pricing.to_minor_units(32.5) == 3250
    assert pricing.to_minor_units("500") == 50000


def test_quote_to_dict():
    data = pricing.quote(_attrs(2, "2024-06-01", "2024-06-02", ["A", "B"]), STANDARD).to_dict()
    assert data == {
        "tier": "standard",
        "base_price": 25,
        "per_person_surcharge": 3.0,
        "duration_surcharge": 0.0,
        "destination_surcharge": 7.5,
        "total": 36,
    }
