"""Property-based tests for pricing invariants."""

from datetime import datetime, timezone
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from booking_flow.schemas.booking import BookingDraft, ExtraServices, SupportPackage
from booking_flow.schemas.flight import Flight
from booking_flow.services.pricing import (
    AncillaryPricing,
    SeatPricing,
    per_seat_price,
    seat_price_total,
    total_draft_price,
)

PRICING = SeatPricing()
ANCILLARIES = AncillaryPricing()

# Strategies for generating test data
rows = st.integers(min_value=1, max_value=60)
columns = st.sampled_from("ABCDEF")
seat_labels = st.builds(lambda row, column: f"{row}{column}", rows, columns)
seat_lists = st.lists(seat_labels, max_size=9)
passenger_counts = st.integers(min_value=1, max_value=9)
amounts = st.decimals(min_value=0, max_value=10_000_000, places=0, allow_nan=False, allow_infinity=False)


def make_flight(base_fare: Decimal, taxes: Decimal) -> Flight:
    return Flight(
        airline="Vietnam Airlines",
        flight_number="VN213",
        origin="HAN",
        destination="SGN",
        depart_time=datetime(2026, 12, 1, 8, tzinfo=timezone.utc),
        arrive_time=datetime(2026, 12, 1, 10, 10, tzinfo=timezone.utc),
        base_fare=base_fare,
        taxes=taxes,
        currency="VND",
    )


@given(row=rows, first=columns, second=columns)
def test_seat_price_depends_only_on_row(row, first, second):
    """Two seats in the same row always cost the same."""
    assert per_seat_price(f"{row}{first}", PRICING) == per_seat_price(f"{row}{second}", PRICING)


@given(label=seat_labels)
def test_seat_price_is_a_known_tier(label):
    assert per_seat_price(label, PRICING) in {PRICING.tier_a_price, PRICING.tier_b_price, PRICING.standard_price}


@given(first=seat_lists, second=seat_lists)
def test_seat_total_is_additive(first, second):
    """The total of two selections is the sum of their totals."""
    assert seat_price_total(first + second, PRICING) == (
        seat_price_total(first, PRICING) + seat_price_total(second, PRICING)
    )


@given(seats=seat_lists)
def test_seat_total_ignores_order(seats):
    assert seat_price_total(seats, PRICING) == seat_price_total(list(reversed(seats)), PRICING)


@given(base_fare=amounts, taxes=amounts, passengers=passenger_counts)
def test_fare_scales_with_passengers(base_fare, taxes, passengers):
    """Without seats or extras the draft total is the fare times the passengers."""
    draft = BookingDraft(selected_flight=make_flight(base_fare, taxes), passenger_count=passengers)

    assert total_draft_price(draft, ANCILLARIES) == (base_fare + taxes) * passengers


@given(
    seats=seat_lists,
    passengers=passenger_counts,
    package=st.sampled_from(list(SupportPackage)),
    medical=st.booleans(),
    collapse=st.booleans(),
)
def test_draft_total_is_sum_of_parts(seats, passengers, package, medical, collapse):
    """Fare, seat total and extras add up to the draft total."""
    services = ExtraServices(support_package=package, medical_cover=medical, collapse_cover=collapse)
    seat_price = seat_price_total(seats, PRICING)
    flight = make_flight(Decimal("1000000"), Decimal("200000"))
    draft = BookingDraft(
        selected_flight=flight,
        passenger_count=passengers,
        seat_price=seat_price,
        extra_services=services,
    )

    expected = (
        Decimal("1200000") * passengers
        + seat_price
        + ANCILLARIES.total(services, passengers)
    )
    assert total_draft_price(draft, ANCILLARIES) == expected


@given(passengers=passenger_counts, package=st.sampled_from(list(SupportPackage)))
def test_covers_never_lower_the_extras_total(passengers, package):
    bare = ExtraServices(support_package=package)
    covered = ExtraServices(support_package=package, medical_cover=True, collapse_cover=True)

    assert ANCILLARIES.total(covered, passengers) > ANCILLARIES.total(bare, passengers)
    assert ANCILLARIES.total(bare, passengers) == ANCILLARIES.support_fee(package)
