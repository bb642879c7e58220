"""Unit tests for seat and draft pricing."""

from decimal import Decimal

import pytest

from booking_flow.core.exceptions import ValidationFailedError
from booking_flow.schemas.booking import BookingDraft, ExtraServices, SupportPackage
from booking_flow.schemas.flight import Flight
from booking_flow.services.pricing import (
    AncillaryPricing,
    SeatPricing,
    parse_seat_label,
    per_seat_price,
    seat_price_total,
    total_draft_price,
)

PRICING = SeatPricing()


@pytest.mark.parametrize(
    "label,expected",
    [
        ("1A", Decimal("500000")),
        ("10F", Decimal("500000")),
        ("11C", Decimal("100000")),
        ("12A", Decimal("300000")),
        ("15F", Decimal("300000")),
        ("16B", Decimal("100000")),
        ("30F", Decimal("100000")),
    ],
)
def test_per_seat_price_by_row(label, expected):
    """Seat price follows the row tiers."""
    assert per_seat_price(label, PRICING) == expected


def test_parse_seat_label_accepts_lowercase():
    assert parse_seat_label("12b") == (12, "B")


@pytest.mark.parametrize("label", ["", "A12", "0A", "12", "12AB", "1234A"])
def test_parse_seat_label_rejects_malformed(label):
    with pytest.raises(ValidationFailedError) as exc_info:
        parse_seat_label(label)

    assert "seats" in exc_info.value.errors


def test_seat_price_total_sums_rows():
    assert seat_price_total(["12A", "12B"], PRICING) == Decimal("600000")
    assert seat_price_total([], PRICING) == Decimal("0")


def test_ancillary_total_charges_covers_per_passenger():
    """Support is charged once; medical and collapse cover once per passenger."""
    services = ExtraServices(support_package=SupportPackage.PLATINUM, medical_cover=True, collapse_cover=True)

    total = AncillaryPricing().total(services, passenger_count=2)

    assert total == Decimal("58.49") + Decimal("70.86") * 2 + Decimal("18.86") * 2


def test_ancillary_total_without_services_is_zero():
    assert AncillaryPricing().total(None, passenger_count=3) == Decimal("0")


def test_total_draft_price_happy_path(sample_flight_data):
    """Fare 1,000,000 plus taxes 200,000 for two passengers, seats 12A and 12B."""
    draft = BookingDraft(
        selected_flight=Flight.model_validate(sample_flight_data),
        passenger_count=2,
        selected_seats=["12A", "12B"],
        seat_price=Decimal("600000"),
    )

    assert total_draft_price(draft, AncillaryPricing()) == Decimal("3000000")


def test_total_draft_price_empty_draft():
    assert total_draft_price(BookingDraft(), AncillaryPricing()) == Decimal("0")


def test_seat_pricing_from_settings(test_settings):
    pricing = SeatPricing.from_settings(test_settings)

    assert pricing == SeatPricing()
