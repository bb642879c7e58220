"""Seat and draft pricing.

Every price shown before a booking exists goes through this module: the seat
map, the seat total stored on the draft, and the amount to pay. After the
booking is created the server total is authoritative.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..core.config import Settings
from ..core.exceptions import ValidationFailedError
from ..schemas.booking import BookingDraft, ExtraServices, SupportPackage

SEAT_LABEL_PATTERN = re.compile(r"^(\d{1,3})([A-Z])$")

ZERO = Decimal("0")


@dataclass(frozen=True)
class SeatPricing:
    """Seat price tiers by row."""

    tier_a_max_row: int = 10
    tier_a_price: Decimal = Decimal("500000")
    tier_b_first_row: int = 12
    tier_b_last_row: int = 15
    tier_b_price: Decimal = Decimal("300000")
    standard_price: Decimal = Decimal("100000")

    @classmethod
    def from_settings(cls, settings: Settings) -> "SeatPricing":
        return cls(
            tier_a_max_row=settings.seat_tier_a_max_row,
            tier_a_price=settings.seat_tier_a_price,
            tier_b_first_row=settings.seat_tier_b_first_row,
            tier_b_last_row=settings.seat_tier_b_last_row,
            tier_b_price=settings.seat_tier_b_price,
            standard_price=settings.seat_standard_price,
        )

    def price_for_row(self, row: int) -> Decimal:
        if row <= self.tier_a_max_row:
            return self.tier_a_price
        if self.tier_b_first_row <= row <= self.tier_b_last_row:
            return self.tier_b_price
        return self.standard_price


@dataclass(frozen=True)
class AncillaryPricing:
    """Extra service fees. Covers are charged per passenger, support once per booking."""

    support_standard_fee: Decimal = Decimal("56.93")
    support_platinum_fee: Decimal = Decimal("58.49")
    medical_cover_fee: Decimal = Decimal("70.86")
    collapse_cover_fee: Decimal = Decimal("18.86")

    @classmethod
    def from_settings(cls, settings: Settings) -> "AncillaryPricing":
        return cls(
            support_standard_fee=settings.support_standard_fee,
            support_platinum_fee=settings.support_platinum_fee,
            medical_cover_fee=settings.medical_cover_fee,
            collapse_cover_fee=settings.collapse_cover_fee,
        )

    def support_fee(self, package: SupportPackage) -> Decimal:
        if package == SupportPackage.PLATINUM:
            return self.support_platinum_fee
        return self.support_standard_fee

    def total(self, services: ExtraServices | None, passenger_count: int) -> Decimal:
        if services is None:
            return ZERO
        total = self.support_fee(services.support_package)
        if services.medical_cover:
            total += self.medical_cover_fee * passenger_count
        if services.collapse_cover:
            total += self.collapse_cover_fee * passenger_count
        return total


def parse_seat_label(label: str) -> tuple[int, str]:
    """
    Split a seat label such as "12A" into its row and column.

    Raises:
        ValidationFailedError: If the label is not a row number followed by a seat letter
    """
    match = SEAT_LABEL_PATTERN.match(label.strip().upper()) if isinstance(label, str) else None
    if not match or int(match.group(1)) < 1:
        raise ValidationFailedError(
            detail=f"Invalid seat label: {label!r}",
            errors={"seats": f"{label!r} is not a seat label like 12A"},
        )
    return int(match.group(1)), match.group(2)


def per_seat_price(label: str, pricing: SeatPricing) -> Decimal:
    """Price of one seat, determined by its row alone."""
    row, _ = parse_seat_label(label)
    return pricing.price_for_row(row)


def seat_price_total(seats: Iterable[str], pricing: SeatPricing) -> Decimal:
    """Sum of per-seat prices."""
    return sum((per_seat_price(seat, pricing) for seat in seats), ZERO)


def draft_passenger_count(draft: BookingDraft) -> int:
    """Passengers entered so far, or the requested count before they are entered."""
    return len(draft.passengers) or draft.passenger_count


def total_draft_price(draft: BookingDraft, ancillaries: AncillaryPricing) -> Decimal:
    """
    Amount to pay for a draft before the booking exists.

    (base fare + taxes) per passenger, plus the seat total, plus extra services.
    """
    passengers = draft_passenger_count(draft)
    total = draft.seat_price + ancillaries.total(draft.extra_services, passengers)
    if draft.selected_flight is not None:
        flight = draft.selected_flight
        total += (flight.base_fare + flight.taxes) * passengers
    return total
