"""Booking state store for one booking session."""

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..core.exceptions import ValidationFailedError
from ..core.observability import get_logger
from ..schemas.booking import Booking, BookingDraft, ExtraServices, Passenger
from ..schemas.flight import Flight
from .persistence import ABSENT, PersistenceAdapter
from .pricing import SeatPricing, seat_price_total

logger = get_logger(__name__)


class DraftKey:
    """Storage keys, one per persisted draft field."""
    SELECTED_FLIGHT = "selectedFlight"
    PASSENGER_COUNT = "passengerCount"
    SELECTED_SEATS = "selectedSeats"
    SEAT_PRICE = "seatPrice"
    PASSENGERS = "passengers"
    EXTRA_SERVICES = "extraServices"
    CURRENT_BOOKING = "currentBooking"
    CURRENT_BOOKING_ID = "currentBookingId"

    ALL = (
        SELECTED_FLIGHT,
        PASSENGER_COUNT,
        SELECTED_SEATS,
        SEAT_PRICE,
        PASSENGERS,
        EXTRA_SERVICES,
        CURRENT_BOOKING,
        CURRENT_BOOKING_ID,
    )


_ADAPTERS: dict[str, TypeAdapter] = {
    DraftKey.SELECTED_FLIGHT: TypeAdapter(Flight),
    DraftKey.PASSENGER_COUNT: TypeAdapter(int),
    DraftKey.SELECTED_SEATS: TypeAdapter(List[str]),
    DraftKey.SEAT_PRICE: TypeAdapter(Decimal),
    DraftKey.PASSENGERS: TypeAdapter(List[Passenger]),
    DraftKey.EXTRA_SERVICES: TypeAdapter(ExtraServices),
    DraftKey.CURRENT_BOOKING: TypeAdapter(Booking),
    DraftKey.CURRENT_BOOKING_ID: TypeAdapter(str),
}


def _dump(value: Any) -> Any:
    if hasattr(value, "to_json_dict"):
        return value.to_json_dict()
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


class BookingStateStore:
    """
    Holds the booking draft and mirrors each field to durable storage.

    Setters assign and then snapshot the changed keys before returning.
    `generation` increases on every reset so callers awaiting the network can
    tell whether the draft they started with still exists.
    """

    def __init__(self, persistence: PersistenceAdapter, seat_pricing: SeatPricing):
        self.persistence = persistence
        self.seat_pricing = seat_pricing
        self._draft = BookingDraft()
        self._restored_booking_id: Optional[str] = None
        self.generation = 0

    def get(self) -> BookingDraft:
        """Read-only copy of the current draft."""
        return self._draft.model_copy(deep=True)

    @property
    def current_booking_id(self) -> Optional[str]:
        if self._draft.current_booking is not None:
            return self._draft.current_booking.id
        return self._restored_booking_id

    @property
    def loading(self) -> bool:
        return self._draft.loading

    @loading.setter
    def loading(self, value: bool) -> None:
        self._draft.loading = value

    @property
    def processing_payment(self) -> bool:
        return self._draft.processing_payment

    @processing_payment.setter
    def processing_payment(self, value: bool) -> None:
        self._draft.processing_payment = value

    async def _load(self, key: str) -> Any:
        raw = await self.persistence.restore(key)
        if raw is ABSENT:
            return ABSENT
        try:
            return _ADAPTERS[key].validate_python(raw)
        except ValidationError as e:
            self.persistence.report_corrupt(key, f"{e.error_count()} validation error(s)")
            return ABSENT

    async def restore(self) -> BookingDraft:
        """Rebuild the draft from whatever snapshots exist."""
        draft = BookingDraft()

        flight = await self._load(DraftKey.SELECTED_FLIGHT)
        if flight is not ABSENT:
            draft.selected_flight = flight

        passenger_count = await self._load(DraftKey.PASSENGER_COUNT)
        if passenger_count is not ABSENT and 1 <= passenger_count <= 9:
            draft.passenger_count = passenger_count

        seats = await self._load(DraftKey.SELECTED_SEATS)
        if seats is not ABSENT:
            try:
                draft.selected_seats = seats
                draft.seat_price = seat_price_total(seats, self.seat_pricing)
            except ValidationFailedError as e:
                self.persistence.report_corrupt(DraftKey.SELECTED_SEATS, e.message)
                draft.selected_seats = None
                draft.seat_price = Decimal("0")

            stored_price = await self._load(DraftKey.SEAT_PRICE)
            if stored_price is not ABSENT and stored_price != draft.seat_price:
                logger.warning(
                    "stored_seat_price_recomputed",
                    scope=self.persistence.scope,
                    stored=str(stored_price),
                    recomputed=str(draft.seat_price),
                )

        passengers = await self._load(DraftKey.PASSENGERS)
        if passengers is not ABSENT:
            draft.passengers = passengers

        extras = await self._load(DraftKey.EXTRA_SERVICES)
        if extras is not ABSENT:
            draft.extra_services = extras

        booking = await self._load(DraftKey.CURRENT_BOOKING)
        if booking is not ABSENT:
            draft.current_booking = booking

        booking_id = await self._load(DraftKey.CURRENT_BOOKING_ID)
        self._restored_booking_id = booking_id if booking_id is not ABSENT else None

        self._draft = draft
        logger.info(
            "draft_restored",
            scope=self.persistence.scope,
            has_flight=draft.selected_flight is not None,
            seats=draft.selected_seats,
            passengers=len(draft.passengers),
            booking_id=self.current_booking_id,
        )
        return self.get()

    async def _snapshot(self, key: str, value: Any) -> None:
        await self.persistence.snapshot(key, _dump(value))

    async def set_flight(self, flight: Flight, passenger_count: int = 1) -> None:
        """Replace the selected flight and the requested passenger count."""
        if flight is None:
            raise ValueError("flight must not be None")
        self._draft.selected_flight = flight
        self._draft.passenger_count = passenger_count
        await self._snapshot(DraftKey.SELECTED_FLIGHT, flight)
        await self._snapshot(DraftKey.PASSENGER_COUNT, passenger_count)

    async def set_seats(self, seats: List[str], price: Optional[Decimal] = None) -> Decimal:
        """
        Replace the selected seats and their total.

        The total is always computed with the seat pricing rule. A caller
        supplied price that disagrees is rejected before anything changes.

        Returns:
            The stored seat total
        """
        seats = [seat.strip().upper() for seat in seats]
        computed = seat_price_total(seats, self.seat_pricing)
        if price is not None and Decimal(price) != computed:
            raise ValidationFailedError(
                detail=f"Seat price {price} does not match the seat tariff ({computed})",
                errors={"price": f"expected {computed}"},
            )

        self._draft.selected_seats = seats
        self._draft.seat_price = computed
        await self._snapshot(DraftKey.SELECTED_SEATS, seats)
        await self._snapshot(DraftKey.SEAT_PRICE, computed)
        return computed

    async def set_passengers(self, passengers: List[Passenger]) -> None:
        self._draft.passengers = list(passengers)
        await self._snapshot(DraftKey.PASSENGERS, self._draft.passengers)

    async def set_extra_services(self, services: Optional[ExtraServices]) -> None:
        self._draft.extra_services = services
        if services is None:
            await self.persistence.clear(DraftKey.EXTRA_SERVICES)
        else:
            await self._snapshot(DraftKey.EXTRA_SERVICES, services)

    async def set_current_booking(self, booking: Booking) -> None:
        """Store the server booking record; from now on its total is authoritative."""
        self._draft.current_booking = booking
        self._restored_booking_id = booking.id
        await self._snapshot(DraftKey.CURRENT_BOOKING, booking)
        await self._snapshot(DraftKey.CURRENT_BOOKING_ID, booking.id)

    async def reset(self) -> None:
        """Clear every field and delete every snapshot of this draft."""
        self.generation += 1
        self._draft = BookingDraft()
        self._restored_booking_id = None
        await self.persistence.clear_all()
        logger.info("draft_reset", scope=self.persistence.scope, generation=self.generation)
