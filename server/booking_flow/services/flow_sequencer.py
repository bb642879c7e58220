"""Booking flow sequencer: steps, guards and commit points."""

import math
from decimal import Decimal
from typing import List, Optional

from ..core.config import Settings
from ..core.exceptions import (
    ConflictError,
    FlowGuardError,
    NotFoundError,
    OperationInProgressError,
    TerminalBookingError,
    ValidationFailedError,
)
from ..core.observability import get_logger, metrics_collector
from ..schemas.booking import Booking, BookingDraft, BookingStatus, ExtraServices, Passenger
from ..schemas.flight import Flight, SeatInfo, SeatMap
from ..schemas.flow import FLOW_ORDER, FlowState, FlowStep, PriceSummary
from ..schemas.payment import PaymentMethod, PaymentOutcome, PaymentPending
from .booking_api import BookingApi
from .booking_state import BookingStateStore
from .pricing import AncillaryPricing, SeatPricing, parse_seat_label, per_seat_price, total_draft_price

logger = get_logger(__name__)


class FlowSequencer:
    """
    Drives one booking session through the booking steps.

    The sequencer is the only writer of the draft. Every intent checks the
    guard of the step it belongs to; a failing guard moves the session back
    to the nearest earlier step that is valid and raises FlowGuardError.
    Network calls capture the store generation first and drop their result
    if the draft was reset while they were outstanding.
    """

    def __init__(
        self,
        store: BookingStateStore,
        booking_api: BookingApi,
        seat_pricing: SeatPricing,
        ancillary_pricing: AncillaryPricing,
        settings: Settings,
    ):
        self.store = store
        self.booking_api = booking_api
        self.seat_pricing = seat_pricing
        self.ancillary_pricing = ancillary_pricing
        self.settings = settings
        self.step = FlowStep.FLIGHT_SELECTION

    # Guards

    def _guard_failure(self, step: FlowStep, draft: BookingDraft, booking_id: Optional[str] = None) -> Optional[str]:
        """Reason the step cannot be entered, or None when it can."""
        if step == FlowStep.FLIGHT_SELECTION:
            return None
        if step == FlowStep.CONFIRMATION:
            if booking_id or self.store.current_booking_id:
                return None
            return "No booking found. Please create a booking first."
        if draft.selected_flight is None:
            return "Please select a flight first."
        if step in (FlowStep.SEAT_SELECTION, FlowStep.TRAVELLER_INFO):
            return None
        if not draft.passengers:
            return "Please enter traveller information first."
        if step == FlowStep.EXTRA_SERVICES:
            return None
        if draft.current_booking is None:
            return "Please confirm your booking before paying."
        return None

    def _nearest_valid_before(self, step: FlowStep, draft: BookingDraft) -> FlowStep:
        for candidate in reversed(FLOW_ORDER[:step.position]):
            if self._guard_failure(candidate, draft) is None:
                return candidate
        return FlowStep.FLIGHT_SELECTION

    def _require(self, step: FlowStep, booking_id: Optional[str] = None) -> BookingDraft:
        """Check the guard of a step; on failure redirect backwards and raise."""
        draft = self.store.get()
        reason = self._guard_failure(step, draft, booking_id)
        if reason is None:
            return draft

        redirect = self._nearest_valid_before(step, draft)
        self._move(redirect)
        metrics_collector.record_guard_rejection(step.value, redirect.value)
        logger.warning(
            "flow_guard_rejected",
            scope=self.store.persistence.scope,
            requested_step=step.value,
            redirect_to=redirect.value,
            reason=reason,
        )
        raise FlowGuardError(step.value, redirect.value, reason)

    def _move(self, step: FlowStep) -> None:
        if step != self.step:
            logger.info("flow_step_changed", scope=self.store.persistence.scope,
                        from_step=self.step.value, to_step=step.value)
            metrics_collector.record_transition(step.value)
        self.step = step

    def _ensure_no_booking(self, draft: BookingDraft) -> None:
        if draft.current_booking is not None:
            raise ConflictError(
                detail="A booking was already created for this draft. Start over to change it.",
                conflicting_resource={"booking_id": draft.current_booking.id},
            )

    # Navigation

    def resume(self) -> FlowStep:
        """Pick the step to continue from after the draft was restored."""
        draft = self.store.get()
        booking = draft.current_booking
        if booking is not None:
            if booking.status.is_terminal or booking.status == BookingStatus.PENDING_PAYMENT:
                step = FlowStep.CONFIRMATION
            else:
                step = FlowStep.PAYMENT
        elif self.store.current_booking_id:
            step = FlowStep.CONFIRMATION
        elif draft.selected_flight is None:
            step = FlowStep.FLIGHT_SELECTION
        elif draft.passengers:
            step = FlowStep.EXTRA_SERVICES
        elif draft.selected_seats is not None:
            step = FlowStep.TRAVELLER_INFO
        else:
            step = FlowStep.SEAT_SELECTION

        self.step = step
        logger.info("flow_resumed", scope=self.store.persistence.scope, step=step.value)
        return step

    def enter(self, step: FlowStep, booking_id: Optional[str] = None) -> FlowStep:
        """Navigate to a step if its guard allows it."""
        self._require(step, booking_id)
        self._move(step)
        return step

    # Flight and seats

    async def select_flight(self, flight: Flight, passenger_count: int = 1) -> None:
        draft = self.store.get()
        self._ensure_no_booking(draft)

        if flight.currency is None:
            flight = flight.model_copy(update={"currency": self.settings.default_currency})

        started = draft.selected_seats is not None or bool(draft.passengers)
        if started and (draft.selected_flight != flight or draft.passenger_count != passenger_count):
            raise ConflictError(
                detail="The flight cannot be changed once seats or travellers are chosen. Start over to pick another flight."
            )

        await self.store.set_flight(flight, passenger_count)
        self._move(FlowStep.SEAT_SELECTION)

    def _cabin_rows(self, flight: Flight) -> int:
        total_seats = flight.total_seats or self.settings.default_total_seats
        return math.ceil(total_seats / self.settings.seats_per_row)

    async def _booked_seat_labels(self, flight: Flight) -> set[str]:
        booked = await self.booking_api.get_booked_seats(flight.flight_number)
        return {seat.seat_number.upper() for seat in booked if seat.seat_number}

    async def seat_map(self) -> SeatMap:
        """Seats of the selected flight with their prices and availability."""
        draft = self._require(FlowStep.SEAT_SELECTION)
        flight = draft.selected_flight
        booked = await self._booked_seat_labels(flight)

        rows = []
        for row in range(1, self._cabin_rows(flight) + 1):
            seats = []
            for offset in range(self.settings.seats_per_row):
                column = chr(ord("A") + offset)
                label = f"{row}{column}"
                seats.append(SeatInfo(
                    label=label,
                    row=row,
                    column=column,
                    price=per_seat_price(label, self.seat_pricing),
                    booked=label in booked,
                ))
            rows.append(seats)

        return SeatMap(flight_number=flight.flight_number, max_selectable=draft.passenger_count, rows=rows)

    def _validate_seats(self, seats: List[str], draft: BookingDraft) -> List[str]:
        labels = [seat.strip().upper() for seat in seats]
        if not labels:
            raise ValidationFailedError(
                detail="Please select at least one seat, or skip seat selection.",
                errors={"seats": "No seat selected"},
            )
        if len(set(labels)) != len(labels):
            raise ValidationFailedError(detail="A seat was selected twice.", errors={"seats": "Duplicate seat"})
        if len(labels) > draft.passenger_count:
            raise ValidationFailedError(
                detail=f"You can only select {draft.passenger_count} seat(s).",
                errors={"seats": f"At most {draft.passenger_count} seat(s)"},
            )

        rows = self._cabin_rows(draft.selected_flight)
        last_column = chr(ord("A") + self.settings.seats_per_row - 1)
        for label in labels:
            row, column = parse_seat_label(label)
            if row > rows or column > last_column:
                raise ValidationFailedError(
                    detail=f"Seat {label} does not exist on this aircraft.",
                    errors={"seats": f"{label} is outside the cabin"},
                )
        return labels

    async def choose_seats(self, seats: List[str], price: Optional[Decimal] = None) -> Decimal:
        """
        Select seats for the travellers and move to traveller info.

        Returns:
            The seat total stored on the draft
        """
        draft = self._require(FlowStep.SEAT_SELECTION)
        self._ensure_no_booking(draft)
        labels = self._validate_seats(seats, draft)

        taken = sorted(set(labels) & await self._booked_seat_labels(draft.selected_flight))
        if taken:
            raise ConflictError(
                detail=f"Seat(s) {', '.join(taken)} are no longer available.",
                conflicting_resource={"seats": taken},
            )

        seat_price = await self.store.set_seats(labels, price)
        self._move(FlowStep.TRAVELLER_INFO)
        return seat_price

    async def skip_seats(self) -> None:
        """Continue without choosing seats."""
        draft = self._require(FlowStep.SEAT_SELECTION)
        self._ensure_no_booking(draft)
        await self.store.set_seats([])
        self._move(FlowStep.TRAVELLER_INFO)

    # Travellers and extras

    async def submit_passengers(self, passengers: List[Passenger]) -> None:
        draft = self._require(FlowStep.TRAVELLER_INFO)
        self._ensure_no_booking(draft)

        errors = {}
        if len(passengers) != draft.passenger_count:
            errors["passengers"] = f"Expected {draft.passenger_count} passenger(s), got {len(passengers)}"
        departure = draft.selected_flight.depart_time.date()
        for index, passenger in enumerate(passengers):
            if passenger.date_of_birth >= departure:
                errors[f"passengers.{index}.dateOfBirth"] = "Date of birth must be before the departure date"
        if errors:
            raise ValidationFailedError(detail=next(iter(errors.values())), errors=errors)

        await self.store.set_passengers(passengers)
        self._move(FlowStep.EXTRA_SERVICES)

    async def choose_extras(self, services: Optional[ExtraServices]) -> None:
        draft = self._require(FlowStep.EXTRA_SERVICES)
        self._ensure_no_booking(draft)
        await self.store.set_extra_services(services)
        self._move(FlowStep.EXTRA_SERVICES)

    # Commit points

    async def create_booking(self) -> Optional[Booking]:
        """
        Create the booking on the backend and move to payment.

        Returns:
            The created booking, or None when the draft was reset before the
            backend answered
        """
        draft = self._require(FlowStep.EXTRA_SERVICES)
        if self.store.loading:
            raise OperationInProgressError("create booking")
        self._ensure_no_booking(draft)

        generation = self.store.generation
        self.store.loading = True
        try:
            booking = await self.booking_api.create_booking(draft)
        finally:
            if self.store.generation == generation:
                self.store.loading = False

        if self.store.generation != generation:
            logger.info("stale_result_discarded", operation="create_booking", booking_id=booking.id)
            metrics_collector.record_stale_result("create_booking")
            return None

        await self.store.set_current_booking(booking)
        metrics_collector.record_booking_created(booking.currency)
        self._check_price(draft, booking)
        self._move(FlowStep.PAYMENT)
        return booking

    def _payment_urls(self, booking_id: str) -> tuple[str, str]:
        base = self.settings.frontend_base_url.rstrip("/")
        return (
            f"{base}/payment/success?booking_id={booking_id}",
            f"{base}/payment/cancel?booking_id={booking_id}",
        )

    async def pay(self, method: PaymentMethod = PaymentMethod.STRIPE) -> Optional[PaymentOutcome]:
        """
        Start payment for the created booking.

        Raises:
            TerminalBookingError: Locally, when the cached booking can no
                longer be paid
        """
        draft = self._require(FlowStep.PAYMENT)
        booking = draft.current_booking
        if booking.status.is_terminal:
            logger.warning("payment_blocked_terminal_booking", booking_id=booking.id, status=booking.status.value)
            raise TerminalBookingError(booking.id, booking.status.value)
        if self.store.processing_payment:
            raise OperationInProgressError("payment")

        success_url, cancel_url = self._payment_urls(booking.id)
        generation = self.store.generation
        self.store.processing_payment = True
        try:
            outcome = await self.booking_api.create_payment(booking.id, method, success_url, cancel_url)
        finally:
            if self.store.generation == generation:
                self.store.processing_payment = False

        if self.store.generation != generation:
            logger.info("stale_result_discarded", operation="create_payment", booking_id=booking.id)
            metrics_collector.record_stale_result("create_payment")
            return None

        metrics_collector.record_payment_created(method.value, outcome.kind)
        if isinstance(outcome, PaymentPending):
            self._move(FlowStep.CONFIRMATION)
        return outcome

    async def confirm(self, booking_id: Optional[str] = None) -> Optional[Booking]:
        """
        Fetch the latest booking state for the confirmation step.

        The booking id comes from the route when given, else from the draft.
        """
        self._require(FlowStep.CONFIRMATION, booking_id)
        target = booking_id or self.store.current_booking_id

        generation = self.store.generation
        booking = await self.booking_api.get_booking_by_id(target)
        if self.store.generation != generation:
            metrics_collector.record_stale_result("get_booking")
            return None
        if booking is None:
            raise NotFoundError(resource_type="booking", resource_id=target)

        if self.store.current_booking_id in (None, booking.id):
            await self.store.set_current_booking(booking)
        self._move(FlowStep.CONFIRMATION)
        return booking

    async def finish(self) -> None:
        """Clear the draft once the confirmation has been shown."""
        self._require(FlowStep.CONFIRMATION)
        if self.step != FlowStep.CONFIRMATION:
            raise FlowGuardError(
                FlowStep.CONFIRMATION.value, self.step.value, "The booking has not been confirmed yet."
            )
        await self.reset()

    async def reset(self) -> None:
        """Abandon the draft and start over."""
        await self.store.reset()
        self._move(FlowStep.FLIGHT_SELECTION)

    # Prices

    def _check_price(self, draft: BookingDraft, booking: Booking) -> None:
        draft_total = total_draft_price(draft, self.ancillary_pricing)
        if booking.total_amount != draft_total:
            logger.warning(
                "server_total_differs_from_draft",
                booking_id=booking.id,
                draft_total=str(draft_total),
                server_total=str(booking.total_amount),
            )
            metrics_collector.record_price_divergence()

    def prices(self) -> PriceSummary:
        draft = self.store.get()
        draft_total = total_draft_price(draft, self.ancillary_pricing)
        if draft.current_booking is not None:
            amount_due = draft.current_booking.total_amount
        else:
            amount_due = draft_total
        return PriceSummary(
            seat_price=draft.seat_price,
            draft_total=draft_total,
            amount_due=amount_due,
            currency=draft.currency or self.settings.default_currency,
        )

    def amount_due(self) -> Decimal:
        """Amount the traveller has to pay right now."""
        return self.prices().amount_due

    def state(self) -> FlowState:
        return FlowState(step=self.step, draft=self.store.get(), prices=self.prices())
