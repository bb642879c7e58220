"""Booking API client operations."""

import logging
from typing import List, Optional

from ..core.exceptions import NotFoundError, ServerError, ValidationFailedError
from ..schemas.booking import (
    Booking,
    BookingDraft,
    CreateBookingPayload,
    FlightSegment,
    SeatSelectionInput,
)
from ..schemas.flight import BookedSeat, FlightPage, FlightSearchQuery
from ..schemas.payment import (
    CreatePaymentPayload,
    PaymentMethod,
    PaymentOutcome,
    PaymentPending,
    PaymentRedirect,
    PaymentResponse,
)
from .api_client import BackendClient
from .pricing import SeatPricing, per_seat_price

logger = logging.getLogger(__name__)


class BookingApi:
    """Booking, payment and flight calls against the backend."""

    def __init__(self, client: BackendClient, seat_pricing: SeatPricing, default_currency: str = "VND"):
        self.client = client
        self.seat_pricing = seat_pricing
        self.default_currency = default_currency

    def build_booking_payload(self, draft: BookingDraft) -> CreateBookingPayload:
        """
        Build the POST /bookings body from a draft.

        Raises:
            ValidationFailedError: If the draft has no flight or no passengers
        """
        errors = {}
        if draft.selected_flight is None:
            errors["flightSegments"] = "At least one flight segment is required"
        if not draft.passengers:
            errors["passengers"] = "At least one passenger is required"
        if errors:
            raise ValidationFailedError(detail="The booking is incomplete", errors=errors)

        flight = draft.selected_flight
        seats = draft.selected_seats or []
        return CreateBookingPayload(
            currency=flight.currency or self.default_currency,
            flight_segments=[FlightSegment.from_flight(flight)],
            passengers=draft.passengers,
            seat_price=draft.seat_price,
            seat_selections=[
                SeatSelectionInput(
                    seat_number=seat,
                    passenger_index=index,
                    price=per_seat_price(seat, self.seat_pricing),
                )
                for index, seat in enumerate(seats)
            ],
        )

    async def create_booking(self, draft: BookingDraft) -> Booking:
        """
        Create a booking on the backend. No local record exists until this returns.

        Raises:
            ValidationFailedError: Locally, before any network call, for incomplete drafts
        """
        payload = self.build_booking_payload(draft)
        booking = await self.client.post(
            "/bookings", Booking, json=payload.to_json_dict(), resource="booking"
        )
        logger.info(
            "Booking created",
            extra={
                "booking_id": booking.id,
                "booking_code": booking.booking_code,
                "status": booking.status.value,
                "total_amount": str(booking.total_amount),
                "currency": booking.currency,
            }
        )
        return booking

    async def create_payment(
        self,
        booking_id: str,
        method: PaymentMethod,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> PaymentOutcome:
        """
        Create a payment intent for an existing booking.

        Returns:
            PaymentRedirect when the traveller must continue on a checkout page,
            PaymentPending when the payment awaits approval
        """
        payload = CreatePaymentPayload(
            booking_id=booking_id,
            payment_method=method,
            success_url=success_url,
            cancel_url=cancel_url,
        )
        response = await self.client.post(
            "/payments/create", PaymentResponse, json=payload.to_json_dict(), resource="booking"
        )

        if response.checkout_url:
            return PaymentRedirect(payment_id=response.payment_id, checkout_url=response.checkout_url)
        if (response.status or "").upper() == "PENDING":
            return PaymentPending(payment_id=response.payment_id, message=response.message)

        logger.error(
            "Payment response has neither checkout URL nor pending status",
            extra={"booking_id": booking_id, "status": response.status}
        )
        raise ServerError(detail="Payment URL not received. Please try again.")

    async def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        """Current server state of a booking, or None when the backend does not know it."""
        try:
            return await self.client.get(f"/bookings/{booking_id}", Booking, resource="booking")
        except NotFoundError:
            logger.info("Booking not found", extra={"booking_id": booking_id})
            return None

    async def get_user_bookings(self, user_id: str) -> List[Booking]:
        return await self.client.get(f"/bookings/user/{user_id}", List[Booking], resource="user")

    async def get_booked_seats(self, flight_number: str) -> List[BookedSeat]:
        return await self.client.get(
            f"/seat-selections/flight/{flight_number}", List[BookedSeat], resource="flight"
        )

    async def search_flights(self, query: FlightSearchQuery) -> FlightPage:
        return await self.client.get(
            "/flights/search", FlightPage, params=query.to_params(), resource="flight"
        )
