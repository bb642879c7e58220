"""Booking flow request and response schemas."""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .booking import Booking, BookingDraft, ExtraServices, Passenger
from .common import CamelModel
from .flight import Flight
from .payment import PaymentMethod, PaymentOutcome


class FlowStep(str, Enum):
    """Booking flow steps, in order."""
    FLIGHT_SELECTION = "FLIGHT_SELECTION"
    SEAT_SELECTION = "SEAT_SELECTION"
    TRAVELLER_INFO = "TRAVELLER_INFO"
    EXTRA_SERVICES = "EXTRA_SERVICES"
    PAYMENT = "PAYMENT"
    CONFIRMATION = "CONFIRMATION"

    @property
    def position(self) -> int:
        return FLOW_ORDER.index(self)


FLOW_ORDER = list(FlowStep)


class EnterStepRequest(CamelModel):
    step: FlowStep
    booking_id: Optional[str] = Field(None, description="Booking ID supplied by the route, for confirmation")


class SelectFlightRequest(CamelModel):
    flight: Flight
    passenger_count: int = Field(1, ge=1, le=9)


class ChooseSeatsRequest(CamelModel):
    seats: List[str] = Field(..., max_length=9)
    price: Optional[Decimal] = Field(None, ge=0, description="Price shown to the traveller, checked against the pricing rule")


class SubmitPassengersRequest(CamelModel):
    passengers: List[Passenger] = Field(..., min_length=1, max_length=9)


class ChooseExtrasRequest(CamelModel):
    extra_services: Optional[ExtraServices] = None


class PayRequest(CamelModel):
    payment_method: PaymentMethod = PaymentMethod.STRIPE


class PriceSummary(CamelModel):
    """Prices for display. amount_due is the server total once a booking exists."""

    seat_price: Decimal
    draft_total: Decimal
    amount_due: Decimal
    currency: Optional[str] = None


class FlowState(CamelModel):
    step: FlowStep
    draft: BookingDraft
    prices: PriceSummary


class ConfirmationView(CamelModel):
    step: FlowStep = FlowStep.CONFIRMATION
    booking: Booking


class PaymentView(CamelModel):
    step: FlowStep
    outcome: PaymentOutcome
