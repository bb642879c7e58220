"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from .common import CamelModel
from .flight import Flight


class Gender(str, Enum):
    """Passenger gender."""
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class DocumentType(str, Enum):
    """Travel document type."""
    PASSPORT = "PASSPORT"
    ID_CARD = "ID_CARD"


class SupportPackage(str, Enum):
    """Support package offered on the extra services step."""
    STANDARD = "STANDARD"
    PLATINUM = "PLATINUM"


class BookingStatus(str, Enum):
    """Server-owned booking status."""
    PENDING = "PENDING"
    HOLD = "HOLD"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"
    FINALIZED = "FINALIZED"
    TICKETED = "TICKETED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.CANCELLED,
    BookingStatus.EXPIRED,
    BookingStatus.FINALIZED,
    BookingStatus.TICKETED,
})


class Passenger(CamelModel):
    """Traveller details entered on the traveller info step."""

    full_name: str = Field(..., min_length=1, max_length=200, description="Name as on the document")
    date_of_birth: date = Field(..., description="Date of birth")
    gender: Gender = Field(Gender.MALE, description="Gender")
    document_type: DocumentType = Field(DocumentType.PASSPORT, description="Travel document type")
    document_number: str = Field(..., min_length=1, max_length=50, description="Travel document number")

    @field_validator("full_name", "document_number")
    @classmethod
    def strip_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BookedPassenger(CamelModel):
    """Passenger as returned on a server booking record."""

    id: Optional[str] = None
    full_name: str
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    booking_id: Optional[str] = None
    seat_number: Optional[str] = None


class ExtraServices(CamelModel):
    """Ancillary services picked on the extra services step."""

    support_package: SupportPackage = Field(SupportPackage.STANDARD, description="Support package")
    medical_cover: bool = Field(False, description="Medical cover for every passenger")
    collapse_cover: bool = Field(False, description="Collapse cover for every passenger")


class FlightSegment(CamelModel):
    """Flight segment as sent to and returned by the backend."""

    id: Optional[str] = None
    airline: str
    flight_number: str
    origin: str
    destination: str
    depart_time: datetime
    arrive_time: datetime
    cabin_class: Optional[str] = None
    base_fare: Decimal = Field(..., ge=0)
    taxes: Decimal = Field(Decimal("0"), ge=0)
    booking_id: Optional[str] = None

    @classmethod
    def from_flight(cls, flight: Flight) -> "FlightSegment":
        return cls(
            airline=flight.airline,
            flight_number=flight.flight_number,
            origin=flight.origin,
            destination=flight.destination,
            depart_time=flight.depart_time,
            arrive_time=flight.arrive_time,
            cabin_class=flight.cabin_class,
            base_fare=flight.base_fare,
            taxes=flight.taxes,
        )


class Booking(CamelModel):
    """Server-authoritative booking record."""

    id: str = Field(..., min_length=1, description="Server-assigned booking ID")
    booking_code: str = Field(..., description="Booking confirmation code")
    status: BookingStatus = Field(..., description="Booking status")
    total_amount: Decimal = Field(..., ge=0, description="Amount due, computed by the server")
    currency: str = Field(..., description="Currency of the total")
    hold_expires_at: Optional[datetime] = Field(None, description="When an unpaid booking expires")
    created_at: Optional[datetime] = Field(None, description="Creation time (ISO 8601)")
    updated_at: Optional[datetime] = None
    user_id: Optional[str] = None
    flight_segments: List[FlightSegment] = Field(default_factory=list)
    passengers: List[BookedPassenger] = Field(default_factory=list)


class SeatSelectionInput(CamelModel):
    """Seat assigned to a passenger by index."""

    seat_number: str
    passenger_index: int = Field(..., ge=0)
    price: Decimal = Field(..., ge=0)


class CreateBookingPayload(CamelModel):
    """Body of POST /bookings. The credential identifies the user."""

    currency: str
    flight_segments: List[FlightSegment] = Field(..., min_length=1)
    passengers: List[Passenger] = Field(..., min_length=1)
    seat_price: Decimal = Field(Decimal("0"), ge=0)
    seat_selections: List[SeatSelectionInput] = Field(default_factory=list)


class BookingDraft(CamelModel):
    """In-progress booking held for one booking session."""

    selected_flight: Optional[Flight] = None
    passenger_count: int = Field(1, ge=1, le=9)
    # None until the seat step is done; [] when it was skipped
    selected_seats: Optional[List[str]] = None
    seat_price: Decimal = Field(Decimal("0"), ge=0)
    passengers: List[Passenger] = Field(default_factory=list)
    extra_services: Optional[ExtraServices] = None
    current_booking: Optional[Booking] = None
    loading: bool = False
    processing_payment: bool = False

    @property
    def currency(self) -> Optional[str]:
        if self.current_booking:
            return self.current_booking.currency
        if self.selected_flight:
            return self.selected_flight.currency
        return None
