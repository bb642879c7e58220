"""Flight-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from .common import CamelModel, Page


class Flight(CamelModel):
    """Snapshot of a flight as chosen by the traveller."""

    id: Optional[str] = Field(None, description="Backend flight ID")
    airline: str = Field(..., min_length=1, description="Operating airline")
    flight_number: str = Field(..., min_length=1, description="Flight number, e.g. VN213")
    origin: str = Field(..., min_length=3, max_length=3, description="Origin airport code")
    destination: str = Field(..., min_length=3, max_length=3, description="Destination airport code")
    depart_time: datetime = Field(..., description="Departure time (ISO 8601)")
    arrive_time: datetime = Field(..., description="Arrival time (ISO 8601)")
    cabin_class: str = Field("ECONOMY", description="Cabin class")
    base_fare: Decimal = Field(..., ge=0, description="Base fare per passenger")
    taxes: Decimal = Field(Decimal("0"), ge=0, description="Taxes per passenger")
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Fare currency")
    total_seats: Optional[int] = Field(None, ge=1, description="Cabin size")
    available_seats: Optional[int] = Field(None, ge=0, description="Seats still for sale")


class FlightSearchQuery(CamelModel):
    """Search parameters for GET /flights/search."""

    origin: str = Field(..., min_length=3, max_length=3, description="Origin airport code")
    destination: str = Field(..., min_length=3, max_length=3, description="Destination airport code")
    departure_date: date = Field(..., description="Departure date")
    passengers: int = Field(1, ge=1, le=9, description="Number of passengers")
    cabin_class: Optional[str] = Field(None, description="ECONOMY, BUSINESS or FIRST")
    airline: Optional[str] = Field(None, description="Airline filter")
    min_price: Optional[Decimal] = Field(None, ge=0, description="Minimum total price")
    max_price: Optional[Decimal] = Field(None, ge=0, description="Maximum total price")
    page: int = Field(0, ge=0, description="Page number")
    size: int = Field(10, ge=1, le=100, description="Page size")

    def to_params(self) -> dict:
        """Query string parameters, omitting unset filters."""
        return self.to_json_dict(exclude_none=True)


FlightPage = Page[Flight]


class BookedSeat(CamelModel):
    """A seat already taken on a flight."""

    seat_number: Optional[str] = Field(None, description="Seat label, e.g. 12A")
    passenger_name: Optional[str] = None
    passenger_id: Optional[str] = None
    booking_id: Optional[str] = None
    booking_code: Optional[str] = None
    status: Optional[str] = None


class SeatInfo(CamelModel):
    """One seat on the seat map."""

    label: str = Field(..., description="Seat label, e.g. 12A")
    row: int = Field(..., ge=1, description="Row number")
    column: str = Field(..., min_length=1, max_length=1, description="Seat letter")
    price: Decimal = Field(..., ge=0, description="Seat selection fee")
    booked: bool = Field(False, description="Whether the seat is already taken")


class SeatMap(CamelModel):
    """Seat map for the selected flight."""

    flight_number: str
    max_selectable: int = Field(..., ge=1, description="Seats the traveller may pick")
    rows: list[list[SeatInfo]] = Field(default_factory=list)
