"""Admin back-office schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from .common import CamelModel


class DashboardStats(CamelModel):
    """System-wide statistics from GET /admin/dashboard."""

    total_users: int = 0
    total_bookings: int = 0
    total_flights: int = 0
    total_revenue: Decimal = Decimal("0")
    bookings_today: int = 0
    revenue_today: Decimal = Decimal("0")
    confirmed_bookings: int = 0
    pending_bookings: int = 0
    cancelled_bookings: int = 0
    active_users: int = 0


class PendingBookingsCount(CamelModel):
    """Latest pending bookings count seen by the poller."""

    pending_bookings: Optional[int] = Field(None, description="None until the first successful poll")
    polled_at: Optional[datetime] = None


class UpdateUserRoleRequest(CamelModel):
    role: str = Field(..., pattern=r"^(USER|ADMIN)$")


class UpdateUserStatusRequest(CamelModel):
    status: str = Field(..., pattern=r"^(ACTIVE|INACTIVE|BANNED)$")
