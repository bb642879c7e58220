"""Admin back-office operations, proxied to the backend."""

import logging
from typing import Optional

from ..schemas.admin import DashboardStats
from ..schemas.booking import Booking, BookingStatus
from ..schemas.common import Page
from ..schemas.flight import Flight
from ..schemas.auth import UserRecord
from .api_client import BackendClient

logger = logging.getLogger(__name__)


class AdminService:
    """Admin endpoints of the backend. The backend enforces the ADMIN role."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def dashboard(self, token: Optional[str] = None) -> DashboardStats:
        return await self.client.get("/admin/dashboard", DashboardStats, token=token)

    async def list_bookings(
        self,
        page: int = 0,
        size: int = 20,
        status: Optional[BookingStatus] = None,
        sort_by: str = "createdAt",
    ) -> Page[Booking]:
        params = {"page": page, "size": size, "sortBy": sort_by}
        if status is not None:
            params["status"] = status.value
        return await self.client.get("/admin/bookings", Page[Booking], params=params, resource="booking")

    async def get_booking(self, booking_id: str) -> Booking:
        return await self.client.get(f"/admin/bookings/{booking_id}", Booking, resource="booking")

    async def approve_booking(self, booking_id: str) -> Booking:
        booking = await self.client.put(f"/admin/bookings/{booking_id}/approve", Booking, resource="booking")
        logger.info("Booking approved", extra={"booking_id": booking_id, "status": booking.status.value})
        return booking

    async def cancel_booking(self, booking_id: str) -> Booking:
        booking = await self.client.put(f"/admin/bookings/{booking_id}/cancel", Booking, resource="booking")
        logger.info("Booking cancelled by admin", extra={"booking_id": booking_id})
        return booking

    async def list_users(self, page: int = 0, size: int = 20) -> Page[UserRecord]:
        return await self.client.get(
            "/admin/users", Page[UserRecord], params={"page": page, "size": size}, resource="user"
        )

    async def get_user(self, user_id: str) -> UserRecord:
        return await self.client.get(f"/admin/users/{user_id}", UserRecord, resource="user")

    async def update_user_role(self, user_id: str, role: str) -> UserRecord:
        user = await self.client.put(
            f"/admin/users/{user_id}/role", UserRecord, json={"role": role}, resource="user"
        )
        logger.info("User role updated", extra={"user_id": user_id, "role": role})
        return user

    async def update_user_status(self, user_id: str, status: str) -> UserRecord:
        user = await self.client.put(
            f"/admin/users/{user_id}/status", UserRecord, json={"status": status}, resource="user"
        )
        logger.info("User status updated", extra={"user_id": user_id, "status": status})
        return user

    async def list_flights(self, page: int = 0, size: int = 20) -> Page[Flight]:
        return await self.client.get(
            "/admin/flights", Page[Flight], params={"page": page, "size": size}, resource="flight"
        )

    async def create_flight(self, flight: Flight) -> Flight:
        return await self.client.post(
            "/admin/flights", Flight, json=flight.to_json_dict(exclude_none=True), resource="flight"
        )

    async def update_flight(self, flight_id: str, flight: Flight) -> Flight:
        return await self.client.put(
            f"/admin/flights/{flight_id}", Flight, json=flight.to_json_dict(exclude_none=True), resource="flight"
        )

    async def delete_flight(self, flight_id: str) -> None:
        await self.client.delete(f"/admin/flights/{flight_id}", resource="flight")
        logger.info("Flight deleted", extra={"flight_id": flight_id})
