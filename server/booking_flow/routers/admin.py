"""Admin back-office router, proxied to the backend admin API."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminAuth, FlowSessionDep
from ..schemas.admin import DashboardStats, PendingBookingsCount, UpdateUserRoleRequest, UpdateUserStatusRequest
from ..schemas.auth import CurrentUser, UserRecord
from ..schemas.booking import Booking, BookingStatus
from ..schemas.common import Page
from ..schemas.flight import Flight
from ..services.session_registry import FlowSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])

PAGE_QUERY = Query(0, ge=0)
SIZE_QUERY = Query(20, ge=1, le=100)


def _ok(model) -> JSONResponse:
    return JSONResponse(status_code=200, content=model.to_json_dict())


@router.get("/pending", response_model=PendingBookingsCount)
async def pending_bookings(request: Request, admin: CurrentUser = AdminAuth) -> JSONResponse:
    """Bookings awaiting approval, as last seen by the background poller."""
    worker = getattr(request.app.state, "pending_bookings_worker", None)
    latest = worker.latest if worker is not None else PendingBookingsCount()
    return _ok(latest)


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(admin: CurrentUser = AdminAuth, session: FlowSession = FlowSessionDep) -> JSONResponse:
    return _ok(await session.admin.dashboard())


@router.get("/bookings", response_model=Page[Booking])
async def list_bookings(
    page: int = PAGE_QUERY,
    size: int = SIZE_QUERY,
    status: Optional[BookingStatus] = None,
    admin: CurrentUser = AdminAuth,
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    return _ok(await session.admin.list_bookings(page=page, size=size, status=status))


@router.get("/bookings/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, admin: CurrentUser = AdminAuth, session: FlowSession = FlowSessionDep) -> JSONResponse:
    return _ok(await session.admin.get_booking(booking_id))


@router.post("/bookings/{booking_id}/approve", response_model=Booking)
async def approve_booking(booking_id: str, admin: CurrentUser = AdminAuth, session: FlowSession = FlowSessionDep) -> JSONResponse:
    booking = await session.admin.approve_booking(booking_id)

    logger.info("Admin approved booking", extra={"booking_id": booking_id, "admin_id": admin.id})
    return _ok(booking)


@router.post("/bookings/{booking_id}/cancel", response_model=Booking)
async def cancel_booking(booking_id: str, admin: CurrentUser = AdminAuth, session: FlowSession = FlowSessionDep) -> JSONResponse:
    booking = await session.admin.cancel_booking(booking_id)

    logger.info("Admin cancelled booking", extra={"booking_id": booking_id, "admin_id": admin.id})
    return _ok(booking)


@router.get("/users", response_model=Page[UserRecord])
async def list_users(
    page: int = PAGE_QUERY,
    size: int = SIZE_QUERY,
    admin: CurrentUser = AdminAuth,
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    return _ok(await session.admin.list_users(page=page, size=size))


@router.get("/users/{user_id}", response_model=UserRecord)
async def get_user(user_id: str, admin: CurrentUser = AdminAuth, session: FlowSession = FlowSessionDep) -> JSONResponse:
    return _ok(await session.admin.get_user(user_id))


@router.post("/users/{user_id}/role", response_model=UserRecord)
async def update_user_role(
    user_id: str,
    request: UpdateUserRoleRequest,
    admin: CurrentUser = AdminAuth,
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    return _ok(await session.admin.update_user_role(user_id, request.role))


@router.post("/users/{user_id}/status", response_model=UserRecord)
async def update_user_status(
    user_id: str,
    request: UpdateUserStatusRequest,
    admin: CurrentUser = AdminAuth,
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    return _ok(await session.admin.update_user_status(user_id, request.status))


@router.get("/flights", response_model=Page[Flight])
async def list_flights(
    page: int = PAGE_QUERY,
    size: int = SIZE_QUERY,
    admin: CurrentUser = AdminAuth,
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    return _ok(await session.admin.list_flights(page=page, size=size))


@router.post("/flights", response_model=Flight, status_code=201)
async def create_flight(flight: Flight, admin: CurrentUser = AdminAuth, session: FlowSession = FlowSessionDep) -> JSONResponse:
    created = await session.admin.create_flight(flight)
    return JSONResponse(status_code=201, content=created.to_json_dict())


@router.post("/flights/{flight_id}", response_model=Flight)
async def update_flight(
    flight_id: str,
    flight: Flight,
    admin: CurrentUser = AdminAuth,
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    return _ok(await session.admin.update_flight(flight_id, flight))


@router.post("/flights/{flight_id}/delete", status_code=204)
async def delete_flight(flight_id: str, admin: CurrentUser = AdminAuth, session: FlowSession = FlowSessionDep) -> Response:
    await session.admin.delete_flight(flight_id)
    return Response(status_code=204)
