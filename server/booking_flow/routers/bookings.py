"""Router for the logged-in user's bookings."""

from typing import List

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import FlowSessionDep, RequiredAuth
from ..schemas.auth import CurrentUser
from ..schemas.booking import Booking
from ..services.session_registry import FlowSession

router = APIRouter(prefix="/v1/bookings", tags=["bookings"])


@router.get("/mine", response_model=List[Booking])
async def my_bookings(
    user: CurrentUser = RequiredAuth,
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    bookings = await session.booking_api.get_user_bookings(user.id)
    return JSONResponse(status_code=200, content=[booking.to_json_dict() for booking in bookings])
