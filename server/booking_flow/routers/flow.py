"""Booking flow router: one endpoint per traveller intent."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import FlowSessionDep, get_registry
from ..core.exceptions import ConflictError
from ..schemas.flight import SeatMap
from ..schemas.flow import (
    ChooseExtrasRequest,
    ChooseSeatsRequest,
    ConfirmationView,
    EnterStepRequest,
    FlowState,
    PaymentView,
    PayRequest,
    SelectFlightRequest,
    SubmitPassengersRequest,
)
from ..services.session_registry import FlowSession, FlowSessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/flow", tags=["flow"])


def _state_response(session: FlowSession) -> JSONResponse:
    return JSONResponse(status_code=200, content=session.sequencer.state().to_json_dict())


def _draft_was_reset(operation: str) -> ConflictError:
    return ConflictError(detail=f"The booking was started over while the {operation} request was in progress.")


@router.get("/state", response_model=FlowState)
async def get_state(session: FlowSession = FlowSessionDep) -> JSONResponse:
    """Current step, draft and prices of the booking session."""
    return _state_response(session)


@router.post("/step", response_model=FlowState)
async def enter_step(request: EnterStepRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    """
    Navigate to a step.

    A step whose preconditions do not hold is answered with 409 and a
    `redirect_to` naming the step the session was moved back to.
    """
    session.sequencer.enter(request.step, request.booking_id)
    return _state_response(session)


@router.post("/flight", response_model=FlowState)
async def select_flight(request: SelectFlightRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    await session.sequencer.select_flight(request.flight, request.passenger_count)

    logger.info(
        "Flight selected",
        extra={
            "booking_session": session.session_id,
            "flight_number": request.flight.flight_number,
            "passenger_count": request.passenger_count,
        }
    )
    return _state_response(session)


@router.get("/seats", response_model=SeatMap)
async def get_seat_map(session: FlowSession = FlowSessionDep) -> JSONResponse:
    """Seat map of the selected flight with per-seat prices and booked seats."""
    seat_map = await session.sequencer.seat_map()
    return JSONResponse(status_code=200, content=seat_map.to_json_dict())


@router.post("/seats", response_model=FlowState)
async def choose_seats(request: ChooseSeatsRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    seat_price = await session.sequencer.choose_seats(request.seats, request.price)

    logger.info(
        "Seats selected",
        extra={
            "booking_session": session.session_id,
            "seats": request.seats,
            "seat_price": str(seat_price),
        }
    )
    return _state_response(session)


@router.post("/seats/skip", response_model=FlowState)
async def skip_seats(session: FlowSession = FlowSessionDep) -> JSONResponse:
    await session.sequencer.skip_seats()
    return _state_response(session)


@router.post("/passengers", response_model=FlowState)
async def submit_passengers(request: SubmitPassengersRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    await session.sequencer.submit_passengers(request.passengers)
    return _state_response(session)


@router.post("/extras", response_model=FlowState)
async def choose_extras(request: ChooseExtrasRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    await session.sequencer.choose_extras(request.extra_services)
    return _state_response(session)


@router.post("/booking", response_model=FlowState)
async def create_booking(session: FlowSession = FlowSessionDep) -> JSONResponse:
    """
    Create the booking on the backend.

    Leaves the extra services step; from here on the server total is the
    amount due.
    """
    booking = await session.sequencer.create_booking()
    if booking is None:
        raise _draft_was_reset("booking")
    return _state_response(session)


@router.post("/payment", response_model=PaymentView)
async def pay(request: PayRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    """
    Start payment for the created booking.

    The outcome is either a checkout URL to redirect to, or a pending
    payment, in which case the session moves to the confirmation step.
    """
    outcome = await session.sequencer.pay(request.payment_method)
    if outcome is None:
        raise _draft_was_reset("payment")

    view = PaymentView(step=session.sequencer.step, outcome=outcome)
    return JSONResponse(status_code=200, content=view.to_json_dict())


@router.get("/confirmation", response_model=ConfirmationView)
async def get_confirmation(
    booking_id: Optional[str] = Query(None, alias="bookingId", max_length=64),
    session: FlowSession = FlowSessionDep,
) -> JSONResponse:
    """Latest server state of the booking, fetched fresh on every call."""
    booking = await session.sequencer.confirm(booking_id)
    if booking is None:
        raise _draft_was_reset("confirmation")

    view = ConfirmationView(step=session.sequencer.step, booking=booking)
    return JSONResponse(status_code=200, content=view.to_json_dict())


@router.post("/finish", response_model=FlowState)
async def finish(
    session: FlowSession = FlowSessionDep,
    registry: FlowSessionRegistry = Depends(get_registry),
) -> JSONResponse:
    """Close a confirmed booking, clear the draft and release the session."""
    await session.sequencer.finish()
    response = _state_response(session)
    registry.discard(session.session_id)
    return response


@router.post("/reset", response_model=FlowState)
async def reset(session: FlowSession = FlowSessionDep) -> JSONResponse:
    """Abandon the draft and start over."""
    await session.sequencer.reset()

    logger.info("Booking draft reset", extra={"booking_session": session.session_id})
    return _state_response(session)
