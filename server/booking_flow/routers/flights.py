"""Flight search router."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import FlowSessionDep
from ..schemas.flight import FlightPage, FlightSearchQuery
from ..services.session_registry import FlowSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/flights", tags=["flights"])


@router.post("/search", response_model=FlightPage)
async def search_flights(request: FlightSearchQuery, session: FlowSession = FlowSessionDep) -> JSONResponse:
    """
    Search flights for a route and date.

    Searching does not touch the booking draft; pick a result with
    POST /v1/flow/flight.
    """
    page = await session.booking_api.search_flights(request)

    logger.info(
        "Flight search completed",
        extra={
            "origin": request.origin,
            "destination": request.destination,
            "departure_date": request.departure_date.isoformat(),
            "results": page.total_elements,
        }
    )
    return JSONResponse(status_code=200, content=page.to_json_dict())
