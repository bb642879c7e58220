"""Authentication router."""

import logging

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from ..core.dependencies import FlowSessionDep, RequiredAuth
from ..schemas.auth import CurrentUser, LoginRequest, RegisterRequest, UserRecord
from ..services.session_registry import FlowSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/login", response_model=CurrentUser)
async def login(request: LoginRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    """
    Log the booking session in.

    The access token stays on the server side of the session; the response
    only describes who is logged in.
    """
    user = await session.auth.login(request)
    return JSONResponse(status_code=200, content=user.to_json_dict())


@router.post("/register", response_model=UserRecord, status_code=201)
async def register(request: RegisterRequest, session: FlowSession = FlowSessionDep) -> JSONResponse:
    user = await session.auth.register(request)
    return JSONResponse(status_code=201, content=user.to_json_dict())


@router.post("/logout", status_code=204)
async def logout(session: FlowSession = FlowSessionDep) -> Response:
    await session.auth.logout()
    logger.info("Booking session logged out", extra={"booking_session": session.session_id})
    return Response(status_code=204)


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = RequiredAuth) -> JSONResponse:
    return JSONResponse(status_code=200, content=user.to_json_dict())
