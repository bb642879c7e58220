"""FastAPI dependencies for booking sessions and authentication."""

import re
from typing import Optional

from fastapi import Depends, Header, Request

from ..schemas.auth import CurrentUser
from ..services.session_registry import FlowSession, FlowSessionRegistry
from .exceptions import AuthenticationError, AuthorizationError, NetworkUnavailableError, ValidationFailedError

SESSION_HEADER = "X-Booking-Session"
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def get_registry(request: Request) -> FlowSessionRegistry:
    """Registry created by the application lifespan."""
    registry = request.app.state.flow_registry
    if registry is None:
        raise NetworkUnavailableError(detail="The service is still starting. Please try again shortly.")
    return registry


async def get_flow_session(
    booking_session: Optional[str] = Header(None, alias=SESSION_HEADER),
    registry: FlowSessionRegistry = Depends(get_registry),
) -> FlowSession:
    """
    Resolve the booking session named by the X-Booking-Session header.

    Raises:
        ValidationFailedError: If the header is missing or malformed
    """
    if not booking_session or not SESSION_ID_PATTERN.match(booking_session):
        raise ValidationFailedError(
            detail=f"A valid {SESSION_HEADER} header is required",
            errors={SESSION_HEADER: "1-64 characters from A-Z, a-z, 0-9, '-' and '_'"},
        )
    return await registry.get(booking_session)


async def get_current_user(session: FlowSession = Depends(get_flow_session)) -> CurrentUser:
    """
    Logged-in user of the booking session.

    Raises:
        AuthenticationError: If no usable token is stored for the session
    """
    user = await session.auth.current_user()
    if user is None:
        raise AuthenticationError(detail="Please log in to continue.")
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise AuthorizationError(detail="Administrator access is required.")
    return user


FlowSessionDep = Depends(get_flow_session)
RequiredAuth = Depends(get_current_user)
AdminAuth = Depends(require_admin)
