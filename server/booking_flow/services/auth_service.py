"""Authentication against the backend and the session's stored credential."""

import logging
from datetime import datetime, timezone
from typing import Optional

import jwt

from ..core.exceptions import ServerError
from ..schemas.auth import CurrentUser, LoginRequest, RegisterRequest, TokenResponse, UserRecord
from .api_client import BackendClient
from .credentials import CredentialStore

logger = logging.getLogger(__name__)


class AuthService:
    """
    Login, registration and identity for one booking session.

    The backend signs the tokens; this service only reads their claims to
    know who is logged in and when the token stops being usable.
    """

    def __init__(self, client: BackendClient, credentials: CredentialStore):
        self.client = client
        self.credentials = credentials

    async def login(self, request: LoginRequest) -> CurrentUser:
        """
        Exchange email and password for an access token and store it.

        Raises:
            AuthenticationError: If the backend rejects the credentials
        """
        response = await self.client.post(
            "/auth/login", TokenResponse, json=request.model_dump(), resource="user"
        )
        await self.credentials.save(response.access_token)

        user = self._decode(response.access_token)
        if user is None:
            await self.credentials.clear()
            raise ServerError(detail="The booking server issued an unreadable access token")

        logger.info("User logged in", extra={"user_id": user.id, "role": user.role})
        return user

    async def register(self, request: RegisterRequest) -> UserRecord:
        user = await self.client.post(
            "/auth/register", UserRecord, json=request.model_dump(exclude_none=True), resource="user"
        )
        logger.info("User registered", extra={"user_id": user.id})
        return user

    async def logout(self) -> None:
        await self.credentials.clear()

    def _decode(self, token: str) -> Optional[CurrentUser]:
        try:
            claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
        except jwt.InvalidTokenError as e:
            logger.warning("Stored access token is malformed", extra={"error": str(e)})
            return None

        subject = claims.get("sub")
        if not subject:
            return None

        expires_at = None
        if isinstance(claims.get("exp"), (int, float)):
            expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)

        return CurrentUser(
            id=str(subject),
            email=claims.get("email"),
            role=claims.get("role"),
            expires_at=expires_at,
        )

    async def current_user(self) -> Optional[CurrentUser]:
        """
        Identity carried by the stored token.

        An expired or unreadable token is cleared, which logs the session out.
        """
        token = self.credentials.token
        if not token:
            return None

        user = self._decode(token)
        if user is None or (user.expires_at is not None and user.expires_at <= datetime.now(timezone.utc)):
            logger.info("Clearing unusable access token")
            await self.credentials.clear()
            return None
        return user
