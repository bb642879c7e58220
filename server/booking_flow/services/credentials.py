"""Bearer token storage for a booking session."""

from typing import Optional

from .persistence import ABSENT, PersistenceAdapter

TOKEN_KEY = "token"


class CredentialStore:
    """Access token kept in its own persistence scope, apart from the draft."""

    def __init__(self, persistence: PersistenceAdapter):
        self.persistence = persistence
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def load(self) -> Optional[str]:
        stored = await self.persistence.restore(TOKEN_KEY)
        self._token = stored if isinstance(stored, str) and stored else None
        if stored is not ABSENT and self._token is None:
            self.persistence.report_corrupt(TOKEN_KEY, "token is not a non-empty string")
        return self._token

    async def save(self, token: str) -> None:
        self._token = token
        await self.persistence.snapshot(TOKEN_KEY, token)

    async def clear(self) -> None:
        self._token = None
        await self.persistence.clear(TOKEN_KEY)
