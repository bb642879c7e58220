"""Per-session wiring of the booking flow components."""

import asyncio
from collections import OrderedDict
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import Settings
from ..core.observability import get_logger
from .admin_service import AdminService
from .api_client import BackendClient
from .auth_service import AuthService
from .booking_api import BookingApi
from .booking_state import BookingStateStore
from .credentials import CredentialStore
from .flow_sequencer import FlowSequencer
from .persistence import PersistenceAdapter
from .pricing import AncillaryPricing, SeatPricing

logger = get_logger(__name__)


def draft_scope(session_id: str) -> str:
    return f"draft:{session_id}"


def auth_scope(session_id: str) -> str:
    return f"auth:{session_id}"


@dataclass
class FlowSession:
    """Everything that belongs to one booking session."""

    session_id: str
    credentials: CredentialStore
    client: BackendClient
    store: BookingStateStore
    booking_api: BookingApi
    sequencer: FlowSequencer
    auth: AuthService
    admin: AdminService


class FlowSessionRegistry:
    """
    Creates booking sessions on first use and keeps the most recently used ones.

    A session not held in memory is restored from its snapshots, so a restart
    or an eviction resumes the draft where it was left. Above
    `max_live_sessions` the least recently used idle sessions are dropped;
    a session waiting on a booking or payment call is never evicted.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        http_client: httpx.AsyncClient,
        settings: Settings,
    ):
        self.session_factory = session_factory
        self.http_client = http_client
        self.settings = settings
        self.seat_pricing = SeatPricing.from_settings(settings)
        self.ancillary_pricing = AncillaryPricing.from_settings(settings)
        self.max_live_sessions = settings.max_live_sessions
        self._sessions: OrderedDict[str, FlowSession] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def build(self, session_id: str) -> FlowSession:
        """Wire the components of a session without touching storage."""
        credentials = CredentialStore(PersistenceAdapter(self.session_factory, auth_scope(session_id)))
        client = BackendClient(self.http_client, credentials)
        store = BookingStateStore(PersistenceAdapter(self.session_factory, draft_scope(session_id)), self.seat_pricing)
        booking_api = BookingApi(client, self.seat_pricing, self.settings.default_currency)
        sequencer = FlowSequencer(store, booking_api, self.seat_pricing, self.ancillary_pricing, self.settings)
        return FlowSession(
            session_id=session_id,
            credentials=credentials,
            client=client,
            store=store,
            booking_api=booking_api,
            sequencer=sequencer,
            auth=AuthService(client, credentials),
            admin=AdminService(client),
        )

    async def get(self, session_id: str) -> FlowSession:
        """Return the live session, restoring it from storage on first use."""
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session

        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = self.build(session_id)
                await session.credentials.load()
                await session.store.restore()
                session.sequencer.resume()
                self._sessions[session_id] = session
                logger.info("flow_session_opened", session_id=session_id, step=session.sequencer.step.value)
                self._evict_idle()
        return session

    def _evict_idle(self) -> None:
        for session_id in list(self._sessions):
            if len(self._sessions) <= self.max_live_sessions:
                return
            store = self._sessions[session_id].store
            if store.loading or store.processing_payment:
                continue
            del self._sessions[session_id]
            logger.info("flow_session_evicted", session_id=session_id, live_sessions=len(self._sessions))

    def discard(self, session_id: str) -> None:
        """Forget the in-memory session. Stored snapshots are kept."""
        if self._sessions.pop(session_id, None) is not None:
            logger.info("flow_session_discarded", session_id=session_id)
