"""Business logic services."""

from .admin_service import AdminService
from .api_client import BackendClient, create_http_client
from .auth_service import AuthService
from .booking_api import BookingApi
from .booking_state import BookingStateStore, DraftKey
from .credentials import CredentialStore
from .flow_sequencer import FlowSequencer
from .persistence import ABSENT, PersistenceAdapter
from .pricing import AncillaryPricing, SeatPricing
from .session_registry import FlowSession, FlowSessionRegistry

__all__ = [
    "ABSENT",
    "AdminService",
    "AncillaryPricing",
    "AuthService",
    "BackendClient",
    "BookingApi",
    "BookingStateStore",
    "CredentialStore",
    "DraftKey",
    "FlowSequencer",
    "FlowSession",
    "FlowSessionRegistry",
    "PersistenceAdapter",
    "SeatPricing",
    "create_http_client",
]
