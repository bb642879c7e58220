"""Test configuration and fixtures."""

import time
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from booking_flow.core.config import Settings
from booking_flow.core.database import Base, create_engine_for, create_session_factory
from booking_flow.models import *  # noqa: F403 - Import all models
from booking_flow.services.session_registry import FlowSessionRegistry

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BACKEND_URL = "http://backend.test/api"
SESSION_ID = "test-session"

Handler = Callable[[httpx.Request], Any]
Route = Union[Handler, Tuple[int, Any]]


class FakeBackend:
    """
    Stand-in for the booking REST backend, served through httpx.MockTransport.

    Routes map (method, path) to either a (status, json) pair or a handler
    taking the request. Handlers may be coroutines, which lets a test hold
    a response back until it decides to release it.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.calls: List[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, json: Any = None, handler: Handler = None) -> None:
        self.routes[(method, path)] = handler if handler is not None else (status, json)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.calls if r.method == method and self.path_of(r) == path)

    def last(self, method: str, path: str) -> httpx.Request:
        return [r for r in self.calls if r.method == method and self.path_of(r) == path][-1]

    @staticmethod
    def path_of(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/api")

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, self.path_of(request)))
        if route is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})
        if callable(route):
            response = route(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response
        status, body = route
        return httpx.Response(status, json=body)


def make_token(sub: str = "user-1", email: str = "traveller@example.com", role: str = "USER", expires_in: int = 3600) -> str:
    """Token shaped like the backend's; the signature is never verified here."""
    return jwt.encode(
        {"sub": sub, "email": email, "role": role, "exp": int(time.time()) + expires_in},
        "backend-secret",
        algorithm="HS256",
    )


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        environment="test",
        database_url=TEST_DATABASE_URL,
        backend_base_url=BACKEND_URL,
        frontend_base_url="http://frontend.test",
    )


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_engine_for(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest_asyncio.fixture
async def http_client(fake_backend):
    """Backend HTTP client wired to the fake backend."""
    async with AsyncClient(base_url=BACKEND_URL, transport=httpx.MockTransport(fake_backend)) as client:
        yield client


@pytest.fixture
def registry(session_factory, http_client, test_settings):
    return FlowSessionRegistry(session_factory, http_client, test_settings)


@pytest_asyncio.fixture
async def flow_session(registry):
    return await registry.get(SESSION_ID)


@pytest_asyncio.fixture(scope="function")
async def test_app(test_settings, test_engine, session_factory, http_client):
    """Create a test FastAPI application sharing the test database and fake backend."""
    from booking_flow.main import create_app

    app = create_app(
        test_settings,
        db_engine=test_engine,
        session_factory=session_factory,
        http_client=http_client,
    )
    yield app


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client speaking for one booking session."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Booking-Session": SESSION_ID},
    ) as client:
        yield client


@pytest.fixture
def sample_flight_data():
    """Flight snapshot as the backend's search returns it."""
    return {
        "id": "fl-1",
        "airline": "Vietnam Airlines",
        "flightNumber": "VN213",
        "origin": "HAN",
        "destination": "SGN",
        "departTime": "2026-12-01T08:00:00Z",
        "arriveTime": "2026-12-01T10:10:00Z",
        "cabinClass": "ECONOMY",
        "baseFare": "1000000",
        "taxes": "200000",
        "currency": "VND",
        "totalSeats": 180,
        "availableSeats": 150,
    }


@pytest.fixture
def sample_passengers_data():
    return [
        {
            "fullName": "Nguyen Van A",
            "dateOfBirth": "1990-05-01",
            "gender": "MALE",
            "documentType": "PASSPORT",
            "documentNumber": "B1234567",
        },
        {
            "fullName": "Tran Thi B",
            "dateOfBirth": "1992-07-15",
            "gender": "FEMALE",
            "documentType": "ID_CARD",
            "documentNumber": "079123456789",
        },
    ]


@pytest.fixture
def booking_payload():
    """Builds a backend booking record."""

    def build(booking_id: str = "bk-1", status: str = "PENDING", total: str = "3000000") -> dict:
        return {
            "id": booking_id,
            "bookingCode": "ABC123",
            "status": status,
            "totalAmount": total,
            "currency": "VND",
            "createdAt": "2026-10-19T09:00:00Z",
            "userId": "user-1",
            "flightSegments": [],
            "passengers": [],
        }

    return build


@pytest.fixture
def token_factory():
    return make_token
