"""Unit tests for the booking session registry."""

import pytest

from booking_flow.schemas.flight import Flight
from booking_flow.schemas.flow import FlowStep
from booking_flow.services.session_registry import FlowSessionRegistry

BOOKED_SEATS_PATH = "/seat-selections/flight/VN213"


@pytest.fixture
def small_registry(session_factory, http_client, test_settings):
    return FlowSessionRegistry(
        session_factory, http_client, test_settings.model_copy(update={"max_live_sessions": 2})
    )


@pytest.mark.asyncio
async def test_least_recently_used_session_is_evicted(small_registry):
    await small_registry.get("a")
    await small_registry.get("b")
    await small_registry.get("a")

    await small_registry.get("c")

    assert len(small_registry) == 2
    assert "a" in small_registry
    assert "b" not in small_registry


@pytest.mark.asyncio
async def test_evicted_session_restores_its_draft(small_registry, fake_backend, sample_flight_data):
    fake_backend.add("GET", BOOKED_SEATS_PATH, json=[])
    first = await small_registry.get("a")
    await first.sequencer.select_flight(Flight.model_validate(sample_flight_data), passenger_count=2)
    await first.sequencer.choose_seats(["12A", "12B"])

    await small_registry.get("b")
    await small_registry.get("c")
    assert "a" not in small_registry

    restored = await small_registry.get("a")

    draft = restored.store.get()
    assert restored is not first
    assert restored.sequencer.step == FlowStep.TRAVELLER_INFO
    assert draft.selected_flight.flight_number == "VN213"
    assert draft.selected_seats == ["12A", "12B"]
    assert str(draft.seat_price) == "600000"


@pytest.mark.asyncio
async def test_busy_session_is_not_evicted(small_registry):
    busy = await small_registry.get("a")
    busy.store.loading = True

    await small_registry.get("b")
    await small_registry.get("c")

    assert "a" in small_registry
    assert "b" not in small_registry
    assert len(small_registry) == 2


@pytest.mark.asyncio
async def test_registry_stays_bounded_over_http(test_client, test_app):
    registry = test_app.state.flow_registry
    registry.max_live_sessions = 5

    for index in range(50):
        response = await test_client.get("/v1/flow/state", headers={"X-Booking-Session": f"visitor-{index}"})
        assert response.status_code == 200

    assert len(registry) == 5
    assert "visitor-49" in registry


@pytest.mark.asyncio
async def test_finish_releases_session(test_client, test_app, fake_backend, sample_flight_data,
                                       sample_passengers_data, booking_payload):
    fake_backend.add("POST", "/bookings", status=201, json=booking_payload())
    fake_backend.add("POST", "/payments/create", json={"paymentId": "pay-1", "status": "PENDING"})
    await test_client.post("/v1/flow/flight", json={"flight": sample_flight_data, "passengerCount": 2})
    await test_client.post("/v1/flow/seats/skip")
    await test_client.post("/v1/flow/passengers", json={"passengers": sample_passengers_data})
    await test_client.post("/v1/flow/booking")
    await test_client.post("/v1/flow/payment", json={"paymentMethod": "BANK_TRANSFER"})

    response = await test_client.post("/v1/flow/finish")

    assert response.status_code == 200
    assert "test-session" not in test_app.state.flow_registry

    response = await test_client.get("/v1/flow/state")
    assert response.json()["step"] == "FLIGHT_SELECTION"
