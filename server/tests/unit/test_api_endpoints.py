"""Integration tests for API endpoints."""

import pytest

SEATS_PATH = "/seat-selections/flight/VN213"


async def select_flight(test_client, sample_flight_data, passenger_count=2):
    return await test_client.post(
        "/v1/flow/flight",
        json={"flight": sample_flight_data, "passengerCount": passenger_count},
    )


@pytest.mark.asyncio
async def test_missing_session_header(test_app):
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        response = await client.get("/v1/flow/state")

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "VALIDATION_FAILED"
    assert "X-Booking-Session" in data["errors"]
    assert response.headers["content-type"].startswith("application/problem+json")


@pytest.mark.asyncio
async def test_initial_state(test_client):
    response = await test_client.get("/v1/flow/state")

    assert response.status_code == 200
    data = response.json()
    assert data["step"] == "FLIGHT_SELECTION"
    assert data["draft"]["selectedFlight"] is None
    assert data["prices"]["amountDue"] == "0"


@pytest.mark.asyncio
async def test_full_booking_flow(test_client, fake_backend, sample_flight_data, sample_passengers_data, booking_payload):
    """Walk every step from flight selection to a pending payment."""
    fake_backend.add("GET", SEATS_PATH, json=[])
    fake_backend.add("POST", "/bookings", status=201, json=booking_payload())
    fake_backend.add("POST", "/payments/create", json={"paymentId": "pay-1", "status": "PENDING", "message": "Awaiting transfer"})
    fake_backend.add("GET", "/bookings/bk-1", json=booking_payload(status="PENDING_PAYMENT"))

    response = await select_flight(test_client, sample_flight_data)
    assert response.status_code == 200
    assert response.json()["step"] == "SEAT_SELECTION"

    response = await test_client.post("/v1/flow/seats", json={"seats": ["12A", "12B"], "price": "600000"})
    assert response.status_code == 200
    data = response.json()
    assert data["step"] == "TRAVELLER_INFO"
    assert data["draft"]["seatPrice"] == "600000"

    response = await test_client.post("/v1/flow/passengers", json={"passengers": sample_passengers_data})
    assert response.status_code == 200
    assert response.json()["step"] == "EXTRA_SERVICES"
    assert response.json()["prices"]["draftTotal"] == "3000000"

    response = await test_client.post("/v1/flow/extras", json={"extraServices": None})
    assert response.status_code == 200

    response = await test_client.post("/v1/flow/booking")
    assert response.status_code == 200
    data = response.json()
    assert data["step"] == "PAYMENT"
    assert data["draft"]["currentBooking"]["id"] == "bk-1"
    assert data["prices"]["amountDue"] == "3000000"

    response = await test_client.post("/v1/flow/payment", json={"paymentMethod": "BANK_TRANSFER"})
    assert response.status_code == 200
    data = response.json()
    assert data["step"] == "CONFIRMATION"
    assert data["outcome"]["kind"] == "PENDING"

    response = await test_client.get("/v1/flow/confirmation")
    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "PENDING_PAYMENT"

    response = await test_client.post("/v1/flow/finish")
    assert response.status_code == 200
    assert response.json()["step"] == "FLIGHT_SELECTION"


@pytest.mark.asyncio
async def test_seat_map_endpoint(test_client, fake_backend, sample_flight_data):
    fake_backend.add("GET", SEATS_PATH, json=[{"seatNumber": "1A"}])
    await select_flight(test_client, sample_flight_data)

    response = await test_client.get("/v1/flow/seats")

    assert response.status_code == 200
    data = response.json()
    assert data["flightNumber"] == "VN213"
    assert data["maxSelectable"] == 2
    assert data["rows"][0][0] == {"label": "1A", "row": 1, "column": "A", "price": "500000", "booked": True}


@pytest.mark.asyncio
async def test_guard_rejection_returns_redirect(test_client, sample_flight_data):
    await select_flight(test_client, sample_flight_data)
    await test_client.post("/v1/flow/seats/skip")

    response = await test_client.post("/v1/flow/step", json={"step": "PAYMENT"})

    assert response.status_code == 409
    data = response.json()
    assert data["redirect_to"] == "TRAVELLER_INFO"
    assert data["requested_step"] == "PAYMENT"
    assert data["instance"] == "/v1/flow/step"

    state = await test_client.get("/v1/flow/state")
    assert state.json()["step"] == "TRAVELLER_INFO"


@pytest.mark.asyncio
async def test_request_body_validation(test_client, sample_flight_data):
    await select_flight(test_client, sample_flight_data)

    response = await test_client.post("/v1/flow/seats", json={"seats": "12A"})

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    assert "violations" in data


@pytest.mark.asyncio
async def test_mismatched_seat_price_rejected(test_client, fake_backend, sample_flight_data):
    fake_backend.add("GET", SEATS_PATH, json=[])
    await select_flight(test_client, sample_flight_data)

    response = await test_client.post("/v1/flow/seats", json={"seats": ["1A"], "price": "100000"})

    assert response.status_code == 400
    assert response.json()["errors"]["price"] == "expected 500000"


@pytest.mark.asyncio
async def test_backend_unavailable_maps_to_503(test_client, fake_backend, sample_flight_data):
    import httpx

    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    fake_backend.add("GET", SEATS_PATH, handler=refuse)
    await select_flight(test_client, sample_flight_data)

    response = await test_client.get("/v1/flow/seats")

    assert response.status_code == 503
    assert response.json()["code"] == "NETWORK_UNAVAILABLE"


@pytest.mark.asyncio
async def test_reset_endpoint(test_client, sample_flight_data):
    await select_flight(test_client, sample_flight_data)

    response = await test_client.post("/v1/flow/reset")

    assert response.status_code == 200
    assert response.json()["step"] == "FLIGHT_SELECTION"
    assert response.json()["draft"]["selectedFlight"] is None


@pytest.mark.asyncio
async def test_sessions_are_isolated(test_client, sample_flight_data):
    await select_flight(test_client, sample_flight_data)

    response = await test_client.get("/v1/flow/state", headers={"X-Booking-Session": "another-session"})

    assert response.json()["step"] == "FLIGHT_SELECTION"


@pytest.mark.asyncio
async def test_flight_search_endpoint(test_client, fake_backend, sample_flight_data):
    fake_backend.add("GET", "/flights/search", json={
        "content": [sample_flight_data],
        "totalElements": 1,
        "totalPages": 1,
        "number": 0,
        "size": 10,
    })

    response = await test_client.post(
        "/v1/flights/search",
        json={"origin": "HAN", "destination": "SGN", "departureDate": "2026-12-01"},
    )

    assert response.status_code == 200
    assert response.json()["content"][0]["flightNumber"] == "VN213"


@pytest.mark.asyncio
async def test_login_and_me(test_client, fake_backend, token_factory):
    fake_backend.add("POST", "/auth/login", json={"accessToken": token_factory(sub="user-1")})

    response = await test_client.post("/v1/auth/login", json={"email": "traveller@example.com", "password": "secret"})
    assert response.status_code == 200
    assert response.json()["id"] == "user-1"
    assert "accessToken" not in response.json()

    response = await test_client.get("/v1/auth/me")
    assert response.status_code == 200
    assert response.json()["email"] == "traveller@example.com"

    response = await test_client.post("/v1/auth/logout")
    assert response.status_code == 204

    response = await test_client.get("/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["redirect_to"] == "login"


@pytest.mark.asyncio
async def test_my_bookings_requires_login(test_client):
    response = await test_client.get("/v1/bookings/mine")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_my_bookings(test_client, test_app, fake_backend, token_factory, booking_payload):
    session = await test_app.state.flow_registry.get("test-session")
    await session.credentials.save(token_factory(sub="user-1"))
    fake_backend.add("GET", "/bookings/user/user-1", json=[booking_payload(), booking_payload("bk-2", status="TICKETED")])

    response = await test_client.get("/v1/bookings/mine")

    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == ["bk-1", "bk-2"]
    assert response.json()[1]["status"] == "TICKETED"


@pytest.mark.asyncio
async def test_admin_routes_require_admin(test_client, test_app, token_factory):
    session = await test_app.state.flow_registry.get("test-session")
    await session.credentials.save(token_factory(role="USER"))

    response = await test_client.get("/v1/admin/dashboard")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_dashboard_and_pending(test_client, test_app, fake_backend, token_factory):
    session = await test_app.state.flow_registry.get("test-session")
    await session.credentials.save(token_factory(role="ADMIN"))
    fake_backend.add("GET", "/admin/dashboard", json={"totalBookings": 12, "pendingBookings": 3})

    response = await test_client.get("/v1/admin/dashboard")
    assert response.status_code == 200
    assert response.json()["pendingBookings"] == 3

    response = await test_client.get("/v1/admin/pending")
    assert response.status_code == 200
    assert response.json() == {"pendingBookings": None, "polledAt": None}


@pytest.mark.asyncio
async def test_admin_approve_booking(test_client, test_app, fake_backend, token_factory, booking_payload):
    session = await test_app.state.flow_registry.get("test-session")
    await session.credentials.save(token_factory(role="ADMIN"))
    fake_backend.add("PUT", "/admin/bookings/bk-1/approve", json=booking_payload(status="CONFIRMED"))

    response = await test_client.post("/v1/admin/bookings/bk-1/approve")

    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"
