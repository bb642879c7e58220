"""Concurrency tests for the booking flow commit points."""

import asyncio

import httpx
import pytest

from booking_flow.core.exceptions import OperationInProgressError
from booking_flow.schemas.booking import Passenger
from booking_flow.schemas.flight import Flight
from booking_flow.schemas.flow import FlowStep
from booking_flow.schemas.payment import PaymentMethod
from booking_flow.services.booking_state import DraftKey
from booking_flow.services.persistence import ABSENT

BOOKED_SEATS_PATH = "/seat-selections/flight/VN213"


class Gate:
    """Backend handler that holds its response until released."""

    def __init__(self, status: int, body: dict):
        self.status = status
        self.body = body
        self.entered = asyncio.Event()
        self.released = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.entered.set()
        await self.released.wait()
        return httpx.Response(self.status, json=self.body)


@pytest.fixture
def sequencer(flow_session, fake_backend):
    fake_backend.add("GET", BOOKED_SEATS_PATH, json=[])
    return flow_session.sequencer


@pytest.fixture
def flight(sample_flight_data):
    return Flight.model_validate(sample_flight_data)


@pytest.fixture
def passengers(sample_passengers_data):
    return [Passenger.model_validate(p) for p in sample_passengers_data]


async def fill_draft(sequencer, flight, passengers):
    await sequencer.select_flight(flight, passenger_count=len(passengers))
    await sequencer.skip_seats()
    await sequencer.submit_passengers(passengers)


@pytest.mark.asyncio
async def test_second_create_booking_is_rejected(sequencer, flight, passengers, fake_backend, booking_payload):
    """Only one POST /bookings leaves while the first is outstanding."""
    await fill_draft(sequencer, flight, passengers)
    gate = Gate(201, booking_payload())
    fake_backend.add("POST", "/bookings", handler=gate)

    first = asyncio.create_task(sequencer.create_booking())
    await gate.entered.wait()

    with pytest.raises(OperationInProgressError):
        await sequencer.create_booking()

    gate.released.set()
    booking = await first

    assert booking.id == "bk-1"
    assert fake_backend.count("POST", "/bookings") == 1
    assert sequencer.step == FlowStep.PAYMENT
    assert sequencer.store.loading is False


@pytest.mark.asyncio
async def test_reset_during_create_booking_discards_result(sequencer, flight, passengers, fake_backend, booking_payload):
    await fill_draft(sequencer, flight, passengers)
    gate = Gate(201, booking_payload())
    fake_backend.add("POST", "/bookings", handler=gate)

    pending = asyncio.create_task(sequencer.create_booking())
    await gate.entered.wait()
    await sequencer.reset()
    gate.released.set()

    assert await pending is None
    draft = sequencer.store.get()
    assert draft.current_booking is None
    assert draft.selected_flight is None
    assert draft.loading is False
    assert sequencer.step == FlowStep.FLIGHT_SELECTION
    assert await sequencer.store.persistence.restore(DraftKey.CURRENT_BOOKING_ID) is ABSENT


@pytest.mark.asyncio
async def test_second_payment_is_rejected(sequencer, flight, passengers, fake_backend, booking_payload):
    await fill_draft(sequencer, flight, passengers)
    fake_backend.add("POST", "/bookings", status=201, json=booking_payload())
    await sequencer.create_booking()
    gate = Gate(200, {"paymentId": "pay-1", "checkoutUrl": "https://checkout.test/pay-1"})
    fake_backend.add("POST", "/payments/create", handler=gate)

    first = asyncio.create_task(sequencer.pay(PaymentMethod.STRIPE))
    await gate.entered.wait()

    with pytest.raises(OperationInProgressError):
        await sequencer.pay(PaymentMethod.STRIPE)

    gate.released.set()
    outcome = await first

    assert outcome.checkout_url == "https://checkout.test/pay-1"
    assert fake_backend.count("POST", "/payments/create") == 1
    assert sequencer.store.processing_payment is False


@pytest.mark.asyncio
async def test_reset_during_payment_discards_result(sequencer, flight, passengers, fake_backend, booking_payload):
    await fill_draft(sequencer, flight, passengers)
    fake_backend.add("POST", "/bookings", status=201, json=booking_payload())
    await sequencer.create_booking()
    gate = Gate(200, {"paymentId": "pay-1", "status": "PENDING"})
    fake_backend.add("POST", "/payments/create", handler=gate)

    pending = asyncio.create_task(sequencer.pay(PaymentMethod.BANK_TRANSFER))
    await gate.entered.wait()
    await sequencer.reset()
    gate.released.set()

    assert await pending is None
    assert sequencer.store.processing_payment is False
    assert sequencer.step == FlowStep.FLIGHT_SELECTION


@pytest.mark.asyncio
async def test_concurrent_first_requests_share_one_session(registry):
    sessions = await asyncio.gather(*(registry.get("shared") for _ in range(10)))

    assert all(session is sessions[0] for session in sessions)
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_sessions_keep_separate_drafts(registry, fake_backend, flight, passengers, booking_payload):
    fake_backend.add("GET", BOOKED_SEATS_PATH, json=[])
    fake_backend.add("POST", "/bookings", status=201, json=booking_payload())
    first, second = await asyncio.gather(registry.get("first"), registry.get("second"))

    await fill_draft(first.sequencer, flight, passengers)
    await fill_draft(second.sequencer, flight, passengers)
    await first.sequencer.create_booking()
    await second.sequencer.reset()

    assert first.sequencer.step == FlowStep.PAYMENT
    assert first.store.current_booking_id == "bk-1"
    assert second.sequencer.step == FlowStep.FLIGHT_SELECTION
    assert second.store.get().selected_flight is None
