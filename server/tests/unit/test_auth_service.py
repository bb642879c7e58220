"""Unit tests for login, registration and the session identity."""

import json

import pytest

from booking_flow.core.exceptions import AuthenticationError, ServerError, ValidationFailedError
from booking_flow.schemas.auth import LoginRequest, RegisterRequest


@pytest.mark.asyncio
async def test_login_stores_token(flow_session, fake_backend, token_factory):
    token = token_factory(sub="user-7", role="ADMIN")
    fake_backend.add("POST", "/auth/login", json={"accessToken": token})

    user = await flow_session.auth.login(LoginRequest(email="admin@example.com", password="secret"))

    assert user.id == "user-7"
    assert user.is_admin
    assert flow_session.credentials.token == token
    assert await flow_session.credentials.load() == token


@pytest.mark.asyncio
async def test_login_rejected(flow_session, fake_backend):
    fake_backend.add("POST", "/auth/login", status=401, json={"message": "Invalid email or password"})

    with pytest.raises(AuthenticationError) as exc_info:
        await flow_session.auth.login(LoginRequest(email="someone@example.com", password="wrong"))

    assert exc_info.value.message == "Invalid email or password"
    assert exc_info.value.problem_details["redirect_to"] == "login"
    assert flow_session.credentials.token is None


@pytest.mark.asyncio
async def test_login_with_unreadable_token(flow_session, fake_backend):
    fake_backend.add("POST", "/auth/login", json={"accessToken": "not-a-jwt"})

    with pytest.raises(ServerError):
        await flow_session.auth.login(LoginRequest(email="someone@example.com", password="secret"))

    assert flow_session.credentials.token is None


@pytest.mark.asyncio
async def test_register_relays_field_errors(flow_session, fake_backend):
    fake_backend.add("POST", "/auth/register", status=400, json={
        "status": "VALIDATION_ERROR",
        "email": "Email already in use",
    })

    with pytest.raises(ValidationFailedError) as exc_info:
        await flow_session.auth.register(RegisterRequest(email="taken@example.com", password="secret1"))

    assert exc_info.value.errors == {"email": "Email already in use"}


@pytest.mark.asyncio
async def test_register_returns_user_record(flow_session, fake_backend):
    fake_backend.add("POST", "/auth/register", status=201, json={
        "id": "user-9",
        "email": "new@example.com",
        "role": "USER",
        "status": "ACTIVE",
    })

    user = await flow_session.auth.register(RegisterRequest(email="new@example.com", password="secret1"))

    assert user.id == "user-9"
    body = json.loads(fake_backend.last("POST", "/auth/register").content)
    assert "phone" not in body


@pytest.mark.asyncio
async def test_current_user_from_token(flow_session, token_factory):
    await flow_session.credentials.save(token_factory(sub="user-1", email="traveller@example.com"))

    user = await flow_session.auth.current_user()

    assert user.id == "user-1"
    assert user.email == "traveller@example.com"
    assert not user.is_admin


@pytest.mark.asyncio
async def test_expired_token_is_cleared(flow_session, token_factory):
    await flow_session.credentials.save(token_factory(expires_in=-60))

    assert await flow_session.auth.current_user() is None
    assert flow_session.credentials.token is None


@pytest.mark.asyncio
async def test_logout_clears_token(flow_session, token_factory):
    await flow_session.credentials.save(token_factory())

    await flow_session.auth.logout()

    assert await flow_session.auth.current_user() is None
    assert await flow_session.credentials.load() is None
