"""Tests for health endpoint and error envelope."""

import pytest
from httpx import ASGITransport, AsyncClient

from storeratings.main import app


@pytest.fixture
async def bare_client():
    """Client without a database; only routes that never touch it are safe."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(bare_client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await bare_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_logout_is_acknowledged_without_token(bare_client: AsyncClient):
    response = await bare_client.post("/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"message": "Logout successful"}


@pytest.mark.asyncio
async def test_missing_token_uses_error_envelope(bare_client: AsyncClient):
    response = await bare_client.get("/stores")
    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "MISSING_TOKEN"
    assert body["error"]["message"] == "Access token required"


@pytest.mark.asyncio
async def test_request_validation_is_reported_as_field_constraint(bare_client: AsyncClient):
    response = await bare_client.post("/auth/login", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "FIELD_CONSTRAINT"
    assert error["detail"]["field"] == "email"
