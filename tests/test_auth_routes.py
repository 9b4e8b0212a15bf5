"""Tests for /auth and /users endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from storeratings.services.tokens import Identity, issue_token

from conftest import PASSWORD, auth_headers

REGISTRATION = {
    "name": "Newly Registered Customer",
    "email": "New.Customer@Example.com",
    "password": "Str0ng!Pass",
    "address": "12 Harbour Road",
}


@pytest.mark.asyncio
async def test_register_then_login(client: AsyncClient):
    response = await client.post("/auth/register", json=REGISTRATION)
    assert response.status_code == 201
    user_id = response.json()["userId"]

    response = await client.post(
        "/auth/login",
        json={"email": "new.customer@example.com", "password": "Str0ng!Pass"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == user_id
    assert data["user"]["role"] == "user"
    assert data["user"]["email"] == "new.customer@example.com"
    assert "passwordHash" not in data["user"]
    assert "password_hash" not in data["user"]

    profile = await client.get("/auth/profile", headers={"Authorization": f"Bearer {data['token']}"})
    assert profile.status_code == 200
    assert profile.json()["user"]["name"] == REGISTRATION["name"]


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client: AsyncClient):
    assert (await client.post("/auth/register", json=REGISTRATION)).status_code == 201
    again = {**REGISTRATION, "email": "new.customer@EXAMPLE.com"}
    response = await client.post("/auth/register", json=again)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "DUPLICATE_EMAIL"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("override", "field"),
    [
        ({"name": "Too Short Name"}, "name"),
        ({"name": "Bob" + " " * 20}, "name"),
        ({"password": "nouppercase!"}, "password"),
        ({"password": "NoSpecial12"}, "password"),
        ({"email": "nope"}, "email"),
        ({"address": "x" * 401}, "address"),
    ],
)
async def test_register_field_constraints(client: AsyncClient, override: dict, field: str):
    response = await client.post("/auth/register", json={**REGISTRATION, **override})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "FIELD_CONSTRAINT"
    assert error["detail"]["field"] == field


@pytest.mark.asyncio
async def test_register_stores_trimmed_name_and_address(client: AsyncClient):
    padded = {**REGISTRATION, "name": f"  {REGISTRATION['name']}  ", "address": " 12 Harbour Road \n"}
    response = await client.post("/auth/register", json=padded)
    assert response.status_code == 201

    credentials = {"email": REGISTRATION["email"], "password": REGISTRATION["password"]}
    login = await client.post("/auth/login", json=credentials)
    assert login.json()["user"]["name"] == REGISTRATION["name"]
    assert login.json()["user"]["address"] == "12 Harbour Road"


@pytest.mark.asyncio
async def test_login_rejects_wrong_password_and_unknown_email_alike(client: AsyncClient, rater):
    wrong = await client.post("/auth/login", json={"email": rater.email, "password": "Wr0ng!Pass"})
    unknown = await client.post("/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()
    assert wrong.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_expired_token_is_401(client: AsyncClient, rater):
    token = issue_token(
        Identity(id=rater.id, email=rater.email, role=rater.role),
        now=datetime.now(timezone.utc) - timedelta(days=2),
    ).token
    response = await client.get("/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "EXPIRED"


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_rejected(client: AsyncClient, admin, rater):
    headers = auth_headers(rater)
    assert (await client.delete(f"/admin/users/{rater.id}", headers=auth_headers(admin))).status_code == 200

    response = await client.get("/auth/profile", headers=headers)
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNKNOWN_SUBJECT"


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, rater):
    headers = auth_headers(rater)

    bad = await client.put(
        "/auth/password",
        json={"currentPassword": "Wr0ng!Pass", "newPassword": "N3w!Secret"},
        headers=headers,
    )
    assert bad.status_code == 400
    assert bad.json()["error"]["detail"]["field"] == "currentPassword"

    ok = await client.put(
        "/auth/password",
        json={"currentPassword": PASSWORD, "newPassword": "N3w!Secret"},
        headers=headers,
    )
    assert ok.status_code == 200

    old = await client.post("/auth/login", json={"email": rater.email, "password": PASSWORD})
    new = await client.post("/auth/login", json={"email": rater.email, "password": "N3w!Secret"})
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, rater):
    headers = auth_headers(rater)
    response = await client.put(
        "/users/profile",
        json={"address": "99 New Address Lane"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["user"]["address"] == "99 New Address Lane"
    assert response.json()["user"]["name"] == rater.name

    empty = await client.put("/users/profile", json={}, headers=headers)
    assert empty.status_code == 400

    padded = await client.put("/users/profile", json={"name": "  Short Name  " + " " * 10}, headers=headers)
    assert padded.status_code == 400
    assert padded.json()["error"]["detail"]["field"] == "name"


@pytest.mark.asyncio
async def test_admin_profile_is_read_only(client: AsyncClient, admin):
    response = await client.put("/users/profile", json={"address": "Elsewhere"}, headers=auth_headers(admin))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
async def test_own_store_lookup(client: AsyncClient, owner, rater, store):
    response = await client.get("/users/store", headers=auth_headers(owner))
    assert response.status_code == 200
    assert response.json()["store"]["id"] == store.id

    response = await client.get("/users/store", headers=auth_headers(rater))
    assert response.status_code == 403
