from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from storeratings.errors import AuthError, AuthErrorKind
from storeratings.services.authorization import Role
from storeratings.services.tokens import Identity, issue_token, verify_token
from storeratings.settings import get_settings


@pytest.fixture(autouse=True)
def token_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("JWT_SECRET", "unit-test-secret")
    monkeypatch.setenv("TOKEN_TTL", "24h")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


IDENTITY = Identity(id=42, email="alice@example.com", role=Role.STORE_OWNER)


def test_issue_then_verify_returns_identity():
    issued = issue_token(IDENTITY)
    assert verify_token(issued.token) == IDENTITY


def test_expiry_is_fixed_at_issuance():
    now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    issued = issue_token(IDENTITY, now=now)
    assert issued.issued_at == now
    assert issued.expires_at == now + timedelta(hours=24)

    claims = jwt.get_unverified_claims(issued.token)
    assert claims["sub"] == "42"
    assert claims["role"] == "store_owner"
    assert claims["exp"] - claims["iat"] == 24 * 3600


def test_explicit_zero_lifetime_is_honoured():
    now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    issued = issue_token(IDENTITY, now=now, ttl_seconds=0)
    assert issued.expires_at == now

    claims = jwt.get_unverified_claims(issued.token)
    assert claims["exp"] == claims["iat"]


def test_expired_token_is_rejected():
    issued = issue_token(IDENTITY, now=datetime.now(timezone.utc) - timedelta(hours=2), ttl_seconds=60)
    with pytest.raises(AuthError) as exc_info:
        verify_token(issued.token)
    assert exc_info.value.kind == AuthErrorKind.EXPIRED


def test_tampered_signature_is_rejected():
    token = issue_token(IDENTITY).token
    header, payload, signature = token.split(".")
    forged = ".".join([header, payload, signature[::-1]])
    with pytest.raises(AuthError) as exc_info:
        verify_token(forged)
    assert exc_info.value.kind == AuthErrorKind.INVALID_SIGNATURE


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode(
        {"sub": "42", "email": "alice@example.com", "role": "user", "iat": 1, "exp": 4102444800},
        "someone-else",
        algorithm="HS256",
    )
    with pytest.raises(AuthError) as exc_info:
        verify_token(token)
    assert exc_info.value.kind == AuthErrorKind.INVALID_SIGNATURE


def test_token_with_disallowed_algorithm_is_malformed():
    token = jwt.encode(
        {"sub": "42", "email": "alice@example.com", "role": "user", "iat": 1, "exp": 4102444800},
        "unit-test-secret",
        algorithm="HS512",
    )
    with pytest.raises(AuthError) as exc_info:
        verify_token(token)
    assert exc_info.value.kind == AuthErrorKind.MALFORMED


@pytest.mark.parametrize("token", ["not-a-token", "a.b.c"])
def test_malformed_token_is_rejected(token: str):
    with pytest.raises(AuthError) as exc_info:
        verify_token(token)
    assert exc_info.value.kind == AuthErrorKind.MALFORMED


def test_token_with_unknown_role_is_malformed():
    token = jwt.encode(
        {"sub": "42", "email": "alice@example.com", "role": "superuser", "iat": 1, "exp": 4102444800},
        "unit-test-secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthError) as exc_info:
        verify_token(token)
    assert exc_info.value.kind == AuthErrorKind.MALFORMED


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token(token):
    with pytest.raises(AuthError) as exc_info:
        verify_token(token)
    assert exc_info.value.kind == AuthErrorKind.MISSING_TOKEN
    assert exc_info.value.status_code == 401
