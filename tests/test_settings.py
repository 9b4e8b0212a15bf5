import pytest

from storeratings.services.passwords import password_policy_violation
from storeratings.settings import Settings, parse_duration_seconds


@pytest.mark.parametrize(
    ("value", "expected"),
    [(3600, 3600), ("86400", 86400), ("30m", 1800), ("24h", 86400), ("7d", 604800), (" 2H ", 7200)],
)
def test_parse_duration_seconds(value, expected):
    assert parse_duration_seconds(value) == expected


@pytest.mark.parametrize("value", ["", "soon", "10w", 0, -5, True])
def test_parse_duration_seconds_rejects(value):
    with pytest.raises(ValueError):
        parse_duration_seconds(value)


def test_async_database_url_normalizes_driver():
    s = Settings(database_url="postgres://u:p@db:5432/ratings")
    assert s.async_database_url == "postgresql+asyncpg://u:p@db:5432/ratings"
    s = Settings(database_url="postgresql://u:p@db:5432/ratings")
    assert s.async_database_url == "postgresql+asyncpg://u:p@db:5432/ratings"
    assert not s.is_sqlite


def test_sqlite_connect_args_have_no_server_settings():
    s = Settings(database_url="sqlite+aiosqlite:///./ratings.db")
    assert s.is_sqlite
    assert "server_settings" not in s.db_connect_args


def test_postgres_connect_args_carry_statement_timeout():
    s = Settings(database_url="postgresql://u:p@db/ratings", db_statement_timeout_ms=5000)
    assert s.db_connect_args["server_settings"] == {"statement_timeout": "5000"}


def test_token_ttl_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("TOKEN_TTL", raising=False)
    monkeypatch.setenv("JWT_EXPIRES_IN", "12h")
    assert Settings().token_ttl == 12 * 3600


def test_cors_origins_accepts_comma_separated():
    s = Settings(CORS_ORIGINS="https://a.com, http://localhost:3000")
    assert s.cors_origins == ["https://a.com", "http://localhost:3000"]


def test_cors_origins_accepts_json_array():
    s = Settings(CORS_ORIGINS='["https://a.com"]')
    assert s.cors_origins == ["https://a.com"]


@pytest.mark.parametrize(
    ("password", "expected"),
    [
        ("Passw0rd!", None),
        ("Short!A", "length must be between 8 and 16"),
        ("ThisPasswordIsWayTooLong!", "length must be between 8 and 16"),
        ("password!", "must contain at least one uppercase letter"),
        ("Password1", "must contain at least one special character"),
    ],
)
def test_password_policy(password, expected):
    assert password_policy_violation(password) == expected
