"""Shared fixtures.

Each test gets a fresh SQLite database file; the schema is created from the
models. The ASGI transport does not run the app lifespan, so the fixture
initializes the engine itself.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from storeratings.main import create_app
from storeratings.models import Store, User
from storeratings.services import accounts, catalogue, passwords
from storeratings.services.authorization import Role
from storeratings.services.tokens import Identity, issue_token
from storeratings.settings import get_settings
from storeratings.stores.postgres import close_db, create_tables, drop_tables, get_session, init_db

PASSWORD = "Passw0rd!"


def _clear_caches() -> None:
    get_settings.cache_clear()
    passwords._crypt_context.cache_clear()


@pytest.fixture
async def db(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Initialized database with an empty schema."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ratings.db'}")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "4")
    monkeypatch.setenv("TOKEN_TTL", "1h")
    _clear_caches()

    await init_db()
    await create_tables()
    yield
    await drop_tables()
    await close_db()
    _clear_caches()


@pytest.fixture
async def client(db):
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=create_app()),
        base_url="http://test",
    ) as ac:
        yield ac


async def create_account(name: str, email: str, role: Role = Role.USER, address: str = "1 Main Street") -> User:
    async with get_session() as session:
        return await accounts.create_user(
            session,
            name=name,
            email=email,
            password=PASSWORD,
            address=address,
            role=role,
        )


async def create_shop(name: str, email: str, owner: User | None = None, address: str = "5 Market Square") -> Store:
    async with get_session() as session:
        return await catalogue.create_store(
            session,
            name=name,
            email=email,
            address=address,
            owner_id=owner.id if owner else None,
        )


def auth_headers(user: User) -> dict[str, str]:
    token = issue_token(Identity(id=user.id, email=user.email, role=user.role)).token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin(db) -> User:
    return await create_account("Platform Administrator One", "admin@example.com", Role.ADMIN)


@pytest.fixture
async def owner(db) -> User:
    return await create_account("Corner Shop Owner Person", "owner@example.com", Role.STORE_OWNER)


@pytest.fixture
async def rater(db) -> User:
    return await create_account("Regular Rating User Alice", "alice@example.com")


@pytest.fixture
async def other_rater(db) -> User:
    return await create_account("Regular Rating User Bobby", "bob@example.com")


@pytest.fixture
async def store(owner) -> Store:
    return await create_shop("Corner Shop", "corner@example.com", owner=owner)
