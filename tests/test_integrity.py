"""Deletes and role changes keep ratings and ownership consistent."""

import pytest
from sqlalchemy import func, select

from storeratings.errors import NotFoundError
from storeratings.models import Rating, Store, User
from storeratings.services import accounts, integrity, ownership, ratings
from storeratings.services.authorization import Role
from storeratings.stores.postgres import get_session

from conftest import create_shop


async def _rate(user, store, score: int):
    async with get_session() as session:
        await ratings.submit_rating(session, user_id=user.id, store_id=store.id, score=score)


async def _count(model, *where) -> int:
    async with get_session() as session:
        return await session.scalar(select(func.count()).select_from(model).where(*where))


@pytest.mark.asyncio
async def test_delete_user_removes_ratings_and_releases_stores(owner, rater, store):
    await _rate(owner, store, 5)
    await _rate(rater, store, 3)

    async with get_session() as session:
        report = await integrity.delete_user(session, owner.id)

    assert report == integrity.CascadeReport(ratings_removed=1, stores_released=1)
    assert await _count(User, User.id == owner.id) == 0
    assert await _count(Rating, Rating.user_id == owner.id) == 0

    # The store survives without an owner; other users' ratings stay.
    async with get_session() as session:
        assert await ownership.owner_of(session, store.id) is None
        aggregate = await ratings.get_aggregate(session, store.id)
    assert (aggregate.count, aggregate.average) == (1, 3.0)


@pytest.mark.asyncio
async def test_delete_store_removes_its_ratings(rater, other_rater, store):
    keep = await create_shop("Second Street Bakery", "bakery@example.com")
    await _rate(rater, store, 4)
    await _rate(other_rater, store, 2)
    await _rate(rater, keep, 5)

    async with get_session() as session:
        report = await integrity.delete_store(session, store.id)

    assert report.ratings_removed == 2
    assert await _count(Store, Store.id == store.id) == 0
    assert await _count(Rating, Rating.store_id == store.id) == 0
    assert await _count(Rating, Rating.store_id == keep.id) == 1


@pytest.mark.asyncio
async def test_delete_missing_rows(db):
    async with get_session() as session:
        with pytest.raises(NotFoundError):
            await integrity.delete_user(session, 404)
    async with get_session() as session:
        with pytest.raises(NotFoundError):
            await integrity.delete_store(session, 404)


@pytest.mark.asyncio
async def test_failed_cascade_leaves_nothing_behind(owner, rater, store, monkeypatch: pytest.MonkeyPatch):
    await _rate(rater, store, 4)

    async def fail_release(session, user_id):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(integrity, "release_owned_stores", fail_release)
    with pytest.raises(RuntimeError):
        async with get_session() as session:
            await integrity.delete_user(session, rater.id)

    # Ratings deleted before the failure were rolled back with the rest.
    assert await _count(Rating, Rating.user_id == rater.id) == 1
    assert await _count(User, User.id == rater.id) == 1


@pytest.mark.asyncio
async def test_role_change_away_from_store_owner_releases_stores(owner, store):
    async with get_session() as session:
        user = await accounts.update_role(session, user_id=owner.id, role=Role.USER)
    assert user.role == Role.USER

    async with get_session() as session:
        assert await ownership.owner_of(session, store.id) is None
        assert await ownership.owned_store(session, owner.id) is None


@pytest.mark.asyncio
async def test_ownership_resolution(owner, rater, store):
    unowned = await create_shop("Unclaimed Corner Kiosk", "kiosk@example.com")
    async with get_session() as session:
        assert await ownership.is_owner(session, owner.id, store.id)
        assert not await ownership.is_owner(session, rater.id, store.id)
        assert not await ownership.is_owner(session, owner.id, unowned.id)
        assert await ownership.owner_of(session, 999) is None
        assert (await ownership.owned_store(session, owner.id)).id == store.id
