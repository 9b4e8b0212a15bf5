"""Rating ledger: uniqueness, author-only changes, aggregates."""

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from storeratings.errors import DuplicateRatingError, NotFoundError
from storeratings.services import ratings
from storeratings.stores.postgres import get_session

from conftest import create_account, create_shop


async def _submit(user, store, score: int, comment: str | None = None):
    async with get_session() as session:
        return await ratings.submit_rating(
            session,
            user_id=user.id,
            store_id=store.id,
            score=score,
            comment=comment,
        )


async def _aggregate(store):
    async with get_session() as session:
        return await ratings.get_aggregate(session, store.id)


@pytest.mark.asyncio
async def test_one_rating_per_user_and_store(rater, store):
    first = await _submit(rater, store, 4)
    assert first.score == 4

    with pytest.raises(DuplicateRatingError):
        await _submit(rater, store, 2)

    async with get_session() as session:
        await ratings.update_rating(session, rating_id=first.id, caller_id=rater.id, score=2)

    aggregate = await _aggregate(store)
    assert aggregate.count == 1
    assert aggregate.average == 2.0


@pytest.mark.asyncio
async def test_duplicate_lost_race_is_rejected_by_constraint(rater, store, monkeypatch: pytest.MonkeyPatch):
    await _submit(rater, store, 5)

    async def no_existing_rating(session, *, user_id, store_id):
        return None

    # Simulate a concurrent insert that slipped past the pre-check.
    monkeypatch.setattr(ratings, "get_user_rating", no_existing_rating)
    with pytest.raises(DuplicateRatingError) as exc_info:
        await _submit(rater, store, 1)
    assert exc_info.value.store_id == store.id

    aggregate = await _aggregate(store)
    assert (aggregate.count, aggregate.average) == (1, 5.0)


@pytest.mark.asyncio
async def test_store_deleted_mid_submit_is_not_found(rater, monkeypatch: pytest.MonkeyPatch):
    answers = iter([True, False])

    async def store_vanishes(session, store_id):
        return next(answers)

    monkeypatch.setattr(ratings, "_store_exists", store_vanishes)
    with pytest.raises(NotFoundError) as exc_info:
        await _submit(rater, SimpleNamespace(id=999), 3)
    assert exc_info.value.resource == "Store"


@pytest.mark.asyncio
async def test_score_outside_range_is_not_reported_as_duplicate(rater, store):
    # Bypasses request validation; the check constraint rejects the row.
    with pytest.raises(IntegrityError):
        await _submit(rater, store, 9)

    aggregate = await _aggregate(store)
    assert aggregate.count == 0

    rating = await _submit(rater, store, 3)
    assert rating.score == 3


@pytest.mark.asyncio
async def test_submit_for_missing_store(rater):
    with pytest.raises(NotFoundError):
        await _submit(rater, SimpleNamespace(id=12345), 3)


@pytest.mark.asyncio
async def test_only_author_can_change_rating(rater, other_rater, store):
    rating = await _submit(rater, store, 3)

    async with get_session() as session:
        with pytest.raises(NotFoundError) as exc_info:
            await ratings.update_rating(session, rating_id=rating.id, caller_id=other_rater.id, score=1)
    assert exc_info.value.message == "Rating not found or access denied"

    async with get_session() as session:
        with pytest.raises(NotFoundError):
            await ratings.delete_rating(session, rating_id=rating.id, caller_id=other_rater.id)

    async with get_session() as session:
        with pytest.raises(NotFoundError):
            await ratings.delete_rating(session, rating_id=rating.id + 100, caller_id=rater.id)

    assert (await _aggregate(store)).count == 1


@pytest.mark.asyncio
async def test_delete_removes_rating_from_aggregate(rater, other_rater, store):
    mine = await _submit(rater, store, 5)
    await _submit(other_rater, store, 2)
    assert (await _aggregate(store)).average == 3.5

    async with get_session() as session:
        await ratings.delete_rating(session, rating_id=mine.id, caller_id=rater.id)

    aggregate = await _aggregate(store)
    assert (aggregate.count, aggregate.average) == (1, 2.0)

    # The user may rate again after deleting.
    again = await _submit(rater, store, 4)
    assert again.id != mine.id


@pytest.mark.asyncio
async def test_aggregate_of_unrated_store_is_empty(store):
    aggregate = await _aggregate(store)
    assert aggregate.count == 0
    assert aggregate.average == 0.0


@pytest.mark.asyncio
async def test_average_is_exact_until_display(rater, other_rater, store):
    third = await create_account("Regular Rating User Carol", "carol@example.com")
    for user, score in ((rater, 5), (other_rater, 4), (third, 4)):
        await _submit(user, store, score)

    aggregate = await _aggregate(store)
    assert aggregate.count == 3
    assert aggregate.average == pytest.approx(13 / 3)


@pytest.mark.asyncio
async def test_listing_views(rater, other_rater, owner, store):
    second = await create_shop("Second Street Bakery", "bakery@example.com")
    await _submit(rater, store, 4, "Friendly staff")
    await _submit(other_rater, store, 2)
    await _submit(rater, second, 5)

    async with get_session() as session:
        store_entries = await ratings.list_store_ratings(session, store.id)
        history = await ratings.list_user_ratings(session, rater.id)
        aggregates = await ratings.get_aggregates(session, [store.id, second.id])
        owner_totals = await ratings.get_owner_aggregates(session, [owner.id])
        scores = await ratings.get_user_scores(session, user_id=rater.id, store_ids=[store.id, second.id])

    # Newest first; equal timestamps fall back to id.
    assert [e.user_name for e in store_entries] == [other_rater.name, rater.name]
    assert {e.store_name for e in history} == {"Corner Shop", "Second Street Bakery"}
    assert aggregates[store.id].average == 3.0
    assert aggregates[second.id].count == 1
    assert owner_totals[owner.id].count == 2
    assert scores == {store.id: 4, second.id: 5}
