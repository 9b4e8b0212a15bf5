"""Rating ledger.

Invariants:
1. At most one rating per (user, store). The unique constraint
   uq_ratings_user_store is authoritative; the pre-check below only gives a
   fast answer for the common case. An insert that loses a race is rejected
   by the database and reported as DuplicateRating.
2. Aggregates (count, average) are computed from the current rows on every
   read. Nothing is cached or maintained incrementally, so they cannot drift.
3. Ratings are changed only by their author. "Missing" and "someone else's"
   are reported identically as NotFound.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Subquery, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeratings.errors import DuplicateRatingError, NotFoundError
from storeratings.models import Rating, Store, User
from storeratings.services.authorization import Role

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class RatingAggregate:
    """Summary of a store's current ratings.

    `average` is the exact arithmetic mean (0.0 when there are no ratings);
    rounding happens only when rendering.
    """

    count: int
    average: float

    @classmethod
    def from_totals(cls, count: int | None, score_sum: int | float | None) -> "RatingAggregate":
        count = int(count or 0)
        if count == 0:
            return cls(count=0, average=0.0)
        return cls(count=count, average=float(score_sum or 0) / count)


EMPTY_AGGREGATE = RatingAggregate(count=0, average=0.0)


@dataclass(frozen=True)
class StoreRatingEntry:
    """A rating as listed on a store, with the rater's public details."""

    id: int
    score: int
    comment: str | None
    created_at: datetime
    updated_at: datetime
    user_name: str
    user_role: Role


@dataclass(frozen=True)
class UserRatingEntry:
    """A rating as listed in the author's history, with store details."""

    id: int
    score: int
    comment: str | None
    created_at: datetime
    updated_at: datetime
    store_id: int
    store_name: str
    store_address: str


async def _store_exists(session: AsyncSession, store_id: int) -> bool:
    result = await session.execute(select(Store.id).where(Store.id == store_id))
    return result.scalar_one_or_none() is not None


async def _rating_exists(session: AsyncSession, user_id: int, store_id: int) -> bool:
    result = await session.execute(
        select(Rating.id).where(Rating.user_id == user_id, Rating.store_id == store_id)
    )
    return result.scalar_one_or_none() is not None


async def _get_own_rating(session: AsyncSession, rating_id: int, caller_id: int) -> Rating:
    result = await session.execute(
        select(Rating).where(Rating.id == rating_id, Rating.user_id == caller_id)
    )
    rating = result.scalar_one_or_none()
    if rating is None:
        raise NotFoundError("Rating", "Rating not found or access denied")
    return rating


async def submit_rating(
    session: AsyncSession,
    *,
    user_id: int,
    store_id: int,
    score: int,
    comment: str | None = None,
) -> Rating:
    """Record a user's rating for a store.

    Raises:
        NotFoundError: store does not exist (including a store deleted while
            this insert was in flight).
        DuplicateRatingError: the user already rated this store.
        IntegrityError: any other constraint rejected the row (score range,
            rater deleted concurrently); re-raised unchanged.
    """
    if not await _store_exists(session, store_id):
        raise NotFoundError("Store")

    if await get_user_rating(session, user_id=user_id, store_id=store_id) is not None:
        raise DuplicateRatingError(user_id, store_id)

    rating = Rating(user_id=user_id, store_id=store_id, score=score, comment=comment or None)
    session.add(rating)
    try:
        await session.flush()
    except IntegrityError as e:
        # The transaction is unusable; find out which constraint fired by
        # looking at the committed state from a fresh one.
        await session.rollback()
        if await _rating_exists(session, user_id, store_id):
            logger.info(
                "[ratings] duplicate rejected by constraint user_id=%s store_id=%s",
                user_id,
                store_id,
            )
            raise DuplicateRatingError(user_id, store_id) from e
        if not await _store_exists(session, store_id):
            raise NotFoundError("Store") from e
        raise

    await session.refresh(rating)
    logger.info(
        "[ratings] submitted rating_id=%s user_id=%s store_id=%s score=%s",
        rating.id,
        user_id,
        store_id,
        score,
    )
    return rating


async def update_rating(
    session: AsyncSession,
    *,
    rating_id: int,
    caller_id: int,
    score: int,
    comment: str | None = None,
) -> Rating:
    """Change the score/comment of the caller's own rating.

    Raises:
        NotFoundError: rating missing or authored by someone else.
    """
    rating = await _get_own_rating(session, rating_id, caller_id)
    rating.score = score
    rating.comment = comment or None
    await session.flush()
    await session.refresh(rating)

    logger.info("[ratings] updated rating_id=%s user_id=%s score=%s", rating_id, caller_id, score)
    return rating


async def delete_rating(session: AsyncSession, *, rating_id: int, caller_id: int) -> None:
    """Remove the caller's own rating.

    Raises:
        NotFoundError: rating missing or authored by someone else.
    """
    result = await session.execute(
        delete(Rating).where(Rating.id == rating_id, Rating.user_id == caller_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Rating", "Rating not found or access denied")

    logger.info("[ratings] deleted rating_id=%s user_id=%s", rating_id, caller_id)


async def get_user_rating(session: AsyncSession, *, user_id: int, store_id: int) -> Rating | None:
    """Get the caller's rating for a store, if any."""
    result = await session.execute(
        select(Rating).where(Rating.user_id == user_id, Rating.store_id == store_id)
    )
    return result.scalar_one_or_none()


async def get_user_scores(
    session: AsyncSession,
    *,
    user_id: int,
    store_ids: Iterable[int],
) -> dict[int, int]:
    """Map store id -> the user's score, for the given stores."""
    ids = list(store_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(Rating.store_id, Rating.score).where(
            Rating.user_id == user_id,
            Rating.store_id.in_(ids),
        )
    )
    return {store_id: score for store_id, score in result.all()}


async def get_aggregate(session: AsyncSession, store_id: int) -> RatingAggregate:
    """Count and mean of the store's current ratings."""
    result = await session.execute(
        select(func.count(Rating.id), func.sum(Rating.score)).where(Rating.store_id == store_id)
    )
    count, score_sum = result.one()
    return RatingAggregate.from_totals(count, score_sum)


async def get_aggregates(
    session: AsyncSession,
    store_ids: Iterable[int],
) -> dict[int, RatingAggregate]:
    """Aggregates for several stores in one query.

    Stores without ratings map to EMPTY_AGGREGATE.
    """
    ids = list(store_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(Rating.store_id, func.count(Rating.id), func.sum(Rating.score))
        .where(Rating.store_id.in_(ids))
        .group_by(Rating.store_id)
    )
    aggregates = {store_id: EMPTY_AGGREGATE for store_id in ids}
    for store_id, count, score_sum in result.all():
        aggregates[store_id] = RatingAggregate.from_totals(count, score_sum)
    return aggregates


def aggregate_subquery() -> Subquery:
    """Per-store count/sum/avg, for joining into store listings.

    Columns: store_id, rating_count, score_sum, average_score.
    """
    return (
        select(
            Rating.store_id.label("store_id"),
            func.count(Rating.id).label("rating_count"),
            func.sum(Rating.score).label("score_sum"),
            func.avg(Rating.score).label("average_score"),
        )
        .group_by(Rating.store_id)
        .subquery("rating_totals")
    )


async def list_store_ratings(
    session: AsyncSession,
    store_id: int,
    *,
    limit: int | None = None,
) -> list[StoreRatingEntry]:
    """All ratings of a store, newest first, with rater name and role."""
    query = (
        select(Rating, User.name, User.role)
        .join(User, Rating.user_id == User.id)
        .where(Rating.store_id == store_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)

    result = await session.execute(query)
    return [
        StoreRatingEntry(
            id=rating.id,
            score=rating.score,
            comment=rating.comment,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
            user_name=user_name,
            user_role=user_role,
        )
        for rating, user_name, user_role in result.all()
    ]


async def list_user_ratings(session: AsyncSession, user_id: int) -> list[UserRatingEntry]:
    """A user's rating history, newest first, with store details."""
    result = await session.execute(
        select(Rating, Store.id, Store.name, Store.address)
        .join(Store, Rating.store_id == Store.id)
        .where(Rating.user_id == user_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    )
    return [
        UserRatingEntry(
            id=rating.id,
            score=rating.score,
            comment=rating.comment,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
            store_id=store_id,
            store_name=store_name,
            store_address=store_address,
        )
        for rating, store_id, store_name, store_address in result.all()
    ]


async def list_recent_ratings(session: AsyncSession, *, limit: int = 10) -> list[dict]:
    """Latest ratings across all stores (admin dashboard)."""
    result = await session.execute(
        select(Rating.score, Rating.created_at, User.name, Store.name)
        .join(User, Rating.user_id == User.id)
        .join(Store, Rating.store_id == Store.id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .limit(limit)
    )
    return [
        {"score": score, "created_at": created_at, "user_name": user_name, "store_name": store_name}
        for score, created_at, user_name, store_name in result.all()
    ]


async def get_owner_aggregates(
    session: AsyncSession,
    owner_ids: Iterable[int],
) -> dict[int, RatingAggregate]:
    """Aggregate over all ratings of all stores owned by each given user."""
    ids = list(owner_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(Store.owner_id, func.count(Rating.id), func.sum(Rating.score))
        .join(Rating, Rating.store_id == Store.id)
        .where(Store.owner_id.in_(ids))
        .group_by(Store.owner_id)
    )
    aggregates = {owner_id: EMPTY_AGGREGATE for owner_id in ids}
    for owner_id, count, score_sum in result.all():
        aggregates[owner_id] = RatingAggregate.from_totals(count, score_sum)
    return aggregates
