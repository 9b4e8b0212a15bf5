"""Store catalogue: creation, ownership assignment, listings and detail views.

Listings join the per-store rating totals computed at query time by the
rating ledger; there is no stored average column.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeratings.errors import DuplicateEmailError, NotFoundError, ValidationError
from storeratings.models import Store, User
from storeratings.models.store import STORE_NAME_MAX_LENGTH
from storeratings.services.accounts import normalize_email
from storeratings.services.authorization import Role
from storeratings.services.listing import Page, PageInfo, resolve_sort, search_clause
from storeratings.services.ratings import (
    RatingAggregate,
    StoreRatingEntry,
    aggregate_subquery,
    get_aggregate,
    get_user_rating,
    get_user_scores,
    list_store_ratings,
)

logger = logging.getLogger("uvicorn.error")

RECENT_RATINGS_LIMIT = 10


@dataclass(frozen=True)
class StoreSummary:
    """A store as shown in listings."""

    id: int
    name: str
    email: str
    address: str
    owner_id: int | None
    owner_name: str | None
    created_at: datetime
    aggregate: RatingAggregate
    user_rating: int | None = None


@dataclass(frozen=True)
class StoreListing:
    stores: list[StoreSummary]
    page: PageInfo


@dataclass(frozen=True)
class StoreDetail:
    store: StoreSummary
    ratings: list[StoreRatingEntry] = field(default_factory=list)


def _clean_store_name(name: str) -> str:
    name = name.strip()
    if not 1 <= len(name) <= STORE_NAME_MAX_LENGTH:
        raise ValidationError("name", f"must be 1-{STORE_NAME_MAX_LENGTH} characters after trimming")
    return name


async def _validated_owner(session: AsyncSession, owner_id: int | None) -> int | None:
    """Owner must be an existing user with role store_owner."""
    if owner_id is None:
        return None
    user = await session.get(User, owner_id)
    if user is None:
        raise ValidationError("ownerId", "must reference an existing user", "Invalid owner ID")
    if user.role != Role.STORE_OWNER:
        raise ValidationError("ownerId", "owner must have role store_owner", "Owner must have store_owner role")
    return owner_id


async def get_store(session: AsyncSession, store_id: int) -> Store:
    store = await session.get(Store, store_id)
    if store is None:
        raise NotFoundError("Store")
    return store


async def create_store(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    address: str,
    owner_id: int | None = None,
) -> Store:
    """Create a store, optionally assigned to a store owner.

    Raises:
        ValidationError: blank name, or owner missing or not a store owner.
        DuplicateEmailError: a store with this email exists.
    """
    name = _clean_store_name(name)
    email = normalize_email(email)
    owner_id = await _validated_owner(session, owner_id)

    existing = await session.execute(select(Store.id).where(Store.email == email))
    if existing.scalar_one_or_none() is not None:
        raise DuplicateEmailError("Store")

    store = Store(name=name, email=email, address=address.strip(), owner_id=owner_id)
    session.add(store)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateEmailError("Store") from e

    await session.refresh(store)
    logger.info("[admin] created store_id=%s owner_id=%s", store.id, owner_id)
    return store


async def assign_owner(session: AsyncSession, *, store_id: int, owner_id: int | None) -> Store:
    """Reassign (or clear, with None) the owner of a store."""
    store = await get_store(session, store_id)
    store.owner_id = await _validated_owner(session, owner_id)
    await session.flush()
    await session.refresh(store)
    logger.info("[admin] store owner changed store_id=%s owner_id=%s", store_id, owner_id)
    return store


def _summary_query():
    totals = aggregate_subquery()
    columns = [
        Store,
        User.name.label("owner_name"),
        totals.c.rating_count,
        totals.c.score_sum,
    ]
    query = (
        select(*columns)
        .outerjoin(User, Store.owner_id == User.id)
        .outerjoin(totals, totals.c.store_id == Store.id)
    )
    return query, totals


def _to_summary(store: Store, owner_name: str | None, count, score_sum, user_rating=None) -> StoreSummary:
    return StoreSummary(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        owner_id=store.owner_id,
        owner_name=owner_name,
        created_at=store.created_at,
        aggregate=RatingAggregate.from_totals(count, score_sum),
        user_rating=user_rating,
    )


def store_sort_fields(totals) -> dict[str, object]:
    return {
        "name": Store.name,
        "email": Store.email,
        "address": Store.address,
        "created_at": Store.created_at,
        "average_rating": func.coalesce(totals.c.average_score, 0),
    }


async def list_stores(
    session: AsyncSession,
    *,
    viewer_id: int | None = None,
    search: str | None = None,
    name: str | None = None,
    address: str | None = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    page: Page = Page(),
) -> StoreListing:
    """Filter, sort and paginate stores with their current aggregates.

    `search` matches name, email or address; `name` and `address` narrow on a
    single column. With a viewer, each store carries the viewer's own score.
    """
    query, totals = _summary_query()
    order = resolve_sort(sort_by, sort_order, store_sort_fields(totals))

    filters = []
    for clause in (
        search_clause(search, Store.name, Store.email, Store.address),
        search_clause(name, Store.name),
        search_clause(address, Store.address),
    ):
        if clause is not None:
            filters.append(clause)

    total = await session.scalar(select(func.count(Store.id)).where(*filters))
    result = await session.execute(
        query.where(*filters)
        .order_by(order, Store.id.asc())
        .offset(page.offset)
        .limit(page.page_size)
    )
    rows = result.all()

    viewer_scores: dict[int, int] = {}
    if viewer_id is not None and rows:
        viewer_scores = await get_user_scores(
            session,
            user_id=viewer_id,
            store_ids=[row[0].id for row in rows],
        )

    stores = [
        _to_summary(store, owner_name, count, score_sum, viewer_scores.get(store.id))
        for store, owner_name, count, score_sum in rows
    ]
    return StoreListing(
        stores=stores,
        page=PageInfo(page=page.page, page_size=page.page_size, total_items=int(total or 0)),
    )


async def _summarize(session: AsyncSession, store: Store, viewer_id: int | None) -> StoreSummary:
    owner_name = None
    if store.owner_id is not None:
        owner_name = await session.scalar(select(User.name).where(User.id == store.owner_id))
    aggregate = await get_aggregate(session, store.id)

    user_rating = None
    if viewer_id is not None:
        own = await get_user_rating(session, user_id=viewer_id, store_id=store.id)
        user_rating = own.score if own else None

    return StoreSummary(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        owner_id=store.owner_id,
        owner_name=owner_name,
        created_at=store.created_at,
        aggregate=aggregate,
        user_rating=user_rating,
    )


async def get_store_detail(session: AsyncSession, *, store_id: int, viewer_id: int | None) -> StoreDetail:
    """Store with aggregate, the viewer's score and the most recent ratings."""
    store = await get_store(session, store_id)
    return StoreDetail(
        store=await _summarize(session, store, viewer_id),
        ratings=await list_store_ratings(session, store_id, limit=RECENT_RATINGS_LIMIT),
    )


async def get_owner_dashboard(session: AsyncSession, store: Store) -> StoreDetail:
    """Owner's view of their store: aggregate plus every rating."""
    return StoreDetail(
        store=await _summarize(session, store, viewer_id=None),
        ratings=await list_store_ratings(session, store.id),
    )
