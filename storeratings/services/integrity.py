"""Referential-integrity rules for deleting users and stores.

Delete user:
    ratings.user_id = user  -> deleted
    stores.owner_id = user  -> set to NULL (store survives)
    user                    -> deleted
Delete store:
    ratings.store_id = store -> deleted
    store                    -> deleted

The dependent rows are handled by explicit statements in the same transaction
as the principal delete; the schema declares the same ON DELETE actions.
The caller's session decides the transaction boundary: if anything raises,
none of the changes persist.

`release_owned_stores` is also called by accounts.update_role when a store
owner is moved to another role.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storeratings.errors import NotFoundError
from storeratings.models import Rating, Store, User

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class CascadeReport:
    """What a delete removed or detached."""

    ratings_removed: int = 0
    stores_released: int = 0


async def release_owned_stores(session: AsyncSession, user_id: int) -> int:
    """Clear owner_id on every store owned by the user. Returns the count."""
    result = await session.execute(
        update(Store)
        .where(Store.owner_id == user_id)
        .values(owner_id=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def delete_user(session: AsyncSession, user_id: int) -> CascadeReport:
    """Delete a user with their ratings; release the stores they owned.

    Raises:
        NotFoundError: user does not exist.
    """
    # Lock the row so a concurrent role change or delete waits for us.
    result = await session.execute(
        select(User.id).where(User.id == user_id).with_for_update()
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("User")

    ratings_result = await session.execute(
        delete(Rating)
        .where(Rating.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    stores_released = await release_owned_stores(session, user_id)
    await session.execute(
        delete(User).where(User.id == user_id).execution_options(synchronize_session=False)
    )

    report = CascadeReport(
        ratings_removed=ratings_result.rowcount or 0,
        stores_released=stores_released,
    )
    logger.info(
        "[integrity] deleted user_id=%s ratings_removed=%s stores_released=%s",
        user_id,
        report.ratings_removed,
        report.stores_released,
    )
    return report


async def delete_store(session: AsyncSession, store_id: int) -> CascadeReport:
    """Delete a store with all its ratings.

    Raises:
        NotFoundError: store does not exist.
    """
    result = await session.execute(
        select(Store.id).where(Store.id == store_id).with_for_update()
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Store")

    ratings_result = await session.execute(
        delete(Rating)
        .where(Rating.store_id == store_id)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Store).where(Store.id == store_id).execution_options(synchronize_session=False)
    )

    report = CascadeReport(ratings_removed=ratings_result.rowcount or 0)
    logger.info(
        "[integrity] deleted store_id=%s ratings_removed=%s",
        store_id,
        report.ratings_removed,
    )
    return report
