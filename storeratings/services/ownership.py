"""Store ownership resolution.

Ownership is derived strictly from stores.owner_id. A store without an owner,
or a store that does not exist, is owned by nobody.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storeratings.models import Store


async def owner_of(session: AsyncSession, store_id: int) -> int | None:
    """Get the registered owner id of a store (None if unowned or missing)."""
    result = await session.execute(select(Store.owner_id).where(Store.id == store_id))
    return result.scalar_one_or_none()


async def is_owner(session: AsyncSession, user_id: int, store_id: int) -> bool:
    owner_id = await owner_of(session, store_id)
    return owner_id is not None and owner_id == user_id


async def owned_store(session: AsyncSession, user_id: int) -> Store | None:
    """Get the store registered to a user, lowest id first if several."""
    result = await session.execute(
        select(Store).where(Store.owner_id == user_id).order_by(Store.id.asc()).limit(1)
    )
    return result.scalar_one_or_none()
