"""Accounts: registration, login, profile and role management.

Emails are normalized (trimmed, lower-cased) before they touch the database,
so the unique index on users.email behaves case-insensitively. Duplicate
emails are detected by the unique constraint; the pre-check is only a fast
path.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeratings.errors import (
    AuthError,
    AuthErrorKind,
    DuplicateEmailError,
    NotFoundError,
    ValidationError,
)
from storeratings.models import Rating, Store, User
from storeratings.models.user import NAME_MAX_LENGTH, NAME_MIN_LENGTH
from storeratings.services.authorization import Role
from storeratings.services.integrity import release_owned_stores
from storeratings.services.listing import Page, PageInfo, resolve_sort, search_clause
from storeratings.services.passwords import hash_password, password_policy_violation, verify_password
from storeratings.services.ratings import RatingAggregate, get_owner_aggregates
from storeratings.services.tokens import Identity, IssuedToken, issue_token

logger = logging.getLogger("uvicorn.error")

USER_SORT_FIELDS = {
    "name": User.name,
    "email": User.email,
    "address": User.address,
    "role": User.role,
    "created_at": User.created_at,
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class LoginResult:
    user: User
    token: IssuedToken


@dataclass(frozen=True)
class UserListing:
    users: list[User]
    page: PageInfo
    store_ratings: dict[int, RatingAggregate]


async def get_user(session: AsyncSession, user_id: int) -> User:
    """Get a user by id.

    Raises:
        NotFoundError: no such user.
    """
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


def _check_password_policy(password: str, field: str = "password") -> None:
    violation = password_policy_violation(password)
    if violation:
        raise ValidationError(field, violation)


def _clean_name(name: str) -> str:
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationError("name", f"must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters after trimming")
    return name


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    address: str,
    role: Role = Role.USER,
) -> User:
    """Create an account.

    Raises:
        ValidationError: name out of bounds once trimmed, or password
            violates the password policy.
        DuplicateEmailError: email already registered.
    """
    name = _clean_name(name)
    _check_password_policy(password)
    email = normalize_email(email)

    if await find_user_by_email(session, email) is not None:
        raise DuplicateEmailError("User")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        address=address.strip(),
        role=role,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateEmailError("User") from e

    await session.refresh(user)
    logger.info("[auth] created user_id=%s role=%s", user.id, user.role.value)
    return user


async def register_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    address: str,
) -> User:
    """Self-service registration; always role=user."""
    return await create_user(
        session,
        name=name,
        email=email,
        password=password,
        address=address,
        role=Role.USER,
    )


async def authenticate(session: AsyncSession, *, email: str, password: str) -> LoginResult:
    """Check credentials and issue a token.

    Unknown email and wrong password are reported identically.

    Raises:
        AuthError: INVALID_CREDENTIALS.
    """
    user = await find_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("[auth] login rejected")
        raise AuthError(AuthErrorKind.INVALID_CREDENTIALS)

    token = issue_token(Identity(id=user.id, email=user.email, role=user.role))
    logger.info("[auth] login user_id=%s", user.id)
    return LoginResult(user=user, token=token)


async def change_password(
    session: AsyncSession,
    *,
    user_id: int,
    current_password: str,
    new_password: str,
) -> None:
    """Verify the current password and store a verifier for the new one.

    Raises:
        NotFoundError: user no longer exists.
        ValidationError: wrong current password, or new password violates policy.
    """
    user = await get_user(session, user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("currentPassword", "does not match", "Current password is incorrect")
    _check_password_policy(new_password, field="newPassword")

    user.password_hash = hash_password(new_password)
    await session.flush()
    logger.info("[auth] password changed user_id=%s", user_id)


async def update_profile(
    session: AsyncSession,
    *,
    user_id: int,
    name: str | None = None,
    address: str | None = None,
) -> User:
    """Update name and/or address of the caller.

    Raises:
        ValidationError: nothing to update, or name out of bounds once trimmed.
    """
    if name is None and address is None:
        raise ValidationError("body", "no valid fields to update")

    user = await get_user(session, user_id)
    if name is not None:
        user.name = _clean_name(name)
    if address is not None:
        user.address = address.strip()
    await session.flush()
    await session.refresh(user)
    return user


async def update_role(session: AsyncSession, *, user_id: int, role: Role) -> User:
    """Change a user's role.

    A store owner moved to another role no longer qualifies as a store owner,
    so their stores are released in the same transaction.

    Raises:
        NotFoundError: no such user.
    """
    user = await get_user(session, user_id)
    previous = user.role
    released = 0
    if previous == Role.STORE_OWNER and role != Role.STORE_OWNER:
        released = await release_owned_stores(session, user_id)

    user.role = role
    await session.flush()
    await session.refresh(user)

    logger.info(
        "[admin] role changed user_id=%s from=%s to=%s stores_released=%s",
        user_id,
        previous.value,
        role.value,
        released,
    )
    return user


async def list_users(
    session: AsyncSession,
    *,
    search: str | None = None,
    role: Role | None = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    page: Page = Page(),
) -> UserListing:
    """Filter, sort and paginate users.

    Store owners come with the aggregate over all ratings of their stores.
    """
    order = resolve_sort(sort_by, sort_order, USER_SORT_FIELDS)

    filters = []
    clause = search_clause(search, User.name, User.email, User.address)
    if clause is not None:
        filters.append(clause)
    if role is not None:
        filters.append(User.role == role)

    total = await session.scalar(select(func.count(User.id)).where(*filters))
    result = await session.execute(
        select(User)
        .where(*filters)
        .order_by(order, User.id.asc())
        .offset(page.offset)
        .limit(page.page_size)
    )
    users = list(result.scalars().all())

    owner_ids = [u.id for u in users if u.role == Role.STORE_OWNER]
    return UserListing(
        users=users,
        page=PageInfo(page=page.page, page_size=page.page_size, total_items=int(total or 0)),
        store_ratings=await get_owner_aggregates(session, owner_ids),
    )


async def count_users_by_role(session: AsyncSession) -> dict[Role, int]:
    result = await session.execute(select(User.role, func.count(User.id)).group_by(User.role))
    counts = {role: 0 for role in Role}
    for role, count in result.all():
        counts[role] = count
    return counts


async def dashboard_totals(session: AsyncSession) -> dict[str, int]:
    return {
        "users": int(await session.scalar(select(func.count(User.id))) or 0),
        "stores": int(await session.scalar(select(func.count(Store.id))) or 0),
        "ratings": int(await session.scalar(select(func.count(Rating.id))) or 0),
    }
