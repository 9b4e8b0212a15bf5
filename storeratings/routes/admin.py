"""Admin endpoints for user and store management.

Every endpoint requires role admin. Deleting a user or a store runs the
referential-integrity cascade in one transaction.
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, status

from storeratings.routes.deps import Principal, page_params, require
from storeratings.schemas.admin import DashboardResponse, DashboardStatistics, RecentRating
from storeratings.schemas.common import Pagination
from storeratings.schemas.ratings import AVERAGE_DISPLAY_DIGITS
from storeratings.schemas.stores import (
    OwnerAssignRequest,
    StoreCreateRequest,
    StoreCreatedResponse,
    StoreListResponse,
    StoreOut,
    StoreSummaryOut,
)
from storeratings.schemas.users import (
    AdminUserOut,
    CascadeReportOut,
    CreateUserRequest,
    DeletedResponse,
    RoleUpdateRequest,
    UserCreatedResponse,
    UserListResponse,
)
from storeratings.services import accounts, catalogue, integrity, ratings
from storeratings.services.authorization import Permission, ResourceContext, Role, authorize
from storeratings.services.listing import Page
from storeratings.services.ratings import RatingAggregate
from storeratings.stores.postgres import get_session

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def _admin_user_out(user, aggregate: RatingAggregate | None) -> AdminUserOut:
    out = AdminUserOut.model_validate(user)
    if user.role == Role.STORE_OWNER and aggregate is not None:
        out.store_rating = round(aggregate.average, AVERAGE_DISPLAY_DIGITS)
        out.store_rating_count = aggregate.count
    return out


# ============================================================
# Dashboard
# ============================================================


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    principal: Principal = Depends(require(Permission.ADMIN_DASHBOARD)),
) -> DashboardResponse:
    """Totals, users per role and the latest ratings."""
    async with get_session() as session:
        totals = await accounts.dashboard_totals(session)
        by_role = await accounts.count_users_by_role(session)
        recent = await ratings.list_recent_ratings(session, limit=10)

    return DashboardResponse(
        statistics=DashboardStatistics(
            total_users=totals["users"],
            total_stores=totals["stores"],
            total_ratings=totals["ratings"],
            users_by_role={role.value: count for role, count in by_role.items()},
        ),
        recent_activity=[RecentRating(**row) for row in recent],
    )


# ============================================================
# Users
# ============================================================


@router.get("/users", response_model=UserListResponse)
async def list_users(
    search: str | None = Query(default=None, max_length=100),
    role: Role | None = Query(default=None),
    sort_by: str = Query(default="name", alias="sortBy"),
    sort_order: str = Query(default="asc", alias="sortOrder"),
    page: Page = Depends(page_params),
    principal: Principal = Depends(require(Permission.ADMIN_LIST_USERS)),
) -> UserListResponse:
    async with get_session() as session:
        listing = await accounts.list_users(
            session,
            search=search,
            role=role,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
        )
        return UserListResponse(
            items=[_admin_user_out(u, listing.store_ratings.get(u.id)) for u in listing.users],
            pagination=Pagination.from_page(listing.page),
        )


@router.get("/users/{user_id}", response_model=AdminUserOut)
async def get_user(
    user_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.ADMIN_VIEW_USER)),
) -> AdminUserOut:
    async with get_session() as session:
        user = await accounts.get_user(session, user_id)
        aggregates = await ratings.get_owner_aggregates(session, [user.id])
        return _admin_user_out(user, aggregates.get(user.id))


@router.post("/users", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    principal: Principal = Depends(require(Permission.ADMIN_CREATE_USER)),
) -> UserCreatedResponse:
    """Create a user with any role."""
    async with get_session() as session:
        user = await accounts.create_user(
            session,
            name=request.name,
            email=request.email,
            password=request.password,
            address=request.address,
            role=request.role,
        )
        logger.info("[admin] user created by admin_id=%s user_id=%s", principal.id, user.id)
        return UserCreatedResponse(message="User created successfully", user_id=user.id)


@router.put("/users/{user_id}/role", response_model=AdminUserOut)
async def update_user_role(
    request: RoleUpdateRequest,
    user_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.ADMIN_UPDATE_ROLE)),
) -> AdminUserOut:
    async with get_session() as session:
        user = await accounts.update_role(session, user_id=user_id, role=request.role)
        return AdminUserOut.model_validate(user)


@router.delete("/users/{user_id}", response_model=DeletedResponse)
async def delete_user(
    user_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.ADMIN_DELETE_USER)),
) -> DeletedResponse:
    """Delete a user, their ratings, and release any stores they owned."""
    authorize(
        principal.caller,
        Permission.ADMIN_DELETE_USER,
        ResourceContext(target_user_id=user_id),
    )
    async with get_session() as session:
        report = await integrity.delete_user(session, user_id)
    return DeletedResponse(
        message="User deleted successfully",
        cascade=CascadeReportOut.model_validate(report),
    )


# ============================================================
# Stores
# ============================================================


@router.get("/stores", response_model=StoreListResponse)
async def list_stores(
    search: str | None = Query(default=None, max_length=100),
    sort_by: str = Query(default="name", alias="sortBy"),
    sort_order: str = Query(default="asc", alias="sortOrder"),
    page: Page = Depends(page_params),
    principal: Principal = Depends(require(Permission.ADMIN_LIST_STORES)),
) -> StoreListResponse:
    async with get_session() as session:
        listing = await catalogue.list_stores(
            session,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
        )
        return StoreListResponse(
            items=[StoreSummaryOut.from_summary(s) for s in listing.stores],
            pagination=Pagination.from_page(listing.page),
        )


@router.post("/stores", response_model=StoreCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_store(
    request: StoreCreateRequest,
    principal: Principal = Depends(require(Permission.ADMIN_CREATE_STORE)),
) -> StoreCreatedResponse:
    async with get_session() as session:
        store = await catalogue.create_store(
            session,
            name=request.name,
            email=request.email,
            address=request.address,
            owner_id=request.owner_id,
        )
        return StoreCreatedResponse(
            message="Store created successfully",
            store_id=store.id,
            store=StoreOut.model_validate(store),
        )


@router.put("/stores/{store_id}/owner", response_model=StoreOut)
async def assign_store_owner(
    request: OwnerAssignRequest,
    store_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.ADMIN_ASSIGN_OWNER)),
) -> StoreOut:
    async with get_session() as session:
        store = await catalogue.assign_owner(session, store_id=store_id, owner_id=request.owner_id)
        return StoreOut.model_validate(store)


@router.delete("/stores/{store_id}", response_model=DeletedResponse)
async def delete_store(
    store_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.ADMIN_DELETE_STORE)),
) -> DeletedResponse:
    """Delete a store and all of its ratings."""
    async with get_session() as session:
        report = await integrity.delete_store(session, store_id)
    return DeletedResponse(
        message="Store deleted successfully",
        cascade=CascadeReportOut.model_validate(report),
    )
