"""Store browsing endpoints.

GET /stores               - list with aggregates and the caller's own score
GET /stores/owner/store   - store owner's dashboard for their store
GET /stores/{storeId}     - detail with aggregate and recent ratings

All listings use the same {items, pagination} shape.
"""

from fastapi import APIRouter, Depends, Path, Query

from storeratings.errors import NotFoundError
from storeratings.routes.deps import Principal, page_params, require
from storeratings.schemas.common import Pagination
from storeratings.schemas.stores import StoreDetailResponse, StoreListResponse, StoreSummaryOut
from storeratings.services import catalogue, ownership
from storeratings.services.authorization import Permission
from storeratings.services.listing import Page
from storeratings.stores.postgres import get_session

router = APIRouter()


@router.get("", response_model=StoreListResponse)
async def list_stores(
    search: str | None = Query(default=None, max_length=100, description="Match name, email or address"),
    name: str | None = Query(default=None, max_length=100),
    address: str | None = Query(default=None, max_length=400),
    sort_by: str = Query(default="name", alias="sortBy"),
    sort_order: str = Query(default="asc", alias="sortOrder"),
    page: Page = Depends(page_params),
    principal: Principal = Depends(require(Permission.LIST_STORES)),
) -> StoreListResponse:
    async with get_session() as session:
        listing = await catalogue.list_stores(
            session,
            viewer_id=principal.id,
            search=search,
            name=name,
            address=address,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
        )
        return StoreListResponse(
            items=[StoreSummaryOut.from_summary(s) for s in listing.stores],
            pagination=Pagination.from_page(listing.page),
        )


@router.get("/owner/store", response_model=StoreDetailResponse)
async def get_owner_store(
    principal: Principal = Depends(require(Permission.VIEW_OWN_STORE)),
) -> StoreDetailResponse:
    """The caller's store with its aggregate and every rating."""
    async with get_session() as session:
        store = await ownership.owned_store(session, principal.id)
        if store is None:
            raise NotFoundError("Store", "No store found for this user")
        detail = await catalogue.get_owner_dashboard(session, store)
        return StoreDetailResponse.from_detail(detail)


@router.get("/{store_id}", response_model=StoreDetailResponse)
async def get_store(
    store_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.VIEW_STORE)),
) -> StoreDetailResponse:
    async with get_session() as session:
        detail = await catalogue.get_store_detail(session, store_id=store_id, viewer_id=principal.id)
        return StoreDetailResponse.from_detail(detail)
