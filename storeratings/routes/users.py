"""Self-service user endpoints."""

from fastapi import APIRouter, Depends

from storeratings.errors import NotFoundError
from storeratings.routes.deps import Principal, require
from storeratings.schemas.ratings import UserRatingOut, UserRatingsResponse
from storeratings.schemas.stores import OwnStoreResponse, StoreOut
from storeratings.schemas.users import ProfileResponse, ProfileUpdateRequest, UserOut
from storeratings.services import accounts, ownership, ratings
from storeratings.services.authorization import Permission
from storeratings.stores.postgres import get_session

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    principal: Principal = Depends(require(Permission.VIEW_PROFILE)),
) -> ProfileResponse:
    async with get_session() as session:
        user = await accounts.get_user(session, principal.id)
        return ProfileResponse(user=UserOut.model_validate(user))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    principal: Principal = Depends(require(Permission.UPDATE_PROFILE)),
) -> ProfileResponse:
    """Update own name and/or address."""
    async with get_session() as session:
        user = await accounts.update_profile(
            session,
            user_id=principal.id,
            name=request.name,
            address=request.address,
        )
        return ProfileResponse(user=UserOut.model_validate(user))


@router.get("/ratings", response_model=UserRatingsResponse)
async def get_rating_history(
    principal: Principal = Depends(require(Permission.VIEW_RATING_HISTORY)),
) -> UserRatingsResponse:
    async with get_session() as session:
        entries = await ratings.list_user_ratings(session, principal.id)
        return UserRatingsResponse(items=[UserRatingOut.model_validate(e) for e in entries])


@router.get("/store", response_model=OwnStoreResponse)
async def get_own_store(
    principal: Principal = Depends(require(Permission.VIEW_OWN_STORE)),
) -> OwnStoreResponse:
    async with get_session() as session:
        store = await ownership.owned_store(session, principal.id)
        if store is None:
            raise NotFoundError("Store", "No store found for this user")
        return OwnStoreResponse(store=StoreOut.model_validate(store))
