"""Rating endpoints.

POST   /ratings                     - submit (one per user and store)
PUT    /ratings/{ratingId}          - update own rating
DELETE /ratings/{ratingId}          - delete own rating
GET    /ratings/store/{storeId}     - caller's rating for a store (or null)
GET    /ratings/store/{storeId}/all - all ratings, for the store's owner only
"""

from fastapi import APIRouter, Depends, Path, status

from storeratings.errors import ValidationError
from storeratings.routes.deps import Principal, require
from storeratings.schemas import MessageResponse
from storeratings.schemas.ratings import (
    AggregateOut,
    OwnRatingResponse,
    RatingOut,
    RatingRequest,
    RatingSubmittedResponse,
    RatingUpdatedResponse,
    StoreRatingOut,
    StoreRatingsResponse,
)
from storeratings.services import ownership, ratings
from storeratings.services.authorization import Permission, ResourceContext, authorize
from storeratings.stores.postgres import get_session

router = APIRouter()


@router.post("", response_model=RatingSubmittedResponse, status_code=status.HTTP_201_CREATED)
async def submit_rating(
    request: RatingRequest,
    principal: Principal = Depends(require(Permission.SUBMIT_RATING)),
) -> RatingSubmittedResponse:
    if request.store_id is None:
        raise ValidationError("storeId", "required")

    async with get_session() as session:
        rating = await ratings.submit_rating(
            session,
            user_id=principal.id,
            store_id=request.store_id,
            score=request.score,
            comment=request.comment,
        )
        return RatingSubmittedResponse(rating_id=rating.id, rating=RatingOut.model_validate(rating))


@router.put("/{rating_id}", response_model=RatingUpdatedResponse)
async def update_rating(
    request: RatingRequest,
    rating_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.UPDATE_RATING)),
) -> RatingUpdatedResponse:
    async with get_session() as session:
        rating = await ratings.update_rating(
            session,
            rating_id=rating_id,
            caller_id=principal.id,
            score=request.score,
            comment=request.comment,
        )
        return RatingUpdatedResponse(rating=RatingOut.model_validate(rating))


@router.delete("/{rating_id}", response_model=MessageResponse)
async def delete_rating(
    rating_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.DELETE_RATING)),
) -> MessageResponse:
    async with get_session() as session:
        await ratings.delete_rating(session, rating_id=rating_id, caller_id=principal.id)
    return MessageResponse(message="Rating deleted successfully")


@router.get("/store/{store_id}", response_model=OwnRatingResponse)
async def get_own_rating(
    store_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.VIEW_OWN_RATING)),
) -> OwnRatingResponse:
    async with get_session() as session:
        rating = await ratings.get_user_rating(session, user_id=principal.id, store_id=store_id)
        return OwnRatingResponse(rating=RatingOut.model_validate(rating) if rating else None)


@router.get("/store/{store_id}/all", response_model=StoreRatingsResponse)
async def get_store_ratings(
    store_id: int = Path(ge=1),
    principal: Principal = Depends(require(Permission.VIEW_STORE_RATINGS)),
) -> StoreRatingsResponse:
    """All ratings for a store; only its registered owner may look."""
    async with get_session() as session:
        owner_id = await ownership.owner_of(session, store_id)
        authorize(
            principal.caller,
            Permission.VIEW_STORE_RATINGS,
            ResourceContext(resource_owner_id=owner_id),
        )

        entries = await ratings.list_store_ratings(session, store_id)
        aggregate = await ratings.get_aggregate(session, store_id)
        return StoreRatingsResponse(
            store_id=store_id,
            aggregate=AggregateOut.from_aggregate(aggregate),
            items=[StoreRatingOut.model_validate(e) for e in entries],
        )
