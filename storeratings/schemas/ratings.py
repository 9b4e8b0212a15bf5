"""Schemas for ratings and rating aggregates."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from storeratings.models.rating import COMMENT_MAX_LENGTH, SCORE_MAX, SCORE_MIN
from storeratings.services.authorization import Role
from storeratings.services.ratings import RatingAggregate

AVERAGE_DISPLAY_DIGITS = 2


class RatingRequest(BaseModel):
    """Body for submitting or updating a rating."""

    store_id: int | None = Field(alias="storeId", default=None, ge=1)
    score: int = Field(ge=SCORE_MIN, le=SCORE_MAX, validation_alias="rating")
    comment: str | None = Field(default=None, max_length=COMMENT_MAX_LENGTH)

    model_config = {"populate_by_name": True}


class RatingOut(BaseModel):
    id: int
    store_id: int = Field(alias="storeId")
    score: int = Field(validation_alias=AliasChoices("score", "rating"), serialization_alias="rating")
    comment: str | None = None
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class RatingSubmittedResponse(BaseModel):
    message: str = "Rating submitted successfully"
    rating_id: int = Field(alias="ratingId")
    rating: RatingOut

    model_config = {"populate_by_name": True}


class RatingUpdatedResponse(BaseModel):
    message: str = "Rating updated successfully"
    rating: RatingOut


class OwnRatingResponse(BaseModel):
    """The caller's rating for a store, or null."""

    rating: RatingOut | None


class StoreRatingOut(BaseModel):
    """A rating as listed for a store."""

    id: int
    score: int = Field(validation_alias=AliasChoices("score", "rating"), serialization_alias="rating")
    comment: str | None = None
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)
    user_name: str = Field(alias="userName")
    user_role: Role = Field(alias="userRole")

    model_config = {"populate_by_name": True, "from_attributes": True}


class UserRatingOut(BaseModel):
    """A rating in the author's history."""

    id: int
    score: int = Field(validation_alias=AliasChoices("score", "rating"), serialization_alias="rating")
    comment: str | None = None
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)
    store_id: int = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    store_address: str = Field(alias="storeAddress")

    model_config = {"populate_by_name": True, "from_attributes": True}


class AggregateOut(BaseModel):
    """Count and display-rounded average of a store's ratings."""

    total_ratings: int = Field(alias="totalRatings", ge=0)
    average_rating: float = Field(alias="averageRating", ge=0, le=SCORE_MAX)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_aggregate(cls, aggregate: RatingAggregate) -> "AggregateOut":
        return cls(
            total_ratings=aggregate.count,
            average_rating=round(aggregate.average, AVERAGE_DISPLAY_DIGITS),
        )


class StoreRatingsResponse(BaseModel):
    store_id: int = Field(alias="storeId")
    aggregate: AggregateOut
    items: list[StoreRatingOut]

    model_config = {"populate_by_name": True}


class UserRatingsResponse(BaseModel):
    items: list[UserRatingOut]
