"""Schemas for stores."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints

from storeratings.models.store import STORE_NAME_MAX_LENGTH
from storeratings.schemas.common import Pagination
from storeratings.schemas.ratings import AVERAGE_DISPLAY_DIGITS, StoreRatingOut
from storeratings.schemas.users import AddressText
from storeratings.services.catalogue import StoreDetail, StoreSummary

StoreName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=STORE_NAME_MAX_LENGTH)
]


class StoreCreateRequest(BaseModel):
    name: StoreName
    email: EmailStr
    address: AddressText = ""
    owner_id: int | None = Field(alias="ownerId", default=None, ge=1)

    model_config = {"populate_by_name": True}


class OwnerAssignRequest(BaseModel):
    """New owner id, or null to clear the owner."""

    owner_id: int | None = Field(alias="ownerId", default=None, ge=1)

    model_config = {"populate_by_name": True}


class StoreOut(BaseModel):
    """Store as created/updated by an admin."""

    id: int
    name: str
    email: str
    address: str
    owner_id: int | None = Field(alias="ownerId", default=None)
    created_at: datetime | None = Field(alias="createdAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class StoreCreatedResponse(BaseModel):
    message: str
    store_id: int = Field(alias="storeId")
    store: StoreOut

    model_config = {"populate_by_name": True}


class StoreSummaryOut(BaseModel):
    """Store with its current aggregate (and the viewer's own score)."""

    id: int
    name: str
    email: str
    address: str
    owner_id: int | None = Field(alias="ownerId", default=None)
    owner_name: str | None = Field(alias="ownerName", default=None)
    created_at: datetime | None = Field(alias="createdAt", default=None)
    average_rating: float = Field(alias="averageRating", ge=0)
    total_ratings: int = Field(alias="totalRatings", ge=0)
    user_rating: int | None = Field(alias="userRating", default=None)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_summary(cls, summary: StoreSummary) -> "StoreSummaryOut":
        return cls(
            id=summary.id,
            name=summary.name,
            email=summary.email,
            address=summary.address,
            owner_id=summary.owner_id,
            owner_name=summary.owner_name,
            created_at=summary.created_at,
            average_rating=round(summary.aggregate.average, AVERAGE_DISPLAY_DIGITS),
            total_ratings=summary.aggregate.count,
            user_rating=summary.user_rating,
        )


class StoreListResponse(BaseModel):
    items: list[StoreSummaryOut]
    pagination: Pagination


class StoreDetailResponse(BaseModel):
    """Store with aggregate and a list of ratings.

    On the public detail view `ratings` holds the most recent ratings; on the
    owner view it holds all of them.
    """

    store: StoreSummaryOut
    ratings: list[StoreRatingOut]

    @classmethod
    def from_detail(cls, detail: StoreDetail) -> "StoreDetailResponse":
        return cls(
            store=StoreSummaryOut.from_summary(detail.store),
            ratings=[StoreRatingOut.model_validate(entry) for entry in detail.ratings],
        )


class OwnStoreResponse(BaseModel):
    store: StoreOut
