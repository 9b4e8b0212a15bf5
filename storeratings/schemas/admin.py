"""Schemas for the admin dashboard."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class DashboardStatistics(BaseModel):
    total_users: int = Field(alias="totalUsers", ge=0)
    total_stores: int = Field(alias="totalStores", ge=0)
    total_ratings: int = Field(alias="totalRatings", ge=0)
    users_by_role: dict[str, int] = Field(alias="usersByRole")

    model_config = {"populate_by_name": True}


class RecentRating(BaseModel):
    score: int = Field(validation_alias=AliasChoices("score", "rating"), serialization_alias="rating")
    created_at: datetime | None = Field(alias="createdAt", default=None)
    user_name: str = Field(alias="userName")
    store_name: str = Field(alias="storeName")

    model_config = {"populate_by_name": True}


class DashboardResponse(BaseModel):
    statistics: DashboardStatistics
    recent_activity: list[RecentRating] = Field(alias="recentActivity")

    model_config = {"populate_by_name": True}
