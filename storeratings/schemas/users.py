"""Schemas for accounts (auth, profile and admin user management)."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints

from storeratings.models.user import ADDRESS_MAX_LENGTH, NAME_MAX_LENGTH, NAME_MIN_LENGTH
from storeratings.schemas.common import Pagination
from storeratings.services.authorization import Role
from storeratings.services.passwords import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH

# Surrounding whitespace is dropped before the length bounds apply.
PersonName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
]
AddressText = Annotated[str, StringConstraints(strip_whitespace=True, max_length=ADDRESS_MAX_LENGTH)]


class UserOut(BaseModel):
    """Public view of a user (never includes the password verifier)."""

    id: int
    name: str
    email: str
    address: str
    role: Role
    created_at: datetime | None = Field(alias="createdAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class RegisterRequest(BaseModel):
    name: PersonName
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    address: AddressText = ""


class CreateUserRequest(RegisterRequest):
    """Admin-created account; any role."""

    role: Role = Role.USER


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    message: str = "Login successful"
    token: str
    expires_at: datetime = Field(alias="expiresAt")
    user: UserOut

    model_config = {"populate_by_name": True}


class UserCreatedResponse(BaseModel):
    message: str
    user_id: int = Field(alias="userId")

    model_config = {"populate_by_name": True}


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(
        alias="newPassword",
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
    )

    model_config = {"populate_by_name": True}


class ProfileUpdateRequest(BaseModel):
    name: PersonName | None = None
    address: AddressText | None = None


class ProfileResponse(BaseModel):
    user: UserOut


class RoleUpdateRequest(BaseModel):
    role: Role


class AdminUserOut(UserOut):
    """User row in admin listings; store owners carry their store rating."""

    store_rating: float | None = Field(alias="storeRating", default=None)
    store_rating_count: int | None = Field(alias="storeRatingCount", default=None)


class UserListResponse(BaseModel):
    items: list[AdminUserOut]
    pagination: Pagination


class CascadeReportOut(BaseModel):
    ratings_removed: int = Field(alias="ratingsRemoved")
    stores_released: int = Field(alias="storesReleased")

    model_config = {"populate_by_name": True, "from_attributes": True}


class DeletedResponse(BaseModel):
    message: str
    cascade: CascadeReportOut

