"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel, Field

from storeratings.services.listing import PageInfo


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class Pagination(BaseModel):
    """Pagination block shared by every list endpoint."""

    page: int = Field(ge=1)
    page_size: int = Field(alias="pageSize", ge=1)
    total_items: int = Field(alias="totalItems", ge=0)
    total_pages: int = Field(alias="totalPages", ge=0)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_page(cls, info: PageInfo) -> "Pagination":
        return cls(
            page=info.page,
            page_size=info.page_size,
            total_items=info.total_items,
            total_pages=info.total_pages,
        )
