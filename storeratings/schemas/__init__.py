"""Pydantic schemas for API request/response validation."""

from storeratings.schemas.common import ErrorDetail, ErrorResponse, MessageResponse, Pagination

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "Pagination",
]
