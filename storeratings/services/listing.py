"""Sorting, search and pagination helpers for list endpoints.

Sort keys supplied by clients are looked up in a fixed allow-list of column
expressions; client strings never reach the SQL text.
"""

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, or_

from storeratings.errors import ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page:
    """Pagination request."""

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class PageInfo:
    page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        if self.total_items == 0:
            return 0
        return math.ceil(self.total_items / self.page_size)


def resolve_sort(
    sort_by: str,
    sort_order: str,
    allowed: dict[str, Any],
) -> ColumnElement:
    """Map a client sort key/order to an ORDER BY expression.

    Raises:
        ValidationError: unknown sort key or order.
    """
    column = allowed.get(sort_by)
    if column is None:
        raise ValidationError("sortBy", f"must be one of: {', '.join(sorted(allowed))}")

    order = sort_order.lower()
    if order == "asc":
        return column.asc()
    if order == "desc":
        return column.desc()
    raise ValidationError("sortOrder", "must be one of: asc, desc")


def search_clause(term: str | None, *columns: Any) -> ColumnElement | None:
    """Case-insensitive substring match over any of the columns."""
    if not term or not term.strip():
        return None
    pattern = f"%{_escape_like(term.strip())}%"
    return or_(*(column.ilike(pattern, escape="\\") for column in columns))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
