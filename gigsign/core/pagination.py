"""Pagination helpers for the admin list endpoints."""


from fastapi import Query
from pydantic import BaseModel

# Columns a caller may sort contracts by; anything else falls back to created_at.
SORTABLE_FIELDS = frozenset(
    {"created_at", "updated_at", "contract_number", "status", "sent_at", "signed_at"}
)


class PaginationParams:
    """FastAPI dependency for `?page=1&limit=20&sort=created_at&order=desc`."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(default=20, ge=1, le=100, description="Items per page"),
        sort: str = Query(default="created_at", description="Sort field"),
        order: str = Query(default="desc", pattern="^(asc|desc)$", description="Sort order"),
    ):
        self.page = page
        self.limit = limit
        self.sort = sort if sort in SORTABLE_FIELDS else "created_at"
        self.order = order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
