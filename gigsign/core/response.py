"""JSON envelopes for admin endpoints: `{data: ...}` and `{data: [...], meta: {...}}`."""


import math
from typing import Generic, TypeVar

from pydantic import BaseModel

from gigsign.core.pagination import PageMeta, PaginationParams

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    data: T


class ListResponse(BaseModel, Generic[T]):
    data: list[T]
    meta: PageMeta


def paginated(items: list, total: int, params: PaginationParams) -> dict:
    """Shape a repository ``(items, total)`` pair for ListResponse."""
    return {
        "data": items,
        "meta": {
            "total": total,
            "page": params.page,
            "limit": params.limit,
            "pages": max(1, math.ceil(total / params.limit)),
        },
    }
