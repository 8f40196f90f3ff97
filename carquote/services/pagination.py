"""
Page arithmetic for list endpoints.
"""

import math
from typing import Type, TypeVar

from carquote.schemas.base import Pagination, QuotePagination


DEFAULT_PAGE_SIZE = 50

PaginationT = TypeVar("PaginationT", bound=Pagination)


def normalize_page_params(page: int, limit: int) -> tuple[int, int]:
    """
    Coerce query parameters into a usable (page, limit) pair.

    Zero or negative values fall back to page 1 and the default page size.
    """
    return (page if page > 0 else 1, limit if limit > 0 else DEFAULT_PAGE_SIZE)


def paginate(
    page: int,
    limit: int,
    total: int,
    schema: Type[PaginationT] = QuotePagination,
) -> PaginationT:
    """
    Build pagination metadata.

    total_pages = ceil(total / limit), has_next = page * limit < total,
    has_prev = page > 1. A zero limit yields zero pages. The total is
    stored under ``schema.total_field`` (``totalQuotes``, ``totalPickups``
    and so on).
    """
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return schema(
        current_page=page,
        total_pages=total_pages,
        has_next=page * limit < total,
        has_prev=page > 1,
        **{schema.total_field: total},
    )
