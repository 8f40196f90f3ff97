"""
Admin customer overview endpoints.

Customers are derived from quotes grouped by ``customer.email``; every
route here requires the ``customers`` permission.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from carquote.api.dependencies import DatabaseSession, require_permission
from carquote.core.errors import UpstreamError
from carquote.core.logging_config import get_logger
from carquote.models.base import utc_now
from carquote.repositories.quote import QuoteRepository
from carquote.schemas.auth import AdminIdentity
from carquote.schemas.base import CustomerPagination
from carquote.schemas.reporting import CustomerListResponse, CustomerStatsResponse
from carquote.services.pagination import (
    DEFAULT_PAGE_SIZE,
    normalize_page_params,
    paginate,
)
from carquote.services.reporting import (
    customer_stats as build_customer_stats,
    customer_summaries,
    matches_search,
)


logger = get_logger(__name__)

router = APIRouter()

CustomersAdmin = Annotated[AdminIdentity, Depends(require_permission("customers"))]


@router.get("/customers", response_model=CustomerListResponse)
async def list_customers(
    admin: CustomersAdmin,
    db: DatabaseSession,
    search: Optional[str] = Query(default=None, description="Match on name, email or phone"),
    status: Optional[str] = Query(default=None, description='Quote status, or "all"'),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, description="Page size"),
    page: int = Query(default=1, description="1-based page number"),
) -> CustomerListResponse:
    """
    Page through customers, most recently quoted first.

    ``status`` and ``search`` filter the quotes before grouping, so a
    customer only lists the quotes that matched.
    """
    page, limit = normalize_page_params(page, limit)

    try:
        quotes = await QuoteRepository(db).list_all(status=status)
    except SQLAlchemyError as exc:
        logger.exception("Customer listing failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch customers") from exc

    if search:
        quotes = [quote for quote in quotes if matches_search(quote, search)]

    customers = customer_summaries(quotes)
    start = (page - 1) * limit

    return CustomerListResponse(
        customers=customers[start:start + limit],
        pagination=paginate(page, limit, len(customers), schema=CustomerPagination),
    )


@router.get("/customers/stats", response_model=CustomerStatsResponse)
async def customer_stats(admin: CustomersAdmin, db: DatabaseSession) -> CustomerStatsResponse:
    try:
        quotes = await QuoteRepository(db).list_all()
    except SQLAlchemyError as exc:
        logger.exception("Customer statistics failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch customer statistics") from exc

    return build_customer_stats(quotes, utc_now())
