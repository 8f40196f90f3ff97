"""
Admin quote management endpoints.

Every route here requires an admin bearer token carrying the ``quotes``
permission (super_admin passes implicitly).
"""

from datetime import timedelta
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from carquote.api.dependencies import DatabaseSession, require_permission
from carquote.core.errors import BadRequestError, NotFoundError, UpstreamError
from carquote.core.logging_config import get_logger
from carquote.models.base import utc_now
from carquote.repositories.quote import QuoteRepository
from carquote.schemas.auth import AdminIdentity
from carquote.schemas.quote import (
    ApproveQuoteRequest,
    ApproveQuoteResponse,
    NotificationsResponse,
    QuoteListResponse,
    QuoteSummary,
    RecentActionsResponse,
)
from carquote.services.activity import (
    customer_notifications,
    recent_customer_actions,
)
from carquote.services.pagination import (
    DEFAULT_PAGE_SIZE,
    normalize_page_params,
    paginate,
)


logger = get_logger(__name__)

router = APIRouter()

QuotesAdmin = Annotated[AdminIdentity, Depends(require_permission("quotes"))]

NOTIFICATION_WINDOW = timedelta(days=7)
RECENT_QUOTES_SCANNED = 20
NOTIFICATION_QUOTES_SCANNED = 30


@router.get("/quotes", response_model=QuoteListResponse)
async def list_quotes(
    admin: QuotesAdmin,
    db: DatabaseSession,
    status: Optional[str] = Query(default=None, description='Quote status, or "all"'),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, description="Page size"),
    page: int = Query(default=1, description="1-based page number"),
) -> QuoteListResponse:
    """
    Page through quotes, newest first.

    Example:
        GET /api/admin/quotes?status=pending&limit=10&page=2

        Response:
        {
            "quotes": [...],
            "pagination": {
                "currentPage": 2, "totalPages": 3, "totalQuotes": 25,
                "hasNext": true, "hasPrev": true
            }
        }
    """
    page, limit = normalize_page_params(page, limit)

    try:
        quotes, total = await QuoteRepository(db).list_quotes(
            status=status,
            limit=limit,
            page=page,
        )
    except SQLAlchemyError as exc:
        logger.exception("Quote listing failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch quotes") from exc

    return QuoteListResponse(
        quotes=[QuoteSummary.model_validate(quote) for quote in quotes],
        pagination=paginate(page, limit, total),
    )


@router.post("/quotes/approve", response_model=ApproveQuoteResponse)
async def approve_quote(
    payload: ApproveQuoteRequest,
    admin: QuotesAdmin,
    db: DatabaseSession,
) -> ApproveQuoteResponse:
    """
    Accept a pending quote on behalf of the business.

    The approval is appended to the action history and the customer is
    allowed to reschedule from then on.
    """
    repo = QuoteRepository(db)
    quote = await repo.find(payload.quote_id)
    if quote is None:
        raise NotFoundError("Quote not found")

    if quote.status != "pending":
        raise BadRequestError("Quote cannot be approved in current status")

    quote.status = "accepted"
    quote.record_action(
        "accepted",
        reason="admin_approved_quote",
        note="Quote approved by admin",
        admin_user_id=admin.id,
    )
    quote.customer_actions = {**quote.customer_actions, "canReschedule": True}
    await db.flush()

    logger.info(
        "Quote approved",
        extra={"quote_id": quote.quote_id, "admin_id": admin.id},
    )

    return ApproveQuoteResponse(
        message="Quote approved successfully",
        quote=QuoteSummary.model_validate(quote),
    )


@router.get("/recent-actions", response_model=RecentActionsResponse)
async def recent_actions(admin: QuotesAdmin, db: DatabaseSession) -> RecentActionsResponse:
    """Latest customer-initiated actions across the most recently active quotes."""
    try:
        quotes = await QuoteRepository(db).recently_active(limit=RECENT_QUOTES_SCANNED)
    except SQLAlchemyError as exc:
        logger.exception("Recent actions lookup failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch actions") from exc

    return RecentActionsResponse(actions=recent_customer_actions(quotes))


@router.get("/notifications", response_model=NotificationsResponse)
async def notifications(admin: QuotesAdmin, db: DatabaseSession) -> NotificationsResponse:
    """Customer-initiated actions from the last seven days."""
    since = utc_now() - NOTIFICATION_WINDOW

    try:
        quotes = await QuoteRepository(db).recently_active(
            limit=NOTIFICATION_QUOTES_SCANNED,
            since=since,
        )
    except SQLAlchemyError as exc:
        logger.exception("Notifications lookup failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch notifications") from exc

    return NotificationsResponse(
        notifications=customer_notifications(quotes, since=since)
    )
