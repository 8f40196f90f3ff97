"""
Admin pickup scheduling endpoints.

Every route here requires the ``pickups`` permission (super_admin passes
implicitly). A pickup is a quote in ``pickup_scheduled`` status with a
``pickupDetails.scheduledDate``.
"""

from datetime import date, timedelta
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from carquote.api.dependencies import DatabaseSession, require_permission
from carquote.core.errors import BadRequestError, NotFoundError, UpstreamError
from carquote.core.logging_config import get_logger
from carquote.models.base import utc_now
from carquote.repositories.quote import QuoteRepository
from carquote.schemas.auth import AdminIdentity
from carquote.schemas.base import PickupPagination
from carquote.schemas.pickup import (
    CompletedPickup,
    CompletePickupRequest,
    CompletePickupResponse,
    PickupListResponse,
    PickupStatsResponse,
)
from carquote.schemas.quote import QuoteSummary
from carquote.services.pagination import (
    DEFAULT_PAGE_SIZE,
    normalize_page_params,
    paginate,
)
from carquote.services.reporting import CalendarWindows, day_bounds


logger = get_logger(__name__)

router = APIRouter()

PickupsAdmin = Annotated[AdminIdentity, Depends(require_permission("pickups"))]

UPCOMING_WINDOW = timedelta(days=7)


@router.get("/pickups", response_model=PickupListResponse)
async def list_pickups(
    admin: PickupsAdmin,
    db: DatabaseSession,
    scheduled_on: Optional[date] = Query(
        default=None,
        alias="date",
        description="Only pickups on this day (YYYY-MM-DD, UTC)",
    ),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, description="Page size"),
    page: int = Query(default=1, description="1-based page number"),
) -> PickupListResponse:
    """
    Page through scheduled pickups, soonest first.

    Example:
        GET /api/admin/pickups?date=2026-10-20

        Response:
        {
            "pickups": [...],
            "pagination": {
                "currentPage": 1, "totalPages": 1, "totalPickups": 3,
                "hasNext": false, "hasPrev": false
            }
        }
    """
    page, limit = normalize_page_params(page, limit)
    scheduled_from, scheduled_before = day_bounds(scheduled_on) if scheduled_on else (None, None)

    try:
        quotes, total = await QuoteRepository(db).list_pickups(
            scheduled_from=scheduled_from,
            scheduled_before=scheduled_before,
            limit=limit,
            page=page,
        )
    except SQLAlchemyError as exc:
        logger.exception("Pickup listing failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch pickups") from exc

    return PickupListResponse(
        pickups=[QuoteSummary.model_validate(quote) for quote in quotes],
        pagination=paginate(page, limit, total, schema=PickupPagination),
    )


@router.post("/pickups/complete", response_model=CompletePickupResponse)
async def complete_pickup(
    payload: CompletePickupRequest,
    admin: PickupsAdmin,
    db: DatabaseSession,
) -> CompletePickupResponse:
    """
    Mark a scheduled pickup as collected.

    The quote becomes ``completed``; the completion time, notes and actual
    pickup time are added to ``pickupDetails`` and a ``completed`` entry is
    appended to the action history.
    """
    repo = QuoteRepository(db)
    try:
        quote = await repo.find(payload.quote_id)
    except SQLAlchemyError as exc:
        logger.exception("Pickup lookup failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to complete pickup") from exc

    if quote is None:
        raise NotFoundError("Quote not found")

    if quote.status != "pickup_scheduled":
        raise BadRequestError("Quote is not in pickup_scheduled status")

    completed_at = utc_now()
    actual_pickup_time = (payload.actual_pickup_time or completed_at).isoformat()
    notes = payload.completion_notes
    scheduled: Dict[str, Any] = quote.pickup_details or {}
    note = "Pickup completed successfully"
    if notes:
        note = f"{note} - {notes}"

    quote.status = "completed"
    quote.pickup_details = {
        **scheduled,
        "completedAt": completed_at.isoformat(),
        "completionNotes": notes,
        "actualPickupTime": actual_pickup_time,
    }
    quote.record_action(
        "completed",
        reason="pickup_completed",
        note=note,
        admin_user_id=admin.id,
        details={
            "completedAt": completed_at.isoformat(),
            "completionNotes": notes,
            "actualPickupTime": actual_pickup_time,
            "scheduledDate": scheduled.get("scheduledDate"),
            "scheduledTime": scheduled.get("scheduledTime"),
        },
    )

    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Pickup completion failed", extra={"quote_id": quote.quote_id})
        raise UpstreamError("Failed to complete pickup") from exc

    logger.info(
        "Pickup completed",
        extra={"quote_id": quote.quote_id, "admin_id": admin.id},
    )

    return CompletePickupResponse(
        message="Pickup marked as completed successfully",
        quote=CompletedPickup.model_validate(quote),
    )


@router.get("/pickups/stats", response_model=PickupStatsResponse)
async def pickup_stats(admin: PickupsAdmin, db: DatabaseSession) -> PickupStatsResponse:
    """
    Pickup counters for today, this week (Sunday to Saturday) and this month.

    Upcoming means booked within the next seven days; overdue means still
    scheduled with a date in the past.
    """
    windows = CalendarWindows.at(utc_now())
    repo = QuoteRepository(db)
    scheduled = ["pickup_scheduled"]

    try:
        todays = await repo.count_quotes(
            statuses=scheduled,
            scheduled_from=windows.day_start,
            scheduled_before=windows.day_end,
        )
        this_week = await repo.count_quotes(
            statuses=scheduled,
            scheduled_from=windows.week_start,
            scheduled_before=windows.week_end,
        )
        completed_this_month = await repo.count_quotes(
            statuses=["completed"],
            scheduled_from=windows.month_start,
            scheduled_before=windows.month_end,
        )
        upcoming = await repo.count_quotes(
            statuses=scheduled,
            scheduled_from=windows.now,
            scheduled_before=windows.now + UPCOMING_WINDOW,
        )
        overdue = await repo.count_quotes(statuses=scheduled, scheduled_before=windows.now)
        breakdown = await repo.pickup_status_counts()
    except SQLAlchemyError as exc:
        logger.exception("Pickup statistics failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch pickup statistics") from exc

    return PickupStatsResponse(
        todays_pickups=todays,
        this_week_pickups=this_week,
        completed_this_month=completed_this_month,
        upcoming_pickups=upcoming,
        overdue_pickups=overdue,
        status_breakdown=breakdown,
    )
