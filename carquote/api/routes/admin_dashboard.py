"""
Dashboard headline figures, behind the ``analytics`` permission.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from carquote.api.dependencies import DatabaseSession, require_permission
from carquote.core.errors import UpstreamError
from carquote.core.logging_config import get_logger
from carquote.models.base import utc_now
from carquote.repositories.quote import QuoteRepository
from carquote.schemas.auth import AdminIdentity
from carquote.schemas.reporting import DashboardStatsResponse
from carquote.services.reporting import start_of_month


logger = get_logger(__name__)

router = APIRouter()

AnalyticsAdmin = Annotated[AdminIdentity, Depends(require_permission("analytics"))]

# Statuses whose final price counts as revenue
REVENUE_STATUSES = ("accepted", "pickup_scheduled", "completed")


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def dashboard_stats(admin: AnalyticsAdmin, db: DatabaseSession) -> DashboardStatsResponse:
    """
    Headline figures for the dashboard landing page.

    - totalQuotes: every quote
    - activeCustomers: distinct customer emails on quotes that are neither
      expired nor completed
    - scheduledPickups: accepted or scheduled quotes with a pickup still ahead
    - monthlyRevenue: sum of final prices of this month's accepted,
      scheduled and completed quotes
    """
    now = utc_now()
    repo = QuoteRepository(db)

    try:
        total_quotes = await repo.count_quotes()
        active_customers = await repo.count_customers(exclude_statuses=("expired", "completed"))
        scheduled_pickups = await repo.count_quotes(
            statuses=("pickup_scheduled", "accepted"),
            scheduled_from=now,
        )
        monthly_revenue = await repo.total_final_price(
            REVENUE_STATUSES,
            created_from=start_of_month(now),
        )
    except SQLAlchemyError as exc:
        logger.exception("Dashboard statistics failed", extra={"admin_id": admin.id})
        raise UpstreamError("Failed to fetch stats") from exc

    return DashboardStatsResponse(
        total_quotes=total_quotes,
        active_customers=active_customers,
        scheduled_pickups=scheduled_pickups,
        monthly_revenue=monthly_revenue,
    )
