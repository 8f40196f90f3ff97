"""
Pydantic schemas for the admin pickup endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from carquote.schemas.base import CamelModel, PickupPagination
from carquote.schemas.quote import QuoteSummary


class PickupListResponse(CamelModel):
    pickups: List[QuoteSummary]
    pagination: PickupPagination


class CompletePickupRequest(CamelModel):
    quote_id: str = Field(..., min_length=1, description="Quote primary key or public quote id")
    completion_notes: str = Field(default="", description="Free-form notes from the driver")
    actual_pickup_time: Optional[datetime] = Field(
        default=None,
        description="When the car was actually collected; defaults to now",
    )


class CompletedPickup(CamelModel):
    id: str
    quote_id: str
    status: str
    pickup_details: Dict[str, Any] = Field(default_factory=dict)


class CompletePickupResponse(CamelModel):
    success: bool = True
    message: str
    quote: CompletedPickup


class PickupStatsResponse(CamelModel):
    """
    Pickup counters for the scheduling board.

    Example:
        {
            "todaysPickups": 2,
            "thisWeekPickups": 5,
            "completedThisMonth": 11,
            "upcomingPickups": 4,
            "overduePickups": 1,
            "statusBreakdown": {"pickup_scheduled": 6, "completed": 11}
        }
    """
    todays_pickups: int
    this_week_pickups: int
    completed_this_month: int
    upcoming_pickups: int
    overdue_pickups: int
    status_breakdown: Dict[str, int] = Field(default_factory=dict)
