"""
Pydantic schemas for the admin quote endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from carquote.schemas.base import CamelModel, QuotePagination


class QuoteSummary(CamelModel):
    """Quote fields shown in the admin quote table."""
    id: str
    quote_id: str
    vehicle_name: str
    vehicle_details: Dict[str, Any] = Field(default_factory=dict)
    vin: str = ""
    customer: Dict[str, Any] = Field(default_factory=dict)
    pricing: Dict[str, Any] = Field(default_factory=dict)
    status: str
    pickup_details: Dict[str, Any] = Field(default_factory=dict)
    customer_actions: Dict[str, Any] = Field(default_factory=dict)
    access_token: str
    created_at: datetime
    expires_at: Optional[datetime] = None


class QuoteListResponse(CamelModel):
    quotes: List[QuoteSummary]
    pagination: QuotePagination


class ApproveQuoteRequest(CamelModel):
    quote_id: str = Field(..., min_length=1, description="Quote primary key or public quote id")


class ApproveQuoteResponse(CamelModel):
    success: bool = True
    message: str
    quote: QuoteSummary


class CustomerActionEntry(CamelModel):
    """One customer-initiated action, flattened out of a quote's history."""
    customer_name: Optional[str] = None
    vehicle_name: Optional[str] = None
    action: str
    reason: Optional[str] = None
    timestamp: datetime
    quote_id: str


class RecentActionsResponse(CamelModel):
    actions: List[CustomerActionEntry]


class NotificationEntry(CamelModel):
    type: str
    customer_name: Optional[str] = None
    vehicle_name: Optional[str] = None
    quote_id: str
    timestamp: datetime


class NotificationsResponse(CamelModel):
    notifications: List[NotificationEntry]
