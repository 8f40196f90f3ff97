"""
Pydantic schemas for the dashboard and customer overview endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from carquote.schemas.base import CamelModel, CustomerPagination


class DashboardStatsResponse(CamelModel):
    total_quotes: int
    active_customers: int
    scheduled_pickups: int
    monthly_revenue: float


class CustomerQuote(CamelModel):
    """One quote as listed under its customer."""
    quote_id: str
    vehicle_name: str
    status: str
    final_price: Optional[float] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    pickup_details: Dict[str, Any] = Field(default_factory=dict)


class CustomerSummary(CamelModel):
    """
    Quotes grouped by customer email.

    ``id`` is the customer's email, which is how quotes are tied to a
    customer.
    """
    id: Optional[str] = None
    customer: Dict[str, Any] = Field(default_factory=dict)
    quotes: List[CustomerQuote]
    total_quotes: int
    total_value: float
    avg_quote_value: float
    latest_quote_date: datetime
    has_active_quote: bool


class CustomerListResponse(CamelModel):
    customers: List[CustomerSummary]
    pagination: CustomerPagination


class CustomerStatsResponse(CamelModel):
    total_customers: int
    active_customers: int
    completed_deals: int
    avg_deal_value: int
    total_revenue: float
    total_transactions: int
    new_customers_this_month: int
    customer_growth_percent: int
    status_breakdown: Dict[str, int] = Field(default_factory=dict)
