"""
Reporting helpers for the admin dashboard.

Calendar windows are computed in UTC with half-open bounds and weeks
starting on Sunday. Customers are not stored on their own: a customer is
the set of quotes sharing a ``customer.email``.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from carquote.models.base import parse_timestamp
from carquote.models.quote import Quote
from carquote.schemas.reporting import (
    CustomerQuote,
    CustomerStatsResponse,
    CustomerSummary,
)


ACTIVE_QUOTE_STATUSES = ("pending", "accepted", "pickup_scheduled")

# Quotes in these statuses no longer make their customer "active"
CLOSED_QUOTE_STATUSES = ("expired", "completed", "customer_cancelled")

DEAL_STATUSES = ("completed", "pickup_scheduled")


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


@dataclass(frozen=True)
class CalendarWindows:
    """
    Day, week and month boundaries around ``now``.

    Example:
        windows = CalendarWindows.at(utc_now())
        count_quotes(scheduled_from=windows.day_start, scheduled_before=windows.day_end)
    """

    now: datetime
    day_start: datetime
    day_end: datetime
    week_start: datetime
    week_end: datetime
    month_start: datetime
    month_end: datetime
    previous_month_start: datetime

    @classmethod
    def at(cls, now: datetime) -> "CalendarWindows":
        day_start = start_of_day(now)
        # weekday() is 0 on Monday
        week_start = day_start - timedelta(days=(day_start.weekday() + 1) % 7)
        month_start = start_of_month(now)
        return cls(
            now=now,
            day_start=day_start,
            day_end=day_start + timedelta(days=1),
            week_start=week_start,
            week_end=week_start + timedelta(days=7),
            month_start=month_start,
            month_end=start_of_month(month_start + timedelta(days=32)),
            previous_month_start=start_of_month(month_start - timedelta(days=1)),
        )


def day_bounds(day) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar date."""
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def final_price(quote: Quote) -> Optional[float]:
    value = (quote.pricing or {}).get("finalPrice")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def customer_email(quote: Quote) -> Optional[str]:
    return (quote.customer or {}).get("email")


def _created(quote: Quote) -> datetime:
    return parse_timestamp(quote.created_at)


def matches_search(quote: Quote, search: str) -> bool:
    """Case-insensitive substring match on the customer's name, email or phone."""
    needle = search.strip().lower()
    if not needle:
        return True
    customer = quote.customer or {}
    return any(
        needle in str(customer.get(field) or "").lower()
        for field in ("name", "email", "phone")
    )


def customer_summaries(quotes: Iterable[Quote]) -> List[CustomerSummary]:
    """
    Group quotes by customer email, most recently quoted customer first.

    The newest quote supplies the customer document. Quotes without a
    usable final price count as zero towards the totals.
    """
    grouped: Dict[Optional[str], List[Quote]] = defaultdict(list)
    for quote in sorted(quotes, key=_created, reverse=True):
        grouped[customer_email(quote)].append(quote)

    summaries = []
    for email, customer_quotes in grouped.items():
        total_value = sum(final_price(q) or 0.0 for q in customer_quotes)
        summaries.append(
            CustomerSummary(
                id=email,
                customer=customer_quotes[0].customer or {},
                quotes=[
                    CustomerQuote(
                        quote_id=q.quote_id,
                        vehicle_name=q.vehicle_name,
                        status=q.status,
                        final_price=final_price(q),
                        created_at=_created(q),
                        expires_at=q.expires_at,
                        pickup_details=q.pickup_details or {},
                    )
                    for q in customer_quotes
                ],
                total_quotes=len(customer_quotes),
                total_value=total_value,
                avg_quote_value=total_value / len(customer_quotes),
                latest_quote_date=_created(customer_quotes[0]),
                has_active_quote=any(
                    q.status in ACTIVE_QUOTE_STATUSES for q in customer_quotes
                ),
            )
        )

    summaries.sort(key=lambda summary: summary.latest_quote_date, reverse=True)
    return summaries


def _emails(quotes: Iterable[Quote]) -> set:
    return {email for email in map(customer_email, quotes) if email}


def customer_stats(quotes: Sequence[Quote], now: datetime) -> CustomerStatsResponse:
    """
    Customer counters for the customers page.

    Growth compares customers quoting this month with those quoting last
    month; it is 0 when last month had none. ``statusBreakdown`` counts
    customers by the status of their newest quote.
    """
    windows = CalendarWindows.at(now)

    this_month = [q for q in quotes if _created(q) >= windows.month_start]
    last_month = [
        q for q in quotes
        if windows.previous_month_start <= _created(q) < windows.month_start
    ]
    deals = [q for q in quotes if q.status in DEAL_STATUSES]
    deal_prices = [final_price(q) or 0.0 for q in deals]

    new_this_month = len(_emails(this_month))
    new_last_month = len(_emails(last_month))
    growth = (
        round((new_this_month - new_last_month) / new_last_month * 100)
        if new_last_month
        else 0
    )

    newest: Dict[str, Quote] = {}
    for quote in sorted(quotes, key=_created):
        email = customer_email(quote)
        if email:
            newest[email] = quote
    breakdown: Dict[str, int] = defaultdict(int)
    for quote in newest.values():
        breakdown[quote.status] += 1

    return CustomerStatsResponse(
        total_customers=len(_emails(quotes)),
        active_customers=len(
            _emails(q for q in quotes if q.status not in CLOSED_QUOTE_STATUSES)
        ),
        completed_deals=len(_emails(q for q in this_month if q.status == "completed")),
        avg_deal_value=round(sum(deal_prices) / len(deal_prices)) if deal_prices else 0,
        total_revenue=sum(deal_prices),
        total_transactions=len(deals),
        new_customers_this_month=new_this_month,
        customer_growth_percent=growth,
        status_breakdown=dict(breakdown),
    )

