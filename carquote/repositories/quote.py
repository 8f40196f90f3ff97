"""
Quote repository.

Read paths for the admin dashboard (paged listings, recently active
quotes, counters) and the add path. Pickup queries use the
``pickup_scheduled_at`` column mirrored from ``pickupDetails``.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carquote.models.quote import Quote


class QuoteRepository:
    """
    Repository for quote data access.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_quotes(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        page: int = 1,
    ) -> Tuple[List[Quote], int]:
        """
        Page through quotes, newest first.

        Args:
            status: Only return quotes in this status; None or "all" for every quote
            limit: Page size (must be positive)
            page: 1-based page number (must be positive)

        Returns:
            Tuple of (quotes on this page, total matching quotes)
        """
        filters = []
        if status and status != "all":
            filters.append(Quote.status == status)

        result = await self.session.execute(
            select(Quote)
            .where(*filters)
            .order_by(Quote.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        quotes = list(result.scalars().all())

        total = await self.session.scalar(
            select(func.count()).select_from(Quote).where(*filters)
        )
        return quotes, int(total or 0)

    async def get_by_id(self, quote_pk: str) -> Optional[Quote]:
        return await self.session.get(Quote, quote_pk)

    async def get_by_quote_id(self, quote_id: str) -> Optional[Quote]:
        result = await self.session.execute(
            select(Quote).where(Quote.quote_id == quote_id)
        )
        return result.scalar_one_or_none()

    async def find(self, identifier: str) -> Optional[Quote]:
        """Look a quote up by primary key, falling back to its public quote id."""
        return await self.get_by_id(identifier) or await self.get_by_quote_id(identifier)

    async def recently_active(
        self,
        limit: int = 20,
        since: Optional[datetime] = None,
    ) -> Sequence[Quote]:
        """
        Quotes with at least one history entry, most recently active first.

        Args:
            limit: Maximum number of quotes
            since: Only quotes whose newest action is at or after this time
        """
        filters = [Quote.last_action_at.is_not(None)]
        if since is not None:
            filters.append(Quote.last_action_at >= since)

        result = await self.session.execute(
            select(Quote)
            .where(*filters)
            .order_by(Quote.last_action_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def list_pickups(
        self,
        scheduled_from: Optional[datetime] = None,
        scheduled_before: Optional[datetime] = None,
        limit: int = 50,
        page: int = 1,
    ) -> Tuple[List[Quote], int]:
        """
        Page through scheduled pickups, soonest first.

        Args:
            scheduled_from: Only pickups booked at or after this time
            scheduled_before: Only pickups booked before this time
            limit: Page size (must be positive)
            page: 1-based page number (must be positive)

        Returns:
            Tuple of (quotes on this page, total matching quotes)
        """
        filters = [
            Quote.status == "pickup_scheduled",
            Quote.pickup_scheduled_at.is_not(None),
            *_schedule_filters(scheduled_from, scheduled_before),
        ]

        result = await self.session.execute(
            select(Quote)
            .where(*filters)
            .order_by(Quote.pickup_scheduled_at.asc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        quotes = list(result.scalars().all())

        total = await self.session.scalar(
            select(func.count()).select_from(Quote).where(*filters)
        )
        return quotes, int(total or 0)

    async def count_quotes(
        self,
        statuses: Optional[Iterable[str]] = None,
        scheduled_from: Optional[datetime] = None,
        scheduled_before: Optional[datetime] = None,
        created_from: Optional[datetime] = None,
    ) -> int:
        """
        Count quotes matching every given criterion.

        Schedule bounds only match quotes that have a pickup booked.
        """
        filters = list(_schedule_filters(scheduled_from, scheduled_before))
        if statuses is not None:
            filters.append(Quote.status.in_(list(statuses)))
        if created_from is not None:
            filters.append(Quote.created_at >= created_from)

        total = await self.session.scalar(
            select(func.count()).select_from(Quote).where(*filters)
        )
        return int(total or 0)

    async def pickup_status_counts(self) -> Dict[str, int]:
        """Number of quotes per status among those with a pickup date."""
        result = await self.session.execute(
            select(Quote.status, func.count())
            .where(Quote.pickup_scheduled_at.is_not(None))
            .group_by(Quote.status)
        )
        return {status: int(count) for status, count in result.all()}

    async def count_customers(self, exclude_statuses: Iterable[str] = ()) -> int:
        """Distinct customer emails across quotes not in ``exclude_statuses``."""
        email = Quote.customer["email"].as_string()
        filters = []
        excluded = list(exclude_statuses)
        if excluded:
            filters.append(Quote.status.not_in(excluded))

        total = await self.session.scalar(
            select(func.count(func.distinct(email))).where(*filters)
        )
        return int(total or 0)

    async def total_final_price(
        self,
        statuses: Iterable[str],
        created_from: Optional[datetime] = None,
    ) -> float:
        """Sum of ``pricing.finalPrice`` over matching quotes; quotes without one add nothing."""
        filters = [Quote.status.in_(list(statuses))]
        if created_from is not None:
            filters.append(Quote.created_at >= created_from)

        total = await self.session.scalar(
            select(func.coalesce(func.sum(Quote.pricing["finalPrice"].as_float()), 0))
            .where(*filters)
        )
        return float(total or 0)

    async def list_all(self, status: Optional[str] = None) -> Sequence[Quote]:
        """Every quote, newest first; None or "all" for every status."""
        filters = []
        if status and status != "all":
            filters.append(Quote.status == status)

        result = await self.session.execute(
            select(Quote).where(*filters).order_by(Quote.created_at.desc())
        )
        return result.scalars().all()

    async def add(self, quote: Quote) -> Quote:
        self.session.add(quote)
        await self.session.flush()
        return quote


def _schedule_filters(
    scheduled_from: Optional[datetime],
    scheduled_before: Optional[datetime],
) -> list:
    filters = []
    if scheduled_from is not None:
        filters.append(Quote.pickup_scheduled_at >= scheduled_from)
    if scheduled_before is not None:
        filters.append(Quote.pickup_scheduled_at < scheduled_before)
    return filters
