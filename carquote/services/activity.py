"""
Customer activity feeds for the admin dashboard.

Both feeds flatten the ``actionHistory`` of a set of quotes into one list
of customer-initiated actions, newest first.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from carquote.models.base import parse_timestamp
from carquote.models.quote import Quote
from carquote.schemas.quote import CustomerActionEntry, NotificationEntry


RECENT_ACTIONS_LIMIT = 10
NOTIFICATIONS_LIMIT = 20


def _customer_actions(
    quotes: Iterable[Quote],
    since: Optional[datetime] = None,
) -> List[tuple[Quote, Dict[str, Any], datetime]]:
    flattened = []
    for quote in quotes:
        for action in quote.action_history:
            if not action.get("customerInitiated"):
                continue
            timestamp = parse_timestamp(action.get("timestamp"))
            if timestamp is None:
                continue
            if since is not None and timestamp < since:
                continue
            flattened.append((quote, action, timestamp))

    flattened.sort(key=lambda item: item[2], reverse=True)
    return flattened


def recent_customer_actions(
    quotes: Iterable[Quote],
    limit: int = RECENT_ACTIONS_LIMIT,
) -> List[CustomerActionEntry]:
    """
    Newest customer-initiated actions across the given quotes.

    Entries with a missing or unparseable timestamp are skipped.
    """
    return [
        CustomerActionEntry(
            customer_name=(quote.customer or {}).get("name"),
            vehicle_name=quote.vehicle_name,
            action=action["action"],
            reason=action.get("reason"),
            timestamp=timestamp,
            quote_id=quote.quote_id,
        )
        for quote, action, timestamp in _customer_actions(quotes)[:limit]
    ]


def customer_notifications(
    quotes: Iterable[Quote],
    since: datetime,
    limit: int = NOTIFICATIONS_LIMIT,
) -> List[NotificationEntry]:
    return [
        NotificationEntry(
            type=action["action"],
            customer_name=(quote.customer or {}).get("name"),
            vehicle_name=quote.vehicle_name,
            quote_id=quote.quote_id,
            timestamp=timestamp,
        )
        for quote, action, timestamp in _customer_actions(quotes, since=since)[:limit]
    ]
