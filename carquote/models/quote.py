"""
Quote document.

Only the parts of a quote the admin API reads or writes are modelled as
first-class columns; nested sections (customer, pricing, pickup details,
customer actions) are kept as JSON documents.
"""

import secrets
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, JSON, String
from sqlalchemy.orm import validates

from carquote.models.base import (
    Base,
    ModelMixin,
    TimestampMixin,
    UUIDMixin,
    parse_timestamp,
    utc_now,
    utc_now_iso,
)


QUOTE_STATUSES = (
    "pending",
    "accepted",
    "expired",
    "cancelled",
    "customer_cancelled",
    "pickup_scheduled",
    "rescheduled",
    "completed",
)

QUOTE_ACTIONS = (
    "created",
    "cancelled",
    "rescheduled",
    "modified",
    "accepted",
    "pickup_scheduled",
    "completed",
)

_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def generate_code(length: int = 6) -> str:
    """Random upper-case alphanumeric code used for quote ids and access tokens."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def default_customer_actions() -> Dict[str, Any]:
    return {
        "canCancel": True,
        "canReschedule": False,
        "actionHistory": [],
    }


class Quote(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Car purchase quote.

    Attributes:
        quote_id: Short public identifier
        access_token: Short code customers use to manage their quote
        vehicle_name: Display name, e.g. "2015 Honda Civic EX"
        vehicle_details: {year, make, model, trim}
        customer: {name, email, phone, address, zipCode}
        pricing: {basePrice, currentPrice, finalPrice}
        status: One of QUOTE_STATUSES
        pickup_details: Scheduling information; ``scheduledDate`` is mirrored
            into pickup_scheduled_at
        pickup_scheduled_at: When the pickup is booked for, if it is
        customer_actions: Permission flags plus ``actionHistory``
        last_action_at: Timestamp of the newest history entry
        expires_at: When the offer lapses
    """

    __tablename__ = "quotes"

    quote_id = Column(String, nullable=False, unique=True, index=True, default=generate_code)
    access_token = Column(String, nullable=False, unique=True, index=True, default=generate_code)

    vehicle_name = Column(String, nullable=False, default="")
    vehicle_details = Column(JSON, nullable=False, default=lambda: {})
    vin = Column(String, nullable=False, default="")

    customer = Column(JSON, nullable=False, default=lambda: {})
    pricing = Column(JSON, nullable=False, default=lambda: {})

    status = Column(String, nullable=False, default="pending", index=True)

    pickup_details = Column(JSON, nullable=False, default=lambda: {})
    pickup_scheduled_at = Column(DateTime(timezone=True), nullable=True, index=True)
    customer_actions = Column(JSON, nullable=False, default=default_customer_actions)

    last_action_at = Column(DateTime(timezone=True), nullable=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    @validates("status")
    def _validate_status(self, key, value):  # noqa: ANN001
        if value not in QUOTE_STATUSES:
            raise ValueError(f"Unknown quote status: {value!r}")
        return value

    @validates("pickup_details")
    def _sync_pickup_schedule(self, key, value):  # noqa: ANN001
        self.pickup_scheduled_at = parse_timestamp((value or {}).get("scheduledDate"))
        return value

    @property
    def action_history(self) -> List[Dict[str, Any]]:
        return list((self.customer_actions or {}).get("actionHistory", []))

    def record_action(
        self,
        action: str,
        reason: Optional[str] = None,
        note: str = "",
        customer_initiated: bool = False,
        admin_user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Append an entry to the action history.

        The JSON column is replaced rather than mutated in place so the
        change is picked up by the session.

        Returns:
            The appended history entry
        """
        if action not in QUOTE_ACTIONS:
            raise ValueError(f"Unknown quote action: {action!r}")

        entry: Dict[str, Any] = {
            "action": action,
            "reason": reason,
            "note": note,
            "timestamp": utc_now_iso(),
            "customerInitiated": customer_initiated,
        }
        if admin_user_id is not None:
            entry["adminUserId"] = admin_user_id
        if details is not None:
            entry["details"] = details

        actions = dict(self.customer_actions or default_customer_actions())
        actions["actionHistory"] = self.action_history + [entry]
        self.customer_actions = actions
        self.last_action_at = utc_now()
        return entry

    def __repr__(self) -> str:
        return f"Quote(id={self.id!r}, quote_id={self.quote_id!r}, status={self.status!r})"
