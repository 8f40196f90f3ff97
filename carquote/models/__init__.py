"""
SQLAlchemy ORM models for the quote service.

Import models from this module to ensure they're registered with SQLAlchemy.
"""

from carquote.models.base import Base, TimestampMixin, UUIDMixin, ModelMixin
from carquote.models.admin import (
    Admin,
    ADMIN_PERMISSIONS,
    ADMIN_ROLES,
    SUPER_ADMIN_ROLE,
)
from carquote.models.customer_auth import CustomerAuth
from carquote.models.quote import Quote, QUOTE_ACTIONS, QUOTE_STATUSES

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "ModelMixin",
    # Models
    "Admin",
    "CustomerAuth",
    "Quote",
    # Enumerations
    "ADMIN_PERMISSIONS",
    "ADMIN_ROLES",
    "SUPER_ADMIN_ROLE",
    "QUOTE_ACTIONS",
    "QUOTE_STATUSES",
]
