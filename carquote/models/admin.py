"""
Admin user model for dashboard authentication.

Admins are created out-of-band (``scripts/create_admin.py``) and are
disabled through ``is_active`` rather than deleted.
"""

from sqlalchemy import Boolean, Column, DateTime, JSON, String
from sqlalchemy.orm import validates

from carquote.models.base import Base, ModelMixin, TimestampMixin, UUIDMixin


SUPER_ADMIN_ROLE = "super_admin"

ADMIN_ROLES = (SUPER_ADMIN_ROLE, "manager", "sales_agent", "driver")

ADMIN_PERMISSIONS = ("quotes", "customers", "pickups", "analytics", "settings")


class Admin(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Admin user model for dashboard authentication.

    Attributes:
        id: UUID primary key (from UUIDMixin)
        email: Unique login email, stored lower-cased
        name: Display name
        role: One of ADMIN_ROLES; super_admin bypasses permission checks
        permissions: List of ADMIN_PERMISSIONS granted to this admin
        is_active: Inactive admins are rejected even with a valid token
        hashed_password: Bcrypt-hashed password (never store plaintext)
        last_login: Time of the last successful login

    Security considerations:
        - Never log or expose hashed_password
    """

    __tablename__ = "admins"

    email = Column(
        String,
        nullable=False,
        unique=True,
        index=True,
        doc="Unique login email (lower-cased)"
    )

    name = Column(String, nullable=False)

    role = Column(
        String,
        nullable=False,
        default="sales_agent",
        doc="Admin role"
    )

    permissions = Column(
        JSON,
        nullable=False,
        default=lambda: [],
        doc="Granted permission names"
    )

    is_active = Column(Boolean, nullable=False, default=True)

    hashed_password = Column(
        String,
        nullable=False,
        doc="Bcrypt-hashed password (never store plaintext)"
    )

    last_login = Column(DateTime(timezone=True), nullable=True)

    @validates("email")
    def _normalize_email(self, key, value):  # noqa: ANN001
        return value.strip().lower() if value else value

    @validates("role")
    def _validate_role(self, key, value):  # noqa: ANN001
        if value not in ADMIN_ROLES:
            raise ValueError(f"Unknown admin role: {value!r}")
        return value

    @validates("permissions")
    def _validate_permissions(self, key, value):  # noqa: ANN001
        unknown = [p for p in value or [] if p not in ADMIN_PERMISSIONS]
        if unknown:
            raise ValueError(f"Unknown admin permissions: {unknown}")
        return list(value or [])

    def __repr__(self) -> str:
        return f"Admin(id={self.id!r}, email={self.email!r}, role={self.role!r})"
