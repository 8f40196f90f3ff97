"""
Customer credentials.

Separate from any customer profile: a CustomerAuth row only knows how to
log somebody in, with an optional link to a customer record.
"""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import validates

from carquote.models.base import Base, ModelMixin, TimestampMixin, UUIDMixin


def normalize_email(email: str) -> str:
    return str(email).strip().lower()


class CustomerAuth(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    Customer login credentials.

    Attributes:
        email: Unique, trimmed and lower-cased before storage
        password_hash: Bcrypt hash of the customer's password
        customer_id: Optional link to a customer record
        last_login: Time of the last successful login
    """

    __tablename__ = "customer_auth"

    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    customer_id = Column(String, nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    @validates("email")
    def _normalize_email(self, key, value):  # noqa: ANN001
        return normalize_email(value) if value else value

    def __repr__(self) -> str:
        return f"CustomerAuth(id={self.id!r}, email={self.email!r})"
