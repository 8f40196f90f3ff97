"""
Customer credential repository.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carquote.models.base import utc_now
from carquote.models.customer_auth import CustomerAuth, normalize_email


class EmailAlreadyRegistered(ValueError):
    """Raised when registering an email that already has credentials"""


class CustomerAuthRepository:
    """
    Repository for customer credentials.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, customer_auth_id: str) -> Optional[CustomerAuth]:
        return await self.session.get(CustomerAuth, customer_auth_id)

    async def get_by_email(self, email: str) -> Optional[CustomerAuth]:
        result = await self.session.execute(
            select(CustomerAuth).where(CustomerAuth.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def create(self, email: str, password_hash: str) -> CustomerAuth:
        """
        Store credentials for a new customer.

        Raises:
            EmailAlreadyRegistered: If the normalized email exists, including
                when a concurrent insert wins the unique index
        """
        if await self.get_by_email(email):
            raise EmailAlreadyRegistered(normalize_email(email))

        user = CustomerAuth(email=email, password_hash=password_hash)
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise EmailAlreadyRegistered(normalize_email(email)) from exc
        return user

    async def record_login(self, user: CustomerAuth) -> None:
        user.last_login = utc_now()
        await self.session.flush()
