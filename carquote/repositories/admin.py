"""
Admin repository.

Data access for admin accounts used by the login route, the bearer
session layer and the create-admin script.
"""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carquote.models.admin import Admin
from carquote.models.base import utc_now


class AdminRepository:
    """
    Repository for admin data access.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, admin_id: str) -> Optional[Admin]:
        return await self.session.get(Admin, admin_id)

    async def get_by_email(self, email: str) -> Optional[Admin]:
        result = await self.session.execute(
            select(Admin).where(Admin.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create_admin(
        self,
        email: str,
        hashed_password: str,
        name: str,
        role: str = "sales_agent",
        permissions: Optional[Iterable[str]] = None,
        is_active: bool = True,
    ) -> Admin:
        """
        Create a new admin.

        Raises:
            ValueError: If the email is already taken, or the role or a
                permission is unknown
        """
        if await self.get_by_email(email):
            raise ValueError(f"Admin with email '{email}' already exists")

        admin = Admin(
            email=email,
            hashed_password=hashed_password,
            name=name,
            role=role,
            permissions=list(permissions or []),
            is_active=is_active,
        )
        self.session.add(admin)
        await self.session.flush()
        return admin

    async def record_login(self, admin: Admin) -> None:
        admin.last_login = utc_now()
        await self.session.flush()
