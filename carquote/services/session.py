"""
Session verification for admins and customers.

Two flows share the token verifier:

- Admin bearer flow: ``verify_admin_token`` raises ``UnauthenticatedError``
  on any failure, and ``check_permission`` raises ``ForbiddenError``.
- Customer cookie flow: ``resolve_customer_session`` never raises and
  returns ``Authenticated`` or ``Unauthenticated`` so pages can branch on
  the result and callers decide whether the reason is worth logging.
"""

from dataclasses import dataclass
from typing import Literal, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carquote.core.context import RequestContext
from carquote.core.errors import (
    ForbiddenError,
    InvalidTokenError,
    UnauthenticatedError,
)
from carquote.core.logging_config import get_logger
from carquote.core.security import decode_token
from carquote.models.admin import SUPER_ADMIN_ROLE
from carquote.repositories.admin import AdminRepository
from carquote.repositories.customer_auth import CustomerAuthRepository
from carquote.schemas.auth import AdminIdentity, CustomerIdentity


logger = get_logger(__name__)

UnauthenticatedReason = Literal[
    "missing_cookie",
    "invalid_token",
    "user_not_found",
    "lookup_failed",
]


@dataclass(frozen=True)
class Authenticated:
    user: CustomerIdentity

    @property
    def authenticated(self) -> bool:
        return True


@dataclass(frozen=True)
class Unauthenticated:
    reason: UnauthenticatedReason

    @property
    def authenticated(self) -> bool:
        return False


CustomerSession = Union[Authenticated, Unauthenticated]


async def verify_admin_token(
    context: RequestContext,
    session: AsyncSession,
    secret: str,
) -> AdminIdentity:
    """
    Authenticate an admin from the ``Authorization: Bearer`` header.

    Args:
        context: Request context carrying the headers
        session: Database session used to load the admin
        secret: JWT signing secret

    Returns:
        AdminIdentity of an existing, active admin

    Raises:
        UnauthenticatedError: "No token provided" when the header is absent;
            "Authentication failed" for a bad or expired token, an unknown
            admin, a deactivated admin, or a failed admin lookup. The
            specific cause is only logged.
    """
    token = context.bearer_token
    if not token:
        raise UnauthenticatedError("No token provided")

    try:
        claims = decode_token(token, secret)
    except InvalidTokenError as exc:
        logger.info("Admin token rejected", extra={"reason": exc.message})
        raise UnauthenticatedError() from exc

    admin_id = claims.get("adminId")
    if not admin_id:
        logger.info("Admin token rejected", extra={"reason": "missing adminId claim"})
        raise UnauthenticatedError()

    try:
        admin = await AdminRepository(session).get_by_id(str(admin_id))
    except SQLAlchemyError as exc:
        logger.exception("Admin lookup failed", extra={"admin_id": admin_id})
        raise UnauthenticatedError() from exc

    if admin is None or not admin.is_active:
        logger.info(
            "Admin token rejected",
            extra={
                "reason": "admin inactive" if admin else "admin not found",
                "admin_id": admin_id,
            },
        )
        raise UnauthenticatedError()

    return AdminIdentity.model_validate(admin)


def has_permission(admin: AdminIdentity, permission: str) -> bool:
    return admin.role == SUPER_ADMIN_ROLE or permission in admin.permissions


def check_permission(admin: AdminIdentity, permission: str) -> AdminIdentity:
    """
    Enforce a permission on an already verified admin.

    super_admin passes every check.

    Raises:
        ForbiddenError: If the admin lacks the permission
    """
    if not has_permission(admin, permission):
        logger.info(
            "Admin lacks permission",
            extra={"admin_id": admin.id, "permission": permission, "role": admin.role},
        )
        raise ForbiddenError()
    return admin


async def resolve_customer_session(
    context: RequestContext,
    session: AsyncSession,
    secret: str,
    cookie_name: str,
) -> CustomerSession:
    """
    Resolve the customer behind the session cookie.

    Never raises: token and lookup failures become ``Unauthenticated``
    with a reason.
    """
    token = context.cookie(cookie_name)
    if not token:
        return Unauthenticated("missing_cookie")

    try:
        claims = decode_token(token, secret)
    except InvalidTokenError:
        return Unauthenticated("invalid_token")

    subject = claims.get("sub")
    if not subject:
        return Unauthenticated("invalid_token")

    try:
        user = await CustomerAuthRepository(session).get_by_id(str(subject))
    except SQLAlchemyError:
        logger.exception("Customer session lookup failed")
        await session.rollback()
        return Unauthenticated("lookup_failed")

    if user is None:
        return Unauthenticated("user_not_found")

    return Authenticated(CustomerIdentity(id=user.id, email=user.email))
