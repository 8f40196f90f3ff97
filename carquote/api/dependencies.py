"""
FastAPI dependency functions.

Wires the session layer into routes: settings and database come from the
application instance, credentials from the typed request context.
"""

from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from carquote.core.config import Settings
from carquote.core.context import RequestContext
from carquote.core.database import get_db
from carquote.schemas.auth import AdminIdentity
from carquote.services.rate_limiter import AttemptLimiter
from carquote.services.session import (
    CustomerSession,
    check_permission,
    resolve_customer_session,
    verify_admin_token,
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_request_context(request: Request) -> RequestContext:
    return RequestContext.from_request(request)


AppSettings = Annotated[Settings, Depends(get_settings)]
Context = Annotated[RequestContext, Depends(get_request_context)]
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_admin(
    context: Context,
    db: DatabaseSession,
    settings: AppSettings,
) -> AdminIdentity:
    """
    Dependency to get the current admin from the bearer token.

    Raises:
        UnauthenticatedError: Rendered as 401 by the application error handler

    Example:
        @router.get("/admin/thing")
        async def thing(admin: CurrentAdmin):
            return {"email": admin.email}
    """
    return await verify_admin_token(context, db, settings.jwt_secret)


CurrentAdmin = Annotated[AdminIdentity, Depends(get_current_admin)]


def require_permission(permission: str) -> Callable[..., Awaitable[AdminIdentity]]:
    """
    Build a dependency that authenticates the admin and enforces a permission.

    Example:
        @router.get("/quotes")
        async def list_quotes(
            admin: Annotated[AdminIdentity, Depends(require_permission("quotes"))],
        ):
            ...
    """

    async def dependency(admin: CurrentAdmin) -> AdminIdentity:
        return check_permission(admin, permission)

    dependency.__name__ = f"require_{permission}_permission"
    return dependency


async def get_customer_session(
    context: Context,
    db: DatabaseSession,
    settings: AppSettings,
) -> CustomerSession:
    return await resolve_customer_session(
        context,
        db,
        settings.jwt_secret,
        settings.session_cookie_name,
    )


CustomerSessionDep = Annotated[CustomerSession, Depends(get_customer_session)]


def get_login_limiter(request: Request) -> AttemptLimiter:
    return request.app.state.login_limiter


def get_register_limiter(request: Request) -> AttemptLimiter:
    return request.app.state.register_limiter
