"""
Customer account and session endpoints.

Customers authenticate with an httpOnly session cookie holding a signed
token. ``/me`` never fails: pages call it to decide what to render.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from carquote.api.dependencies import (
    AppSettings,
    Context,
    CustomerSessionDep,
    DatabaseSession,
    get_login_limiter,
    get_register_limiter,
)
from carquote.core.config import Settings
from carquote.core.errors import ConflictError, UnauthenticatedError
from carquote.core.logging_config import get_logger
from carquote.core.security import create_token, get_password_hash, verify_password
from carquote.repositories.customer_auth import (
    CustomerAuthRepository,
    EmailAlreadyRegistered,
)
from carquote.schemas.auth import (
    CookieDebugResponse,
    CookieInfo,
    CustomerAuthResponse,
    CustomerUser,
    LoginRequest,
    RegisterRequest,
    SessionStatusResponse,
)
from carquote.services.rate_limiter import AttemptDecision, AttemptLimiter
from carquote.services.session import Authenticated


logger = get_logger(__name__)

router = APIRouter()

LoginLimiter = Annotated[AttemptLimiter, Depends(get_login_limiter)]
RegisterLimiter = Annotated[AttemptLimiter, Depends(get_register_limiter)]


def set_session_cookie(
    response: Response,
    token: str,
    settings: Settings,
    max_age: int,
) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Overwrite the session cookie with an empty, already expired value."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def too_many_attempts(decision: AttemptDecision, message: str) -> JSONResponse:
    reset_at = datetime.fromtimestamp(decision.reset_at, tz=timezone.utc)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": message, "retryAfter": decision.retry_after},
        headers={
            "Retry-After": str(decision.retry_after),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": reset_at.isoformat(),
        },
    )


def _issue_session(
    user_id: str,
    email: str,
    settings: Settings,
    lifetime: timedelta,
) -> str:
    return create_token({"sub": user_id, "email": email}, settings.jwt_secret, lifetime)


@router.post("/register", response_model=CustomerAuthResponse)
async def register(
    payload: RegisterRequest,
    response: Response,
    context: Context,
    db: DatabaseSession,
    settings: AppSettings,
    limiter: RegisterLimiter,
):
    """
    Create customer credentials and start a session.

    Limited per client IP; the session lasts
    ``customer_register_expire_days``.
    """
    decision = limiter.hit(f"register_{context.client_ip}")
    if not decision.allowed:
        logger.warning("Registration attempts exhausted", extra={"client_ip": context.client_ip})
        return too_many_attempts(
            decision, "Too many registration attempts. Please try again later."
        )

    repo = CustomerAuthRepository(db)
    try:
        user = await repo.create(payload.email, get_password_hash(payload.password, rounds=10))
    except EmailAlreadyRegistered as exc:
        raise ConflictError("Email already registered") from exc

    lifetime = timedelta(days=settings.customer_register_expire_days)
    token = _issue_session(user.id, user.email, settings, lifetime)
    set_session_cookie(response, token, settings, int(lifetime.total_seconds()))
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)

    logger.info("Customer registered", extra={"customer_auth_id": user.id})
    return CustomerAuthResponse(user=CustomerUser(email=user.email))


@router.post("/login", response_model=CustomerAuthResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    context: Context,
    db: DatabaseSession,
    settings: AppSettings,
    limiter: LoginLimiter,
):
    """
    Verify customer credentials and start a session.

    Limited per client IP; the session lasts
    ``customer_login_expire_hours``.
    """
    decision = limiter.hit(f"login_{context.client_ip}")
    if not decision.allowed:
        logger.warning("Login attempts exhausted", extra={"client_ip": context.client_ip})
        return too_many_attempts(decision, "Too many login attempts. Please try again later.")

    repo = CustomerAuthRepository(db)
    user = await repo.get_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise UnauthenticatedError("Invalid credentials")

    await repo.record_login(user)

    lifetime = timedelta(hours=settings.customer_login_expire_hours)
    token = _issue_session(user.id, user.email, settings, lifetime)
    set_session_cookie(response, token, settings, int(lifetime.total_seconds()))
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)

    return CustomerAuthResponse(user=CustomerUser(email=user.email))


@router.get("/me", response_model=SessionStatusResponse, response_model_exclude_none=True)
async def me(customer_session: CustomerSessionDep) -> SessionStatusResponse:
    """Always 200; ``authenticated`` says whether the cookie identifies a customer."""
    if isinstance(customer_session, Authenticated):
        return SessionStatusResponse(
            authenticated=True,
            user=CustomerUser(email=customer_session.user.email),
        )

    logger.info("No customer session", extra={"reason": customer_session.reason})
    return SessionStatusResponse(authenticated=False)


@router.post("/logout")
async def logout(response: Response, settings: AppSettings) -> dict:
    """
    Clear the session cookie.

    The token itself stays valid until it expires; nothing is revoked
    server-side.
    """
    clear_session_cookie(response, settings)
    return {"success": True}


@router.get("/debug", response_model=CookieDebugResponse)
async def debug_cookies(context: Context, settings: AppSettings) -> CookieDebugResponse:
    """Report which cookies arrived, without echoing their values."""
    session_cookie = context.cookie(settings.session_cookie_name)

    logger.debug(
        "Cookie debug",
        extra={
            "cookie_names": sorted(context.cookies),
            "session_cookie_exists": session_cookie is not None,
        },
    )

    return CookieDebugResponse(
        all_cookies=[
            CookieInfo(name=name, has_value=bool(value))
            for name, value in context.cookies.items()
        ],
        session_cookie_exists=session_cookie is not None,
        session_cookie_length=len(session_cookie or ""),
    )
