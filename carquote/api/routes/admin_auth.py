"""
Authentication endpoints for the admin dashboard.

Admins log in with email and password and receive a bearer token; the
dashboard calls ``/verify`` on load to check the stored token is still good.
"""

from datetime import timedelta

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from carquote.api.dependencies import AppSettings, Context, DatabaseSession
from carquote.core.errors import CarQuoteError, UnauthenticatedError
from carquote.core.logging_config import get_logger
from carquote.core.security import create_token, verify_password
from carquote.repositories.admin import AdminRepository
from carquote.schemas.auth import (
    AdminIdentity,
    AdminLoginRequest,
    AdminLoginResponse,
    AdminVerifyResponse,
)
from carquote.services.session import verify_admin_token


logger = get_logger(__name__)

router = APIRouter()


@router.post("/login", response_model=AdminLoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: AdminLoginRequest,
    db: DatabaseSession,
    settings: AppSettings,
) -> AdminLoginResponse:
    """
    Exchange admin credentials for a bearer token.

    Example:
        POST /api/admin/auth/login
        {"email": "admin@example.com", "password": "..."}

        Response:
        {
            "success": true,
            "admin": {"id": "...", "email": "...", "role": "manager", ...},
            "token": "eyJ..."
        }

    Security:
        - Unknown email and wrong password give the same message
        - Deactivated accounts are told so only after the password matches
    """
    repo = AdminRepository(db)
    admin = await repo.get_by_email(payload.email)

    if admin is None or not verify_password(payload.password, admin.hashed_password):
        logger.info("Admin login failed", extra={"reason": "invalid credentials"})
        raise UnauthenticatedError("Invalid credentials")

    if not admin.is_active:
        logger.info("Admin login failed", extra={"reason": "inactive", "admin_id": admin.id})
        raise UnauthenticatedError("Account is deactivated")

    await repo.record_login(admin)

    token = create_token(
        {
            "adminId": admin.id,
            "email": admin.email,
            "role": admin.role,
            "permissions": list(admin.permissions or []),
        },
        settings.jwt_secret,
        timedelta(hours=settings.admin_token_expire_hours),
    )

    logger.info("Admin login succeeded", extra={"admin_id": admin.id})

    return AdminLoginResponse(admin=AdminIdentity.model_validate(admin), token=token)


@router.get("/verify", response_model=AdminVerifyResponse)
async def verify(
    context: Context,
    db: DatabaseSession,
    settings: AppSettings,
):
    """
    Check the bearer token and return a fresh copy of the admin.

    Every failure is a 401. A missing header says "No token provided";
    anything else says "Token verification failed", whatever the cause.
    """
    if not context.bearer_token:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "No token provided"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        admin = await verify_admin_token(context, db, settings.jwt_secret)
    except CarQuoteError:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Token verification failed"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AdminVerifyResponse(admin=admin)
