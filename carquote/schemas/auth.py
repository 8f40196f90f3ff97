"""
Pydantic schemas for admin and customer authentication.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from carquote.schemas.base import CamelModel


class LoginRequest(BaseModel):
    """Customer email/password credentials."""
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Password")


class AdminLoginRequest(BaseModel):
    """
    Admin credentials.

    The email is matched against stored admins as-is (case-insensitively),
    so addresses like ``ops@localhost`` are accepted.
    """
    email: str = Field(..., min_length=1, description="Admin email")
    password: str = Field(..., min_length=1, description="Password")


class RegisterRequest(BaseModel):
    email: EmailStr = Field(..., description="Customer email")
    password: str = Field(
        ...,
        min_length=6,
        description="Password (at least 6 characters)"
    )


class AdminIdentity(CamelModel):
    """
    Verified admin, as seen by route handlers.

    Never carries the password hash.
    """
    id: str
    email: str
    name: str
    role: str
    permissions: List[str] = Field(default_factory=list)


class AdminLoginResponse(CamelModel):
    success: bool = True
    admin: AdminIdentity
    token: str


class AdminVerifyResponse(CamelModel):
    success: bool = True
    admin: AdminIdentity


class CustomerIdentity(CamelModel):
    id: str
    email: str


class CustomerUser(BaseModel):
    """Public view of a customer: only the email leaves the server."""
    email: str


class CustomerAuthResponse(BaseModel):
    success: bool = True
    user: CustomerUser


class SessionStatusResponse(BaseModel):
    authenticated: bool
    user: Optional[CustomerUser] = None


class CookieInfo(CamelModel):
    name: str
    has_value: bool


class CookieDebugResponse(CamelModel):
    all_cookies: List[CookieInfo]
    session_cookie_exists: bool
    session_cookie_length: int
