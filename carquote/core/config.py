"""
Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration management with validation,
loading settings from environment variables and .env files.
"""

from typing import Annotated, List, Literal, Optional
import json

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


# Development-only signing key. Production startup refuses to run with it.
DEV_JWT_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Secrets should never be committed to code - use .env file (gitignored).
    """

    # API Configuration
    project_name: str = Field(
        default="Car Quote API",
        description="Project name displayed in API docs"
    )
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Deployment environment; controls cookie security and secret checks"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/carquote.db",
        description="Async SQLAlchemy connection URL for the quote store"
    )
    enable_db_create_all: bool = Field(
        default=True,
        description="Create missing tables at startup"
    )

    # Security Configuration
    jwt_secret: Optional[str] = Field(
        default=None,
        description="Secret key for JWT signing (generate with: openssl rand -hex 32)"
    )
    admin_token_expire_hours: int = Field(
        default=24,
        gt=0,
        description="Lifetime of admin bearer tokens in hours"
    )
    customer_login_expire_hours: int = Field(
        default=3,
        gt=0,
        description="Lifetime of the customer session issued at login"
    )
    customer_register_expire_days: int = Field(
        default=7,
        gt=0,
        description="Lifetime of the customer session issued at registration"
    )
    session_cookie_name: str = Field(
        default="cj_session",
        description="Name of the customer session cookie"
    )

    # CORS Configuration
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (frontend URLs)"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow cookies/credentials in CORS requests"
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable the per-IP token bucket middleware"
    )
    auth_rate_limit: int = Field(
        default=10,
        gt=0,
        description="Requests per minute per IP for /auth endpoints"
    )
    default_rate_limit: int = Field(
        default=60,
        gt=0,
        description="Requests per minute per IP for all other endpoints"
    )
    login_max_attempts: int = Field(
        default=5,
        gt=0,
        description="Customer login attempts per IP per window"
    )
    register_max_attempts: int = Field(
        default=3,
        gt=0,
        description="Customer registration attempts per IP per window"
    )
    attempt_window_seconds: int = Field(
        default=15 * 60,
        gt=0,
        description="Window length for login/registration attempt counting"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """
        Parse cors_origins from JSON string or list.

        Supports comma-separated origins for easier .env configuration.
        """
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """
        Validate database URL format.

        Only async drivers are accepted since the whole request path is async.
        """
        if not v or v.strip() == "":
            raise ValueError("DATABASE_URL is required and cannot be empty")

        valid_schemes = ["sqlite+aiosqlite", "postgresql+asyncpg"]
        if not any(v.startswith(scheme + "://") for scheme in valid_schemes):
            raise ValueError(
                f"DATABASE_URL must start with one of: {', '.join(valid_schemes)}. "
                f"Got: {v[:20]}..."
            )
        return v

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """
        Fail closed on a missing or weak secret in production.

        Outside production an unset secret falls back to DEV_JWT_SECRET;
        the application logs a warning at startup when that happens.
        """
        secret = (self.jwt_secret or "").strip()

        if self.environment == "production":
            if not secret or secret == DEV_JWT_SECRET:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "Generate one with: openssl rand -hex 32"
                )
            if len(secret) < 32:
                raise ValueError(
                    f"JWT_SECRET must be at least 32 characters long in production. "
                    f"Current length: {len(secret)}"
                )
        elif not secret:
            self.jwt_secret = DEV_JWT_SECRET

        return self

    @property
    def using_default_jwt_secret(self) -> bool:
        return self.jwt_secret == DEV_JWT_SECRET

    @property
    def cookie_secure(self) -> bool:
        """Session cookies carry the Secure flag in production only."""
        return self.environment == "production"


# Global settings instance
# Import this instance throughout the application
settings = Settings()
