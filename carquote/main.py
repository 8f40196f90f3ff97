"""
Car Quote API - FastAPI application entry point.

``create_app`` builds a fully wired application: settings, database and
attempt limiters are owned by the app instance (``app.state``) so tests can
run several isolated apps side by side.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carquote import __version__
from carquote.api.routes import (
    admin_auth,
    admin_customers,
    admin_dashboard,
    admin_pickups,
    admin_quotes,
    customer_auth,
    health,
)
from carquote.core.config import Settings, settings as default_settings
from carquote.core.database import Database
from carquote.core.errors import CarQuoteError
from carquote.core.logging_config import get_logger, setup_logging
from carquote.middleware.logging import LoggingMiddleware
from carquote.middleware.rate_limit import RateLimitMiddleware
from carquote.middleware.request_id import RequestIDMiddleware
from carquote.middleware.security_headers import SecurityHeadersMiddleware
from carquote.services.rate_limiter import AttemptLimiter


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Startup:
        - Set up logging
        - Warn when running on the development signing key
        - Create missing tables (when enabled)

    Shutdown:
        - Dispose of database connections
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    setup_logging(level=settings.log_level, json_format=settings.log_json)

    if settings.using_default_jwt_secret:
        logger.warning(
            "JWT_SECRET is not set; using the development signing key",
            extra={"environment": settings.environment},
        )

    if settings.enable_db_create_all:
        await database.create_all()

    logger.info("Application started", extra={"environment": settings.environment})

    yield

    await database.dispose()
    logger.info("Application stopped")


async def carquote_error_handler(request: Request, exc: CarQuoteError) -> JSONResponse:
    """Render service errors as ``{"error": message}``."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error": exc.message},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration; defaults to the environment-loaded settings
        database: Database resource; defaults to one built from settings

    Example:
        app = create_app(Settings(environment="test"), Database("sqlite+aiosqlite:///:memory:"))
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.project_name,
        version=__version__,
        description="Admin dashboard and customer session API for car purchase quotes",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database or Database(settings.database_url)
    app.state.login_limiter = AttemptLimiter(
        settings.login_max_attempts,
        settings.attempt_window_seconds,
    )
    app.state.register_limiter = AttemptLimiter(
        settings.register_max_attempts,
        settings.attempt_window_seconds,
    )

    app.add_exception_handler(CarQuoteError, carquote_error_handler)

    # Middleware runs in reverse order of registration
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.cookie_secure)

    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            auth_limit=settings.auth_rate_limit,
            default_limit=settings.default_rate_limit,
        )

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(admin_auth.router, prefix="/api/admin/auth", tags=["admin-auth"])
    app.include_router(admin_quotes.router, prefix="/api/admin", tags=["admin-quotes"])
    app.include_router(admin_pickups.router, prefix="/api/admin", tags=["admin-pickups"])
    app.include_router(admin_dashboard.router, prefix="/api/admin", tags=["admin-dashboard"])
    app.include_router(admin_customers.router, prefix="/api/admin", tags=["admin-customers"])
    app.include_router(customer_auth.router, prefix="/api/auth", tags=["customer-auth"])

    @app.get("/")
    async def root():
        return {
            "message": settings.project_name,
            "version": __version__,
            "docs": "/docs",
        }

    return app


app = create_app()
