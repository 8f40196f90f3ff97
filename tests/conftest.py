"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- A fresh in-memory database per test
- An application and HTTP client bound to that database
- Seed helpers for admins, customers and quotes
"""

import os

# Set test environment variables BEFORE any carquote imports
# so the module-level settings load with test values
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test_secret_key_at_least_32_characters_long_for_jwt"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"

from datetime import timedelta
from typing import Any, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from carquote.core.config import Settings
from carquote.core.database import Database
from carquote.core.security import create_token, get_password_hash
from carquote.main import create_app
from carquote.models import Admin, CustomerAuth, Quote


TEST_SECRET = os.environ["JWT_SECRET"]
ADMIN_PASSWORD = "admin-password-123"
CUSTOMER_PASSWORD = "customer-pass"

# bcrypt at the minimum cost keeps seeding fast
_FAST_ROUNDS = 4


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret=TEST_SECRET,
        rate_limit_enabled=False,
        log_json=False,
    )


@pytest.fixture
async def database(test_settings: Settings):
    """Fresh in-memory database with all tables created."""
    db = Database(test_settings.database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def app(test_settings: Settings, database: Database):
    return create_app(settings=test_settings, database=database)


@pytest.fixture
async def client(app):
    """
    HTTP client talking to the app in-process.

    The ``http://testserver`` base URL lets httpx keep session cookies
    between requests (they are not Secure outside production).
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
async def db_session(database: Database):
    async with database.session() as session:
        yield session


async def _seed_admin(
    database: Database,
    email: str = "admin@example.com",
    password: str = ADMIN_PASSWORD,
    name: str = "Test Admin",
    role: str = "manager",
    permissions: Optional[List[str]] = None,
    is_active: bool = True,
) -> Admin:
    async with database.session() as session:
        admin = Admin(
            email=email,
            name=name,
            role=role,
            permissions=["quotes"] if permissions is None else permissions,
            is_active=is_active,
            hashed_password=get_password_hash(password, rounds=_FAST_ROUNDS),
        )
        session.add(admin)
        await session.commit()
        return admin


async def _seed_customer(
    database: Database,
    email: str = "customer@example.com",
    password: str = CUSTOMER_PASSWORD,
) -> CustomerAuth:
    async with database.session() as session:
        user = CustomerAuth(
            email=email,
            password_hash=get_password_hash(password, rounds=_FAST_ROUNDS),
        )
        session.add(user)
        await session.commit()
        return user


async def _seed_quote(database: Database, **fields: Any) -> Quote:
    async with database.session() as session:
        values: Dict[str, Any] = {
            "vehicle_name": "2015 Honda Civic EX",
            "vehicle_details": {"year": 2015, "make": "Honda", "model": "Civic", "trim": "EX"},
            "customer": {"name": "Jane Doe", "email": "jane@example.com"},
            "pricing": {"basePrice": 5000, "currentPrice": 5000, "finalPrice": 5000},
        }
        values.update(fields)
        quote = Quote(**values)
        session.add(quote)
        await session.commit()
        return quote


def _admin_token(
    admin: Admin,
    secret: str = TEST_SECRET,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    return create_token(
        {
            "adminId": admin.id,
            "email": admin.email,
            "role": admin.role,
            "permissions": list(admin.permissions or []),
        },
        secret,
        expires_in,
    )


def _bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seed_admin(database: Database):
    """
    Factory creating an admin.

    Example:
        admin = await seed_admin(role="super_admin", permissions=[])
    """

    async def factory(**fields: Any) -> Admin:
        return await _seed_admin(database, **fields)

    return factory


@pytest.fixture
def seed_customer(database: Database):
    async def factory(**fields: Any) -> CustomerAuth:
        return await _seed_customer(database, **fields)

    return factory


@pytest.fixture
def seed_quote(database: Database):
    async def factory(**fields: Any) -> Quote:
        return await _seed_quote(database, **fields)

    return factory


@pytest.fixture
def admin_token():
    return _admin_token


@pytest.fixture
def bearer():
    return _bearer


@pytest.fixture
async def quotes_admin(database: Database) -> Admin:
    """Manager holding only the ``quotes`` permission."""
    return await _seed_admin(database)


@pytest.fixture
async def admin_headers(quotes_admin: Admin) -> Dict[str, str]:
    return _bearer(_admin_token(quotes_admin))
