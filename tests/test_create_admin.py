"""
Tests for the create-admin script.
"""

import importlib.util
from pathlib import Path

import pytest

from carquote.core.security import verify_password
from carquote.models.admin import ADMIN_PERMISSIONS
from carquote.repositories.admin import AdminRepository


SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "create_admin.py"


@pytest.fixture(scope="module")
def create_admin_script():
    spec = importlib.util.spec_from_file_location("create_admin_script", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


async def test_creates_super_admin_with_all_permissions(create_admin_script, database):
    # Act
    created = await create_admin_script.create_admin(
        database,
        email="Root@Example.com",
        password="bootstrap-pass",
        name="Root",
    )

    # Assert
    assert created is True
    async with database.session() as session:
        admin = await AdminRepository(session).get_by_email("root@example.com")

    assert admin.role == "super_admin"
    assert admin.permissions == list(ADMIN_PERMISSIONS)
    assert verify_password("bootstrap-pass", admin.hashed_password)


async def test_is_idempotent(create_admin_script, database):
    await create_admin_script.create_admin(database, "ops@example.com", "first-pass", "Ops")

    created = await create_admin_script.create_admin(database, "ops@example.com", "second-pass", "Ops")

    assert created is False
    async with database.session() as session:
        admin = await AdminRepository(session).get_by_email("ops@example.com")
    assert verify_password("first-pass", admin.hashed_password)


async def test_explicit_role_and_permissions(create_admin_script, database):
    await create_admin_script.create_admin(
        database,
        "agent@example.com",
        "agent-pass",
        "Agent",
        role="sales_agent",
        permissions=["quotes"],
    )

    async with database.session() as session:
        admin = await AdminRepository(session).get_by_email("agent@example.com")
    assert admin.role == "sales_agent"
    assert admin.permissions == ["quotes"]


def test_parser_defaults(create_admin_script):
    args = create_admin_script.build_parser().parse_args(["a@example.com", "pw"])

    assert args.role == "super_admin"
    assert args.permissions is None
    assert args.name == "Admin"


def test_parser_rejects_unknown_role(create_admin_script):
    with pytest.raises(SystemExit):
        create_admin_script.build_parser().parse_args(["a@example.com", "pw", "--role", "janitor"])
