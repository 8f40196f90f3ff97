"""
Create an admin account for the dashboard.

Idempotent: an existing admin with the same email is left untouched.

Usage:
    python scripts/create_admin.py admin@example.com 'a-strong-password' --name "Site Admin"
    python scripts/create_admin.py agent@example.com 'secret' --role sales_agent --permissions quotes
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from carquote.core.config import settings
from carquote.core.database import Database
from carquote.core.security import get_password_hash
from carquote.models.admin import ADMIN_PERMISSIONS, ADMIN_ROLES, SUPER_ADMIN_ROLE
from carquote.repositories.admin import AdminRepository


async def create_admin(
    database: Database,
    email: str,
    password: str,
    name: str,
    role: str = SUPER_ADMIN_ROLE,
    permissions: Optional[Sequence[str]] = None,
) -> bool:
    """
    Create the admin unless one with this email already exists.

    Returns:
        True if a new admin was created, False if it already existed
    """
    await database.create_all()

    async with database.session() as session:
        repo = AdminRepository(session)
        if await repo.get_by_email(email):
            return False

        try:
            await repo.create_admin(
                email=email,
                hashed_password=get_password_hash(password),
                name=name,
                role=role,
                permissions=ADMIN_PERMISSIONS if permissions is None else permissions,
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a dashboard admin account")
    parser.add_argument("email", help="Admin login email")
    parser.add_argument("password", help="Admin password")
    parser.add_argument("--name", default="Admin", help="Display name")
    parser.add_argument(
        "--role",
        default=SUPER_ADMIN_ROLE,
        choices=ADMIN_ROLES,
        help="Admin role (default: super_admin)",
    )
    parser.add_argument(
        "--permissions",
        nargs="*",
        choices=ADMIN_PERMISSIONS,
        default=None,
        help="Granted permissions (default: all)",
    )
    return parser


async def run(args: argparse.Namespace, database: Database) -> bool:
    try:
        return await create_admin(
            database,
            email=args.email,
            password=args.password,
            name=args.name,
            role=args.role,
            permissions=args.permissions,
        )
    finally:
        await database.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    database = Database(settings.database_url)

    created = asyncio.run(run(args, database))

    if created:
        print(f"Admin {args.email} created with role {args.role}.")
    else:
        print(f"Admin {args.email} already exists. Skipping...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
