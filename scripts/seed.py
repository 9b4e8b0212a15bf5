#!/usr/bin/env python3
"""Seed the database with the bootstrap admin account.

Creates:
- One admin user (BOOTSTRAP_ADMIN_* settings) if no account with that email exists

The script is idempotent: running it again leaves an existing admin untouched.
Admin accounts can only be created by another admin, so a fresh deployment
needs this once.

Usage:
    python -m scripts.seed
    python -m scripts.seed --create-tables   # dev only; prefer `alembic upgrade head`
"""

import argparse
import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from storeratings.services import accounts
from storeratings.services.authorization import Role
from storeratings.settings import get_settings
from storeratings.stores.postgres import close_db, create_tables, get_session, init_db


async def seed_admin() -> bool:
    """Ensure the bootstrap admin exists. Returns True if it was created."""
    settings = get_settings()

    async with get_session() as session:
        existing = await accounts.find_user_by_email(session, settings.bootstrap_admin_email)
        if existing is not None:
            print(f"  ⏭️  {existing.email} (exists, role={existing.role.value})")
            return False

        user = await accounts.create_user(
            session,
            name=settings.bootstrap_admin_name,
            email=settings.bootstrap_admin_email,
            password=settings.bootstrap_admin_password,
            address=settings.bootstrap_admin_address,
            role=Role.ADMIN,
        )
        print(f"  ✅ {user.email} (id={user.id})")
        return True


async def seed_database(*, with_tables: bool = False) -> None:
    """Seed database with initial data."""
    await init_db()
    try:
        if with_tables:
            print("🧱 Creating tables...")
            await create_tables()

        print("🌱 Seeding database...")
        print("\n👤 Creating bootstrap admin...")
        await seed_admin()
        print("\n✅ Database seeded successfully!")
    finally:
        await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the store ratings database.")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from the models before seeding (development only).",
    )
    args = parser.parse_args()
    asyncio.run(seed_database(with_tables=args.create_tables))


if __name__ == "__main__":
    main()
