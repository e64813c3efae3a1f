#!/usr/bin/env python3
"""Administrator account provisioning for SiteCMS.

Creates an admin account directly in the configured database
(DATABASE_URL), applying the same validation and hashing as the API.

Usage:
    python scripts/create_admin.py                    # interactive wizard
    python scripts/create_admin.py --default          # admin / admin@example.com / admin123
    python scripts/create_admin.py --create-tables    # create missing tables first
"""

import argparse
import asyncio
import getpass
import sys
from collections.abc import Callable

from sitecms.core import async_session_maker, engine, init_models
from sitecms.services.auth import (
    AuthService,
    DuplicateAccount,
    ValidationError,
    validate_account_fields,
)

DEFAULT_ADMIN = {
    "username": "admin",
    "email": "admin@example.com",
    "password": "admin123",  # Change this after first login!
}

RULE = "═" * 39


async def _create_account(username: str, email: str, password: str, create_tables: bool):
    """Create the account through AuthService, optionally creating tables first."""
    try:
        if create_tables:
            await init_models(engine)
        async with async_session_maker() as db:
            return await AuthService(db).create_admin(username, email, password)
    finally:
        await engine.dispose()


def _print_credentials(username: str, email: str, password: str) -> None:
    print(f"\n✓ Admin account created successfully!\n\n{RULE}")
    print("         LOGIN CREDENTIALS")
    print(RULE)
    print(f"  Username: {username}")
    print(f"  Email:    {email}")
    print(f"  Password: {password}")
    print(RULE)


def create_default(create_tables: bool) -> int:
    """Create the default account. An existing account is not an error."""
    try:
        asyncio.run(_create_account(**DEFAULT_ADMIN, create_tables=create_tables))
    except DuplicateAccount as e:
        print(f"\n⚠️  Admin account already exists ({e.field} is taken).")
        print("To create another admin, use POST /admin/create or run without --default.")
        return 0

    _print_credentials(**DEFAULT_ADMIN)
    print("\n⚠️  IMPORTANT: Change the password after first login!\n")
    return 0


def create_interactive(
    create_tables: bool,
    input_fn: Callable[[str], str] = input,
    password_fn: Callable[[str], str] = getpass.getpass,
) -> int:
    """Prompt for the account details, confirm, then create the account."""
    print("\nADMIN ACCOUNT CREATION WIZARD\n")

    username = input_fn("Enter username (3-20 characters): ").strip()
    email = input_fn("Enter email address: ").strip().lower()
    password = password_fn("Enter password (min 6 characters): ")

    try:
        validate_account_fields(username, email, password)
    except ValidationError as e:
        print(f"✗ {e}")
        return 1

    print("\nPlease confirm your details:")
    print(f"Username: {username}")
    print(f"Email:    {email}")
    print(f"Password: {'*' * len(password)}")

    confirm = input_fn("\nCreate this admin account? (yes/no): ").strip().lower()
    if confirm not in ("yes", "y"):
        print("✗ Admin creation cancelled")
        return 0

    try:
        asyncio.run(_create_account(username, email, password, create_tables))
    except DuplicateAccount as e:
        print(f"\n✗ An admin with this {e.field} already exists!")
        return 1

    _print_credentials(username, email, "*" * len(password))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a SiteCMS administrator account")
    parser.add_argument(
        "--default",
        action="store_true",
        help="Create the default admin/admin@example.com account without prompting",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing database tables before inserting the account",
    )
    args = parser.parse_args(argv)

    if args.default:
        return create_default(args.create_tables)
    return create_interactive(args.create_tables)


if __name__ == "__main__":
    sys.exit(main())
