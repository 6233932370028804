"""
Name: Admin Bootstrap Script

Responsibilities:
  - Create the first back office account (idempotent by email)
  - Hash the password with Argon2 (same policy as the API)
  - Store the account through PostgresAccountRepository

Usage:
  DATABASE_URL=postgresql://... python scripts/create_admin.py --email a@x.com
"""

from __future__ import annotations

import argparse
import getpass
import os
import sys

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from app.crosscutting.config import get_settings  # noqa: E402
from app.crosscutting.exceptions import FleetError  # noqa: E402
from app.identity.accounts import AccountRole, normalize_email  # noqa: E402
from app.identity.passwords import PasswordVerifier  # noqa: E402
from app.infrastructure.db import close_pool, create_pool  # noqa: E402
from app.infrastructure.repositories import PostgresAccountRepository  # noqa: E402


def _prompt_email() -> str:
    email = normalize_email(input("Email: "))
    if not email:
        raise SystemExit("Email is required.")
    return email


def _prompt_password() -> str:
    password = getpass.getpass("Password: ")
    if not password:
        raise SystemExit("Password is required.")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        raise SystemExit("Passwords do not match.")
    return password


def _parse_args(argv: list[str]) -> argparse.Namespace:
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Create the first admin account (idempotent)."
    )
    parser.add_argument("--email", help="Account email (will be normalized)")
    parser.add_argument(
        "--password",
        help="Account password (omit to be prompted securely)",
    )
    parser.add_argument(
        "--role",
        default=AccountRole.ADMIN.value,
        choices=[role.value for role in AccountRole],
        help="Account role (default: admin)",
    )
    parser.add_argument("--first-name", default="", help="First name")
    parser.add_argument("--last-name", default="", help="Last name")
    parser.add_argument(
        "--inactive",
        action="store_true",
        help="Create account as inactive",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    settings = get_settings()
    if not settings.database_url:
        raise SystemExit("DATABASE_URL is required to create an account.")

    email = normalize_email(args.email) if args.email else _prompt_email()
    if not email:
        raise SystemExit("Email is required.")
    password = args.password or _prompt_password()

    pool = create_pool(settings)
    try:
        accounts = PostgresAccountRepository(pool)
        existing = accounts.get_account_by_email(email)
        if existing is not None:
            print(
                "Account already exists: "
                f"id={existing.id} email={email} role={existing.role.value} "
                f"active={existing.is_active}"
            )
            return

        account = accounts.create_account(
            email=email,
            password_hash=PasswordVerifier().hash(password),
            role=AccountRole(args.role),
            first_name=args.first_name,
            last_name=args.last_name,
            is_active=not args.inactive,
        )
        print(f"Created account: id={account.id} email={email} role={account.role.value}")
    except FleetError as exc:
        raise SystemExit(f"Could not create account: {exc.message}") from exc
    finally:
        close_pool(pool)


if __name__ == "__main__":
    main()
