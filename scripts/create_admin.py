"""
CLI helper to create (or report) an admin account in the configured store.

Public registration only creates plain users, so the first admin has to be
seeded from the server side.
"""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from deptsite.auth import hash_password
from deptsite.config import get_settings
from deptsite.db import DbClient
from deptsite.dependencies import get_db_client
from deptsite.schemas import UserCreate
from deptsite.types import Role


def create_admin(db: DbClient, username: str, email: str, password: str, rounds: int) -> int:
    if db.get_user_by_username(username):
        print(f"User '{username}' already exists; nothing to do.")
        return 1
    if db.get_user_by_email(email):
        print(f"Email '{email}' is already registered; nothing to do.")
        return 1
    user = db.create_user(
        UserCreate(
            username=username,
            email=email,
            password=hash_password(password, rounds=rounds),
            role=Role.ADMIN,
        )
    )
    print(f"Created admin '{user.username}' with id {user.id}.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("username", help="Login name for the new admin")
    parser.add_argument("email", help="Contact email for the new admin")
    parser.add_argument(
        "-p",
        "--password",
        type=str,
        default=None,
        help="Password (prompted for when omitted)",
    )
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")
    if not password:
        print("A password is required.")
        return 2

    settings = get_settings()
    if not settings.database_url:
        print("DATABASE_URL is not set; refusing to seed the in-memory store.")
        return 2
    return create_admin(
        get_db_client(), args.username, args.email, password, settings.bcrypt_rounds
    )


if __name__ == "__main__":
    sys.exit(main())
