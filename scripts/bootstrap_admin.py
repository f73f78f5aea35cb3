#!/usr/bin/env python3
from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from app.core.config import load_settings  # noqa: E402
from app.core.database import Database  # noqa: E402
from app.models.enums import UserType  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.passwords import hash_password  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or reset a master admin account.")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--password", help="Admin password (prompted when omitted)")
    parser.add_argument("--name", default="Master Admin", help="Admin full name")
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Overwrite the password when the account already exists",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    settings = load_settings()
    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8:
        print("Password must be at least 8 characters long.")
        return 1

    database = Database(settings.database_url)
    database.create_all()
    db = database.session()
    try:
        email = args.email.strip().lower()
        admin = db.query(User).filter(User.email == email).first()
        if admin is None:
            admin = User(
                full_name=args.name,
                email=email,
                password_hash=hash_password(password, rounds=settings.bcrypt_rounds),
                user_type=UserType.MASTER_ADMIN,
                is_active=True,
            )
            db.add(admin)
            action = "created"
        elif admin.user_type != UserType.MASTER_ADMIN:
            print(f"User {email} exists and is not a master admin.")
            return 1
        elif args.reset_password:
            admin.password_hash = hash_password(password, rounds=settings.bcrypt_rounds)
            admin.refresh_token = None
            action = "updated"
        else:
            print(f"Master admin {email} already exists; use --reset-password to change it.")
            return 0
        db.commit()
    finally:
        db.close()
        database.dispose()

    print(f"Master admin {action}: {email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
