#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from app.core.config import load_settings  # noqa: E402
from app.core.database import Database  # noqa: E402
from app.models.enums import PropertyType, UserType  # noqa: E402
from app.models.property import Property  # noqa: E402
from app.models.role import Role  # noqa: E402
from app.models.room import Room  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.passwords import hash_password  # noqa: E402
from app.services.permission_setup import provision_defaults  # noqa: E402

SAMPLE_ROOMS = (
    ("101", "Standard", 1, 2, Decimal("3500.00"), ["wifi", "tv"]),
    ("102", "Standard", 1, 2, Decimal("3500.00"), ["wifi", "tv"]),
    ("201", "Deluxe", 2, 3, Decimal("5500.00"), ["wifi", "tv", "minibar"]),
    ("301", "Suite", 3, 4, Decimal("9000.00"), ["wifi", "tv", "minibar", "jacuzzi"]),
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed permissions, roles and a demo hotel.")
    parser.add_argument("--property-code", default="HOTEL001")
    parser.add_argument("--property-name", default="Grand Plaza Hotel")
    parser.add_argument("--admin-email", default="admin@grandplaza.com")
    parser.add_argument("--admin-password", default="admin123")
    parser.add_argument("--skip-rooms", action="store_true", help="Do not create sample rooms")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    settings = load_settings()
    if settings.is_production:
        print("Refusing to seed demo data with ENV=production.")
        return 1

    database = Database(settings.database_url)
    database.create_all()
    db = database.session()
    try:
        result = provision_defaults(db)
        print(
            f"Permissions created: {len(result.created_permissions)} | "
            f"roles created: {len(result.created_roles)} | links added: {result.linked}"
        )

        prop = db.query(Property).filter(Property.code == args.property_code).first()
        if prop is None:
            prop = Property(
                code=args.property_code,
                name=args.property_name,
                property_type=PropertyType.HOTEL,
                city="Mumbai",
                country="India",
                is_active=True,
            )
            db.add(prop)
            db.flush()
            print(f"Property created: {prop.code} ({prop.name})")

        email = args.admin_email.lower()
        admin = db.query(User).filter(User.email == email).first()
        if admin is None:
            admin = User(
                full_name=f"{prop.name} Admin",
                email=email,
                password_hash=hash_password(args.admin_password, rounds=settings.bcrypt_rounds),
                user_type=UserType.PROPERTY_ADMIN,
                property_id=prop.id,
                is_active=True,
            )
            admin_role = db.query(Role).filter(Role.name == UserType.PROPERTY_ADMIN.value).first()
            if admin_role is not None:
                admin.roles = [admin_role]
            db.add(admin)
            print(f"Property admin created: {email}")

        if not args.skip_rooms:
            existing = {number for (number,) in db.query(Room.room_number).filter(Room.property_id == prop.id)}
            for number, room_type, floor, capacity, price, amenities in SAMPLE_ROOMS:
                if number in existing:
                    continue
                db.add(
                    Room(
                        property_id=prop.id,
                        room_number=number,
                        room_type=room_type,
                        floor=floor,
                        capacity=capacity,
                        price_per_night=price,
                        amenities=amenities,
                    )
                )
        db.commit()
    finally:
        db.close()
        database.dispose()

    print("Seed complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
