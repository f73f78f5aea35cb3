from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.enums import BookingStatus, PropertyType, RoomStatus, UserType
from app.models.property import Property
from app.models.role import Role
from app.models.room import Room
from app.models.user import User

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
RECENT_WINDOW_DAYS = 30


def _since_recent_window() -> datetime:
    return datetime.utcnow() - timedelta(days=RECENT_WINDOW_DAYS)


def _enum_key(value) -> str:
    return getattr(value, "value", value)


def dashboard_stats(db: Session) -> Dict[str, Any]:
    since = _since_recent_window()

    total_hotels = (
        db.query(func.count(Property.id))
        .filter(Property.property_type == PropertyType.HOTEL, Property.is_active.is_(True))
        .scalar()
    )
    total_restaurants = (
        db.query(func.count(Property.id))
        .filter(Property.property_type == PropertyType.RESTAURANT, Property.is_active.is_(True))
        .scalar()
    )
    total_users = db.query(func.count(User.id)).scalar()
    active_users = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar()

    users_by_type = {user_type.value: 0 for user_type in UserType}
    for user_type, count in db.query(User.user_type, func.count(User.id)).group_by(User.user_type).all():
        users_by_type[_enum_key(user_type)] = int(count)

    return {
        "totalHotels": total_hotels,
        "totalRestaurants": total_restaurants,
        "totalUsers": total_users,
        "activeUsers": active_users,
        "inactiveUsers": total_users - active_users,
        "totalRoles": db.query(func.count(Role.id)).scalar(),
        "usersByType": users_by_type,
        "propertiesByType": {
            PropertyType.HOTEL.value: total_hotels,
            PropertyType.RESTAURANT.value: total_restaurants,
        },
        "recentUsers": db.query(func.count(User.id)).filter(User.created_at >= since).scalar(),
        "recentProperties": db.query(func.count(Property.id)).filter(Property.created_at >= since).scalar(),
    }


def monthly_stats(db: Session, year: int) -> Dict[str, Any]:
    start = datetime(year, 1, 1)
    end = datetime(year + 1, 1, 1)

    month = extract("month", User.created_at)
    users_per_month = {
        int(row_month): int(count)
        for row_month, count in db.query(month, func.count(User.id))
        .filter(User.created_at >= start, User.created_at < end)
        .group_by(month)
        .all()
    }

    property_month = extract("month", Property.created_at)
    properties_per_month: Dict[tuple, int] = {}
    for row_month, property_type, count in (
        db.query(property_month, Property.property_type, func.count(Property.id))
        .filter(Property.created_at >= start, Property.created_at < end)
        .group_by(property_month, Property.property_type)
        .all()
    ):
        properties_per_month[(int(row_month), _enum_key(property_type))] = int(count)

    user_chart: List[Dict[str, Any]] = []
    property_chart: List[Dict[str, Any]] = []
    for index, name in enumerate(MONTH_NAMES, start=1):
        user_chart.append({"month": name, "users": users_per_month.get(index, 0)})
        property_chart.append(
            {
                "month": name,
                "hotels": properties_per_month.get((index, PropertyType.HOTEL.value), 0),
                "restaurants": properties_per_month.get((index, PropertyType.RESTAURANT.value), 0),
            }
        )

    return {"userChart": user_chart, "propertyChart": property_chart, "year": year}


def user_stats(db: Session) -> Dict[str, Any]:
    total_users = db.query(func.count(User.id)).scalar()
    active_users = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar()

    def _count_type(user_type: UserType) -> int:
        return db.query(func.count(User.id)).filter(User.user_type == user_type).scalar()

    by_property = (
        db.query(User.property_id, Property.name, Property.property_type, func.count(User.id))
        .outerjoin(Property, Property.id == User.property_id)
        .group_by(User.property_id, Property.name, Property.property_type)
        .order_by(User.property_id.asc())
        .all()
    )

    return {
        "overview": {
            "total_users": total_users,
            "active_users": active_users,
            "inactive_users": total_users - active_users,
            "master_admins": _count_type(UserType.MASTER_ADMIN),
            "property_admins": _count_type(UserType.PROPERTY_ADMIN),
            "staff": _count_type(UserType.STAFF),
            "recent_registrations": db.query(func.count(User.id))
            .filter(User.created_at >= _since_recent_window())
            .scalar(),
        },
        "users_by_property": [
            {
                "property_id": property_id,
                "property_name": name,
                "property_type": _enum_key(property_type) if property_type is not None else None,
                "count": int(count),
            }
            for property_id, name, property_type, count in by_property
        ],
    }


def property_stats(db: Session) -> Dict[str, Any]:
    total = db.query(func.count(Property.id)).scalar()
    active = db.query(func.count(Property.id)).filter(Property.is_active.is_(True)).scalar()

    def _count_type(property_type: PropertyType) -> int:
        return db.query(func.count(Property.id)).filter(Property.property_type == property_type).scalar()

    per_type: Dict[int, Dict[str, int]] = {}
    for property_id, user_type, count in (
        db.query(User.property_id, User.user_type, func.count(User.id))
        .filter(User.property_id.isnot(None))
        .group_by(User.property_id, User.user_type)
        .all()
    ):
        per_type.setdefault(property_id, {})[_enum_key(user_type)] = int(count)

    details = []
    for prop in db.query(Property).order_by(Property.id.asc()).all():
        counts = per_type.get(prop.id, {})
        details.append(
            {
                "property_id": prop.id,
                "property_name": prop.name,
                "property_type": _enum_key(prop.property_type),
                "total_users": sum(counts.values()),
                "admins": counts.get(UserType.PROPERTY_ADMIN.value, 0),
                "staff": counts.get(UserType.STAFF.value, 0),
            }
        )

    return {
        "overview": {
            "total_properties": total,
            "active_properties": active,
            "inactive_properties": total - active,
            "hotels": _count_type(PropertyType.HOTEL),
            "restaurants": _count_type(PropertyType.RESTAURANT),
        },
        "property_details": details,
    }


def hotel_stats(db: Session, property_id: int, *, today: date | None = None) -> Dict[str, Any]:
    """Room occupancy and booking revenue for one property.

    Revenue counts every non-cancelled booking by its check-in date.
    """
    today = today or date.today()
    month_start = today.replace(day=1)

    rooms_by_status = {status.value: 0 for status in RoomStatus}
    for status, count in (
        db.query(Room.status, func.count(Room.id))
        .filter(Room.property_id == property_id)
        .group_by(Room.status)
        .all()
    ):
        rooms_by_status[_enum_key(status)] = int(count)

    bookings = db.query(Booking).filter(Booking.property_id == property_id)
    billable = bookings.filter(Booking.booking_status != BookingStatus.CANCELLED)

    revenue_today = (
        billable.filter(Booking.check_in_date == today)
        .with_entities(func.coalesce(func.sum(Booking.total_amount), 0))
        .scalar()
    )
    revenue_this_month = (
        billable.filter(Booking.check_in_date >= month_start, Booking.check_in_date <= today)
        .with_entities(func.coalesce(func.sum(Booking.total_amount), 0))
        .scalar()
    )

    return {
        "total_rooms": sum(rooms_by_status.values()),
        "occupied_rooms": rooms_by_status[RoomStatus.OCCUPIED.value],
        "available_rooms": rooms_by_status[RoomStatus.AVAILABLE.value],
        "maintenance_rooms": rooms_by_status[RoomStatus.MAINTENANCE.value],
        "reserved_rooms": rooms_by_status[RoomStatus.RESERVED.value],
        "total_bookings": bookings.count(),
        "pending_bookings": bookings.filter(Booking.booking_status == BookingStatus.PENDING).count(),
        "revenue_today": float(revenue_today or 0),
        "revenue_this_month": float(revenue_this_month or 0),
    }
