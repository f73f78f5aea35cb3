from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core import permissions as perms
from app.core.errors import Conflict, DomainError, NotFound, ValidationFailed
from app.models.booking import Booking
from app.models.enums import BookingStatus, RoomStatus
from app.models.room import Room

logger = logging.getLogger(__name__)

# bookings in these states hold their room for the stay
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)

ALLOWED_TRANSITIONS = MappingProxyType(
    {
        BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
        BookingStatus.CONFIRMED: frozenset({BookingStatus.CHECKED_IN, BookingStatus.CANCELLED}),
        BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
        BookingStatus.CHECKED_OUT: frozenset(),
        BookingStatus.CANCELLED: frozenset(),
    }
)

_STATUS_PERMISSIONS = MappingProxyType(
    {
        BookingStatus.CANCELLED: perms.CANCEL_BOOKING,
        BookingStatus.CHECKED_IN: perms.CHECK_IN,
        BookingStatus.CHECKED_OUT: perms.CHECK_OUT,
    }
)


def permission_for_status(target: BookingStatus) -> str:
    return _STATUS_PERMISSIONS.get(target, perms.EDIT_BOOKING)


def validate_stay(check_in: date, check_out: date) -> int:
    """Number of nights; the stay must cover at least one."""
    nights = (check_out - check_in).days
    if nights < 1:
        raise ValidationFailed(
            "Check-out date must be after check-in date",
            errors=[{"field": "check_out_date", "message": "Check-out date must be after check-in date"}],
        )
    return nights


def has_overlap(
    db: Session,
    *,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    query = db.query(Booking.id).filter(
        Booking.room_id == room_id,
        Booking.booking_status.in_(ACTIVE_BOOKING_STATUSES),
        Booking.check_in_date < check_out,
        Booking.check_out_date > check_in,
    )
    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)
    return db.query(query.exists()).scalar()


def available_rooms(
    db: Session,
    *,
    property_id: int,
    check_in: date,
    check_out: date,
    room_type: Optional[str] = None,
) -> List[Room]:
    validate_stay(check_in, check_out)

    busy_room_ids = (
        select(Booking.room_id)
        .where(
            Booking.property_id == property_id,
            Booking.booking_status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.check_in_date < check_out,
            Booking.check_out_date > check_in,
        )
    )
    query = db.query(Room).filter(
        Room.property_id == property_id,
        Room.status != RoomStatus.MAINTENANCE,
        ~Room.id.in_(busy_room_ids),
    )
    if room_type:
        query = query.filter(Room.room_type == room_type)
    return query.order_by(Room.room_number.asc()).all()


def create_booking(
    db: Session,
    *,
    property_id: int,
    room_id: int,
    guest_name: str,
    check_in: date,
    check_out: date,
    guest_email: Optional[str] = None,
    guest_phone: Optional[str] = None,
    total_amount: Optional[Decimal] = None,
) -> Booking:
    nights = validate_stay(check_in, check_out)

    room = db.query(Room).filter(Room.id == room_id, Room.property_id == property_id).first()
    if room is None:
        raise NotFound("Room not found")
    if room.status == RoomStatus.MAINTENANCE:
        raise DomainError("Room is under maintenance")
    if has_overlap(db, room_id=room.id, check_in=check_in, check_out=check_out):
        raise Conflict("Room is not available for the selected dates")

    if total_amount is None:
        total_amount = Decimal(room.price_per_night or 0) * nights

    booking = Booking(
        property_id=property_id,
        room_id=room.id,
        guest_name=guest_name.strip(),
        guest_email=guest_email,
        guest_phone=guest_phone,
        check_in_date=check_in,
        check_out_date=check_out,
        total_amount=total_amount,
        booking_status=BookingStatus.PENDING,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info(
        "booking created id=%s property_id=%s room_id=%s nights=%s",
        booking.id,
        property_id,
        room.id,
        nights,
    )
    return booking


def change_status(db: Session, booking: Booking, target: BookingStatus) -> Booking:
    current = BookingStatus(booking.booking_status)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise DomainError(f"Cannot change booking status from {current.value} to {target.value}")

    booking.booking_status = target
    room = booking.room
    if room is not None:
        if target == BookingStatus.CHECKED_IN:
            room.status = RoomStatus.OCCUPIED
        elif target == BookingStatus.CHECKED_OUT:
            room.status = RoomStatus.AVAILABLE

    db.commit()
    db.refresh(booking)
    logger.info("booking status changed id=%s from=%s to=%s", booking.id, current.value, target.value)
    return booking
