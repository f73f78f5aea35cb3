from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, selectinload

from app.core import permissions as perms
from app.core.database import get_db
from app.core.errors import Conflict, NotFound
from app.core.responses import ok, pagination
from app.deps import get_current_user, require_permission, resolve_property_scope
from app.models.booking import Booking
from app.models.enums import BookingStatus, RoomStatus
from app.models.property import Property
from app.models.room import Room
from app.models.user import User
from app.schemas.hotel import (
    BookingCreatePayload,
    BookingStatusPayload,
    RoomCreatePayload,
    serialize_booking,
    serialize_room,
)
from app.schemas.properties import serialize_property
from app.services import bookings as booking_rules
from app.services.authorization_service import AuthorizationService
from app.services.statistics import hotel_stats

router = APIRouter(prefix="/api/hotel", tags=["hotel"])


@router.get("/property")
def get_property_details(
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    prop = db.query(Property).filter(Property.id == property_id, Property.is_active.is_(True)).first()
    if prop is None:
        raise NotFound("Property not found or inactive")
    return ok({"property": serialize_property(prop)})


@router.get("/stats")
def get_hotel_stats(
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    return ok(hotel_stats(db, property_id))


@router.get("/rooms")
def list_rooms(
    status: Optional[RoomStatus] = None,
    room_type: Optional[str] = None,
    floor: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_permission(perms.VIEW_ROOMS)),
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    query = db.query(Room).filter(Room.property_id == property_id)
    if status is not None:
        query = query.filter(Room.status == status)
    if room_type:
        query = query.filter(Room.room_type == room_type)
    if floor is not None:
        query = query.filter(Room.floor == floor)

    total = query.count()
    rooms = (
        query.order_by(Room.floor.asc(), Room.room_number.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok(
        {
            "rooms": [serialize_room(room) for room in rooms],
            "pagination": pagination(page=page, limit=limit, total=total),
        }
    )


@router.post("/rooms", status_code=201)
def create_room(
    payload: RoomCreatePayload,
    user: User = Depends(require_permission(perms.CREATE_ROOM)),
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    room_number = payload.room_number.strip()
    duplicate = (
        db.query(Room.id)
        .filter(Room.property_id == property_id, Room.room_number == room_number)
        .first()
    )
    if duplicate is not None:
        raise Conflict("Room number already exists for this property")

    room = Room(
        property_id=property_id,
        room_number=room_number,
        room_type=payload.room_type.strip(),
        floor=payload.floor,
        capacity=payload.capacity,
        price_per_night=payload.price_per_night,
        amenities=list(payload.amenities),
        status=payload.status,
        description=payload.description,
    )
    db.add(room)
    db.commit()
    db.refresh(room)
    return ok({"room": serialize_room(room)}, message="Room created successfully", status_code=201)


@router.get("/rooms/availability")
def room_availability(
    check_in: date,
    check_out: date,
    room_type: Optional[str] = None,
    user: User = Depends(require_permission(perms.VIEW_ROOMS)),
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    rooms = booking_rules.available_rooms(
        db,
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        room_type=room_type,
    )
    return ok(
        {
            "check_in": check_in,
            "check_out": check_out,
            "available_rooms": [serialize_room(room) for room in rooms],
            "total_available": len(rooms),
        }
    )


@router.get("/bookings")
def list_bookings(
    status: Optional[BookingStatus] = None,
    check_in_from: Optional[date] = None,
    check_in_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_permission(perms.VIEW_BOOKINGS)),
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    query = (
        db.query(Booking)
        .options(selectinload(Booking.room))
        .filter(Booking.property_id == property_id)
    )
    if status is not None:
        query = query.filter(Booking.booking_status == status)
    if check_in_from is not None:
        query = query.filter(Booking.check_in_date >= check_in_from)
    if check_in_to is not None:
        query = query.filter(Booking.check_in_date <= check_in_to)

    total = query.count()
    bookings = (
        query.order_by(Booking.check_in_date.desc(), Booking.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok(
        {
            "bookings": [serialize_booking(booking) for booking in bookings],
            "pagination": pagination(page=page, limit=limit, total=total),
        }
    )


@router.post("/bookings", status_code=201)
def create_booking(
    payload: BookingCreatePayload,
    user: User = Depends(require_permission(perms.CREATE_BOOKING)),
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    booking = booking_rules.create_booking(
        db,
        property_id=property_id,
        room_id=payload.room_id,
        guest_name=payload.guest_name,
        guest_email=payload.guest_email,
        guest_phone=payload.guest_phone,
        check_in=payload.check_in_date,
        check_out=payload.check_out_date,
        total_amount=payload.total_amount,
    )
    return ok({"booking": serialize_booking(booking)}, message="Booking created successfully", status_code=201)


@router.patch("/bookings/{booking_id}/status")
def update_booking_status(
    booking_id: int,
    payload: BookingStatusPayload,
    request: Request,
    user: User = Depends(get_current_user),
    property_id: int = Depends(resolve_property_scope),
    db: Session = Depends(get_db),
):
    # the permission depends on where the booking is going
    AuthorizationService.ensure_permission(
        request=request,
        user=user,
        permission=booking_rules.permission_for_status(payload.status),
    )

    booking = (
        db.query(Booking)
        .options(selectinload(Booking.room))
        .filter(Booking.id == booking_id, Booking.property_id == property_id)
        .first()
    )
    if booking is None:
        raise NotFound("Booking not found")

    booking = booking_rules.change_status(db, booking, payload.status)
    return ok({"booking": serialize_booking(booking)}, message="Booking status updated successfully")
