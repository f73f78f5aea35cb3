from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.booking import Booking
from app.models.enums import BookingStatus, RoomStatus
from app.models.room import Room
from app.schemas.common import blank_to_none, check_phone, enum_value


class RoomCreatePayload(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=20)
    room_type: str = Field(..., min_length=1, max_length=50)
    floor: Optional[int] = None
    capacity: int = Field(2, ge=1)
    price_per_night: Decimal = Field(..., ge=0)
    amenities: List[str] = Field(default_factory=list)
    status: RoomStatus = RoomStatus.AVAILABLE
    description: Optional[str] = None


class BookingCreatePayload(BaseModel):
    room_id: int = Field(..., ge=1)
    guest_name: str = Field(..., min_length=2, max_length=120)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = None
    check_in_date: date
    check_out_date: date
    total_amount: Optional[Decimal] = Field(None, ge=0)

    @field_validator("guest_email", mode="before")
    @classmethod
    def validate_email(cls, value):
        return blank_to_none(value)

    @field_validator("guest_phone", mode="before")
    @classmethod
    def validate_phone(cls, value):
        return check_phone(blank_to_none(value))


class BookingStatusPayload(BaseModel):
    status: BookingStatus


def _money(value) -> Optional[float]:
    return float(value) if value is not None else None


def serialize_room(room: Room) -> Dict[str, Any]:
    return {
        "id": room.id,
        "property_id": room.property_id,
        "room_number": room.room_number,
        "room_type": room.room_type,
        "floor": room.floor,
        "capacity": room.capacity,
        "price_per_night": _money(room.price_per_night),
        "amenities": list(room.amenities or []),
        "status": enum_value(room.status),
        "description": room.description,
        "created_at": room.created_at,
        "updated_at": room.updated_at,
    }


def serialize_booking(booking: Booking) -> Dict[str, Any]:
    room = booking.room
    return {
        "id": booking.id,
        "property_id": booking.property_id,
        "room_id": booking.room_id,
        "room_number": room.room_number if room is not None else None,
        "room_type": room.room_type if room is not None else None,
        "guest_name": booking.guest_name,
        "guest_email": booking.guest_email,
        "guest_phone": booking.guest_phone,
        "check_in_date": booking.check_in_date,
        "check_out_date": booking.check_out_date,
        "nights": (booking.check_out_date - booking.check_in_date).days,
        "total_amount": _money(booking.total_amount),
        "booking_status": enum_value(booking.booking_status),
        "created_at": booking.created_at,
        "updated_at": booking.updated_at,
    }
