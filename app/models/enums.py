from __future__ import annotations

import enum


class UserType(str, enum.Enum):
    MASTER_ADMIN = "MASTER_ADMIN"
    PROPERTY_ADMIN = "PROPERTY_ADMIN"
    STAFF = "STAFF"


class PropertyType(str, enum.Enum):
    HOTEL = "HOTEL"
    RESTAURANT = "RESTAURANT"


class RoomStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    RESERVED = "RESERVED"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"
