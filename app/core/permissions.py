"""Declarative role -> permission table.

The server fallback, the client mirror and the default provisioning all read
from here, so the three never drift apart.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping

VIEW_ROOMS = "view_rooms"
CREATE_ROOM = "create_room"
EDIT_ROOM = "edit_room"
DELETE_ROOM = "delete_room"
VIEW_BOOKINGS = "view_bookings"
CREATE_BOOKING = "create_booking"
EDIT_BOOKING = "edit_booking"
CANCEL_BOOKING = "cancel_booking"
CHECK_IN = "check_in"
CHECK_OUT = "check_out"
VIEW_REPORTS = "view_reports"
MANAGE_STAFF = "manage_staff"
VIEW_PROPERTY_SETTINGS = "view_property_settings"
EDIT_PROPERTY_SETTINGS = "edit_property_settings"
VIEW_FINANCIAL_DATA = "view_financial_data"

PERMISSION_CATALOGUE: Mapping[str, str] = MappingProxyType(
    {
        VIEW_ROOMS: "View rooms and room availability",
        CREATE_ROOM: "Create rooms",
        EDIT_ROOM: "Edit room details and status",
        DELETE_ROOM: "Delete rooms",
        VIEW_BOOKINGS: "View bookings",
        CREATE_BOOKING: "Create bookings",
        EDIT_BOOKING: "Edit bookings",
        CANCEL_BOOKING: "Cancel bookings",
        CHECK_IN: "Check guests in",
        CHECK_OUT: "Check guests out",
        VIEW_REPORTS: "View reports",
        MANAGE_STAFF: "Manage property staff",
        VIEW_PROPERTY_SETTINGS: "View property settings",
        EDIT_PROPERTY_SETTINGS: "Edit property settings",
        VIEW_FINANCIAL_DATA: "View financial data",
    }
)

ALL_PERMISSIONS: FrozenSet[str] = frozenset(PERMISSION_CATALOGUE)

_PROPERTY_ADMIN_PERMISSIONS = ALL_PERMISSIONS

ROLE_PERMISSIONS: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {
        "PROPERTY_ADMIN": _PROPERTY_ADMIN_PERMISSIONS,
        "FRONT_DESK_MANAGER": frozenset(
            {
                VIEW_ROOMS,
                EDIT_ROOM,
                VIEW_BOOKINGS,
                CREATE_BOOKING,
                EDIT_BOOKING,
                CANCEL_BOOKING,
                CHECK_IN,
                CHECK_OUT,
                VIEW_REPORTS,
                VIEW_FINANCIAL_DATA,
            }
        ),
        "FRONT_DESK_STAFF": frozenset(
            {VIEW_ROOMS, VIEW_BOOKINGS, CREATE_BOOKING, EDIT_BOOKING, CHECK_IN, CHECK_OUT}
        ),
        "HOUSEKEEPING_MANAGER": frozenset({VIEW_ROOMS, EDIT_ROOM, VIEW_BOOKINGS, VIEW_REPORTS}),
        "HOUSEKEEPING_STAFF": frozenset({VIEW_ROOMS, VIEW_BOOKINGS}),
        "MAINTENANCE": frozenset({VIEW_ROOMS, EDIT_ROOM}),
        "ACCOUNTANT": frozenset({VIEW_BOOKINGS, VIEW_REPORTS, VIEW_FINANCIAL_DATA}),
    }
)

ROLE_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "PROPERTY_ADMIN": "Full control of a single property",
        "FRONT_DESK_MANAGER": "Runs the front desk and its reports",
        "FRONT_DESK_STAFF": "Handles reservations and guest arrivals",
        "HOUSEKEEPING_MANAGER": "Supervises room readiness",
        "HOUSEKEEPING_STAFF": "Read-only access to rooms and bookings",
        "MAINTENANCE": "Keeps rooms in service",
        "ACCOUNTANT": "Reads bookings and financial data",
    }
)

# used only when a user has no roles assigned
USER_TYPE_PERMISSIONS: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {
        "MASTER_ADMIN": ALL_PERMISSIONS,
        "PROPERTY_ADMIN": _PROPERTY_ADMIN_PERMISSIONS,
        "STAFF": frozenset({VIEW_ROOMS, VIEW_BOOKINGS}),
    }
)


def _normalize(value: object) -> str:
    raw = getattr(value, "value", value)
    return str(raw or "").strip().upper()


def role_permissions_for(role_name: str) -> FrozenSet[str]:
    return ROLE_PERMISSIONS.get(_normalize(role_name), frozenset())


def user_type_permissions_for(user_type: object) -> FrozenSet[str]:
    return USER_TYPE_PERMISSIONS.get(_normalize(user_type), frozenset())


def resolve_permissions(user_type: object, role_names: Iterable[str]) -> FrozenSet[str]:
    """Effective permissions from the static table.

    Union of the named roles' permissions; falls back to the user type set
    when no roles are given. Unknown role names contribute nothing.
    """
    names = [name for name in role_names if name]
    if not names:
        return user_type_permissions_for(user_type)
    resolved: set[str] = set()
    for name in names:
        resolved |= role_permissions_for(name)
    return frozenset(resolved)
