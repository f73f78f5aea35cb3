"""Client-side view of what the logged-in user may do.

Only drives which actions are offered; the server checks every request again.
"""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping

from app.core import permissions as perms

ADMIN_ROLE = "PROPERTY_ADMIN"

_NAVIGATION = (
    ("dashboard", "Dashboard", "/dashboard", ()),
    ("rooms", "Room Management", "/rooms", (perms.VIEW_ROOMS,)),
    ("bookings", "Bookings", "/bookings", (perms.VIEW_BOOKINGS,)),
    ("reports", "Reports", "/reports", (perms.VIEW_REPORTS,)),
    ("staff", "Staff Management", "/staff", (perms.MANAGE_STAFF,)),
    ("settings", "Property Settings", "/settings", (perms.VIEW_PROPERTY_SETTINGS,)),
)


class PermissionMirror:
    def __init__(self, user: Mapping[str, Any]) -> None:
        self.user = user or {}
        self.user_type = str(self.user.get("user_type") or "")
        self.role_names: List[str] = [
            str(role.get("name")) for role in self.user.get("roles") or [] if role.get("name")
        ]
        self._permissions = perms.resolve_permissions(self.user_type, self.role_names)

    @property
    def permissions(self) -> FrozenSet[str]:
        return self._permissions

    def has_permission(self, permission: str) -> bool:
        return permission in self._permissions

    def has_any_permission(self, permissions: Iterable[str]) -> bool:
        return any(self.has_permission(code) for code in permissions)

    def has_all_permissions(self, permissions: Iterable[str]) -> bool:
        return all(self.has_permission(code) for code in permissions)

    def role_info(self) -> Dict[str, Any]:
        primary_role = self.user_type
        access_level = "Basic"
        managers = [name for name in self.role_names if "MANAGER" in name]
        if ADMIN_ROLE in self.role_names or self.user_type == ADMIN_ROLE:
            primary_role = "Property Administrator"
            access_level = "Admin"
        elif managers:
            primary_role = managers[0]
            access_level = "Manager"
        elif self.role_names:
            primary_role = self.role_names[0]
            access_level = "Staff"
        return {"primaryRole": primary_role, "allRoles": list(self.role_names), "accessLevel": access_level}

    def navigation_items(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": item_id,
                "title": title,
                "path": path,
                "permissions": list(required),
                "enabled": self.has_all_permissions(required),
            }
            for item_id, title, path, required in _NAVIGATION
        ]

    def room_capabilities(self) -> Dict[str, bool]:
        return {
            "can_view": self.has_permission(perms.VIEW_ROOMS),
            "can_create": self.has_permission(perms.CREATE_ROOM),
            "can_edit": self.has_permission(perms.EDIT_ROOM),
            "can_delete": self.has_permission(perms.DELETE_ROOM),
        }

    def booking_capabilities(self) -> Dict[str, bool]:
        return {
            "can_view": self.has_permission(perms.VIEW_BOOKINGS),
            "can_create": self.has_permission(perms.CREATE_BOOKING),
            "can_edit": self.has_permission(perms.EDIT_BOOKING),
            "can_cancel": self.has_permission(perms.CANCEL_BOOKING),
            "can_check_in": self.has_permission(perms.CHECK_IN),
            "can_check_out": self.has_permission(perms.CHECK_OUT),
        }
