from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List

from fastapi import Request

from app.core.errors import PermissionDenied
from app.core.permissions import user_type_permissions_for
from app.models.enums import UserType

logger = logging.getLogger(__name__)

INSUFFICIENT_PERMISSIONS = "Insufficient permissions"
INSUFFICIENT_ROLE = "Access denied. Insufficient role permissions"
MASTER_ADMIN_REQUIRED = "Master Admin access required"
PROPERTY_MISMATCH = "Access denied. You can only access your assigned property"


class AuthorizationService:
    """Centralize property-scope, role and permission checks.

    Decisions read only the user object already loaded by authentication
    (roles and their permissions eagerly loaded); nothing here touches the
    database.
    """

    @staticmethod
    def user_type(user) -> str:
        raw = getattr(user, "user_type", None)
        return str(getattr(raw, "value", raw) or "").strip().upper()

    @classmethod
    def is_master_admin(cls, user) -> bool:
        return cls.user_type(user) == UserType.MASTER_ADMIN.value

    @staticmethod
    def role_names(user) -> List[str]:
        return [role.name for role in (getattr(user, "roles", None) or []) if getattr(role, "name", None)]

    @classmethod
    def effective_permissions(cls, user) -> FrozenSet[str]:
        roles = getattr(user, "roles", None) or []
        if not roles:
            return user_type_permissions_for(cls.user_type(user))
        codes = set()
        for role in roles:
            for permission in getattr(role, "permissions", None) or []:
                codes.add(permission.code)
        return frozenset(codes)

    @classmethod
    def has_permission(cls, user, permission: str) -> bool:
        if cls.is_master_admin(user):
            return True
        return permission in cls.effective_permissions(user)

    @classmethod
    def can_access_property(cls, user, property_id: int | None) -> bool:
        if cls.is_master_admin(user) or property_id is None:
            return True
        user_property_id = getattr(user, "property_id", None)
        return user_property_id is not None and int(user_property_id) == int(property_id)

    @staticmethod
    def log_access_denied(*, reason: str, user, property_id: int | None, request: Request | None) -> None:
        endpoint = f"{request.method} {request.url.path}" if request is not None else None
        raw_type = getattr(user, "user_type", None)
        logger.warning(
            "Access denied (%s): user_id=%s user_type=%s user_property=%s property_id=%s endpoint=%s",
            reason,
            getattr(user, "id", None),
            getattr(raw_type, "value", raw_type),
            getattr(user, "property_id", None),
            property_id,
            endpoint,
        )

    @classmethod
    def ensure_permission(cls, *, request: Request | None, user, permission: str) -> None:
        if cls.has_permission(user, permission):
            return
        cls.log_access_denied(
            reason=f"permission_denied:{permission}",
            user=user,
            property_id=getattr(user, "property_id", None),
            request=request,
        )
        raise PermissionDenied(INSUFFICIENT_PERMISSIONS)

    @classmethod
    def ensure_role(cls, *, request: Request | None, user, roles: Iterable[str]) -> None:
        allowed = {role.strip().upper() for role in roles}
        held = {name.strip().upper() for name in cls.role_names(user)}
        if allowed & held:
            return
        cls.log_access_denied(
            reason="role_denied",
            user=user,
            property_id=getattr(user, "property_id", None),
            request=request,
        )
        raise PermissionDenied(INSUFFICIENT_ROLE)

    @classmethod
    def ensure_master_admin(cls, *, request: Request | None, user) -> None:
        if cls.is_master_admin(user):
            return
        cls.log_access_denied(
            reason="master_admin_required",
            user=user,
            property_id=getattr(user, "property_id", None),
            request=request,
        )
        raise PermissionDenied(MASTER_ADMIN_REQUIRED)

    @classmethod
    def ensure_property_access(cls, *, request: Request | None, user, property_id: int | None) -> int | None:
        if cls.can_access_property(user, property_id):
            return property_id
        cls.log_access_denied(
            reason="property_mismatch",
            user=user,
            property_id=property_id,
            request=request,
        )
        raise PermissionDenied(PROPERTY_MISMATCH)
