from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from app.core.responses import ok, pagination
from app.deps import get_current_user, get_settings, load_user, require_master_admin
from app.models.enums import UserType
from app.models.property import Property
from app.models.role import Role
from app.models.user import User
from app.schemas.users import AssignRolesPayload, UserCreatePayload, UserUpdatePayload, serialize_user
from app.services.authorization_service import PROPERTY_MISMATCH, AuthorizationService
from app.services.passwords import hash_password
from app.services.statistics import user_stats

router = APIRouter(prefix="/api/users", tags=["users"])

logger = logging.getLogger(__name__)


def _is_property_admin_of(actor: User, target: User) -> bool:
    return (
        AuthorizationService.user_type(actor) == UserType.PROPERTY_ADMIN.value
        and actor.property_id is not None
        and actor.property_id == target.property_id
    )


def _deny(request: Request, actor: User, message: str, *, property_id: Optional[int] = None) -> None:
    AuthorizationService.log_access_denied(
        reason="user_management",
        user=actor,
        property_id=property_id,
        request=request,
    )
    raise PermissionDenied(message)


def _get_target(db: Session, user_id: int) -> User:
    target = load_user(db, user_id)
    if target is None:
        raise NotFound("User not found")
    return target


def _email_taken(db: Session, email: str, *, exclude_id: Optional[int] = None) -> bool:
    query = db.query(User.id).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _load_roles(db: Session, role_ids: List[int]) -> List[Role]:
    wanted = set(role_ids)
    roles = db.query(Role).filter(Role.id.in_(wanted)).all() if wanted else []
    if len(roles) != len(wanted):
        raise ValidationFailed("One or more roles not found")
    return roles


@router.post("", status_code=201)
def create_user(
    payload: UserCreatePayload,
    request: Request,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not AuthorizationService.is_master_admin(actor):
        # property admins may only add staff to their own property
        allowed = (
            AuthorizationService.user_type(actor) == UserType.PROPERTY_ADMIN.value
            and payload.user_type == UserType.STAFF
            and payload.property_id is not None
            and payload.property_id == actor.property_id
        )
        if not allowed:
            _deny(
                request,
                actor,
                "Insufficient permissions. Property Admin can only create staff for their property.",
                property_id=payload.property_id,
            )
        if payload.role_ids:
            _deny(request, actor, "Only Master Admin can assign roles to users", property_id=payload.property_id)

    email = str(payload.email).lower() if payload.email else None
    if email and _email_taken(db, email):
        raise Conflict("User with this email already exists")

    if payload.property_id is not None and db.get(Property, payload.property_id) is None:
        raise ValidationFailed("Property not found")

    user = User(
        full_name=payload.full_name.strip(),
        email=email,
        phone=payload.phone,
        password_hash=hash_password(payload.password, rounds=settings.bcrypt_rounds) if payload.password else None,
        user_type=payload.user_type,
        property_id=payload.property_id,
        is_active=True,
    )
    if payload.role_ids:
        user.roles = _load_roles(db, payload.role_ids)
    db.add(user)
    db.commit()
    logger.info("user created id=%s user_type=%s by user_id=%s", user.id, payload.user_type.value, actor.id)
    return ok({"user": serialize_user(load_user(db, user.id))}, message="User created successfully", status_code=201)


@router.get("")
def list_users(
    request: Request,
    user_type: Optional[UserType] = None,
    property_id: Optional[int] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(User).options(
        selectinload(User.roles).selectinload(Role.permissions),
        selectinload(User.property),
    )
    if AuthorizationService.is_master_admin(actor):
        if property_id is not None:
            query = query.filter(User.property_id == property_id)
    else:
        # non-master users only ever see their own property
        if actor.property_id is None:
            _deny(request, actor, PROPERTY_MISMATCH, property_id=property_id)
        query = query.filter(User.property_id == actor.property_id)

    if user_type is not None:
        query = query.filter(User.user_type == user_type)
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(User.full_name.ilike(pattern), User.email.ilike(pattern), User.phone.ilike(pattern))
        )

    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return ok(
        {
            "users": [serialize_user(entry, with_permissions=True) for entry in users],
            "pagination": pagination(page=page, limit=limit, total=total),
        }
    )


@router.get("/stats")
def get_user_stats(
    actor: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    return ok(user_stats(db))


@router.get("/{user_id}")
def get_user(
    user_id: int,
    request: Request,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = _get_target(db, user_id)
    can_view = (
        AuthorizationService.is_master_admin(actor)
        or actor.id == target.id
        or _is_property_admin_of(actor, target)
    )
    if not can_view:
        _deny(request, actor, "Insufficient permissions to view this user", property_id=target.property_id)
    return ok({"user": serialize_user(target, with_permissions=True)})


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdatePayload,
    request: Request,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    target = _get_target(db, user_id)
    is_master = AuthorizationService.is_master_admin(actor)
    if not (is_master or actor.id == target.id or _is_property_admin_of(actor, target)):
        _deny(request, actor, "Insufficient permissions to update this user", property_id=target.property_id)

    changes = payload.model_dump(exclude_unset=True)
    if not is_master:
        # type, property, status and roles are master-admin decisions
        for key in ("user_type", "property_id", "is_active", "role_ids"):
            changes.pop(key, None)

    if changes.get("is_active") is False and actor.id == target.id:
        raise ValidationFailed("Cannot deactivate your own account")

    email = changes.pop("email", None)
    if "email" in payload.model_fields_set:
        email = str(email).lower() if email else None
        if email and _email_taken(db, email, exclude_id=target.id):
            raise Conflict("User with this email already exists")
        target.email = email

    if "property_id" in changes and changes["property_id"] is not None:
        if db.get(Property, changes["property_id"]) is None:
            raise ValidationFailed("Property not found")

    password = changes.pop("password", None)
    if password:
        target.password_hash = hash_password(password, rounds=settings.bcrypt_rounds)
        target.refresh_token = None

    role_ids = changes.pop("role_ids", None)
    if role_ids is not None:
        target.roles = _load_roles(db, role_ids)

    for key, value in changes.items():
        if key == "full_name" and value is not None:
            value = value.strip()
        setattr(target, key, value)

    db.commit()
    return ok({"user": serialize_user(load_user(db, target.id))}, message="User updated successfully")


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = _get_target(db, user_id)
    can_delete = AuthorizationService.is_master_admin(actor) or (
        _is_property_admin_of(actor, target)
        and AuthorizationService.user_type(target) == UserType.STAFF.value
    )
    if not can_delete:
        _deny(request, actor, "Insufficient permissions to delete this user", property_id=target.property_id)
    if actor.id == target.id:
        raise ValidationFailed("Cannot delete your own account")

    db.delete(target)
    db.commit()
    logger.info("user deleted id=%s by user_id=%s", user_id, actor.id)
    return ok(message="User deleted successfully")


@router.patch("/{user_id}/toggle-status")
def toggle_user_status(
    user_id: int,
    request: Request,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = _get_target(db, user_id)
    if not (AuthorizationService.is_master_admin(actor) or _is_property_admin_of(actor, target)):
        _deny(request, actor, "Insufficient permissions to change user status", property_id=target.property_id)
    if actor.id == target.id:
        raise ValidationFailed("Cannot deactivate your own account")

    target.is_active = not target.is_active
    db.commit()
    state = "activated" if target.is_active else "deactivated"
    logger.info("user %s id=%s by user_id=%s", state, target.id, actor.id)
    return ok({"user": serialize_user(load_user(db, target.id))}, message=f"User {state} successfully")


@router.post("/{user_id}/roles")
def assign_roles(
    user_id: int,
    payload: AssignRolesPayload,
    actor: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    target = _get_target(db, user_id)
    target.roles = _load_roles(db, payload.role_ids)
    db.commit()
    return ok(
        {"user": serialize_user(load_user(db, target.id), with_permissions=True)},
        message="Roles assigned to user successfully",
    )
