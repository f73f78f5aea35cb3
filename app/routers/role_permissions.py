from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.database import get_db
from app.core.errors import Conflict, NotFound, ValidationFailed
from app.core.responses import ok
from app.deps import get_current_user, load_user, require_master_admin
from app.models.permission import Permission
from app.models.role import Role, user_roles
from app.models.user import User
from app.schemas.roles import (
    PermissionCreatePayload,
    PermissionIdsPayload,
    RoleCreatePayload,
    RoleUpdatePayload,
    serialize_permission,
    serialize_role,
)
from app.schemas.users import serialize_user
from app.services.permission_setup import provision_defaults

router = APIRouter(prefix="/api/role-permissions", tags=["role-permissions"])

logger = logging.getLogger(__name__)


def _get_role(db: Session, role_id: int) -> Role:
    role = db.query(Role).options(selectinload(Role.permissions)).filter(Role.id == role_id).first()
    if role is None:
        raise NotFound("Role not found")
    return role


def _get_permissions(db: Session, permission_ids: List[int]) -> List[Permission]:
    wanted = set(permission_ids)
    found = db.query(Permission).filter(Permission.id.in_(wanted)).all() if wanted else []
    if len(found) != len(wanted):
        raise ValidationFailed("One or more permissions not found")
    return found


def _user_count(db: Session, role_id: int) -> int:
    return db.query(func.count()).select_from(user_roles).filter(user_roles.c.role_id == role_id).scalar()


# Roles


@router.post("/roles", status_code=201)
def create_role(
    payload: RoleCreatePayload,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    name = payload.name.strip()
    if db.query(Role.id).filter(Role.name == name).first() is not None:
        raise Conflict("Role with this name already exists")

    role = Role(name=name, description=payload.description)
    db.add(role)
    db.commit()
    db.refresh(role)
    logger.info("role created id=%s name=%s by user_id=%s", role.id, role.name, user.id)
    return ok({"role": serialize_role(role)}, message="Role created successfully", status_code=201)


@router.get("/roles")
def list_roles(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    roles = db.query(Role).options(selectinload(Role.permissions)).order_by(Role.name.asc()).all()
    return ok({"roles": [serialize_role(role) for role in roles]})


@router.get("/roles/{role_id}")
def get_role(
    role_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    role = _get_role(db, role_id)
    data = serialize_role(role)
    data["user_count"] = _user_count(db, role.id)
    return ok({"role": data})


@router.put("/roles/{role_id}")
def update_role(
    role_id: int,
    payload: RoleUpdatePayload,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    role = _get_role(db, role_id)
    if payload.name is not None:
        name = payload.name.strip()
        if name != role.name and db.query(Role.id).filter(Role.name == name).first() is not None:
            raise Conflict("Role with this name already exists")
        role.name = name
    if "description" in payload.model_fields_set:
        role.description = payload.description
    db.commit()
    db.refresh(role)
    return ok({"role": serialize_role(role)}, message="Role updated successfully")


@router.delete("/roles/{role_id}")
def delete_role(
    role_id: int,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    role = _get_role(db, role_id)
    assigned = _user_count(db, role.id)
    if assigned:
        raise ValidationFailed(
            f"Cannot delete role. It is assigned to {assigned} user(s). Please remove the role from users first."
        )
    db.delete(role)
    db.commit()
    logger.info("role deleted id=%s by user_id=%s", role_id, user.id)
    return ok(message="Role deleted successfully")


# Permissions


@router.post("/permissions", status_code=201)
def create_permission(
    payload: PermissionCreatePayload,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    code = payload.code.strip()
    if db.query(Permission.id).filter(Permission.code == code).first() is not None:
        raise Conflict("Permission with this code already exists")

    permission = Permission(code=code, description=payload.description)
    db.add(permission)
    db.commit()
    db.refresh(permission)
    return ok(
        {"permission": serialize_permission(permission)},
        message="Permission created successfully",
        status_code=201,
    )


@router.get("/permissions")
def list_permissions(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    permissions = db.query(Permission).order_by(Permission.code.asc()).all()
    return ok({"permissions": [serialize_permission(permission) for permission in permissions]})


@router.post("/permissions/initialize")
def initialize_permissions(
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    result = provision_defaults(db)
    return ok(result.as_dict(), message="Default permissions and roles initialized successfully")


# Role <-> permission assignment


@router.post("/roles/{role_id}/permissions")
def assign_permissions(
    role_id: int,
    payload: PermissionIdsPayload,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    role = _get_role(db, role_id)
    held = {permission.id for permission in role.permissions}
    for permission in _get_permissions(db, payload.permission_ids):
        # already-held permissions are skipped, never duplicated
        if permission.id not in held:
            role.permissions.append(permission)
            held.add(permission.id)
    db.commit()
    role = _get_role(db, role_id)
    return ok({"role": serialize_role(role)}, message="Permissions assigned to role successfully")


@router.put("/roles/{role_id}/permissions")
def replace_permissions(
    role_id: int,
    payload: PermissionIdsPayload,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    role = _get_role(db, role_id)
    role.permissions = _get_permissions(db, payload.permission_ids)
    db.commit()
    role = _get_role(db, role_id)
    return ok({"role": serialize_role(role)}, message="Role permissions updated successfully")


@router.delete("/roles/{role_id}/permissions")
def remove_permissions(
    role_id: int,
    payload: PermissionIdsPayload,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    role = _get_role(db, role_id)
    to_remove = set(payload.permission_ids)
    role.permissions = [permission for permission in role.permissions if permission.id not in to_remove]
    db.commit()
    role = _get_role(db, role_id)
    return ok({"role": serialize_role(role)}, message="Permissions removed from role successfully")


# User <-> role assignment


def _get_user(db: Session, user_id: int) -> User:
    target = load_user(db, user_id)
    if target is None:
        raise NotFound("User not found")
    return target


@router.post("/users/{user_id}/roles/{role_id}")
def assign_role_to_user(
    user_id: int,
    role_id: int,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    target = _get_user(db, user_id)
    role = _get_role(db, role_id)
    if all(existing.id != role.id for existing in target.roles):
        target.roles.append(role)
        db.commit()
    target = _get_user(db, user_id)
    return ok({"user": serialize_user(target)}, message="Role assigned to user successfully")


@router.delete("/users/{user_id}/roles/{role_id}")
def remove_role_from_user(
    user_id: int,
    role_id: int,
    user: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    target = _get_user(db, user_id)
    role = _get_role(db, role_id)
    target.roles = [existing for existing in target.roles if existing.id != role.id]
    db.commit()
    target = _get_user(db, user_id)
    return ok({"user": serialize_user(target)}, message="Role removed from user successfully")
