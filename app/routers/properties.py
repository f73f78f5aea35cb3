from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from app.core.responses import ok, pagination
from app.deps import get_current_user, require_master_admin
from app.models.enums import PropertyType, UserType
from app.models.property import Property
from app.models.user import User
from app.schemas.properties import PropertyCreatePayload, PropertyUpdatePayload, serialize_property
from app.services.authorization_service import AuthorizationService
from app.services.statistics import property_stats

router = APIRouter(prefix="/api/properties", tags=["properties"])

logger = logging.getLogger(__name__)


def _get_property(db: Session, property_id: int) -> Property:
    prop = db.get(Property, property_id)
    if prop is None:
        raise NotFound("Property not found")
    return prop


def _code_taken(db: Session, code: str, *, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Property.id).filter(func.upper(Property.code) == code.upper())
    if exclude_id is not None:
        query = query.filter(Property.id != exclude_id)
    return query.first() is not None


def _user_count(db: Session, property_id: int) -> int:
    return db.query(func.count(User.id)).filter(User.property_id == property_id).scalar()


@router.post("", status_code=201)
def create_property(
    payload: PropertyCreatePayload,
    actor: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    code = payload.code.strip()
    if _code_taken(db, code):
        raise Conflict("Property with this code already exists")

    data = payload.model_dump(mode="json", exclude={"code", "name", "property_type"})
    prop = Property(
        code=code,
        name=payload.name.strip(),
        property_type=payload.property_type,
        is_active=True,
        **data,
    )
    db.add(prop)
    db.commit()
    db.refresh(prop)
    logger.info("property created id=%s code=%s by user_id=%s", prop.id, prop.code, actor.id)
    return ok({"property": serialize_property(prop)}, message="Property created successfully", status_code=201)


@router.get("")
def list_properties(
    property_type: Optional[PropertyType] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Property)
    if not AuthorizationService.is_master_admin(actor):
        query = query.filter(Property.id == actor.property_id)

    if property_type is not None:
        query = query.filter(Property.property_type == property_type)
    if is_active is not None:
        query = query.filter(Property.is_active.is_(is_active))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Property.name.ilike(pattern), Property.code.ilike(pattern), Property.city.ilike(pattern)))

    total = query.count()
    properties = (
        query.order_by(Property.created_at.desc(), Property.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    counts = dict(
        db.query(User.property_id, func.count(User.id))
        .filter(User.property_id.in_([prop.id for prop in properties]))
        .group_by(User.property_id)
        .all()
    )
    return ok(
        {
            "properties": [serialize_property(prop, user_count=counts.get(prop.id, 0)) for prop in properties],
            "pagination": pagination(page=page, limit=limit, total=total),
        }
    )


@router.get("/stats")
def get_property_stats(
    actor: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    return ok(property_stats(db))


@router.get("/{property_id}")
def get_property(
    property_id: int,
    request: Request,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    AuthorizationService.ensure_property_access(request=request, user=actor, property_id=property_id)
    prop = _get_property(db, property_id)
    return ok({"property": serialize_property(prop, user_count=_user_count(db, prop.id))})


@router.put("/{property_id}")
def update_property(
    property_id: int,
    payload: PropertyUpdatePayload,
    request: Request,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    is_property_admin = AuthorizationService.user_type(actor) == UserType.PROPERTY_ADMIN.value
    if not (AuthorizationService.is_master_admin(actor) or is_property_admin):
        AuthorizationService.log_access_denied(
            reason="property_update", user=actor, property_id=property_id, request=request
        )
        raise PermissionDenied("Insufficient permissions to update this property")
    AuthorizationService.ensure_property_access(request=request, user=actor, property_id=property_id)
    prop = _get_property(db, property_id)

    changes = payload.model_dump(mode="json", exclude_unset=True)
    new_type = changes.pop("property_type", None)
    if new_type is not None and new_type != prop.property_type.value:
        raise ValidationFailed("Property type cannot be changed after creation")

    if "code" in changes:
        code = (changes.pop("code") or "").strip()
        if code and code != prop.code:
            if _code_taken(db, code, exclude_id=prop.id):
                raise Conflict("Property with this code already exists")
            prop.code = code

    for key, value in changes.items():
        if key in {"name", "timezone"} and value is None:
            continue
        setattr(prop, key, value.strip() if key == "name" else value)

    db.commit()
    db.refresh(prop)
    return ok({"property": serialize_property(prop)}, message="Property updated successfully")


@router.delete("/{property_id}")
def delete_property(
    property_id: int,
    actor: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    prop = _get_property(db, property_id)
    user_count = _user_count(db, prop.id)
    if user_count:
        raise ValidationFailed(
            "Cannot delete property with existing users. Please reassign or remove users first.",
            error=f"user_count={user_count}",
        )
    # rooms and bookings belong to the property and go with it
    for room in list(prop.rooms):
        for booking in list(room.bookings):
            db.delete(booking)
        db.delete(room)
    db.delete(prop)
    db.commit()
    logger.info("property deleted id=%s by user_id=%s", property_id, actor.id)
    return ok(message="Property deleted successfully")


@router.patch("/{property_id}/toggle-status")
def toggle_property_status(
    property_id: int,
    actor: User = Depends(require_master_admin),
    db: Session = Depends(get_db),
):
    prop = _get_property(db, property_id)
    prop.is_active = not prop.is_active
    db.commit()
    db.refresh(prop)
    state = "activated" if prop.is_active else "deactivated"
    return ok({"property": serialize_property(prop)}, message=f"Property {state} successfully")
