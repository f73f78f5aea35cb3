from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.enums import UserType
from app.models.user import User
from app.schemas.common import blank_to_none, check_password_strength, check_phone, enum_value
from app.schemas.roles import serialize_role


class UserCreatePayload(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=120)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    user_type: UserType = UserType.STAFF
    property_id: Optional[int] = Field(None, ge=1)
    role_ids: List[int] = Field(default_factory=list)

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, value):
        return blank_to_none(value)

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, value):
        return check_phone(blank_to_none(value))

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, value):
        return check_password_strength(blank_to_none(value))


class UserUpdatePayload(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=120)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    user_type: Optional[UserType] = None
    property_id: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    role_ids: Optional[List[int]] = None

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, value):
        return blank_to_none(value)

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, value):
        return check_phone(blank_to_none(value))

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, value):
        return check_password_strength(blank_to_none(value))


class AssignRolesPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role_ids: List[int] = Field(..., alias="roleIds")


def serialize_property_summary(prop) -> Optional[Dict[str, Any]]:
    if prop is None:
        return None
    return {
        "id": prop.id,
        "name": prop.name,
        "code": prop.code,
        "property_type": enum_value(prop.property_type),
    }


def serialize_user(user: User, *, with_permissions: bool = False) -> Dict[str, Any]:
    """Public view of a user; never includes the password hash or refresh token."""
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "user_type": enum_value(user.user_type),
        "property_id": user.property_id,
        "is_active": user.is_active,
        "last_login": user.last_login,
        "email_verified_at": user.email_verified_at,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "roles": [serialize_role(role, with_permissions=with_permissions) for role in user.roles],
        "property": serialize_property_summary(user.property),
    }
