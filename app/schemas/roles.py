from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import blank_to_none


class RoleCreatePayload(BaseModel):
    name: str = Field(..., min_length=2, max_length=80)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value):
        return blank_to_none(value)


class RoleUpdatePayload(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=80)
    description: Optional[str] = Field(None, max_length=255)


class PermissionCreatePayload(BaseModel):
    code: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value):
        return blank_to_none(value)


class PermissionIdsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    permission_ids: List[int] = Field(..., alias="permissionIds")


def serialize_permission(permission) -> Dict[str, Any]:
    return {"id": permission.id, "code": permission.code, "description": permission.description}


def serialize_role(role, *, with_permissions: bool = True) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": role.id, "name": role.name, "description": role.description}
    if with_permissions:
        data["permissions"] = [serialize_permission(permission) for permission in role.permissions]
    return data
