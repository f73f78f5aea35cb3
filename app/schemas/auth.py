from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.enums import UserType
from app.schemas.common import blank_to_none, check_password_strength, check_phone


class LoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    # "hotel" marks the tenant-facing client; master admins are turned away there
    portal: Optional[Literal["hotel", "master"]] = None


class RegisterPayload(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    phone: Optional[str] = None
    password: str
    user_type: UserType = UserType.STAFF
    property_id: Optional[int] = Field(None, ge=1)

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, value):
        return check_phone(blank_to_none(value))

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class RefreshTokenPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


class ChangePasswordPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return check_password_strength(value)
