from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import AnyHttpUrl, BaseModel, EmailStr, Field, field_validator

from app.models.enums import PropertyType
from app.models.property import Property
from app.schemas.common import blank_to_none, check_phone, enum_value


class _PropertyFields(BaseModel):
    address_line1: Optional[str] = Field(None, max_length=200)
    address_line2: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=80)
    state: Optional[str] = Field(None, max_length=80)
    country: Optional[str] = Field(None, max_length=80)
    postal_code: Optional[str] = Field(None, max_length=20)
    gstin: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[AnyHttpUrl] = None

    @field_validator(
        "address_line1",
        "address_line2",
        "city",
        "state",
        "country",
        "postal_code",
        "gstin",
        "email",
        "website",
        mode="before",
    )
    @classmethod
    def validate_blank(cls, value):
        return blank_to_none(value)

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, value):
        return check_phone(blank_to_none(value))

    @field_validator("website")
    @classmethod
    def validate_website_length(cls, value):
        if value is not None and len(str(value)) > 200:
            raise ValueError("Website URL must not exceed 200 characters")
        return value


class PropertyCreatePayload(_PropertyFields):
    code: str = Field(..., min_length=2, max_length=50)
    name: str = Field(..., min_length=2, max_length=150)
    property_type: PropertyType
    timezone: str = Field("Asia/Kolkata", max_length=64)


class PropertyUpdatePayload(_PropertyFields):
    code: Optional[str] = Field(None, min_length=2, max_length=50)
    name: Optional[str] = Field(None, min_length=2, max_length=150)
    timezone: Optional[str] = Field(None, max_length=64)
    # accepted only to reject it with a clear message
    property_type: Optional[PropertyType] = None


def serialize_property(prop: Property, *, user_count: Optional[int] = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": prop.id,
        "code": prop.code,
        "name": prop.name,
        "property_type": enum_value(prop.property_type),
        "address_line1": prop.address_line1,
        "address_line2": prop.address_line2,
        "city": prop.city,
        "state": prop.state,
        "country": prop.country,
        "postal_code": prop.postal_code,
        "timezone": prop.timezone,
        "gstin": prop.gstin,
        "phone": prop.phone,
        "email": prop.email,
        "website": prop.website,
        "is_active": prop.is_active,
        "created_at": prop.created_at,
        "updated_at": prop.updated_at,
    }
    if user_count is not None:
        data["user_count"] = user_count
    return data
