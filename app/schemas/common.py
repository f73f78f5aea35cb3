from __future__ import annotations

import re
from typing import Any, Optional

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
# lookaheads: pydantic's own `pattern` engine does not support them
_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
_PHONE_RE = re.compile(r"^[\+]?[1-9][\d]{0,15}$")

PASSWORD_RULES_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number, and one special character"
)


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def check_password_strength(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(value) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must not exceed {PASSWORD_MAX_LENGTH} characters")
    if not _PASSWORD_RE.match(value):
        raise ValueError(PASSWORD_RULES_MESSAGE)
    return value


def check_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not _PHONE_RE.match(value):
        raise ValueError("Please provide a valid phone number")
    return value


def enum_value(value: Any) -> Any:
    return getattr(value, "value", value)
