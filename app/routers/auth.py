# app/routers/auth.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import AuthenticationFailed, Conflict, DomainError, PermissionDenied, ValidationFailed
from app.core.responses import ok
from app.deps import get_current_user, get_optional_user, get_settings, get_token_service, load_user
from app.models.enums import UserType
from app.models.property import Property
from app.models.role import Role
from app.models.user import User
from app.schemas.auth import ChangePasswordPayload, LoginPayload, RefreshTokenPayload, RegisterPayload
from app.schemas.users import serialize_user
from app.services.authorization_service import AuthorizationService
from app.services.passwords import hash_password, verify_password
from app.services.tokens import TokenService

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = logging.getLogger(__name__)

HOTEL_PORTAL = "hotel"


def _auth_payload(user: User, tokens) -> dict:
    data = serialize_user(user, with_permissions=True)
    data["permissions"] = sorted(AuthorizationService.effective_permissions(user))
    return {"user": data, "tokens": tokens.as_dict()}


def _find_by_email(db: Session, email: str) -> Optional[User]:
    return (
        db.query(User)
        .options(selectinload(User.roles).selectinload(Role.permissions))
        .filter(func.lower(User.email) == email.strip().lower())
        .first()
    )


@router.post("/register", status_code=201)
def register(
    payload: RegisterPayload,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
):
    # the very first master admin may register without a session
    master_exists = db.query(User.id).filter(User.user_type == UserType.MASTER_ADMIN).first() is not None
    if master_exists:
        if current_user is None:
            raise AuthenticationFailed("Authentication required for user registration")
        if not AuthorizationService.is_master_admin(current_user):
            raise PermissionDenied("Only Master Admin can register new users")

    email = payload.email.strip().lower()
    if _find_by_email(db, email) is not None:
        raise Conflict("User with this email already exists")

    if payload.property_id is not None and db.get(Property, payload.property_id) is None:
        raise ValidationFailed("Property not found")

    user = User(
        full_name=payload.full_name.strip(),
        email=email,
        phone=payload.phone,
        password_hash=hash_password(payload.password, rounds=settings.bcrypt_rounds),
        user_type=payload.user_type,
        property_id=payload.property_id,
        is_active=True,
    )
    default_role = db.query(Role).filter(Role.name == payload.user_type.value).first()
    if default_role is not None:
        user.roles.append(default_role)
    db.add(user)
    db.commit()

    pair = tokens.issue_tokens(db, user)
    logger.info("user registered id=%s user_type=%s", user.id, payload.user_type.value)
    return ok(_auth_payload(load_user(db, user.id), pair), message="User registered successfully", status_code=201)


@router.post("/login")
def login(
    payload: LoginPayload,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    user = _find_by_email(db, payload.email)
    # same answer for unknown email, wrong password and deactivated account
    if user is None or not user.is_active or not verify_password(payload.password, user.password_hash):
        logger.warning("login failed email=%s", payload.email)
        raise AuthenticationFailed("Login failed", error="Invalid email or password")

    if payload.portal == HOTEL_PORTAL and AuthorizationService.is_master_admin(user):
        raise DomainError("Master Admin should use the Master Admin portal", status_code=403)

    user.last_login = datetime.utcnow()
    pair = tokens.issue_tokens(db, user)
    logger.info("login success user_id=%s", user.id)
    return ok(_auth_payload(user, pair), message="Login successful")


@router.post("/refresh-token")
def refresh_token(
    payload: RefreshTokenPayload,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    claims = tokens.verify_refresh(payload.refresh_token)
    if claims is None:
        raise AuthenticationFailed("Invalid or expired refresh token")

    user = load_user(db, claims["id"])
    # only the most recently issued refresh token is honoured
    if user is None or not user.is_active or user.refresh_token != payload.refresh_token:
        raise AuthenticationFailed("Invalid refresh token")

    pair = tokens.issue_tokens(db, user)
    return ok({"tokens": pair.as_dict()}, message="Token refreshed successfully")


@router.post("/logout")
def logout(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    tokens.revoke(db, user.id)
    logger.info("logout user_id=%s", user.id)
    return ok(message="Logout successful")


@router.get("/profile")
def profile(user: User = Depends(get_current_user)):
    data = serialize_user(user, with_permissions=True)
    data["permissions"] = sorted(AuthorizationService.effective_permissions(user))
    return ok({"user": data})


@router.put("/change-password")
def change_password(
    payload: ChangePasswordPayload,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not verify_password(payload.current_password, user.password_hash):
        raise ValidationFailed("Current password is incorrect")

    user.password_hash = hash_password(payload.new_password, rounds=settings.bcrypt_rounds)
    # every device has to log in again
    user.refresh_token = None
    db.commit()
    logger.info("password changed user_id=%s", user.id)
    return ok(message="Password changed successfully")
