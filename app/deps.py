# app/deps.py
from __future__ import annotations

from typing import Iterable, Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, selectinload

from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import AuthenticationFailed, PermissionDenied, ValidationFailed
from app.core.logging_setup import bind_log_context
from app.models.role import Role
from app.models.user import User
from app.services.authorization_service import PROPERTY_MISMATCH, AuthorizationService
from app.services.tokens import TokenService

# Swagger "Authorize" sends "Authorization: Bearer <token>"
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def load_user(db: Session, user_id: int) -> Optional[User]:
    """User with roles and every role's permissions loaded up front."""
    return (
        db.query(User)
        .options(selectinload(User.roles).selectinload(Role.permissions))
        .filter(User.id == user_id)
        .first()
    )


def _attach_user(request: Request, user: User) -> None:
    # plain values: the ORM instance is detached once the session closes
    request.state.user_id = user.id
    request.state.user_property_id = user.property_id
    bind_log_context(
        user_id=str(user.id),
        property_id=str(user.property_id) if user.property_id is not None else None,
    )


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """Resolve the bearer token into an active user, or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("Access token is required")

    payload = tokens.verify_access(credentials.credentials)
    if payload is None:
        raise AuthenticationFailed("Invalid or expired token")

    # a valid token is not enough: deactivation takes effect immediately
    user = load_user(db, payload["id"])
    if user is None or not user.is_active:
        raise AuthenticationFailed("User not found or inactive")

    _attach_user(request, user)
    return user


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    payload = tokens.verify_access(credentials.credentials)
    if payload is None:
        return None
    user = load_user(db, payload["id"])
    if user is None or not user.is_active:
        return None
    _attach_user(request, user)
    return user


def require_permission(permission: str):
    def _dependency(request: Request, user: User = Depends(get_current_user)) -> User:
        AuthorizationService.ensure_permission(request=request, user=user, permission=permission)
        return user

    return _dependency


def require_role(roles: Iterable[str]):
    allowed = [role.strip().upper() for role in roles]

    def _dependency(request: Request, user: User = Depends(get_current_user)) -> User:
        AuthorizationService.ensure_role(request=request, user=user, roles=allowed)
        return user

    return _dependency


def require_master_admin(request: Request, user: User = Depends(get_current_user)) -> User:
    AuthorizationService.ensure_master_admin(request=request, user=user)
    return user


def resolve_property_scope(
    request: Request,
    property_id: Optional[int] = Query(default=None),
    user: User = Depends(get_current_user),
) -> int:
    """The property a tenant-scoped request works on.

    Master admins pick it with ?property_id=; everybody else is pinned to
    their own property and may only repeat it.
    """
    if AuthorizationService.is_master_admin(user):
        if property_id is None:
            raise ValidationFailed("property_id query parameter is required for Master Admin")
        return property_id

    if user.property_id is None:
        AuthorizationService.log_access_denied(
            reason="no_property_assigned",
            user=user,
            property_id=property_id,
            request=request,
        )
        raise PermissionDenied(PROPERTY_MISMATCH)

    if property_id is not None:
        AuthorizationService.ensure_property_access(request=request, user=user, property_id=property_id)
    return int(user.property_id)
