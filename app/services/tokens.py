from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.models.user import User

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    def as_dict(self) -> Dict[str, str]:
        return {"access_token": self.access_token, "refresh_token": self.refresh_token}


def _user_type_value(user: User) -> str:
    user_type = getattr(user, "user_type", None)
    return getattr(user_type, "value", user_type) or ""


class TokenService:
    """Issues and verifies the HS256 access/refresh token pair.

    Each token class has its own secret, so a refresh token never passes as an
    access token and vice versa. The latest refresh token is stored on the
    user row; issuing a new pair overwrites it.
    """

    def __init__(self, settings: Settings) -> None:
        self._access_secret = settings.jwt_access_secret
        self._refresh_secret = settings.jwt_refresh_secret
        self._algorithm = settings.jwt_algorithm
        self._issuer = settings.jwt_issuer
        self._access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self._refresh_ttl = timedelta(days=settings.refresh_token_expire_days)

    def build_claims(self, user: User) -> Dict[str, Any]:
        return {
            "id": user.id,
            "email": user.email,
            "user_type": _user_type_value(user),
            "property_id": user.property_id,
        }

    def _encode(self, claims: Dict[str, Any], *, token_type: str, ttl: timedelta, secret: str) -> str:
        # "sub" must be a string for python-jose
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = dict(claims)
        payload.update(
            {
                "sub": str(claims["id"]),
                "iat": int(now.timestamp()),
                "exp": int((now + ttl).timestamp()),
                "iss": self._issuer,
                "token_type": token_type,
                "jti": uuid.uuid4().hex,
            }
        )
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def create_access_token(self, user: User) -> str:
        return self._encode(
            self.build_claims(user), token_type=ACCESS, ttl=self._access_ttl, secret=self._access_secret
        )

    def create_refresh_token(self, user: User) -> str:
        return self._encode(
            self.build_claims(user), token_type=REFRESH, ttl=self._refresh_ttl, secret=self._refresh_secret
        )

    def issue_tokens(self, db: Session, user: User) -> TokenPair:
        pair = TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user),
        )
        user.refresh_token = pair.refresh_token
        db.add(user)
        db.commit()
        db.refresh(user)
        return pair

    def _decode(self, token: str, *, secret: str, token_type: str) -> Optional[Dict[str, Any]]:
        if not token:
            return None
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm], issuer=self._issuer)
        except JWTError as exc:
            logger.debug("token rejected type=%s reason=%s", token_type, exc)
            return None
        if payload.get("token_type") != token_type:
            return None
        if not isinstance(payload.get("id"), int):
            return None
        return payload

    def verify_access(self, token: str) -> Optional[Dict[str, Any]]:
        return self._decode(token, secret=self._access_secret, token_type=ACCESS)

    def verify_refresh(self, token: str) -> Optional[Dict[str, Any]]:
        return self._decode(token, secret=self._refresh_secret, token_type=REFRESH)

    def revoke(self, db: Session, user_id: int) -> None:
        user = db.get(User, user_id)
        if user is None:
            return
        user.refresh_token = None
        db.commit()
