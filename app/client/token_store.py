from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "hotel_access_token"
REFRESH_TOKEN_KEY = "hotel_refresh_token"
USER_KEY = "hotel_user"

MASTER_ADMIN = "MASTER_ADMIN"


class TokenStore:
    """Client-side session: both tokens plus the cached user.

    Kept in memory, and mirrored to a JSON file when a path is given so a
    later process can pick the session up. Every query here is local; none
    of them call the server.
    """

    def __init__(self, path: Optional[Path | str] = None) -> None:
        self._path = Path(path) if path is not None else None
        self._data: Dict[str, Any] = {}
        if self._path is not None and self._path.exists():
            self._data = self._read()

    def _read(self) -> Dict[str, Any]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("token store unreadable path=%s error=%s", self._path, exc)
            return {}
        return raw if isinstance(raw, dict) else {}

    def _write(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._data), encoding="utf-8")

    @property
    def access_token(self) -> Optional[str]:
        return self._data.get(ACCESS_TOKEN_KEY)

    @property
    def refresh_token(self) -> Optional[str]:
        return self._data.get(REFRESH_TOKEN_KEY)

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._data.get(USER_KEY)

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        self._data[ACCESS_TOKEN_KEY] = access_token
        self._data[REFRESH_TOKEN_KEY] = refresh_token
        self._write()

    def set_user(self, user: Dict[str, Any]) -> None:
        self._data[USER_KEY] = user
        self._write()

    def clear(self) -> None:
        self._data = {}
        self._write()

    def is_authenticated(self) -> bool:
        return bool(self.access_token and self.user)

    def is_hotel_user(self) -> bool:
        user = self.user
        return bool(user) and user.get("user_type") != MASTER_ADMIN
