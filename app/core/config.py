from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

# .env at the project root
load_dotenv()

DEV_ACCESS_SECRET = "your-secret-key"
DEV_REFRESH_SECRET = "your-refresh-secret"


def _env_list(name: str, default: str = "") -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip() and item.strip() != "*"]


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup and injected."""

    database_url: str = "sqlite:///./hotel_management.db"
    env: str = "dev"
    log_level: str = "INFO"

    jwt_access_secret: str = DEV_ACCESS_SECRET
    jwt_refresh_secret: str = DEV_REFRESH_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "hms-system"
    access_token_expire_minutes: int = 60 * 24
    refresh_token_expire_days: int = 7

    bcrypt_rounds: int = 12

    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])

    master_admin_email: Optional[str] = None
    master_admin_password: Optional[str] = None
    master_admin_name: str = "Master Admin"

    @property
    def env_normalized(self) -> str:
        return (self.env or "").strip().lower()

    @property
    def is_dev(self) -> bool:
        return self.env_normalized in {"dev", "development", "local"}

    @property
    def is_test(self) -> bool:
        return self.env_normalized == "test"

    @property
    def is_production(self) -> bool:
        return self.env_normalized in {"prod", "production"}

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def load_settings() -> Settings:
    env = os.getenv("ENV", os.getenv("ENVIRONMENT", "dev"))
    cors_origins = _env_list("CORS_ORIGINS", os.getenv("FRONTEND_URL", ""))
    if not cors_origins:
        cors_origins = ["http://localhost:5173", "http://localhost:5174"]

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./hotel_management.db"),
        env=env,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        jwt_access_secret=os.getenv("JWT_ACCESS_SECRET", os.getenv("JWT_SECRET", DEV_ACCESS_SECRET)),
        jwt_refresh_secret=os.getenv("JWT_REFRESH_SECRET", os.getenv("REFRESH_TOKEN_SECRET", DEV_REFRESH_SECRET)),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_issuer=os.getenv("JWT_ISSUER", "hms-system"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24))),
        refresh_token_expire_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
        cors_origins=cors_origins,
        master_admin_email=os.getenv("MASTER_ADMIN_EMAIL", "").strip() or None,
        master_admin_password=os.getenv("MASTER_ADMIN_PASSWORD", "").strip() or None,
        master_admin_name=os.getenv("MASTER_ADMIN_NAME", "Master Admin").strip() or "Master Admin",
    )
