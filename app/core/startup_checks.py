from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from app.core.config import DEV_ACCESS_SECRET, DEV_REFRESH_SECRET, Settings

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"
STARTUP_PREFIX = "[STARTUP]"


def validate_environment(settings: Settings) -> None:
    if not settings.is_production:
        if settings.jwt_access_secret == DEV_ACCESS_SECRET:
            logger.warning("%s using the development JWT secrets", STARTUP_PREFIX)
        return

    if settings.is_sqlite:
        logger.critical("%s SQLite is forbidden in production", MIGRATIONS_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")

    if settings.jwt_access_secret == DEV_ACCESS_SECRET or settings.jwt_refresh_secret == DEV_REFRESH_SECRET:
        logger.critical("%s default JWT secrets are forbidden in production", STARTUP_PREFIX)
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set in production")

    if settings.jwt_access_secret == settings.jwt_refresh_secret:
        logger.critical("%s access and refresh secrets must differ", STARTUP_PREFIX)
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")


def ensure_migrations_applied(*, settings: Settings, engine: Engine, alembic_config_path: Path) -> None:
    if settings.is_test:
        logger.info("%s skipped migration check in test environment", MIGRATIONS_PREFIX)
        return

    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")

    alembic_cfg = Config(str(alembic_config_path))
    script_directory = ScriptDirectory.from_config(alembic_cfg)
    expected_heads = set(script_directory.get_heads())

    with engine.connect() as connection:
        inspector = inspect(connection)
        if "alembic_version" not in inspector.get_table_names():
            logger.critical("%s alembic_version table missing", MIGRATIONS_PREFIX)
            raise RuntimeError("Database has no migration state")

        current_rows = connection.exec_driver_sql("SELECT version_num FROM alembic_version").fetchall()

    current_heads = {row[0] for row in current_rows if row and row[0]}
    if current_heads != expected_heads:
        logger.critical(
            "%s pending migration detected current=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(current_heads),
            sorted(expected_heads),
        )
        raise RuntimeError("Pending migrations detected")

    logger.info("%s migration state verified", MIGRATIONS_PREFIX)
