import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, load_settings
from app.core.database import Database
from app.core.errors import install_error_handlers
from app.core.logging_setup import configure_logging
from app.core.startup_checks import ensure_migrations_applied, validate_environment
from app.middleware.observability import ObservabilityMiddleware
from app.models.enums import UserType
from app.models.user import User
from app.routers.auth import router as auth_router
from app.routers.dashboard import router as dashboard_router
from app.routers.hotel import router as hotel_router
from app.routers.properties import router as properties_router
from app.routers.role_permissions import router as role_permissions_router
from app.routers.users import router as users_router
from app.services.passwords import hash_password, looks_hashed
from app.services.tokens import TokenService

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[ADMIN_BOOTSTRAP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _resolve_admin_password_hash(password: str, rounds: int) -> str:
    if looks_hashed(password):
        logger.info("%s password already hashed; storing as-is", BOOTSTRAP_PREFIX)
        return password
    return hash_password(password, rounds=rounds)


def _bootstrap_master_admin(app: FastAPI) -> None:
    settings: Settings = app.state.settings
    if not settings.master_admin_email or not settings.master_admin_password:
        logger.info("%s skipped: MASTER_ADMIN_EMAIL / MASTER_ADMIN_PASSWORD not set", BOOTSTRAP_PREFIX)
        return

    email = settings.master_admin_email.lower()
    db = app.state.database.session()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            logger.info("%s exists id=%s email=%s", BOOTSTRAP_PREFIX, existing.id, existing.email)
            return

        admin = User(
            full_name=settings.master_admin_name,
            email=email,
            password_hash=_resolve_admin_password_hash(settings.master_admin_password, settings.bcrypt_rounds),
            user_type=UserType.MASTER_ADMIN,
            is_active=True,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info("%s created id=%s email=%s", BOOTSTRAP_PREFIX, admin.id, admin.email)
    except Exception:
        logger.exception("%s ERROR bootstrap failed", BOOTSTRAP_PREFIX)
        raise
    finally:
        db.close()


def _startup_tasks(app: FastAPI) -> None:
    settings: Settings = app.state.settings
    database: Database = app.state.database
    try:
        validate_environment(settings)
        if settings.is_sqlite:
            database.create_all()
        else:
            ensure_migrations_applied(
                settings=settings,
                engine=database.engine,
                alembic_config_path=ALEMBIC_CONFIG_PATH,
            )
        _bootstrap_master_admin(app)
    except Exception:
        logger.exception("[STARTUP] ERROR startup failed")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    _startup_tasks(app)
    yield
    app.state.database.dispose()


def create_app(settings: Optional[Settings] = None, *, database: Optional[Database] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Hotel Management API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url)
    app.state.token_service = TokenService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ObservabilityMiddleware)
    install_error_handlers(app, expose_errors=not settings.is_production)

    app.include_router(auth_router)
    app.include_router(hotel_router)
    app.include_router(role_permissions_router)
    app.include_router(users_router)
    app.include_router(properties_router)
    app.include_router(dashboard_router)

    @app.get("/")
    def root():
        return {"status": "ok"}

    @app.get("/health")
    def health():
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
