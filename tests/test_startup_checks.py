import pytest

from app.core.config import DEV_ACCESS_SECRET, Settings
from app.core.startup_checks import validate_environment


def _production(**overrides) -> Settings:
    values = {
        "env": "production",
        "database_url": "postgresql+psycopg2://hms@db/hms",
        "jwt_access_secret": "prod-access",
        "jwt_refresh_secret": "prod-refresh",
    }
    values.update(overrides)
    return Settings(**values)


def test_production_accepts_real_configuration():
    validate_environment(_production())


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"database_url": "sqlite:///./hotel_management.db"}, "SQLite is forbidden"),
        ({"jwt_access_secret": DEV_ACCESS_SECRET}, "must be set in production"),
        ({"jwt_refresh_secret": "prod-access"}, "must differ"),
    ],
)
def test_production_rejects_unsafe_configuration(overrides, message):
    with pytest.raises(RuntimeError) as exc:
        validate_environment(_production(**overrides))

    assert message in str(exc.value)


def test_development_only_warns_about_default_secrets(caplog):
    caplog.set_level("WARNING", logger="app.core.startup_checks")

    validate_environment(Settings(env="dev"))

    assert "development JWT secrets" in caplog.text
