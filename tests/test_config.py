"""Settings validation."""

import pydantic
import pytest

from config import DatabaseSettings, LogSettings, Settings


def test_password_required_without_url():
    with pytest.raises(pydantic.ValidationError, match="DB_PASSWORD is required"):
        DatabaseSettings(url=None, password=None)


def test_postgres_dsn_built_from_parts():
    db = DatabaseSettings(url=None, password="s3cret", host="db", name="mic", ssl_mode="disable")

    assert db.async_dsn == "postgresql+asyncpg://mic:s3cret@db:5432/mic?ssl=disable"
    assert "s3cret" not in db.dsn_safe
    assert not db.is_sqlite


def test_dsn_without_password_raises_value_error():
    # model_construct skips the credentials validator
    db = DatabaseSettings.model_construct(url=None, password=None)

    with pytest.raises(ValueError, match="DB_PASSWORD is required"):
        db.async_dsn


def test_url_override_wins():
    db = DatabaseSettings(url="sqlite+aiosqlite:///./mic.db")
    assert db.is_sqlite
    assert db.dsn_safe == "sqlite+aiosqlite:///./mic.db"


@pytest.mark.parametrize("overrides", [{"debug": True}, {"log": LogSettings(level="DEBUG")}])
def test_production_rejects_debug_settings(overrides):
    with pytest.raises(pydantic.ValidationError):
        Settings(environment="production", **overrides)
