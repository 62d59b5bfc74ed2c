"""
Test suite for configuration loading.

Verifies environment mapping for routing modes, lock parameters and store
connection settings.

System role: Verification of pydantic-settings configuration
"""

import pytest
from pydantic import ValidationError

from taskstore.configs import ReadSource, WriteMode, get_settings
from taskstore.configs.database import DatabaseSettings
from taskstore.configs.document_store import DocumentStoreSettings
from taskstore.configs.reconciliation import ReconciliationSettings
from taskstore.configs.settings import Settings

ENV_VARS = [
    "READ_SOURCE",
    "WRITE_MODE",
    "MIGRATION_LOCK_NAME",
    "MIGRATION_LOCK_TIMEOUT",
    "POSTGRES_URL",
    "POSTGRES_HOST",
    "POSTGRES_SSLMODE",
    "MONGO_URI",
    "MONGO_DB_NAME",
    "POSTGRES_CONNECT_RETRIES",
    "POSTGRES_CONNECT_RETRY_DELAY",
    "MONGO_CONNECT_RETRIES",
    "MONGO_CONNECT_RETRY_DELAY",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestReconciliationSettings:
    """Test suite for READ_SOURCE / WRITE_MODE / lock settings."""

    def test_defaults_should_be_primary_only(self) -> None:
        # Act
        settings = ReconciliationSettings()

        # Assert
        assert settings.read_source is ReadSource.PRIMARY
        assert settings.write_mode is WriteMode.PRIMARY_ONLY
        assert settings.migration_lock_name == "taskstore_migrations_lock"
        assert settings.migration_lock_timeout == 60.0

    def test_env_should_select_modes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # Arrange
        monkeypatch.setenv("READ_SOURCE", "secondary-preferred")
        monkeypatch.setenv("WRITE_MODE", "dual")
        monkeypatch.setenv("MIGRATION_LOCK_NAME", "fleet_lock")
        monkeypatch.setenv("MIGRATION_LOCK_TIMEOUT", "15")

        # Act
        settings = ReconciliationSettings()

        # Assert
        assert settings.read_source is ReadSource.SECONDARY_PREFERRED
        assert settings.write_mode is WriteMode.DUAL
        assert settings.migration_lock_name == "fleet_lock"
        assert settings.migration_lock_timeout == 15.0

    @pytest.mark.parametrize("name, value", [("READ_SOURCE", "tertiary"), ("WRITE_MODE", "both")])
    def test_invalid_mode_should_fail_validation(self, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
        # Arrange
        monkeypatch.setenv(name, value)

        # Act / Assert
        with pytest.raises(ValidationError):
            ReconciliationSettings()

    def test_non_positive_lock_timeout_should_fail_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MIGRATION_LOCK_TIMEOUT", "0")

        with pytest.raises(ValidationError):
            ReconciliationSettings()


class TestDatabaseSettings:
    """Test suite for relational connection settings."""

    def test_async_database_url_should_use_asyncpg(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # Arrange
        monkeypatch.setenv("POSTGRES_HOST", "db.internal")

        # Act
        settings = DatabaseSettings()

        # Assert
        assert settings.async_database_url.startswith("postgresql+asyncpg://")
        assert "@db.internal:5432/todos_db" in settings.async_database_url
        assert not settings.is_sqlite

    def test_sslmode_require_should_add_ssl_param(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTGRES_SSLMODE", "require")

        assert DatabaseSettings().async_database_url.endswith("?ssl=require")

    def test_url_override_should_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # Arrange
        monkeypatch.setenv("POSTGRES_URL", "sqlite+aiosqlite:///./local.db")

        # Act
        settings = DatabaseSettings()

        # Assert
        assert settings.async_database_url == "sqlite+aiosqlite:///./local.db"
        assert settings.is_sqlite


class TestSettings:
    """Test suite for the aggregated Settings."""

    def test_settings_should_aggregate_every_concern(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # Arrange
        monkeypatch.setenv("MONGO_URI", "mongodb://docs:27017")
        monkeypatch.setenv("MONGO_DB_NAME", "tasks")
        monkeypatch.setenv("WRITE_MODE", "secondary-only")

        # Act
        settings = Settings()

        # Assert
        assert isinstance(settings.document_store, DocumentStoreSettings)
        assert settings.document_store.uri == "mongodb://docs:27017"
        assert settings.document_store.db_name == "tasks"
        assert settings.reconciliation.write_mode is WriteMode.SECONDARY_ONLY

    def test_get_settings_should_be_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_connect_retry_settings_should_map_per_store(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # Arrange
        monkeypatch.setenv("POSTGRES_CONNECT_RETRIES", "3")
        monkeypatch.setenv("MONGO_CONNECT_RETRY_DELAY", "0.5")

        # Act
        settings = Settings()

        # Assert
        assert settings.database.connect_retries == 3
        assert settings.database.connect_retry_delay == 5.0
        assert settings.document_store.connect_retries == 10
        assert settings.document_store.connect_retry_delay == 0.5

    def test_zero_connect_retries_should_fail_validation(self) -> None:
        with pytest.raises(ValidationError):
            DatabaseSettings(connect_retries=0)

    def test_log_level_should_be_the_only_shared_field(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # Arrange
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        # Act
        settings = Settings()

        # Assert
        assert settings.log_level == "DEBUG"
        assert not hasattr(settings, "environment")
        assert not hasattr(settings, "debug")
