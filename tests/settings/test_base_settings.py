"""Tests for base settings modules.

Covers: api.py, base.py, database.py
Uses monkeypatch to isolate from environment variables.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from datavault.settings.api import APISettings, CORSSettings, SecuritySettings
from datavault.settings.base import LoggingSettings, PathsSettings, get_project_root
from datavault.settings.database import DatabaseSettings


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all relevant environment variables for isolated testing."""
    env_vars = [
        "LOG_LEVEL",
        "LOG_DIR",
        "LOG_TO_FILE",
        "DATAVAULT_DATA_DIR",
        "API_HOST",
        "API_PORT",
        "API_TITLE",
        "API_VERSION",
        "JWT_SECRET_KEY",
        "JWT_ALGORITHM",
        "JWT_EXPIRE_MINUTES",
        "RATE_LIMIT_PER_MINUTE",
        "BCRYPT_ROUNDS",
        "AUTH_DEMO_USERS",
        "CORS_ORIGINS",
        "POSTGRES_HOST",
        "POSTGRES_PORT",
        "POSTGRES_USER",
        "POSTGRES_PASSWORD",
        "POSTGRES_DB",
        "DATABASE_URL",
        "DB_POOL_SIZE",
        "DB_SQLITE_BUSY_TIMEOUT",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# BASE.PY TESTS
# =============================================================================


class TestProjectRoot:
    @staticmethod
    def test_get_project_root_returns_path() -> None:
        root = get_project_root()
        assert isinstance(root, Path)
        assert root.exists()


@pytest.mark.usefixtures("clean_env")
class TestPathsSettings:
    @staticmethod
    def test_default_data_dir() -> None:
        settings = PathsSettings(_env_file=None)
        assert settings.data_dir == settings.project_root / "data"
        assert settings.exports_dir == settings.data_dir / "exports"

    @staticmethod
    def test_data_dir_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("DATAVAULT_DATA_DIR", str(tmp_path / "vault"))
        settings = PathsSettings(_env_file=None)
        assert settings.data_dir == tmp_path / "vault"

    @staticmethod
    def test_ensure_directories_creates_dirs(
        monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("DATAVAULT_DATA_DIR", str(tmp_path / "vault"))
        settings = PathsSettings(_env_file=None)

        settings.ensure_directories()

        assert settings.exports_dir.is_dir()


@pytest.mark.usefixtures("clean_env")
class TestLoggingSettings:
    @staticmethod
    def test_default_values() -> None:
        settings = LoggingSettings(_env_file=None)
        assert settings.level == "INFO"
        assert settings.log_dir == "logs"
        assert settings.to_file is True

    @staticmethod
    def test_validate_log_level_lowercase(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = LoggingSettings(_env_file=None)
        assert settings.level == "DEBUG"

    @staticmethod
    def test_validate_log_level_invalid(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
        with pytest.raises(ValidationError):
            LoggingSettings(_env_file=None)


# =============================================================================
# API.PY TESTS
# =============================================================================


@pytest.mark.usefixtures("clean_env")
class TestAPISettings:
    @staticmethod
    def test_default_values() -> None:
        settings = APISettings(_env_file=None)
        assert settings.port == 8000
        assert settings.title == "DataVault API"


@pytest.mark.usefixtures("clean_env")
class TestSecuritySettings:
    @staticmethod
    def test_secret_required() -> None:
        with pytest.raises(ValidationError):
            SecuritySettings(_env_file=None)

    @staticmethod
    def test_is_configured(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET_KEY", "x" * 32)
        assert SecuritySettings(_env_file=None).is_configured is True

    @staticmethod
    def test_short_secret_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET_KEY", "short")
        assert SecuritySettings(_env_file=None).is_configured is False

    @staticmethod
    def test_demo_users_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET_KEY", "x" * 32)
        monkeypatch.setenv("AUTH_DEMO_USERS", "alice:pass:word, bob:secret,broken")

        users = SecuritySettings(_env_file=None).demo_users

        assert users == {"alice": "pass:word", "bob": "secret"}

    @staticmethod
    def test_bcrypt_rounds_bounded(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET_KEY", "x" * 32)
        monkeypatch.setenv("BCRYPT_ROUNDS", "2")
        with pytest.raises(ValidationError):
            SecuritySettings(_env_file=None)


@pytest.mark.usefixtures("clean_env")
class TestCORSSettings:
    @staticmethod
    def test_origins_split(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
        assert CORSSettings(_env_file=None).origins == ["http://a.test", "http://b.test"]


# =============================================================================
# DATABASE.PY TESTS
# =============================================================================


@pytest.mark.usefixtures("clean_env")
class TestDatabaseSettings:
    @staticmethod
    def test_postgres_url_from_parts(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POSTGRES_PASSWORD", "pw")
        settings = DatabaseSettings(_env_file=None)

        assert settings.sync_url == "postgresql://datavault_user:pw@localhost:5432/datavault"
        assert settings.is_sqlite is False
        assert settings.is_configured is True

    @staticmethod
    def test_url_overrides_parts(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "sqlite:///vault.db")
        settings = DatabaseSettings(_env_file=None)

        assert settings.sync_url == "sqlite:///vault.db"
        assert settings.is_sqlite is True
