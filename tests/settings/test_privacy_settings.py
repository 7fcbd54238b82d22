"""Tests for privacy and data-lifecycle settings."""

import pytest
from pydantic import ValidationError

from datavault.settings.privacy import PrivacySettings


class TestPrivacySettings:
    @staticmethod
    def test_defaults() -> None:
        settings = PrivacySettings(_env_file=None)

        assert settings.default_data_controller == "DataVault Inc."
        assert settings.default_retention_days == 365
        assert settings.login_retention_days == 30
        assert settings.audit_default_page_size == 20
        assert settings.audit_max_page_size == 100
        assert settings.audit_recent_window_days == 7

    @staticmethod
    def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATA_CONTROLLER", "Acme Ltd")
        monkeypatch.setenv("AUDIT_MAX_PAGE_SIZE", "50")

        settings = PrivacySettings(_env_file=None)

        assert settings.default_data_controller == "Acme Ltd"
        assert settings.audit_max_page_size == 50

    @staticmethod
    @pytest.mark.parametrize(
        "field",
        ["AUDIT_MAX_PAGE_SIZE", "AUDIT_DEFAULT_PAGE_SIZE", "AUDIT_RECENT_WINDOW_DAYS"],
    )
    def test_rejects_zero(field: str) -> None:
        with pytest.raises(ValidationError):
            PrivacySettings(_env_file=None, **{field: 0})

    @staticmethod
    def test_rejects_negative_retention() -> None:
        with pytest.raises(ValidationError):
            PrivacySettings(_env_file=None, DEFAULT_RETENTION_DAYS=-1)
