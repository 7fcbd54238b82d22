"""Privacy and data-lifecycle settings.

Defaults applied to collected personal data and the bounds
enforced on audit trail reads.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PrivacySettings(BaseSettings):
    """Consent, retention and audit configuration.

    Attributes:
        default_data_controller: Controller name recorded on collected data.
        registration_source: Provenance recorded for registration data.
        default_retention_days: Retention applied when none is given.
        login_retention_days: Retention of login activity records.
        audit_default_page_size: Page size when the caller gives none.
        audit_max_page_size: Hard cap on audit page size.
        audit_recent_window_days: Trailing window for recent activity counts.
    """

    default_data_controller: str = Field(
        default="DataVault Inc.",
        alias="DATA_CONTROLLER",
    )
    registration_source: str = Field(
        default="User Registration",
        alias="REGISTRATION_SOURCE",
    )
    default_retention_days: int = Field(default=365, ge=0, alias="DEFAULT_RETENTION_DAYS")
    login_retention_days: int = Field(default=30, ge=0, alias="LOGIN_RETENTION_DAYS")
    audit_default_page_size: int = Field(default=20, ge=1, alias="AUDIT_DEFAULT_PAGE_SIZE")
    audit_max_page_size: int = Field(default=100, ge=1, alias="AUDIT_MAX_PAGE_SIZE")
    audit_recent_window_days: int = Field(default=7, ge=1, alias="AUDIT_RECENT_WINDOW_DAYS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
