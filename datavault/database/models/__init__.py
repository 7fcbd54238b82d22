"""SQLAlchemy ORM models for DataVault.

Importing this package registers every table on ``Base.metadata``.
"""

from datavault.database.models.audit import AuditEntry
from datavault.database.models.base import Base, ErasableMixin, TimestampMixin
from datavault.database.models.consent import ConsentRecord
from datavault.database.models.enums import (
    AuditAction,
    ConsentStatus,
    DataCategory,
    describe_action,
)
from datavault.database.models.personal_data import PersonalDataItem
from datavault.database.models.vault import PasswordEntry, SecureNote

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "ErasableMixin",
    # Enums
    "AuditAction",
    "ConsentStatus",
    "DataCategory",
    "describe_action",
    # Personal data and consent
    "PersonalDataItem",
    "ConsentRecord",
    # Audit
    "AuditEntry",
    # Vault
    "SecureNote",
    "PasswordEntry",
]
