"""Database package for DataVault.

Provides the store handle, ORM models, and repositories.

Usage:
    from datavault.database import Database, PersonalDataRepository

    db = Database.from_settings()
    with db.session() as session:
        repo = PersonalDataRepository(session)
        item = repo.get_owned(owner_id, item_id)
"""

from datavault.database.connection import Database
from datavault.database.models import (
    AuditAction,
    AuditEntry,
    Base,
    ConsentRecord,
    ConsentStatus,
    DataCategory,
    PasswordEntry,
    PersonalDataItem,
    SecureNote,
)
from datavault.database.repositories import (
    AuditRepository,
    BaseRepository,
    ConsentRepository,
    ErasableRepository,
    PasswordEntryRepository,
    PersonalDataRepository,
    SecureNoteRepository,
)

__all__ = [
    # Connection
    "Database",
    # Models
    "Base",
    "PersonalDataItem",
    "ConsentRecord",
    "AuditEntry",
    "SecureNote",
    "PasswordEntry",
    # Enums
    "AuditAction",
    "ConsentStatus",
    "DataCategory",
    # Repositories
    "BaseRepository",
    "ErasableRepository",
    "PersonalDataRepository",
    "ConsentRepository",
    "AuditRepository",
    "SecureNoteRepository",
    "PasswordEntryRepository",
]
