"""Database repositories for DataVault.

Provides repository pattern implementations for all
database entities with owner-scoped queries.

Usage:
    from datavault.database import Database
    from datavault.database.repositories import PersonalDataRepository

    db = Database.from_settings()
    with db.session() as session:
        repo = PersonalDataRepository(session)
        items = repo.search(owner_id, text="email")
"""

from datavault.database.repositories.audit import AuditRepository
from datavault.database.repositories.base import BaseRepository, ErasableRepository
from datavault.database.repositories.consent import ConsentRepository
from datavault.database.repositories.personal_data import PersonalDataRepository
from datavault.database.repositories.vault import (
    PasswordEntryRepository,
    SecureNoteRepository,
)

__all__ = [
    "BaseRepository",
    "ErasableRepository",
    "PersonalDataRepository",
    "ConsentRepository",
    "AuditRepository",
    "SecureNoteRepository",
    "PasswordEntryRepository",
]
