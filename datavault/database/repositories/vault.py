"""Vault repositories for secure notes and password entries."""

from datetime import datetime

from sqlalchemy import func, select

from datavault.database.models import PasswordEntry, SecureNote
from datavault.database.repositories.base import ErasableRepository


class SecureNoteRepository(ErasableRepository[SecureNote]):
    """Repository for SecureNote entity operations."""

    model = SecureNote

    def list_for_owner(self, owner_id: str, category: str | None = None) -> list[SecureNote]:
        """List active notes, pinned first then most recently updated.

        Args:
            owner_id: Note owner.
            category: Restrict to one category.

        Returns:
            Active notes.
        """
        stmt = select(SecureNote).where(
            SecureNote.owner_id == owner_id,
            SecureNote.is_active.is_(True),
        )
        if category:
            stmt = stmt.where(SecureNote.category == category)
        stmt = stmt.order_by(SecureNote.is_pinned.desc(), SecureNote.updated_at.desc())
        return self._all(stmt)

    def count_pinned(self, owner_id: str) -> int:
        """Count active pinned notes of an owner."""
        stmt = (
            select(func.count())
            .select_from(SecureNote)
            .where(
                SecureNote.owner_id == owner_id,
                SecureNote.is_active.is_(True),
                SecureNote.is_pinned.is_(True),
            )
        )
        return self._session.execute(stmt).scalar() or 0

    def count_by_category(self, owner_id: str) -> dict[str, int]:
        """Count active notes per category; uncategorized notes are skipped."""
        stmt = (
            select(SecureNote.category, func.count())
            .where(
                SecureNote.owner_id == owner_id,
                SecureNote.is_active.is_(True),
                SecureNote.category.is_not(None),
            )
            .group_by(SecureNote.category)
        )
        return {category: count for category, count in self._session.execute(stmt).all()}

    def list_categories(self, owner_id: str) -> list[str]:
        """Distinct categories of an owner's active notes, sorted."""
        stmt = (
            select(SecureNote.category)
            .where(
                SecureNote.owner_id == owner_id,
                SecureNote.is_active.is_(True),
                SecureNote.category.is_not(None),
            )
            .distinct()
            .order_by(SecureNote.category)
        )
        return list(self._session.execute(stmt).scalars())


class PasswordEntryRepository(ErasableRepository[PasswordEntry]):
    """Repository for PasswordEntry entity operations."""

    model = PasswordEntry

    def list_for_owner(self, owner_id: str, category: str | None = None) -> list[PasswordEntry]:
        """List active password entries by website name.

        Args:
            owner_id: Entry owner.
            category: Restrict to one category.

        Returns:
            Active entries.
        """
        stmt = select(PasswordEntry).where(
            PasswordEntry.owner_id == owner_id,
            PasswordEntry.is_active.is_(True),
        )
        if category:
            stmt = stmt.where(PasswordEntry.category == category)
        stmt = stmt.order_by(PasswordEntry.website_name)
        return self._all(stmt)

    def list_categories(self, owner_id: str) -> list[str]:
        """Distinct categories of an owner's active entries, sorted."""
        stmt = (
            select(PasswordEntry.category)
            .where(
                PasswordEntry.owner_id == owner_id,
                PasswordEntry.is_active.is_(True),
                PasswordEntry.category.is_not(None),
            )
            .distinct()
            .order_by(PasswordEntry.category)
        )
        return list(self._session.execute(stmt).scalars())

    def count_by_category(self, owner_id: str) -> dict[str, int]:
        """Count active entries per category; uncategorized entries are skipped."""
        stmt = (
            select(PasswordEntry.category, func.count())
            .where(
                PasswordEntry.owner_id == owner_id,
                PasswordEntry.is_active.is_(True),
                PasswordEntry.category.is_not(None),
            )
            .group_by(PasswordEntry.category)
        )
        return {category: count for category, count in self._session.execute(stmt).all()}

    def count_used_since(self, owner_id: str, since: datetime) -> int:
        """Count active entries whose password was revealed after ``since``."""
        stmt = (
            select(func.count())
            .select_from(PasswordEntry)
            .where(
                PasswordEntry.owner_id == owner_id,
                PasswordEntry.is_active.is_(True),
                PasswordEntry.last_used > since,
            )
        )
        return self._session.execute(stmt).scalar() or 0
