"""Audit entry repository.

Append and read access only: the audit trail has no update or delete path.
"""

from datetime import datetime
from typing import NoReturn

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from datavault.database.models import AuditAction, AuditEntry
from datavault.database.repositories.base import BaseRepository
from datavault.errors import AppendOnlyViolation


class AuditRepository(BaseRepository[AuditEntry]):
    """Repository for AuditEntry entity operations."""

    model = AuditEntry

    def __init__(self, session: Session) -> None:
        """Initialize audit repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)

    def append(self, entry: AuditEntry) -> AuditEntry:
        """Persist a new audit entry.

        Args:
            entry: Transient entry.

        Returns:
            Flushed entry.
        """
        return self.create(entry)

    def update(self, entity: AuditEntry) -> NoReturn:
        """Audit entries cannot be modified."""
        raise AppendOnlyViolation()

    def query(
        self,
        owner_id: str,
        action: AuditAction | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[AuditEntry], int]:
        """Filter an owner's entries, newest first.

        Args:
            owner_id: Entry owner.
            action: Restrict to one action.
            start: Inclusive lower timestamp bound.
            end: Inclusive upper timestamp bound.
            offset: Number of entries to skip.
            limit: Page size.

        Returns:
            Tuple of (page of entries, total matching count).
        """
        stmt = self._filtered(select(AuditEntry), owner_id, action, start, end)
        count_stmt = self._filtered(
            select(func.count()).select_from(AuditEntry),
            owner_id,
            action,
            start,
            end,
        )
        total = self._session.execute(count_stmt).scalar() or 0
        stmt = (
            stmt.order_by(AuditEntry.timestamp.desc(), AuditEntry.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self._all(stmt), total

    def list_for_owner(self, owner_id: str) -> list[AuditEntry]:
        """Every entry of an owner, newest first.

        Args:
            owner_id: Entry owner.

        Returns:
            All entries.
        """
        stmt = (
            select(AuditEntry)
            .where(AuditEntry.owner_id == owner_id)
            .order_by(AuditEntry.timestamp.desc(), AuditEntry.id.desc())
        )
        return self._all(stmt)

    def count_by_action(self, owner_id: str) -> dict[str, int]:
        """Count an owner's entries per action.

        Args:
            owner_id: Entry owner.

        Returns:
            Mapping action value -> count.
        """
        stmt = (
            select(AuditEntry.action, func.count())
            .where(AuditEntry.owner_id == owner_id)
            .group_by(AuditEntry.action)
        )
        return {action.value: count for action, count in self._session.execute(stmt)}

    def count_since(self, owner_id: str, since: datetime | None = None) -> int:
        """Count an owner's entries, optionally from a point in time.

        Args:
            owner_id: Entry owner.
            since: Inclusive lower timestamp bound.

        Returns:
            Number of entries.
        """
        stmt = self._filtered(
            select(func.count()).select_from(AuditEntry),
            owner_id,
            start=since,
        )
        return self._session.execute(stmt).scalar() or 0

    @staticmethod
    def _filtered(
        stmt: Select,
        owner_id: str,
        action: AuditAction | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Select:
        """Apply owner, action and time-range filters to a select."""
        stmt = stmt.where(AuditEntry.owner_id == owner_id)
        if action is not None:
            stmt = stmt.where(AuditEntry.action == action)
        if start is not None:
            stmt = stmt.where(AuditEntry.timestamp >= start)
        if end is not None:
            stmt = stmt.where(AuditEntry.timestamp <= end)
        return stmt
