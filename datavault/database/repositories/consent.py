"""Consent repository.

Owner-scoped lookups, derived-status filters and bulk withdrawals.
"""

from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from datavault.database.models import ConsentRecord, ConsentStatus
from datavault.database.repositories.base import BaseRepository


class ConsentRepository(BaseRepository[ConsentRecord]):
    """Repository for ConsentRecord entity operations."""

    model = ConsentRecord

    def __init__(self, session: Session) -> None:
        """Initialize consent repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)

    def get_owned(self, owner_id: str, consent_id: str, lock: bool = False) -> ConsentRecord | None:
        """Get a consent belonging to an owner.

        Args:
            owner_id: Consent owner.
            consent_id: Consent ID.
            lock: Take a row lock.

        Returns:
            Consent or None if missing or foreign.
        """
        stmt = select(ConsentRecord).where(
            ConsentRecord.id == consent_id,
            ConsentRecord.owner_id == owner_id,
        )
        return self._first(stmt, lock=lock)

    def list_for_owner(
        self,
        owner_id: str,
        status: ConsentStatus | None,
        now: datetime,
    ) -> list[ConsentRecord]:
        """List an owner's consents, filtering on derived status.

        Args:
            owner_id: Consent owner.
            status: Observed status to keep, or None for all.
            now: Instant used to derive EXPIRED.

        Returns:
            Consents, newest first.
        """
        stmt = select(ConsentRecord).where(ConsentRecord.owner_id == owner_id)
        if status is not None:
            stmt = stmt.where(_observed_status_is(status, now))
        stmt = stmt.order_by(ConsentRecord.created_at.desc())
        return self._all(stmt)

    def count_by_stored_status(self, owner_id: str) -> dict[ConsentStatus, int]:
        """Count an owner's consents per stored status.

        Args:
            owner_id: Consent owner.

        Returns:
            Mapping stored status -> count.
        """
        stmt = (
            select(ConsentRecord.status, func.count())
            .where(ConsentRecord.owner_id == owner_id)
            .group_by(ConsentRecord.status)
        )
        return dict(self._session.execute(stmt).tuples().all())

    def count_lapsed(self, owner_id: str, now: datetime) -> int:
        """Count stored grants whose expiry has passed.

        Args:
            owner_id: Consent owner.
            now: Reference instant.

        Returns:
            Number of grants observed as EXPIRED.
        """
        stmt = (
            select(func.count())
            .select_from(ConsentRecord)
            .where(ConsentRecord.owner_id == owner_id, _lapsed(now))
        )
        return self._session.execute(stmt).scalar() or 0

    def withdraw_granted(
        self,
        owner_id: str,
        now: datetime,
        item_ids: list[str] | None = None,
    ) -> int:
        """Withdraw stored grants in one statement.

        Args:
            owner_id: Consent owner.
            now: Withdrawal time.
            item_ids: Restrict to consents referencing these items.

        Returns:
            Number of consents withdrawn.
        """
        conditions = [
            ConsentRecord.owner_id == owner_id,
            ConsentRecord.status == ConsentStatus.GRANTED,
        ]
        if item_ids is not None:
            if not item_ids:
                return 0
            conditions.append(ConsentRecord.data_item_id.in_(item_ids))

        stmt = (
            update(ConsentRecord)
            .where(*conditions)
            .values(
                status=ConsentStatus.WITHDRAWN,
                withdrawn_at=now,
                granted_at=None,
                updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = self._session.execute(stmt)
        return result.rowcount or 0


# =============================================================================
# DERIVED STATUS EXPRESSIONS
# =============================================================================


def _lapsed(now: datetime) -> ColumnElement[bool]:
    """Stored GRANTED whose expiry is at or before ``now``."""
    return and_(
        ConsentRecord.status == ConsentStatus.GRANTED,
        ConsentRecord.expires_at.is_not(None),
        ConsentRecord.expires_at <= now,
    )


def _observed_status_is(status: ConsentStatus, now: datetime) -> ColumnElement[bool]:
    """SQL condition matching consents whose observed status is ``status``."""
    if status is ConsentStatus.EXPIRED:
        return or_(ConsentRecord.status == ConsentStatus.EXPIRED, _lapsed(now))
    if status is ConsentStatus.GRANTED:
        return and_(
            ConsentRecord.status == ConsentStatus.GRANTED,
            or_(ConsentRecord.expires_at.is_(None), ConsentRecord.expires_at > now),
        )
    return ConsentRecord.status == status
