"""AuditTrail: append-only record of every state-changing action.

Appends run inside a SAVEPOINT of the caller's transaction. When an
append fails, only the savepoint is rolled back; mutating operations
go through ``record``, which logs the failure and lets the primary
change commit. Audit completeness is therefore best-effort.
"""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from datavault.database import AuditAction, AuditEntry, AuditRepository, Database
from datavault.database.models import describe_action
from datavault.database.types import as_utc, utcnow
from datavault.errors import AuditWriteFailed, StoreUnavailable, ValidationFailed
from datavault.monitoring.metrics import AUDIT_WRITE_FAILURES_TOTAL
from datavault.services.exporters import (
    AUDIT_EXPORT_COLUMNS,
    format_timestamp,
    to_csv,
    to_json,
)
from datavault.services.schemas import (
    AuditContext,
    AuditPage,
    AuditStats,
    ExportFormat,
    ExportPayload,
)
from datavault.settings import PrivacySettings, settings
from datavault.utils.logger import setup_logger

logger = setup_logger("services.audit_trail")


class AuditTrail:
    """Append, query, aggregate and export audit entries.

    Attributes:
        _database: Store handle.
        _privacy: Page-size and window configuration.
        _clock: Source of the current time.
    """

    def __init__(
        self,
        database: Database,
        *,
        privacy: PrivacySettings | None = None,
        clock=utcnow,
    ) -> None:
        """Initialize the audit trail.

        Args:
            database: Store handle.
            privacy: Privacy settings, defaults to global settings.
            clock: Callable returning the current aware datetime.
        """
        self._database = database
        self._privacy = privacy or settings.privacy
        self._clock = clock

    # =========================================================================
    # WRITE
    # =========================================================================

    def append(self, entry: AuditEntry, session: Session | None = None) -> AuditEntry:
        """Persist one entry inside a savepoint.

        Args:
            entry: Transient entry to store.
            session: Caller's transaction to join, if any.

        Returns:
            The stored entry.

        Raises:
            AuditWriteFailed: If the store rejected the entry. The caller's
                transaction is left usable.
        """
        if entry.timestamp is None:
            entry.timestamp = self._clock()
        try:
            with self._database.transaction(session) as active:
                with active.begin_nested():
                    AuditRepository(active).append(entry)
        except (SQLAlchemyError, StoreUnavailable, ValidationFailed) as e:
            raise AuditWriteFailed() from e
        return entry

    def record(
        self,
        owner_id: str,
        action: AuditAction,
        entity_type: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> AuditEntry | None:
        """Record an action without ever failing the caller.

        Args:
            owner_id: Data subject the action was performed for.
            action: Kind of action.
            entity_type: Kind of record touched.
            entity_id: Record touched, if any.
            details: Structured payload.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            The stored entry, or None if the append failed.
        """
        context = context or AuditContext()
        entry = AuditEntry(
            owner_id=owner_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=_fit(context.ip_address, "ip_address"),
            user_agent=_fit(context.user_agent, "user_agent"),
            timestamp=self._clock(),
        )
        try:
            return self.append(entry, session=session)
        except AuditWriteFailed as e:
            AUDIT_WRITE_FAILURES_TOTAL.labels(action=action.value).inc()
            logger.error(
                f"Audit write failed for {action.value} on {entity_type}:{entity_id} "
                f"(owner {owner_id}): {e.__cause__!r}"
            )
            return None

    # =========================================================================
    # READ
    # =========================================================================

    def query(
        self,
        owner_id: str,
        *,
        action: AuditAction | str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> AuditPage:
        """Page through an owner's entries, newest first.

        Args:
            owner_id: Entry owner.
            action: Restrict to one action.
            start: Inclusive lower timestamp bound.
            end: Inclusive upper timestamp bound.
            page: 1-indexed page number.
            limit: Page size, capped at the configured maximum.

        Returns:
            Requested page.

        Raises:
            ValidationFailed: On a bad page, limit, action or time range.
        """
        if page < 1:
            raise ValidationFailed("page must be >= 1")
        if limit is None:
            limit = self._privacy.audit_default_page_size
        if limit < 1:
            raise ValidationFailed("limit must be >= 1")
        limit = min(limit, self._privacy.audit_max_page_size)
        start, end = as_utc(start), as_utc(end)
        if start is not None and end is not None and start > end:
            raise ValidationFailed("startDate must not be after endDate")
        action = parse_action(action)

        with self._database.session() as session:
            entries, total = AuditRepository(session).query(
                owner_id,
                action=action,
                start=start,
                end=end,
                offset=(page - 1) * limit,
                limit=limit,
            )
        return AuditPage(entries=entries, page=page, limit=limit, total=total)

    def aggregate(self, owner_id: str) -> AuditStats:
        """Counts per action, recent activity and total for an owner.

        Args:
            owner_id: Entry owner.

        Returns:
            Aggregate with ``recent_count`` over the trailing window.
        """
        with self._database.session() as session:
            repo = AuditRepository(session)
            return AuditStats(
                counts_by_action=repo.count_by_action(owner_id),
                recent_count=repo.count_since(owner_id, self._recent_cutoff()),
                total_count=repo.count_since(owner_id),
            )

    def count_recent(self, owner_id: str, session: Session | None = None) -> int:
        """Number of entries inside the trailing window.

        Args:
            owner_id: Entry owner.
            session: Caller's transaction to join, if any.

        Returns:
            Recent entry count.
        """
        with self._database.transaction(session) as active:
            return AuditRepository(active).count_since(owner_id, self._recent_cutoff())

    def export(
        self,
        owner_id: str,
        fmt: ExportFormat | str,
        *,
        context: AuditContext | None = None,
    ) -> ExportPayload:
        """Serialize an owner's complete audit trail.

        Args:
            owner_id: Entry owner.
            fmt: ``json`` or ``csv``.
            context: Caller metadata for the export's own entry.

        Returns:
            Serialized trail.
        """
        fmt = ExportFormat.parse(fmt)
        with self._database.session() as session:
            entries = AuditRepository(session).list_for_owner(owner_id)
            records = [entry_to_record(entry) for entry in entries]
            if fmt is ExportFormat.CSV:
                content = to_csv(records, AUDIT_EXPORT_COLUMNS)
            else:
                content = to_json(
                    {
                        "exportedAt": format_timestamp(self._clock()),
                        "ownerId": owner_id,
                        "totalLogs": len(records),
                        "logs": records,
                    }
                )
            self.record(
                owner_id,
                AuditAction.AUDIT_EXPORT,
                "AuditLog",
                details={"format": fmt.value, "count": len(records)},
                context=context,
                session=session,
            )
        stamp = self._clock().strftime("%Y%m%d")
        return ExportPayload(
            format=fmt,
            content=content,
            item_count=len(records),
            filename=f"datavault-audit-{stamp}.{fmt.value}",
        )

    @staticmethod
    def list_actions() -> list[dict[str, str]]:
        """Every action kind with its description."""
        return [{"action": action.value, "description": describe_action(action)} for action in AuditAction]

    def _recent_cutoff(self) -> datetime:
        return self._clock() - timedelta(days=self._privacy.audit_recent_window_days)


def parse_action(action: AuditAction | str | None) -> AuditAction | None:
    """Parse an action name.

    Raises:
        ValidationFailed: If the name is not a known action.
    """
    if action is None or isinstance(action, AuditAction):
        return action
    try:
        return AuditAction(action.upper())
    except ValueError:
        raise ValidationFailed(f"Unknown audit action: {action}") from None


def entry_to_record(entry: AuditEntry) -> dict[str, Any]:
    """Structured projection of an entry used by exports."""
    return {
        "id": entry.id,
        "action": entry.action.value,
        "entityType": entry.entity_type,
        "entityId": entry.entity_id,
        "details": entry.details,
        "ipAddress": entry.ip_address,
        "userAgent": entry.user_agent,
        "timestamp": format_timestamp(entry.timestamp),
    }


def _fit(value: str | None, column: str) -> str | None:
    """Clip caller-supplied metadata to its column width."""
    if value is None:
        return None
    length = AuditEntry.__table__.c[column].type.length
    return value[:length]
