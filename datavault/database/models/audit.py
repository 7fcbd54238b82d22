"""AuditEntry model.

Append-only record of every state-changing action. Mapper and session
hooks reject any UPDATE or DELETE touching this table, including bulk
statements issued through the ORM.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import Enum, Index, String, event
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Mapped, Mapper, ORMExecuteState, Session, mapped_column

from datavault.database.models.base import Base
from datavault.database.models.enums import AuditAction
from datavault.database.types import JSONColumn, UTCDateTime, new_id, utcnow
from datavault.errors import AppendOnlyViolation


class AuditEntry(Base):
    """Immutable audit trail entry.

    Attributes:
        id: Opaque identifier.
        owner_id: Data subject the action was performed for.
        action: Kind of action.
        entity_type: Kind of record touched (weak reference).
        entity_id: Record touched, if any (weak reference, no FK).
        details: Structured payload describing the action.
        ip_address: Caller address.
        user_agent: Caller user agent.
        timestamp: When the action was recorded.
    """

    __tablename__ = "audit_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, native_enum=False, length=32, validate_strings=True),
        nullable=False,
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(64))
    details: Mapped[dict[str, Any] | None] = mapped_column(JSONColumn)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(String(512))
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<AuditEntry(id={self.id}, action={self.action}, "
            f"entity={self.entity_type}:{self.entity_id})>"
        )


Index(
    "ix_audit_entries_owner_timestamp",
    AuditEntry.owner_id,
    AuditEntry.timestamp.desc(),
)


# =============================================================================
# APPEND-ONLY ENFORCEMENT
# =============================================================================


@event.listens_for(AuditEntry, "before_update")
def _reject_update(_mapper: Mapper, _connection: Connection, target: AuditEntry) -> None:
    raise AppendOnlyViolation(f"Audit entry {target.id} cannot be modified")


@event.listens_for(AuditEntry, "before_delete")
def _reject_delete(_mapper: Mapper, _connection: Connection, target: AuditEntry) -> None:
    raise AppendOnlyViolation(f"Audit entry {target.id} cannot be deleted")


@event.listens_for(Session, "do_orm_execute")
def _reject_bulk_changes(state: ORMExecuteState) -> None:
    if not (state.is_update or state.is_delete):
        return
    if any(mapper.class_ is AuditEntry for mapper in state.all_mappers):
        raise AppendOnlyViolation()
