"""ConsentRecord model.

A permission for one purpose, optionally tied to a personal data item.
Records are never deleted; erasure withdraws them.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from datavault.database.models.base import Base, TimestampMixin
from datavault.database.models.enums import ConsentStatus
from datavault.database.types import UTCDateTime, new_id, utcnow

if TYPE_CHECKING:
    from datavault.database.models.personal_data import PersonalDataItem


class ConsentRecord(TimestampMixin, Base):
    """Consent given (or pending) by a data subject for a purpose.

    Attributes:
        id: Opaque identifier.
        owner_id: Data subject.
        data_item_id: Referenced item, None for purpose-scoped consents.
        purpose: Purpose consented to.
        status: Stored status (GRANTED, WITHDRAWN or PENDING).
        granted_at: Set by the last grant.
        withdrawn_at: Set by the last withdrawal.
        expires_at: Optional expiry, independent of the other timestamps.
    """

    __tablename__ = "consent_records"
    __table_args__ = (Index("ix_consent_records_owner_status", "owner_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    data_item_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("personal_data_items.id"),
        index=True,
    )
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ConsentStatus] = mapped_column(
        Enum(ConsentStatus, native_enum=False, length=20, validate_strings=True),
        nullable=False,
    )

    granted_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    withdrawn_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    data_item: Mapped["PersonalDataItem | None"] = relationship(back_populates="consents")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether a stored grant has passed its expiry."""
        if self.status is not ConsentStatus.GRANTED or self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())

    def effective_status(self, now: datetime | None = None) -> ConsentStatus:
        """Status as observed at ``now``, deriving EXPIRED lazily.

        Two reads at different times may disagree without any write.
        """
        if self.is_expired(now):
            return ConsentStatus.EXPIRED
        return self.status

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ConsentRecord(id={self.id}, item={self.data_item_id}, "
            f"status={self.status})>"
        )
