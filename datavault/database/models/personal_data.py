"""PersonalDataItem model.

One collected field of personal data with its purpose and provenance.
Items are never removed; erasure flips ``is_active``.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from datavault.database.models.base import Base, ErasableMixin, TimestampMixin
from datavault.database.models.enums import DataCategory
from datavault.database.types import UTCDateTime, new_id, utcnow
from datavault.errors import ValidationFailed

if TYPE_CHECKING:
    from datavault.database.models.consent import ConsentRecord


class PersonalDataItem(ErasableMixin, TimestampMixin, Base):
    """Personal data entry owned by a data subject.

    Attributes:
        id: Opaque identifier.
        owner_id: Data subject.
        category: Data category.
        field_name: Label of the collected field.
        field_value: Collected value.
        purpose: Why the data is processed (never empty).
        source: Where the value came from.
        data_controller: Entity responsible for processing.
        retention_days: Retention period in days.
        collected_at: Collection time, immutable once set.
        is_active: False once erased.
    """

    __tablename__ = "personal_data_items"
    __table_args__ = (
        Index("ix_personal_data_items_owner_active", "owner_id", "is_active"),
        CheckConstraint("length(trim(purpose)) > 0", name="ck_personal_data_items_purpose"),
        CheckConstraint("retention_days >= 0", name="ck_personal_data_items_retention"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # Field
    category: Mapped[DataCategory] = mapped_column(
        Enum(DataCategory, native_enum=False, length=20, validate_strings=True),
        nullable=False,
    )
    field_name: Mapped[str] = mapped_column(String(255), nullable=False)
    field_value: Mapped[str] = mapped_column(Text, nullable=False)

    # Processing basis
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str | None] = mapped_column(String(255))
    data_controller: Mapped[str | None] = mapped_column(String(255))
    retention_days: Mapped[int] = mapped_column(Integer, default=365, nullable=False)
    collected_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    consents: Mapped[list["ConsentRecord"]] = relationship(
        back_populates="data_item",
        order_by="ConsentRecord.created_at",
    )

    @validates("collected_at")
    def _validate_collected_at(self, _key: str, value: datetime) -> datetime:
        """Reject reassignment of the collection time."""
        current = self.__dict__.get("collected_at")
        if current is not None and value != current:
            raise ValidationFailed("collected_at is immutable once set")
        return value

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<PersonalDataItem(id={self.id}, field='{self.field_name}', "
            f"category={self.category}, active={self.is_active})>"
        )
