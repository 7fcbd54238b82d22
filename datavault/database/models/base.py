"""SQLAlchemy declarative base and common mixins.

Provides the foundation for all ORM models with common
columns and behaviors.
"""

from datetime import datetime

from sqlalchemy import Boolean, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from datavault.database.types import UTCDateTime, utcnow


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    All models should inherit from this class to be part
    of the same metadata and support table creation.
    """

    pass


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamps.

    Timestamps are generated application-side so ordering keeps
    sub-second precision on every backend.
    """

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class ErasableMixin:
    """Owned record that is soft-deleted instead of removed.

    Shared by personal data items and every vault item kind so that
    ownership checks and erasure go through one code path.
    """

    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def soft_delete(self) -> bool:
        """Mark the record inactive.

        Returns:
            True if the record changed, False if it was already inactive.
        """
        # None means a pending record whose column default has not fired yet
        if self.is_active is False:
            return False
        self.is_active = False
        return True
