"""Vault item models: secure notes and password entries.

Secrets are stored only in transformed form (``encrypted_*`` columns).
"""

from datetime import datetime

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from datavault.database.models.base import Base, ErasableMixin, TimestampMixin
from datavault.database.types import UTCDateTime, new_id


class SecureNote(ErasableMixin, TimestampMixin, Base):
    """Free-text note whose body is kept transformed."""

    __tablename__ = "secure_notes"
    __table_args__ = (Index("ix_secure_notes_owner_active", "owner_id", "is_active"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    encrypted_content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100))
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<SecureNote(id={self.id}, title='{self.title}', active={self.is_active})>"


class PasswordEntry(ErasableMixin, TimestampMixin, Base):
    """Website credential whose password is kept transformed."""

    __tablename__ = "password_entries"
    __table_args__ = (Index("ix_password_entries_owner_active", "owner_id", "is_active"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    website_name: Mapped[str] = mapped_column(String(255), nullable=False)
    website_url: Mapped[str | None] = mapped_column(String(2048))
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    encrypted_password: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(100))
    last_used: Mapped[datetime | None] = mapped_column(UTCDateTime)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<PasswordEntry(id={self.id}, website='{self.website_name}', "
            f"active={self.is_active})>"
        )
