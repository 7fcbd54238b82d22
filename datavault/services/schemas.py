"""Service-layer inputs and results.

Inputs are pydantic models so every entry point (API, CLI, direct calls)
shares one set of validation rules. Results are plain dataclasses.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from math import ceil
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from datavault.database.models import (
    AuditEntry,
    ConsentStatus,
    DataCategory,
    PasswordEntry,
    SecureNote,
)
from datavault.database.types import as_utc
from datavault.errors import ValidationFailed

# =============================================================================
# VALIDATION
# =============================================================================

InputT = TypeVar("InputT", bound=BaseModel)


def validate_input(schema: type[InputT], data: InputT | Mapping[str, Any]) -> InputT:
    """Coerce raw input into a validated schema instance.

    Args:
        schema: Pydantic model class.
        data: Instance of ``schema`` or a mapping of its fields.

    Returns:
        Validated instance.

    Raises:
        ValidationFailed: If a field is missing or malformed.
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        first = errors[0]
        message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        raise ValidationFailed(message, errors=errors) from e


class _Input(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


# =============================================================================
# PERSONAL DATA
# =============================================================================


class PersonalDataCreate(_Input):
    """Fields of a newly collected personal data item."""

    category: DataCategory
    field_name: str = Field(min_length=1, max_length=255)
    field_value: str
    purpose: str = Field(min_length=1)
    source: str | None = Field(default=None, max_length=255)
    data_controller: str | None = Field(default=None, max_length=255)
    retention_days: int = Field(default=365, ge=0)
    collected_at: datetime | None = None

    @field_validator("collected_at")
    @classmethod
    def _collected_at_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class PersonalDataUpdate(_Input):
    """Mutable fields of a personal data item."""

    field_value: str | None = None
    purpose: str | None = Field(default=None, min_length=1)
    source: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _require_change(self) -> "PersonalDataUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        if "purpose" in self.model_fields_set and self.purpose is None:
            raise ValueError("purpose cannot be cleared")
        return self


class IdentityFields(_Input):
    """Identity captured at account registration."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# =============================================================================
# CONSENT
# =============================================================================


class ConsentCreate(_Input):
    """A consent recorded independently of data collection.

    The creator must choose the initial status explicitly.
    """

    initial_status: ConsentStatus
    purpose: str | None = Field(default=None, min_length=1)
    data_item_id: str | None = None
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def _expires_at_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @field_validator("initial_status")
    @classmethod
    def _initial_status(cls, v: ConsentStatus) -> ConsentStatus:
        if v not in (ConsentStatus.GRANTED, ConsentStatus.PENDING):
            raise ValueError("initial_status must be GRANTED or PENDING")
        return v

    @model_validator(mode="after")
    def _require_scope(self) -> "ConsentCreate":
        if self.purpose is None and self.data_item_id is None:
            raise ValueError("purpose is required for consents without a data item")
        return self


# =============================================================================
# VAULT
# =============================================================================


class NoteCreate(_Input):
    """Fields of a new secure note."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    category: str | None = Field(default=None, max_length=100)
    is_pinned: bool = False


class NoteUpdate(_Input):
    """Mutable fields of a secure note."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, max_length=100)
    is_pinned: bool | None = None


class PasswordCreate(_Input):
    """Fields of a new password entry."""

    website_name: str = Field(min_length=1, max_length=255)
    website_url: str | None = Field(default=None, max_length=2048)
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    notes: str | None = None
    category: str | None = Field(default=None, max_length=100)


class PasswordUpdate(_Input):
    """Mutable fields of a password entry."""

    website_name: str | None = Field(default=None, min_length=1, max_length=255)
    website_url: str | None = Field(default=None, max_length=2048)
    username: str | None = Field(default=None, min_length=1, max_length=255)
    password: str | None = Field(default=None, min_length=1)
    notes: str | None = None
    category: str | None = Field(default=None, max_length=100)


# =============================================================================
# REQUEST CONTEXT
# =============================================================================


@dataclass(frozen=True)
class AuditContext:
    """Caller metadata copied onto audit entries.

    Attributes:
        ip_address: Caller address.
        user_agent: Caller user agent.
    """

    ip_address: str | None = None
    user_agent: str | None = None


# =============================================================================
# RESULTS
# =============================================================================


class ExportFormat(str, Enum):
    """Serialization formats for exports."""

    JSON = "json"
    CSV = "csv"

    @classmethod
    def parse(cls, value: "str | ExportFormat") -> "ExportFormat":
        """Parse a format name, rejecting unknown ones.

        Raises:
            ValidationFailed: If the format is not supported.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationFailed(f"Unsupported export format: {value}") from None


@dataclass(frozen=True)
class ExportPayload:
    """Serialized export ready to hand to a caller.

    Attributes:
        format: Serialization format.
        content: Serialized document.
        item_count: Number of records serialized.
        filename: Suggested download name.
    """

    format: ExportFormat
    content: str
    item_count: int
    filename: str

    @property
    def media_type(self) -> str:
        """MIME type of the content."""
        return "text/csv" if self.format is ExportFormat.CSV else "application/json"


@dataclass(frozen=True)
class AuditPage:
    """One page of audit entries.

    Attributes:
        entries: Entries on this page, newest first.
        page: 1-indexed page number.
        limit: Page size actually applied.
        total: Total matching entries.
    """

    entries: list[AuditEntry]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        """Number of pages for the current limit."""
        return ceil(self.total / self.limit) if self.total else 0


@dataclass(frozen=True)
class AuditStats:
    """Audit aggregate for one owner."""

    counts_by_action: dict[str, int]
    recent_count: int
    total_count: int


@dataclass(frozen=True)
class DataStats:
    """Personal data aggregate for one owner."""

    total_data: int
    by_category: dict[str, int]
    active_consents: int
    recent_activity: int


@dataclass(frozen=True)
class BulkWithdrawal:
    """Outcome of withdrawing every granted consent."""

    count: int


@dataclass(frozen=True)
class EraseResult:
    """Outcome of erasing every active item."""

    erased_count: int
    withdrawn_consents: int = 0


@dataclass(frozen=True)
class RevealedNote:
    """A secure note together with its recovered content."""

    note: SecureNote
    content: str


@dataclass(frozen=True)
class RevealedPassword:
    """A password entry together with its recovered password."""

    entry: PasswordEntry
    password: str


@dataclass(frozen=True)
class NoteStats:
    """Secure note aggregate for one owner."""

    total_notes: int
    pinned_notes: int
    by_category: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PasswordStats:
    """Password entry aggregate for one owner.

    Attributes:
        total_passwords: Active entries.
        by_category: Active entries per category, uncategorized skipped.
        recently_used: Active entries revealed within the trailing day.
    """

    total_passwords: int
    recently_used: int
    by_category: dict[str, int] = field(default_factory=dict)
