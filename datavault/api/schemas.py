"""Pydantic schemas for API request/response validation.

Request bodies for data, consent and vault operations reuse the
service-layer input models; this module adds authentication payloads
and response projections.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from datavault.database.models import (
    AuditAction,
    AuditEntry,
    ConsentRecord,
    ConsentStatus,
    DataCategory,
    PersonalDataItem,
)

# =============================================================================
# HEALTH
# =============================================================================


class DatabaseComponentHealth(BaseModel):
    """Database connection health status."""

    connected: bool = False
    backend: str | None = None


class HealthComponents(BaseModel):
    """Health status of all system components."""

    database: DatabaseComponentHealth = Field(default_factory=DatabaseComponentHealth)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(examples=["healthy"])
    version: str = Field(examples=["1.0.0"])
    components: HealthComponents = Field(default_factory=HealthComponents)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ErrorResponse(BaseModel):
    """Error body returned for every domain failure."""

    detail: str
    errors: list[dict[str, Any]] | None = None


# =============================================================================
# AUTHENTICATION
# =============================================================================


class TokenRequest(BaseModel):
    """Token request schema (login credentials)."""

    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=8, max_length=72)


class TokenResponse(BaseModel):
    """JWT token response schema."""

    access_token: str
    token_type: str = Field(default="bearer")
    expires_in: int = Field(description="Token lifetime in seconds")


class RegisterRequest(TokenRequest):
    """New account with the identity collected at registration."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=320)


class RegisterResponse(BaseModel):
    """Registration confirmation."""

    username: str
    owner_id: str
    items_created: int
    message: str


# =============================================================================
# PAGINATION
# =============================================================================


class PaginatedMeta(BaseModel):
    """Pagination metadata for list responses."""

    page: int
    size: int
    total: int
    pages: int


# =============================================================================
# PERSONAL DATA
# =============================================================================


class ConsentSummary(BaseModel):
    """Consent as embedded in a personal data item."""

    id: str
    status: ConsentStatus
    purpose: str
    granted_at: datetime | None
    expires_at: datetime | None

    @classmethod
    def from_record(cls, consent: ConsentRecord, now: datetime) -> "ConsentSummary":
        """Project a consent with its observed status."""
        return cls(
            id=consent.id,
            status=consent.effective_status(now),
            purpose=consent.purpose,
            granted_at=consent.granted_at,
            expires_at=consent.expires_at,
        )


class PersonalDataResponse(BaseModel):
    """Personal data item with its consents."""

    id: str
    category: DataCategory
    field_name: str
    field_value: str
    purpose: str
    source: str | None
    data_controller: str | None
    collected_at: datetime
    retention_days: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    consents: list[ConsentSummary] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: PersonalDataItem, now: datetime) -> "PersonalDataResponse":
        """Project an item loaded with its consents."""
        return cls(
            id=item.id,
            category=item.category,
            field_name=item.field_name,
            field_value=item.field_value,
            purpose=item.purpose,
            source=item.source,
            data_controller=item.data_controller,
            collected_at=item.collected_at,
            retention_days=item.retention_days,
            is_active=item.is_active,
            created_at=item.created_at,
            updated_at=item.updated_at,
            consents=[ConsentSummary.from_record(c, now) for c in item.consents],
        )


class PersonalDataListResponse(BaseModel):
    """Personal data listing."""

    data: list[PersonalDataResponse]
    count: int


class DataStatsResponse(BaseModel):
    """Dashboard counts for personal data."""

    total_data: int
    by_category: dict[str, int]
    active_consents: int
    recent_activity: int


class EraseResponse(BaseModel):
    """Outcome of erasing every item."""

    erased_count: int
    withdrawn_consents: int
    message: str


# =============================================================================
# CONSENT
# =============================================================================


class ConsentResponse(BaseModel):
    """Consent record with its observed status."""

    id: str
    data_item_id: str | None
    purpose: str
    status: ConsentStatus
    granted_at: datetime | None
    withdrawn_at: datetime | None
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, consent: ConsentRecord, now: datetime) -> "ConsentResponse":
        """Project a consent, deriving EXPIRED from its expiry."""
        return cls(
            id=consent.id,
            data_item_id=consent.data_item_id,
            purpose=consent.purpose,
            status=consent.effective_status(now),
            granted_at=consent.granted_at,
            withdrawn_at=consent.withdrawn_at,
            expires_at=consent.expires_at,
            created_at=consent.created_at,
            updated_at=consent.updated_at,
        )


class ConsentListResponse(BaseModel):
    """Consent listing."""

    data: list[ConsentResponse]
    count: int


class GrantRequest(BaseModel):
    """Optional new expiry supplied when granting."""

    model_config = ConfigDict(extra="forbid")

    expires_at: datetime | None = None


class BulkWithdrawalResponse(BaseModel):
    """Outcome of withdrawing every granted consent."""

    count: int
    message: str


# =============================================================================
# AUDIT
# =============================================================================


class AuditEntryResponse(BaseModel):
    """One audit entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    action: AuditAction
    entity_type: str
    entity_id: str | None
    details: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> "AuditEntryResponse":
        """Project a stored entry."""
        return cls.model_validate(entry)


class AuditListResponse(BaseModel):
    """Paginated audit entries, newest first."""

    data: list[AuditEntryResponse]
    meta: PaginatedMeta


class AuditStatsResponse(BaseModel):
    """Audit aggregate."""

    counts_by_action: dict[str, int]
    recent_count: int
    total_count: int


class AuditActionInfo(BaseModel):
    """An audit action with its description."""

    action: str
    description: str


# =============================================================================
# VAULT
# =============================================================================


class NoteResponse(BaseModel):
    """Secure note without its content."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    category: str | None
    is_pinned: bool
    created_at: datetime
    updated_at: datetime


class NoteDetailResponse(NoteResponse):
    """Secure note with its recovered content."""

    content: str


class NoteStatsResponse(BaseModel):
    """Secure note aggregate."""

    total_notes: int
    pinned_notes: int
    by_category: dict[str, int]


class PasswordResponse(BaseModel):
    """Password entry without its password."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    website_name: str
    website_url: str | None
    username: str
    notes: str | None
    category: str | None
    last_used: datetime | None
    created_at: datetime
    updated_at: datetime


class PasswordStatsResponse(BaseModel):
    """Password entry aggregate."""

    total_passwords: int
    by_category: dict[str, int]
    recently_used: int


class PasswordRevealResponse(BaseModel):
    """Recovered password of one entry."""

    id: str
    password: str
