"""LifecycleCoordinator: operations spanning data, consent and audit.

Composites here either run inside one transaction (registration) or
read a consistent snapshot (export). Audit entries remain best-effort;
the data writes of a composite are all-or-nothing.
"""

from typing import Any

from datavault.database import (
    AuditAction,
    ConsentRecord,
    DataCategory,
    Database,
    PersonalDataItem,
    PersonalDataRepository,
)
from datavault.database.types import utcnow
from datavault.monitoring.metrics import LIFECYCLE_OPERATIONS_TOTAL
from datavault.services.audit_trail import AuditTrail
from datavault.services.consent_ledger import ConsentLedger
from datavault.services.data_registry import DataRegistry
from datavault.services.exporters import (
    DATA_EXPORT_COLUMNS,
    format_timestamp,
    to_csv,
    to_json,
)
from datavault.services.schemas import (
    AuditContext,
    BulkWithdrawal,
    EraseResult,
    ExportFormat,
    ExportPayload,
    IdentityFields,
    PersonalDataCreate,
    validate_input,
)
from datavault.settings import PrivacySettings, settings
from datavault.utils.logger import setup_logger

logger = setup_logger("services.lifecycle")


class LifecycleCoordinator:
    """Runs registration, login bookkeeping, export and bulk erasure.

    Attributes:
        _database: Store handle.
        _registry: Personal data registry.
        _consents: Consent ledger.
        _audit: Audit trail.
        _privacy: Collection defaults.
        _clock: Source of the current time.
    """

    def __init__(
        self,
        database: Database,
        registry: DataRegistry,
        consent_ledger: ConsentLedger,
        audit_trail: AuditTrail,
        *,
        privacy: PrivacySettings | None = None,
        clock=utcnow,
    ) -> None:
        self._database = database
        self._registry = registry
        self._consents = consent_ledger
        self._audit = audit_trail
        self._privacy = privacy or settings.privacy
        self._clock = clock

    # =========================================================================
    # ACCOUNT LIFECYCLE
    # =========================================================================

    def register_with_defaults(
        self,
        owner_id: str,
        identity: IdentityFields | dict[str, Any],
        *,
        context: AuditContext | None = None,
    ) -> list[PersonalDataItem]:
        """Collect the default identity items of a new account.

        Creates the full name and email items, each with a GRANTED
        consent, in a single transaction: if any insert fails nothing
        is kept. One LOGIN entry records the registration.

        Args:
            owner_id: New account id.
            identity: Name and email.
            context: Caller metadata.

        Returns:
            Created items.

        Raises:
            ValidationFailed: Missing or malformed identity fields.
        """
        identity = validate_input(IdentityFields, identity)
        defaults = self._default_items(identity)

        with self._database.session() as session:
            items = [self._registry.collect(owner_id, data, session=session) for data in defaults]
            self._audit.record(
                owner_id,
                AuditAction.LOGIN,
                "User",
                owner_id,
                details={"method": "registration"},
                context=context,
                session=session,
            )

        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="register").inc()
        logger.info(f"Registered owner {owner_id} with {len(items)} default items")
        return items

    def record_login(self, owner_id: str, *, context: AuditContext | None = None) -> PersonalDataItem:
        """Refresh login activity data and record the login.

        Keeps one "Last Login" activity item current, refreshes an
        existing "IP Address" item, then writes a LOGIN entry.

        Args:
            owner_id: Account that logged in.
            context: Caller metadata.

        Returns:
            The "Last Login" item.
        """
        context = context or AuditContext()
        now = self._clock()

        with self._database.session() as session:
            last_login, _ = self._registry.upsert(
                owner_id,
                PersonalDataCreate(
                    category=DataCategory.ACTIVITY,
                    field_name="Last Login",
                    field_value=now.isoformat(),
                    purpose="Security monitoring and session management",
                    source="System Generated",
                    data_controller=self._privacy.default_data_controller,
                    retention_days=self._privacy.login_retention_days,
                ),
                session=session,
            )
            repo = PersonalDataRepository(session)
            ip_item = repo.find_by_field(owner_id, DataCategory.ACTIVITY, "IP Address")
            if ip_item is not None:
                ip_item.field_value = context.ip_address or "Unknown"
                repo.update(ip_item)

            self._audit.record(
                owner_id,
                AuditAction.LOGIN,
                "User",
                owner_id,
                details={"method": "password"},
                context=context,
                session=session,
            )
        return last_login

    def record_logout(self, owner_id: str, *, context: AuditContext | None = None) -> None:
        """Record that an owner ended their session."""
        self._audit.record(owner_id, AuditAction.LOGOUT, "User", owner_id, context=context)

    # =========================================================================
    # BULK OPERATIONS
    # =========================================================================

    def erase_all(self, owner_id: str, *, context: AuditContext | None = None) -> EraseResult:
        """Erase every active item of an owner (right to erasure)."""
        return self._registry.erase_all(owner_id, context=context)

    def withdraw_all(self, owner_id: str, *, context: AuditContext | None = None) -> BulkWithdrawal:
        """Withdraw every granted consent of an owner."""
        return self._consents.withdraw_all(owner_id, context=context)

    # =========================================================================
    # EXPORT
    # =========================================================================

    def export_all(
        self,
        owner_id: str,
        fmt: ExportFormat | str,
        *,
        context: AuditContext | None = None,
    ) -> ExportPayload:
        """Serialize every item of an owner, erased ones included.

        Reads only; the single DATA_EXPORT entry is the one write.

        Args:
            owner_id: Data subject.
            fmt: ``json`` or ``csv``.
            context: Caller metadata.

        Returns:
            Serialized portability export.

        Raises:
            ValidationFailed: Unsupported format.
        """
        fmt = ExportFormat.parse(fmt)
        now = self._clock()

        with self._database.session() as session:
            items = PersonalDataRepository(session).list_for_export(owner_id)
            records = [_item_to_record(item, now) for item in items]
            if fmt is ExportFormat.CSV:
                content = to_csv(records, DATA_EXPORT_COLUMNS)
            else:
                content = to_json(
                    {
                        "exportedAt": format_timestamp(now),
                        "ownerId": owner_id,
                        "itemCount": len(records),
                        "data": records,
                    }
                )
            self._audit.record(
                owner_id,
                AuditAction.DATA_EXPORT,
                "PersonalData",
                details={"format": fmt.value, "itemCount": len(records)},
                context=context,
                session=session,
            )

        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="export").inc()
        return ExportPayload(
            format=fmt,
            content=content,
            item_count=len(records),
            filename=f"datavault-export-{now.strftime('%Y%m%d')}.{fmt.value}",
        )

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _default_items(self, identity: IdentityFields) -> list[PersonalDataCreate]:
        """Items collected for every new account."""
        common = {
            "source": self._privacy.registration_source,
            "data_controller": self._privacy.default_data_controller,
            "retention_days": self._privacy.default_retention_days,
        }
        return [
            PersonalDataCreate(
                category=DataCategory.IDENTITY,
                field_name="Full Name",
                field_value=identity.name,
                purpose="Account identification and personalization",
                **common,
            ),
            PersonalDataCreate(
                category=DataCategory.CONTACT,
                field_name="Email Address",
                field_value=identity.email,
                purpose="Account login and communication",
                **common,
            ),
        ]


def _consent_to_record(consent: ConsentRecord, now) -> dict[str, Any]:
    return {
        "status": consent.effective_status(now).value,
        "purpose": consent.purpose,
        "grantedAt": format_timestamp(consent.granted_at),
    }


def _item_to_record(item: PersonalDataItem, now) -> dict[str, Any]:
    """Portability projection of one item."""
    return {
        "id": item.id,
        "category": item.category.value,
        "fieldName": item.field_name,
        "fieldValue": item.field_value,
        "purpose": item.purpose,
        "source": item.source,
        "dataController": item.data_controller,
        "collectedAt": format_timestamp(item.collected_at),
        "retentionDays": item.retention_days,
        "isActive": item.is_active,
        "consents": [_consent_to_record(consent, now) for consent in item.consents],
    }
