"""ConsentLedger: consent records and their status transitions.

State machine (stored states GRANTED, WITHDRAWN, PENDING; EXPIRED is
derived at read time from ``expires_at``):

    WITHDRAWN / PENDING / EXPIRED --grant-->    GRANTED
    GRANTED / PENDING / EXPIRED   --withdraw--> WITHDRAWN
    GRANTED   --grant-->    rejected (InvalidTransition)
    WITHDRAWN --withdraw--> rejected (InvalidTransition)

Every transition locks the referenced data item before the consent,
the same order used by erasure, so a grant and an erasure on the same
item are always serialized.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from datavault.database import (
    AuditAction,
    ConsentRecord,
    ConsentRepository,
    ConsentStatus,
    Database,
    PersonalDataItem,
    PersonalDataRepository,
)
from datavault.database.types import as_utc, utcnow
from datavault.errors import DataInactive, InvalidTransition, NotFound, ValidationFailed
from datavault.monitoring.metrics import LIFECYCLE_OPERATIONS_TOTAL
from datavault.services.audit_trail import AuditTrail
from datavault.services.schemas import (
    AuditContext,
    BulkWithdrawal,
    ConsentCreate,
    validate_input,
)
from datavault.utils.logger import setup_logger

logger = setup_logger("services.consent_ledger")

_ENTITY = "Consent"


class ConsentLedger:
    """Owns consent records and every change to their status.

    Attributes:
        _database: Store handle.
        _audit: Audit trail receiving one entry per transition.
        _clock: Source of the current time.
    """

    def __init__(self, database: Database, audit_trail: AuditTrail, *, clock=utcnow) -> None:
        """Initialize the ledger.

        Args:
            database: Store handle.
            audit_trail: Audit trail for transition records.
            clock: Callable returning the current aware datetime.
        """
        self._database = database
        self._audit = audit_trail
        self._clock = clock

    # =========================================================================
    # CREATION
    # =========================================================================

    def create(
        self,
        owner_id: str,
        data: ConsentCreate | dict[str, Any],
        *,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> ConsentRecord:
        """Record a consent with an explicitly chosen initial status.

        Args:
            owner_id: Consent owner.
            data: Initial status, purpose, optional item and expiry.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            Created consent.

        Raises:
            ValidationFailed: Invalid input or an expiry in the past.
            NotFound: Referenced item is missing or foreign.
            DataInactive: GRANTED requested for an erased item.
        """
        payload = validate_input(ConsentCreate, data)
        now = self._clock()
        if payload.expires_at is not None and payload.expires_at <= now:
            raise ValidationFailed("expires_at must be in the future")

        with self._database.transaction(session) as active:
            item = None
            if payload.data_item_id is not None:
                item = PersonalDataRepository(active).get_owned(
                    owner_id, payload.data_item_id, lock=True
                )
                if item is None:
                    raise NotFound("Personal data")
                if payload.initial_status is ConsentStatus.GRANTED and not item.is_active:
                    raise DataInactive("Cannot grant consent for deleted data")

            consent = ConsentRecord(
                owner_id=owner_id,
                data_item_id=item.id if item else None,
                purpose=payload.purpose or item.purpose,
                status=payload.initial_status,
                granted_at=now if payload.initial_status is ConsentStatus.GRANTED else None,
                expires_at=payload.expires_at,
            )
            ConsentRepository(active).create(consent)
            self._audit.record(
                owner_id,
                AuditAction.CONSENT_CREATE,
                _ENTITY,
                consent.id,
                details={
                    "purpose": consent.purpose,
                    "personalDataId": consent.data_item_id,
                    "status": consent.status.value,
                },
                context=context,
                session=active,
            )
        return consent

    def issue_for_item(
        self,
        item: PersonalDataItem,
        *,
        session: Session,
        now: datetime | None = None,
    ) -> ConsentRecord:
        """Attach an auto-granted consent to a freshly collected item.

        Expiry follows the item's retention period. No audit entry is
        written; the collecting operation records the item creation.

        Args:
            item: Newly created, active item.
            session: Transaction creating the item.
            now: Grant time, defaults to the clock.

        Returns:
            Created consent.
        """
        now = now or self._clock()
        expires_at = None
        if item.retention_days:
            expires_at = (item.collected_at or now) + timedelta(days=item.retention_days)
        consent = ConsentRecord(
            owner_id=item.owner_id,
            purpose=item.purpose,
            status=ConsentStatus.GRANTED,
            granted_at=now,
            expires_at=expires_at,
        )
        item.consents.append(consent)
        return ConsentRepository(session).create(consent)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def grant(
        self,
        owner_id: str,
        consent_id: str,
        *,
        expires_at: datetime | None = None,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> ConsentRecord:
        """Move a consent to GRANTED.

        A lapsed expiry is cleared unless a new one is supplied.

        Args:
            owner_id: Consent owner.
            consent_id: Consent ID.
            expires_at: New expiry, must be in the future.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            Updated consent.

        Raises:
            NotFound: Missing or foreign consent.
            InvalidTransition: Consent is already granted.
            DataInactive: Referenced item has been erased.
            ValidationFailed: Expiry in the past.
        """
        expires_at = as_utc(expires_at)
        with self._database.transaction(session) as active:
            consent, item = self._lock(active, owner_id, consent_id)
            now = self._clock()

            if consent.effective_status(now) is ConsentStatus.GRANTED:
                raise InvalidTransition("Consent already granted")
            if item is not None and not item.is_active:
                raise DataInactive("Cannot grant consent for deleted data")
            if expires_at is not None and expires_at <= now:
                raise ValidationFailed("expires_at must be in the future")

            consent.status = ConsentStatus.GRANTED
            consent.granted_at = now
            consent.withdrawn_at = None
            if expires_at is not None:
                consent.expires_at = expires_at
            elif consent.expires_at is not None and consent.expires_at <= now:
                consent.expires_at = None
            ConsentRepository(active).update(consent)

            self._audit.record(
                owner_id,
                AuditAction.CONSENT_GRANT,
                _ENTITY,
                consent.id,
                details=_transition_details(consent, item),
                context=context,
                session=active,
            )
        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="consent_grant").inc()
        logger.info(f"Consent {consent_id} granted for owner {owner_id}")
        return consent

    def withdraw(
        self,
        owner_id: str,
        consent_id: str,
        *,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> ConsentRecord:
        """Move a consent to WITHDRAWN.

        Args:
            owner_id: Consent owner.
            consent_id: Consent ID.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            Updated consent.

        Raises:
            NotFound: Missing or foreign consent.
            InvalidTransition: Consent is already withdrawn.
        """
        with self._database.transaction(session) as active:
            consent, item = self._lock(active, owner_id, consent_id)
            now = self._clock()

            if consent.status is ConsentStatus.WITHDRAWN:
                raise InvalidTransition("Consent already withdrawn")

            consent.status = ConsentStatus.WITHDRAWN
            consent.withdrawn_at = now
            consent.granted_at = None
            ConsentRepository(active).update(consent)

            self._audit.record(
                owner_id,
                AuditAction.CONSENT_WITHDRAW,
                _ENTITY,
                consent.id,
                details=_transition_details(consent, item),
                context=context,
                session=active,
            )
        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="consent_withdraw").inc()
        logger.info(f"Consent {consent_id} withdrawn for owner {owner_id}")
        return consent

    def withdraw_all(
        self,
        owner_id: str,
        *,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> BulkWithdrawal:
        """Withdraw every granted consent of an owner as one unit.

        Writes a single summary audit entry carrying the count instead
        of one entry per consent.

        Args:
            owner_id: Consent owner.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            Number of consents withdrawn.
        """
        with self._database.transaction(session) as active:
            count = ConsentRepository(active).withdraw_granted(owner_id, self._clock())
            self._audit.record(
                owner_id,
                AuditAction.CONSENT_WITHDRAW,
                _ENTITY,
                details={"type": "withdraw_all", "count": count},
                context=context,
                session=active,
            )
        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="consent_withdraw_all").inc()
        logger.info(f"Withdrew {count} consents for owner {owner_id}")
        return BulkWithdrawal(count=count)

    def withdraw_for_items(
        self,
        owner_id: str,
        item_ids: Sequence[str],
        *,
        session: Session,
    ) -> int:
        """Withdraw the granted consents referencing erased items.

        Part of an erasure cascade: runs in the caller's transaction
        and leaves auditing to the caller.

        Args:
            owner_id: Consent owner.
            item_ids: Items being erased.
            session: Erasure transaction.

        Returns:
            Number of consents withdrawn.
        """
        return ConsentRepository(session).withdraw_granted(
            owner_id,
            self._clock(),
            item_ids=list(item_ids),
        )

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, owner_id: str, consent_id: str) -> ConsentRecord:
        """Get one consent.

        Raises:
            NotFound: Missing or foreign consent.
        """
        with self._database.session() as session:
            consent = ConsentRepository(session).get_owned(owner_id, consent_id)
            if consent is None:
                raise NotFound(_ENTITY)
            return consent

    def list_consents(
        self,
        owner_id: str,
        status: ConsentStatus | str | None = None,
    ) -> list[ConsentRecord]:
        """List an owner's consents, newest first.

        Args:
            owner_id: Consent owner.
            status: Observed status to keep (EXPIRED is derived).

        Returns:
            Matching consents.
        """
        status = _parse_status(status)
        with self._database.session() as session:
            return ConsentRepository(session).list_for_owner(owner_id, status, self._clock())

    def get_stats(self, owner_id: str, session: Session | None = None) -> dict[str, int]:
        """Count an owner's consents per observed status.

        Returns:
            Counts keyed GRANTED, WITHDRAWN, PENDING and EXPIRED.
        """
        with self._database.transaction(session) as active:
            repo = ConsentRepository(active)
            stored = repo.count_by_stored_status(owner_id)
            lapsed = repo.count_lapsed(owner_id, self._clock())

        stats = {status.value: stored.get(status, 0) for status in ConsentStatus}
        stats[ConsentStatus.GRANTED.value] -= lapsed
        stats[ConsentStatus.EXPIRED.value] += lapsed
        return stats

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    @staticmethod
    def _lock(
        session: Session,
        owner_id: str,
        consent_id: str,
    ) -> tuple[ConsentRecord, PersonalDataItem | None]:
        """Lock a consent and its item, item first.

        Returns:
            Tuple of (locked consent, locked item or None).

        Raises:
            NotFound: Missing or foreign consent.
        """
        consents = ConsentRepository(session)
        consent = consents.get_owned(owner_id, consent_id)
        if consent is None:
            raise NotFound(_ENTITY)

        item = None
        if consent.data_item_id is not None:
            item = PersonalDataRepository(session).get_by_id(consent.data_item_id, lock=True)
        consent = consents.get_owned(owner_id, consent_id, lock=True)
        if consent is None:
            raise NotFound(_ENTITY)
        return consent, item


def _transition_details(consent: ConsentRecord, item: PersonalDataItem | None) -> dict[str, Any]:
    return {
        "purpose": consent.purpose,
        "personalDataId": consent.data_item_id,
        "fieldName": item.field_name if item else None,
    }


def _parse_status(status: ConsentStatus | str | None) -> ConsentStatus | None:
    if status is None or isinstance(status, ConsentStatus):
        return status
    try:
        return ConsentStatus(status.upper())
    except ValueError:
        raise ValidationFailed(f"Unknown consent status: {status}") from None
