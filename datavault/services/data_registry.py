"""DataRegistry: personal data items and their erasure cascade.

Erasing an item is one transaction: the item is locked and flagged
inactive, every granted consent referencing it is withdrawn, then the
deletion is recorded. Concurrent readers observe either none or all
of it, and a concurrent grant on the same item waits on the item lock.
"""

from typing import Any

from sqlalchemy.orm import Session

from datavault.database import (
    AuditAction,
    DataCategory,
    Database,
    PersonalDataItem,
    PersonalDataRepository,
)
from datavault.database.types import utcnow
from datavault.errors import DataInactive, NotFound, ValidationFailed
from datavault.monitoring.metrics import LIFECYCLE_OPERATIONS_TOTAL
from datavault.services.audit_trail import AuditTrail
from datavault.services.consent_ledger import ConsentLedger
from datavault.services.schemas import (
    AuditContext,
    DataStats,
    EraseResult,
    PersonalDataCreate,
    PersonalDataUpdate,
    validate_input,
)
from datavault.settings import PrivacySettings, settings
from datavault.utils.logger import setup_logger

logger = setup_logger("services.data_registry")

_ENTITY = "PersonalData"


class DataRegistry:
    """Owns personal data items and cascades their erasure to consents.

    Attributes:
        _database: Store handle.
        _consents: Ledger used to issue and withdraw item consents.
        _audit: Audit trail.
        _privacy: Collection defaults.
        _clock: Source of the current time.
    """

    def __init__(
        self,
        database: Database,
        consent_ledger: ConsentLedger,
        audit_trail: AuditTrail,
        *,
        privacy: PrivacySettings | None = None,
        clock=utcnow,
    ) -> None:
        """Initialize the registry.

        Args:
            database: Store handle.
            consent_ledger: Consent ledger for cascades.
            audit_trail: Audit trail.
            privacy: Privacy settings, defaults to global settings.
            clock: Callable returning the current aware datetime.
        """
        self._database = database
        self._consents = consent_ledger
        self._audit = audit_trail
        self._privacy = privacy or settings.privacy
        self._clock = clock

    # =========================================================================
    # COLLECTION
    # =========================================================================

    def collect(
        self,
        owner_id: str,
        data: PersonalDataCreate | dict[str, Any],
        *,
        session: Session,
    ) -> PersonalDataItem:
        """Insert an item and its auto-granted consent, without auditing.

        Building block for ``create`` and for composites that write
        their own summary entry.

        Args:
            owner_id: Data subject.
            data: Item fields.
            session: Transaction to write in.

        Returns:
            Created item with its consent attached.
        """
        payload = validate_input(PersonalDataCreate, data)
        now = self._clock()
        item = PersonalDataItem(
            owner_id=owner_id,
            category=payload.category,
            field_name=payload.field_name,
            field_value=payload.field_value,
            purpose=payload.purpose,
            source=payload.source,
            data_controller=payload.data_controller or self._privacy.default_data_controller,
            retention_days=payload.retention_days,
            collected_at=payload.collected_at or now,
            is_active=True,
            consents=[],
        )
        PersonalDataRepository(session).create(item)
        self._consents.issue_for_item(item, session=session, now=now)
        return item

    def create(
        self,
        owner_id: str,
        data: PersonalDataCreate | dict[str, Any],
        *,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> PersonalDataItem:
        """Collect an item together with a GRANTED consent, atomically.

        Args:
            owner_id: Data subject.
            data: Item fields.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            Created item.

        Raises:
            ValidationFailed: Missing field or empty purpose.
        """
        with self._database.transaction(session) as active:
            item = self.collect(owner_id, data, session=active)
            self._audit.record(
                owner_id,
                AuditAction.DATA_CREATE,
                _ENTITY,
                item.id,
                details={"fieldName": item.field_name, "category": item.category.value},
                context=context,
                session=active,
            )
        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="data_create").inc()
        return item

    def upsert(
        self,
        owner_id: str,
        data: PersonalDataCreate | dict[str, Any],
        *,
        session: Session,
    ) -> tuple[PersonalDataItem, bool]:
        """Refresh the value of an active item, or collect it if absent.

        Items are matched on category and field name.

        Args:
            owner_id: Data subject.
            data: Item fields.
            session: Transaction to write in.

        Returns:
            Tuple of (item, created).
        """
        payload = validate_input(PersonalDataCreate, data)
        repo = PersonalDataRepository(session)
        item = repo.find_by_field(owner_id, payload.category, payload.field_name)
        if item is None:
            return self.collect(owner_id, payload, session=session), True
        item.field_value = payload.field_value
        repo.update(item)
        return item, False

    # =========================================================================
    # READS
    # =========================================================================

    def list_items(
        self,
        owner_id: str,
        *,
        category: DataCategory | str | None = None,
        search: str | None = None,
        include_inactive: bool = False,
        context: AuditContext | None = None,
    ) -> list[PersonalDataItem]:
        """List an owner's items and record the view.

        Args:
            owner_id: Data subject.
            category: Restrict to one category.
            search: Case-insensitive match on field name, value or purpose.
            include_inactive: Also return erased items.
            context: Caller metadata.

        Returns:
            Items ordered by category, newest first within a category.
        """
        category = parse_category(category)
        search = search.strip() if search else None
        with self._database.session() as session:
            items = PersonalDataRepository(session).search(
                owner_id,
                category=category,
                text=search,
                include_inactive=include_inactive,
            )
            self._audit.record(
                owner_id,
                AuditAction.DATA_VIEW,
                _ENTITY,
                details={"category": category.value if category else "all", "count": len(items)},
                context=context,
                session=session,
            )
        return items

    def get(self, owner_id: str, item_id: str) -> PersonalDataItem:
        """Get one item, erased or not.

        Raises:
            NotFound: Missing or foreign item.
        """
        with self._database.session() as session:
            item = PersonalDataRepository(session).get_with_consents(owner_id, item_id)
            if item is None:
                raise NotFound("Personal data")
            return item

    def get_stats(self, owner_id: str) -> DataStats:
        """Aggregate counts for an owner's dashboard.

        Returns:
            Active item totals, per-category counts, granted consents
            and recent audit activity.
        """
        with self._database.session() as session:
            repo = PersonalDataRepository(session)
            return DataStats(
                total_data=repo.count_active(owner_id),
                by_category=repo.count_by_category(owner_id),
                active_consents=self._consents.get_stats(owner_id, session=session)["GRANTED"],
                recent_activity=self._audit.count_recent(owner_id, session=session),
            )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def update(
        self,
        owner_id: str,
        item_id: str,
        data: PersonalDataUpdate | dict[str, Any],
        *,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> PersonalDataItem:
        """Change the value, purpose or source of an active item.

        Raises:
            NotFound: Missing or foreign item.
            DataInactive: Item has been erased.
            ValidationFailed: Empty update or empty purpose.
        """
        payload = validate_input(PersonalDataUpdate, data)
        changes = payload.model_dump(exclude_unset=True)

        with self._database.transaction(session) as active:
            repo = PersonalDataRepository(active)
            item = repo.get_owned(owner_id, item_id, lock=True)
            if item is None:
                raise NotFound("Personal data")
            if not item.is_active:
                raise DataInactive("Cannot update deleted data")

            for field_name, value in changes.items():
                setattr(item, field_name, value)
            repo.update(item)

            self._audit.record(
                owner_id,
                AuditAction.DATA_UPDATE,
                _ENTITY,
                item.id,
                details={"fieldName": item.field_name, "updatedFields": sorted(changes)},
                context=context,
                session=active,
            )
            return repo.get_with_consents(owner_id, item_id)

    def soft_delete(
        self,
        owner_id: str,
        item_id: str,
        *,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> PersonalDataItem:
        """Erase one item and withdraw its granted consents, atomically.

        Args:
            owner_id: Data subject.
            item_id: Item to erase.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            The erased item with its consents.

        Raises:
            NotFound: Missing or foreign item.
            DataInactive: Item was already erased.
        """
        with self._database.transaction(session) as active:
            repo = PersonalDataRepository(active)
            item = repo.get_owned(owner_id, item_id, lock=True)
            if item is None:
                raise NotFound("Personal data")
            if not repo.soft_delete(item):
                raise DataInactive("Data already deleted")

            withdrawn = self._consents.withdraw_for_items(owner_id, [item.id], session=active)
            self._audit.record(
                owner_id,
                AuditAction.DATA_DELETE,
                _ENTITY,
                item.id,
                details={
                    "fieldName": item.field_name,
                    "category": item.category.value,
                    "withdrawnConsents": withdrawn,
                },
                context=context,
                session=active,
            )
            item = repo.get_with_consents(owner_id, item_id)

        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="data_delete").inc()
        logger.info(f"Erased item {item_id} for owner {owner_id} ({withdrawn} consents withdrawn)")
        return item

    def erase_all(
        self,
        owner_id: str,
        *,
        context: AuditContext | None = None,
        session: Session | None = None,
    ) -> EraseResult:
        """Erase every active item of an owner as one unit.

        Writes a single summary audit entry carrying the item count.

        Args:
            owner_id: Data subject.
            context: Caller metadata.
            session: Caller's transaction to join, if any.

        Returns:
            Number of items erased and consents withdrawn.
        """
        with self._database.transaction(session) as active:
            repo = PersonalDataRepository(active)
            items = repo.list_active(owner_id, lock=True)
            for item in items:
                item.soft_delete()
            repo.flush()

            withdrawn = self._consents.withdraw_for_items(
                owner_id,
                [item.id for item in items],
                session=active,
            )
            self._audit.record(
                owner_id,
                AuditAction.DATA_DELETE,
                _ENTITY,
                details={"type": "complete_erasure", "itemCount": len(items)},
                context=context,
                session=active,
            )

        LIFECYCLE_OPERATIONS_TOTAL.labels(operation="data_erase_all").inc()
        logger.info(f"Erased {len(items)} items for owner {owner_id} ({withdrawn} consents withdrawn)")
        return EraseResult(erased_count=len(items), withdrawn_consents=withdrawn)


def parse_category(category: DataCategory | str | None) -> DataCategory | None:
    """Parse a category name.

    Raises:
        ValidationFailed: If the name is not a known category.
    """
    if category is None or isinstance(category, DataCategory):
        return category
    try:
        return DataCategory(category.upper())
    except ValueError:
        raise ValidationFailed(f"Unknown data category: {category}") from None
