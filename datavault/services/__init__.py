"""Service layer: the four lifecycle components and the vault.

Usage:
    from datavault.database import Database
    from datavault.services import ServiceContainer

    services = ServiceContainer.build(Database.from_settings())
    services.registry.create(owner_id, {...})
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from datavault.database import Database
from datavault.database.types import utcnow
from datavault.services.audit_trail import AuditTrail
from datavault.services.consent_ledger import ConsentLedger
from datavault.services.data_registry import DataRegistry
from datavault.services.lifecycle import LifecycleCoordinator
from datavault.services.schemas import AuditContext, ExportFormat
from datavault.services.transforms import Base64Transform, ReversibleTransform
from datavault.services.vault import VaultService
from datavault.settings import PrivacySettings


@dataclass(frozen=True)
class ServiceContainer:
    """Wired service instances sharing one store handle.

    Attributes:
        database: Store handle.
        audit: Audit trail.
        consents: Consent ledger.
        registry: Personal data registry.
        lifecycle: Cross-component coordinator.
        vault: Secure notes and passwords.
        clock: Time source shared by every service.
    """

    database: Database
    audit: AuditTrail
    consents: ConsentLedger
    registry: DataRegistry
    lifecycle: LifecycleCoordinator
    vault: VaultService
    clock: Callable[[], datetime] = utcnow

    @classmethod
    def build(
        cls,
        database: Database,
        *,
        privacy: PrivacySettings | None = None,
        transform: ReversibleTransform | None = None,
        clock=utcnow,
    ) -> "ServiceContainer":
        """Wire every service around one store handle.

        Args:
            database: Store handle.
            privacy: Privacy settings, defaults to global settings.
            transform: Secret transform for the vault.
            clock: Callable returning the current aware datetime.

        Returns:
            Ready-to-use container.
        """
        audit = AuditTrail(database, privacy=privacy, clock=clock)
        consents = ConsentLedger(database, audit, clock=clock)
        registry = DataRegistry(database, consents, audit, privacy=privacy, clock=clock)
        return cls(
            database=database,
            audit=audit,
            consents=consents,
            registry=registry,
            lifecycle=LifecycleCoordinator(
                database, registry, consents, audit, privacy=privacy, clock=clock
            ),
            vault=VaultService(database, audit, transform, clock=clock),
            clock=clock,
        )


__all__ = [
    "AuditContext",
    "AuditTrail",
    "Base64Transform",
    "ConsentLedger",
    "DataRegistry",
    "ExportFormat",
    "LifecycleCoordinator",
    "ReversibleTransform",
    "ServiceContainer",
    "VaultService",
]
