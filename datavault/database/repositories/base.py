"""
Base repositories with generic data-access operations.

Provides reusable base classes for all repositories: plain CRUD on a
model, and owner-scoped access to soft-deletable records.
"""

from typing import Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from datavault.database.models.base import Base, ErasableMixin

# Generic type variable bound to Base model
ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic repository providing common data-access operations.

    Attributes:
        model: SQLAlchemy model class.
        session: Database session.
    """

    model: type[ModelT]

    def __init__(self, session: Session) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session instance.
        """
        self._session = session

    @property
    def session(self) -> Session:
        """Get the database session."""
        return self._session

    def get_by_id(self, entity_id: str, lock: bool = False) -> ModelT | None:
        """Retrieve entity by primary key.

        Args:
            entity_id: Primary key value.
            lock: Take a row lock and refresh the identity-map copy.

        Returns:
            Entity instance or None if not found.
        """
        if not lock:
            return self._session.get(self.model, entity_id)
        stmt = select(self.model).where(self.model.id == entity_id)
        return self._first(stmt, lock=True)

    def count(self) -> int:
        """Count total number of entities.

        Returns:
            Total count.
        """
        stmt = select(func.count()).select_from(self.model)
        result = self._session.execute(stmt).scalar()
        return result or 0

    def create(self, entity: ModelT) -> ModelT:
        """Create a new entity.

        Args:
            entity: Entity instance to persist.

        Returns:
            Persisted entity with generated ID.
        """
        self._session.add(entity)
        self._session.flush()
        return entity

    def create_many(self, entities: list[ModelT]) -> list[ModelT]:
        """Create multiple entities in batch.

        Args:
            entities: List of entity instances.

        Returns:
            List of persisted entities.
        """
        self._session.add_all(entities)
        self._session.flush()
        return entities

    def update(self, entity: ModelT) -> ModelT:
        """Flush pending changes on an existing entity.

        Args:
            entity: Entity instance with updated values.

        Returns:
            Updated entity.
        """
        self._session.flush()
        return entity

    def flush(self) -> None:
        """Flush pending changes of the current transaction."""
        self._session.flush()

    def _first(self, stmt: Select, lock: bool = False) -> ModelT | None:
        """Run a select and return the first entity.

        Args:
            stmt: Select statement on the model.
            lock: Append ``FOR UPDATE`` and overwrite stale loaded state.

        Returns:
            Entity or None.
        """
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self._session.scalars(stmt).first()

    def _all(self, stmt: Select, lock: bool = False) -> list[ModelT]:
        """Run a select and return every entity.

        Args:
            stmt: Select statement on the model.
            lock: Append ``FOR UPDATE`` and overwrite stale loaded state.

        Returns:
            List of entities.
        """
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return list(self._session.scalars(stmt).all())


# Type variable for soft-deletable owned records
ErasableT = TypeVar("ErasableT", bound=ErasableMixin)


class ErasableRepository(BaseRepository[ErasableT]):
    """Owner-scoped access to records that are soft-deleted.

    Lookups always filter on ``owner_id`` so a foreign id behaves
    exactly like a missing one.
    """

    def get_owned(
        self,
        owner_id: str,
        entity_id: str,
        *,
        active_only: bool = False,
        lock: bool = False,
    ) -> ErasableT | None:
        """Retrieve one record belonging to an owner.

        Args:
            owner_id: Record owner.
            entity_id: Primary key value.
            active_only: Ignore erased records.
            lock: Take a row lock.

        Returns:
            Entity or None if missing, foreign, or erased with active_only.
        """
        stmt = select(self.model).where(
            self.model.id == entity_id,
            self.model.owner_id == owner_id,
        )
        if active_only:
            stmt = stmt.where(self.model.is_active.is_(True))
        return self._first(stmt, lock=lock)

    def list_active(self, owner_id: str, lock: bool = False) -> list[ErasableT]:
        """List every active record of an owner.

        Args:
            owner_id: Record owner.
            lock: Take row locks on every returned record.

        Returns:
            Active records.
        """
        stmt = select(self.model).where(
            self.model.owner_id == owner_id,
            self.model.is_active.is_(True),
        )
        return self._all(stmt, lock=lock)

    def count_active(self, owner_id: str) -> int:
        """Count active records of an owner.

        Args:
            owner_id: Record owner.

        Returns:
            Number of active records.
        """
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.owner_id == owner_id, self.model.is_active.is_(True))
        )
        return self._session.execute(stmt).scalar() or 0

    def soft_delete(self, entity: ErasableT) -> bool:
        """Mark a record inactive and flush.

        Args:
            entity: Record to erase.

        Returns:
            True if the record changed.
        """
        changed = entity.soft_delete()
        if changed:
            self._session.flush()
        return changed
