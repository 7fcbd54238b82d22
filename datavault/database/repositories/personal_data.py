"""Personal data repository.

Search, export and statistics queries over personal data items.
"""

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from datavault.database.models import DataCategory, PersonalDataItem
from datavault.database.repositories.base import ErasableRepository


class PersonalDataRepository(ErasableRepository[PersonalDataItem]):
    """Repository for PersonalDataItem entity operations."""

    model = PersonalDataItem

    def __init__(self, session: Session) -> None:
        """Initialize personal data repository.

        Args:
            session: SQLAlchemy session instance.
        """
        super().__init__(session)

    def get_with_consents(self, owner_id: str, item_id: str) -> PersonalDataItem | None:
        """Get an item (active or not) with its consents loaded.

        Args:
            owner_id: Item owner.
            item_id: Item ID.

        Returns:
            Item or None.
        """
        stmt = (
            select(PersonalDataItem)
            .options(selectinload(PersonalDataItem.consents))
            .where(PersonalDataItem.id == item_id, PersonalDataItem.owner_id == owner_id)
        )
        return self._first(stmt)

    def search(
        self,
        owner_id: str,
        category: DataCategory | None = None,
        text: str | None = None,
        include_inactive: bool = False,
    ) -> list[PersonalDataItem]:
        """Search an owner's items.

        Args:
            owner_id: Item owner.
            category: Restrict to one category.
            text: Case-insensitive match on field name, value or purpose.
            include_inactive: Also return erased items.

        Returns:
            Items ordered by category, newest first within a category.
        """
        stmt = (
            select(PersonalDataItem)
            .options(selectinload(PersonalDataItem.consents))
            .where(PersonalDataItem.owner_id == owner_id)
        )
        if not include_inactive:
            stmt = stmt.where(PersonalDataItem.is_active.is_(True))
        if category is not None:
            stmt = stmt.where(PersonalDataItem.category == category)
        if text:
            stmt = stmt.where(
                or_(
                    PersonalDataItem.field_name.icontains(text, autoescape=True),
                    PersonalDataItem.field_value.icontains(text, autoescape=True),
                    PersonalDataItem.purpose.icontains(text, autoescape=True),
                )
            )
        stmt = stmt.order_by(PersonalDataItem.category, PersonalDataItem.created_at.desc())
        return self._all(stmt)

    def list_for_export(self, owner_id: str) -> list[PersonalDataItem]:
        """List every item of an owner, erased ones included.

        Args:
            owner_id: Item owner.

        Returns:
            Items in collection order with consents loaded.
        """
        stmt = (
            select(PersonalDataItem)
            .options(selectinload(PersonalDataItem.consents))
            .where(PersonalDataItem.owner_id == owner_id)
            .order_by(PersonalDataItem.created_at, PersonalDataItem.id)
        )
        return self._all(stmt)

    def find_by_field(
        self,
        owner_id: str,
        category: DataCategory,
        field_name: str,
    ) -> PersonalDataItem | None:
        """Find an owner's active item by category and field name.

        Args:
            owner_id: Item owner.
            category: Data category.
            field_name: Field label.

        Returns:
            Most recent matching item or None.
        """
        stmt = (
            select(PersonalDataItem)
            .where(
                PersonalDataItem.owner_id == owner_id,
                PersonalDataItem.category == category,
                PersonalDataItem.field_name == field_name,
                PersonalDataItem.is_active.is_(True),
            )
            .order_by(PersonalDataItem.created_at.desc())
        )
        return self._first(stmt, lock=True)

    def count_by_category(self, owner_id: str) -> dict[str, int]:
        """Count active items per category.

        Args:
            owner_id: Item owner.

        Returns:
            Mapping category value -> count.
        """
        stmt = (
            select(PersonalDataItem.category, func.count())
            .where(PersonalDataItem.owner_id == owner_id, PersonalDataItem.is_active.is_(True))
            .group_by(PersonalDataItem.category)
        )
        return {category.value: count for category, count in self._session.execute(stmt)}
