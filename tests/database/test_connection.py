"""Tests for the store handle."""

import pytest
from sqlalchemy import select, text
from sqlalchemy.pool import StaticPool

from datavault.database import Database, DataCategory, PersonalDataItem
from datavault.errors import StoreUnavailable


def _item(**overrides) -> PersonalDataItem:
    fields = {
        "owner_id": "owner",
        "category": DataCategory.USAGE,
        "field_name": "Theme",
        "field_value": "dark",
        "purpose": "Preferences",
    }
    fields.update(overrides)
    return PersonalDataItem(**fields)


def _count(database: Database) -> int:
    with database.session() as session:
        return len(session.scalars(select(PersonalDataItem)).all())


class TestSession:
    @staticmethod
    def test_commits_on_success(database: Database) -> None:
        with database.session() as session:
            session.add(_item())

        assert _count(database) == 1

    @staticmethod
    def test_rolls_back_on_error(database: Database) -> None:
        with pytest.raises(RuntimeError):
            with database.session() as session:
                session.add(_item())
                session.flush()
                raise RuntimeError("boom")

        assert _count(database) == 0

    @staticmethod
    def test_driver_failure_is_store_unavailable(database: Database) -> None:
        with pytest.raises(StoreUnavailable) as exc_info:
            with database.session() as session:
                session.execute(text("SELECT * FROM no_such_table"))

        assert exc_info.value.retryable is True


class TestTransaction:
    @staticmethod
    def test_joins_caller_session(database: Database) -> None:
        with pytest.raises(RuntimeError):
            with database.session() as outer:
                with database.transaction(outer) as inner:
                    assert inner is outer
                    inner.add(_item())
                raise RuntimeError("abort outer")

        assert _count(database) == 0

    @staticmethod
    def test_opens_own_session(database: Database) -> None:
        with database.transaction() as session:
            session.add(_item())

        assert _count(database) == 1


class TestDatabase:
    @staticmethod
    def test_sqlite_detection(database: Database) -> None:
        assert database.is_sqlite is True

    @staticmethod
    def test_check_connection(database: Database) -> None:
        assert database.check_connection() is True

    @staticmethod
    def test_in_memory_shares_one_connection() -> None:
        db = Database("sqlite://")
        db.create_all()
        try:
            assert isinstance(db.engine.pool, StaticPool)
            with db.session() as session:
                session.add(_item())
            assert _count(db) == 1
        finally:
            db.dispose()

    @staticmethod
    def test_drop_all(database: Database) -> None:
        database.drop_all()

        with pytest.raises(StoreUnavailable):
            _count(database)
