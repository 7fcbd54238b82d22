"""Shared pytest fixtures.

Environment variables are set before any ``datavault`` import because
the settings singleton is built at import time.
"""

import os

os.environ["JWT_SECRET_KEY"] = "test_jwt_secret_key_12345678901234567890"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ["AUTH_DEMO_USERS"] = "testuser:testpass123"
os.environ["CORS_ORIGINS"] = "http://localhost:3000"

from collections.abc import Iterator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from datavault.database import Database  # noqa: E402
from datavault.services import ServiceContainer  # noqa: E402

OWNER_ID = "owner-alice"
OTHER_OWNER_ID = "owner-bob"
START_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Deterministic clock advancing one millisecond per reading.

    The tick keeps audit timestamps strictly ordered within a test.
    """

    def __init__(self, start: datetime = START_TIME) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(milliseconds=1)
        return self.current

    def advance(self, **kwargs: float) -> None:
        """Jump forward by a ``timedelta`` worth of time."""
        self.current += timedelta(**kwargs)


def make_item_data(**overrides: Any) -> dict[str, Any]:
    """Build personal data input with sensible defaults."""
    data: dict[str, Any] = {
        "category": "CONTACT",
        "field_name": "Phone Number",
        "field_value": "+33 6 12 34 56 78",
        "purpose": "Two-factor authentication",
        "source": "User Input",
        "retention_days": 365,
    }
    data.update(overrides)
    return data


@pytest.fixture
def database(tmp_path: Path) -> Iterator[Database]:
    """File-backed SQLite store, fresh for every test."""
    db = Database(f"sqlite:///{tmp_path / 'datavault.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def clock() -> FakeClock:
    """Controllable time source."""
    return FakeClock()


@pytest.fixture
def services(database: Database, clock: FakeClock) -> ServiceContainer:
    """Every service wired around the test store and clock."""
    return ServiceContainer.build(database, clock=clock)
