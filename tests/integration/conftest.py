"""Shared fixtures for API integration tests.

Each test gets its own application wired to a fresh SQLite store, so
accounts, rate-limit buckets and data never leak between tests.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from datavault.api.main import create_app
from datavault.database import Database

API = "/api/v1"


# ---------------------------------------------------------------------------
# Auto-mark all tests in this directory as "integration"
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-apply ``@pytest.mark.integration`` to every test collected here."""
    integration_marker = pytest.mark.integration
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(integration_marker)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def login(client: AsyncClient, username: str, password: str) -> dict[str, str]:
    """Obtain a token and return Authorization headers."""
    resp = await client.post(
        f"{API}/auth/token",
        json={"username": username, "password": password},
    )
    assert resp.status_code == 200, f"Login failed: {resp.text}"
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def register(
    client: AsyncClient,
    username: str,
    password: str = "securepass123",
    email: str | None = None,
) -> dict:
    """Register an account with default identity data."""
    resp = await client.post(
        f"{API}/auth/register",
        json={
            "username": username,
            "password": password,
            "name": username.title(),
            "email": email or f"{username}@example.com",
        },
    )
    assert resp.status_code == 201, f"Registration failed: {resp.text}"
    return resp.json()


def item_payload(**overrides) -> dict:
    """Request body for collecting a personal data item."""
    payload = {
        "category": "CONTACT",
        "field_name": "Phone Number",
        "field_value": "+33 6 12 34 56 78",
        "purpose": "Two-factor authentication",
        "source": "User Input",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app(database: Database) -> FastAPI:
    """Application bound to the test store."""
    return create_app(database=database)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide an ``httpx.AsyncClient`` wired to the application."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    """Login as the seeded demo account and return Authorization headers."""
    return await login(client, "testuser", "testpass123")


@pytest.fixture
async def other_headers(client: AsyncClient) -> dict[str, str]:
    """Headers of a second, freshly registered account."""
    await register(client, "intruder")
    return await login(client, "intruder", "securepass123")
