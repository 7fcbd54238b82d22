"""Unit tests for API Pydantic schemas."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from datavault.api.schemas import (
    ConsentResponse,
    GrantRequest,
    HealthResponse,
    RegisterRequest,
    TokenRequest,
    TokenResponse,
)
from datavault.database import ConsentRecord, ConsentStatus


class TestHealthResponse:
    @staticmethod
    def test_defaults() -> None:
        response = HealthResponse(status="healthy", version="1.0.0")

        assert isinstance(response.timestamp, datetime)
        assert response.components.database.connected is False
        assert response.components.database.backend is None


class TestTokenRequest:
    @staticmethod
    def test_valid() -> None:
        request = TokenRequest(username="alice", password="password123")
        assert request.username == "alice"

    @staticmethod
    @pytest.mark.parametrize(
        "username,password",
        [
            ("ab", "password123"),
            ("alice", "short"),
            ("alice", "x" * 73),
        ],
    )
    def test_rejects_bad_credentials(username: str, password: str) -> None:
        with pytest.raises(ValidationError):
            TokenRequest(username=username, password=password)


class TestTokenResponse:
    @staticmethod
    def test_bearer_default() -> None:
        assert TokenResponse(access_token="t", expires_in=60).token_type == "bearer"


class TestRegisterRequest:
    @staticmethod
    def test_requires_identity() -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="alice", password="password123")


class TestGrantRequest:
    @staticmethod
    def test_expiry_optional() -> None:
        assert GrantRequest().expires_at is None

    @staticmethod
    def test_forbids_extra_fields() -> None:
        with pytest.raises(ValidationError):
            GrantRequest(status="GRANTED")


class TestConsentResponse:
    @staticmethod
    def test_lapsed_grant_reported_expired() -> None:
        now = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)
        consent = ConsentRecord(
            id="c1",
            owner_id="owner",
            purpose="Newsletter",
            status=ConsentStatus.GRANTED,
            granted_at=now - timedelta(days=10),
            expires_at=now - timedelta(days=1),
            created_at=now - timedelta(days=10),
            updated_at=now - timedelta(days=10),
        )

        response = ConsentResponse.from_record(consent, now)

        assert response.status is ConsentStatus.EXPIRED
        assert consent.status is ConsentStatus.GRANTED
