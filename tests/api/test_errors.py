"""Tests for domain error to HTTP mapping."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from datavault.api.errors import register_exception_handlers, status_code_for
from datavault.errors import (
    AppendOnlyViolation,
    AuditWriteFailed,
    DataInactive,
    DataVaultError,
    InvalidTransition,
    NotFound,
    StoreUnavailable,
    TransformIntegrityError,
    ValidationFailed,
)


@pytest.fixture
def client() -> TestClient:
    """Minimal app raising domain errors from its routes."""
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    def missing():
        raise NotFound("Data")

    @app.get("/invalid")
    def invalid():
        raise ValidationFailed("Invalid input", errors=[{"field": "purpose", "message": "required"}])

    @app.get("/unavailable")
    def unavailable():
        raise StoreUnavailable()

    @app.get("/broken")
    def broken():
        raise AuditWriteFailed()

    return TestClient(app)


class TestStatusCodeFor:
    @staticmethod
    @pytest.mark.parametrize(
        "exc,expected",
        [
            (NotFound(), 404),
            (InvalidTransition(), 409),
            (DataInactive(), 409),
            (ValidationFailed(), 422),
            (StoreUnavailable(), 503),
            (AuditWriteFailed(), 500),
            (AppendOnlyViolation(), 500),
            (TransformIntegrityError(), 500),
            (DataVaultError(), 500),
        ],
    )
    def test_mapping(exc: DataVaultError, expected: int) -> None:
        assert status_code_for(exc) == expected

    @staticmethod
    def test_subclass_inherits_mapping() -> None:
        class ItemMissing(NotFound):
            pass

        assert status_code_for(ItemMissing()) == 404


class TestHandler:
    @staticmethod
    def test_not_found_body(client: TestClient) -> None:
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Data not found"}

    @staticmethod
    def test_validation_errors_listed(client: TestClient) -> None:
        response = client.get("/invalid")

        assert response.status_code == 422
        assert response.json()["errors"] == [{"field": "purpose", "message": "required"}]

    @staticmethod
    def test_retryable_sets_retry_after(client: TestClient) -> None:
        response = client.get("/unavailable")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "5"

    @staticmethod
    def test_internal_error_hides_details(client: TestClient) -> None:
        response = client.get("/broken")

        assert response.status_code == 500
        assert response.json() == {"detail": "Audit entry could not be recorded"}
        assert "Retry-After" not in response.headers
