"""Tests for service-layer input validation."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from datavault.errors import ValidationFailed
from datavault.services.schemas import (
    AuditPage,
    ConsentCreate,
    ExportFormat,
    IdentityFields,
    PersonalDataCreate,
    PersonalDataUpdate,
    validate_input,
)


class TestValidateInput:
    @staticmethod
    def test_passes_instances_through() -> None:
        identity = IdentityFields(name="Alice", email="alice@example.com")

        assert validate_input(IdentityFields, identity) is identity

    @staticmethod
    def test_strips_whitespace() -> None:
        identity = validate_input(IdentityFields, {"name": "  Alice ", "email": "a@b.io"})

        assert identity.name == "Alice"

    @staticmethod
    def test_collects_field_errors() -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            validate_input(IdentityFields, {"name": "", "email": "nope"})

        fields = {error["field"] for error in exc_info.value.errors}
        assert fields == {"name", "email"}
        assert exc_info.value.message.startswith("name:")


class TestPersonalDataCreate:
    @staticmethod
    def test_collected_at_converted_to_utc() -> None:
        paris = timezone(timedelta(hours=1))
        payload = PersonalDataCreate(
            category="IDENTITY",
            field_name="Full Name",
            field_value="Alice",
            purpose="Identification",
            collected_at=datetime(2025, 1, 1, 13, 0, tzinfo=paris),
        )

        assert payload.collected_at == datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
        assert payload.collected_at.tzinfo is UTC

    @staticmethod
    def test_default_retention() -> None:
        payload = PersonalDataCreate(
            category="USAGE", field_name="Theme", field_value="dark", purpose="Preferences"
        )

        assert payload.retention_days == 365


class TestPersonalDataUpdate:
    @staticmethod
    def test_requires_a_field() -> None:
        with pytest.raises(ValidationFailed):
            validate_input(PersonalDataUpdate, {})

    @staticmethod
    def test_rejects_collected_at() -> None:
        with pytest.raises(ValidationFailed):
            validate_input(PersonalDataUpdate, {"collected_at": "2025-01-01T00:00:00Z"})


class TestConsentCreate:
    @staticmethod
    def test_requires_initial_status() -> None:
        with pytest.raises(ValidationFailed):
            validate_input(ConsentCreate, {"purpose": "Marketing"})

    @staticmethod
    def test_item_scope_without_purpose() -> None:
        payload = validate_input(ConsentCreate, {"initial_status": "GRANTED", "data_item_id": "x"})

        assert payload.purpose is None


class TestExportFormat:
    @staticmethod
    def test_parse_case_insensitive() -> None:
        assert ExportFormat.parse("JSON") is ExportFormat.JSON

    @staticmethod
    def test_parse_unknown() -> None:
        with pytest.raises(ValidationFailed):
            ExportFormat.parse("yaml")


class TestAuditPage:
    @staticmethod
    @pytest.mark.parametrize(("total", "limit", "pages"), [(0, 20, 0), (20, 20, 1), (21, 20, 2)])
    def test_total_pages(total: int, limit: int, pages: int) -> None:
        assert AuditPage(entries=[], page=1, limit=limit, total=total).total_pages == pages
