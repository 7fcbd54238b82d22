"""Tests for export serialization helpers."""

import json
from datetime import UTC, datetime, timedelta, timezone

from datavault.services.exporters import format_timestamp, to_csv, to_json


class TestFormatTimestamp:
    @staticmethod
    def test_utc_with_z_suffix() -> None:
        value = datetime(2025, 1, 15, 12, 0, 5, 123456, tzinfo=UTC)

        assert format_timestamp(value) == "2025-01-15T12:00:05.123Z"

    @staticmethod
    def test_offset_converted_to_utc() -> None:
        value = datetime(2025, 1, 15, 13, 0, tzinfo=timezone(timedelta(hours=1)))

        assert format_timestamp(value) == "2025-01-15T12:00:00.000Z"

    @staticmethod
    def test_none() -> None:
        assert format_timestamp(None) is None


class TestToCsv:
    @staticmethod
    def test_header_and_cells() -> None:
        rows = [{"a": 1, "b": None, "c": True, "extra": "ignored"}]

        content = to_csv(rows, ("a", "b", "c"))

        assert content == "a,b,c\n1,,true\n"

    @staticmethod
    def test_quotes_commas() -> None:
        content = to_csv([{"a": "x, y"}], ("a",))

        assert content.splitlines()[1] == '"x, y"'

    @staticmethod
    def test_empty_rows_keep_header() -> None:
        assert to_csv([], ("id", "name")) == "id,name\n"


class TestToJson:
    @staticmethod
    def test_keeps_unicode() -> None:
        content = to_json({"name": "Élodie"})

        assert "Élodie" in content
        assert json.loads(content) == {"name": "Élodie"}
