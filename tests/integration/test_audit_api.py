"""Integration tests for audit trail endpoints."""

from __future__ import annotations

import csv
import io

from httpx import AsyncClient

from tests.integration.conftest import API, item_payload


class TestListing:
    @staticmethod
    async def test_newest_first_with_meta(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        await client.post(f"{API}/data", json=item_payload(), headers=auth_headers)

        resp = await client.get(f"{API}/audit", headers=auth_headers)

        body = resp.json()
        assert [entry["action"] for entry in body["data"]] == ["DATA_CREATE", "LOGIN"]
        assert body["meta"] == {"page": 1, "size": 20, "total": 2, "pages": 1}

    @staticmethod
    async def test_page_size_capped(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        resp = await client.get(f"{API}/audit", params={"limit": 1000}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["meta"]["size"] == 100

    @staticmethod
    async def test_unknown_action_rejected(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        resp = await client.get(f"{API}/audit", params={"action": "HACK"}, headers=auth_headers)

        assert resp.status_code == 422

    @staticmethod
    async def test_inverted_date_range_rejected(
        client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        resp = await client.get(
            f"{API}/audit",
            params={"startDate": "2025-02-01T00:00:00Z", "endDate": "2025-01-01T00:00:00Z"},
            headers=auth_headers,
        )

        assert resp.status_code == 422

    @staticmethod
    async def test_entries_carry_request_context(
        client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        await client.post(
            f"{API}/data",
            json=item_payload(),
            headers={**auth_headers, "User-Agent": "integration-test", "X-Forwarded-For": "203.0.113.5"},
        )

        resp = await client.get(f"{API}/audit", params={"action": "DATA_CREATE"}, headers=auth_headers)

        entry = resp.json()["data"][0]
        assert entry["user_agent"] == "integration-test"
        assert entry["ip_address"] == "203.0.113.5"

    @staticmethod
    async def test_isolated_per_owner(
        client: AsyncClient,
        auth_headers: dict[str, str],
        other_headers: dict[str, str],
    ) -> None:
        await client.post(f"{API}/data", json=item_payload(), headers=auth_headers)

        resp = await client.get(f"{API}/audit", headers=other_headers)

        actions = {entry["action"] for entry in resp.json()["data"]}
        assert "DATA_CREATE" not in actions


class TestStatsAndActions:
    @staticmethod
    async def test_stats(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        resp = await client.get(f"{API}/audit/stats", headers=auth_headers)

        body = resp.json()
        assert body["counts_by_action"] == {"LOGIN": 1}
        assert body["total_count"] == 1
        assert body["recent_count"] == 1

    @staticmethod
    async def test_actions(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        resp = await client.get(f"{API}/audit/actions", headers=auth_headers)

        actions = {entry["action"]: entry["description"] for entry in resp.json()}
        assert actions["DATA_EXPORT"] == "Exported personal data"
        assert len(actions) == 20


class TestExport:
    @staticmethod
    async def test_csv_export(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        resp = await client.get(f"{API}/audit/export", params={"format": "csv"}, headers=auth_headers)

        assert resp.status_code == 200
        assert "datavault-audit-" in resp.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(resp.text)))
        assert [row["action"] for row in rows] == ["LOGIN"]

    @staticmethod
    async def test_export_is_recorded(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        await client.get(f"{API}/audit/export", headers=auth_headers)

        resp = await client.get(f"{API}/audit", params={"action": "AUDIT_EXPORT"}, headers=auth_headers)

        assert resp.json()["meta"]["total"] == 1


class TestCallerMetadata:
    @staticmethod
    async def test_oversized_forwarded_for_still_audited(
        client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        forged = "9" * 100
        await client.delete(
            f"{API}/data/delete-all/confirm",
            headers={**auth_headers, "X-Forwarded-For": forged},
        )

        resp = await client.get(f"{API}/audit", params={"action": "DATA_DELETE"}, headers=auth_headers)

        entries = resp.json()["data"]
        assert len(entries) == 1
        assert entries[0]["details"] == {"type": "complete_erasure", "itemCount": 1}
        assert entries[0]["ip_address"] == forged[:45]
