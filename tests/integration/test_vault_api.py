"""Integration tests for secure notes and password endpoints."""

from __future__ import annotations

from httpx import AsyncClient

from tests.integration.conftest import API

NOTE = {"title": "Recovery codes", "content": "1234-5678", "category": "security"}
PASSWORD = {
    "website_name": "Example",
    "website_url": "https://example.com",
    "username": "alice",
    "password": "s3cret-P@ss",
}


async def _note(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    resp = await client.post(f"{API}/vault/notes", json={**NOTE, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _password(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    resp = await client.post(f"{API}/vault/passwords", json={**PASSWORD, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# =============================================================================
# NOTES
# =============================================================================


class TestNotes:
    @staticmethod
    async def test_create_hides_content(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        note = await _note(client, auth_headers)

        assert note["title"] == "Recovery codes"
        assert note["is_pinned"] is False
        assert "content" not in note

    @staticmethod
    async def test_read_reveals_content(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        note = await _note(client, auth_headers)

        resp = await client.get(f"{API}/vault/notes/{note['id']}", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["content"] == "1234-5678"

    @staticmethod
    async def test_list_pinned_first_and_filter(
        client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        await _note(client, auth_headers, title="Plain", category="misc")
        await _note(client, auth_headers, title="Pinned", is_pinned=True)

        listed = await client.get(f"{API}/vault/notes", headers=auth_headers)
        filtered = await client.get(
            f"{API}/vault/notes", params={"category": "misc"}, headers=auth_headers
        )

        assert [n["title"] for n in listed.json()] == ["Pinned", "Plain"]
        assert [n["title"] for n in filtered.json()] == ["Plain"]

    @staticmethod
    async def test_update_and_pin(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        note = await _note(client, auth_headers)

        updated = await client.put(
            f"{API}/vault/notes/{note['id']}", json={"title": "Backup codes"}, headers=auth_headers
        )
        pinned = await client.patch(f"{API}/vault/notes/{note['id']}/pin", headers=auth_headers)

        assert updated.json()["title"] == "Backup codes"
        assert pinned.json()["is_pinned"] is True

    @staticmethod
    async def test_stats(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        await _note(client, auth_headers, is_pinned=True)
        await _note(client, auth_headers, title="Work", category="work")

        resp = await client.get(f"{API}/vault/notes/stats/summary", headers=auth_headers)

        assert resp.json() == {
            "total_notes": 2,
            "pinned_notes": 1,
            "by_category": {"security": 1, "work": 1},
        }

    @staticmethod
    async def test_categories_route_not_shadowed_by_id(
        client: AsyncClient, auth_headers: dict[str, str]
    ) -> None:
        await _note(client, auth_headers, category="work")
        await _note(client, auth_headers)
        await _note(client, auth_headers, category=None)

        resp = await client.get(f"{API}/vault/notes/categories/list", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json() == ["security", "work"]

    @staticmethod
    async def test_delete(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        note = await _note(client, auth_headers)

        deleted = await client.delete(f"{API}/vault/notes/{note['id']}", headers=auth_headers)
        again = await client.get(f"{API}/vault/notes/{note['id']}", headers=auth_headers)

        assert deleted.status_code == 204
        assert again.status_code == 404

    @staticmethod
    async def test_foreign_note_is_404(
        client: AsyncClient,
        auth_headers: dict[str, str],
        other_headers: dict[str, str],
    ) -> None:
        note = await _note(client, auth_headers)

        resp = await client.get(f"{API}/vault/notes/{note['id']}", headers=other_headers)

        assert resp.status_code == 404

    @staticmethod
    async def test_missing_title_rejected(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        resp = await client.post(f"{API}/vault/notes", json={"content": "x"}, headers=auth_headers)

        assert resp.status_code == 422


# =============================================================================
# PASSWORDS
# =============================================================================


class TestPasswords:
    @staticmethod
    async def test_list_hides_password(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        await _password(client, auth_headers)

        resp = await client.get(f"{API}/vault/passwords", headers=auth_headers)

        entry = resp.json()[0]
        assert entry["website_name"] == "Example"
        assert "password" not in entry

    @staticmethod
    async def test_reveal_is_audited(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        entry = await _password(client, auth_headers)

        resp = await client.get(f"{API}/vault/passwords/{entry['id']}/reveal", headers=auth_headers)
        audit = await client.get(
            f"{API}/audit", params={"action": "PASSWORD_VIEW"}, headers=auth_headers
        )

        assert resp.json() == {"id": entry["id"], "password": "s3cret-P@ss"}
        assert audit.json()["meta"]["total"] == 1

    @staticmethod
    async def test_update_password(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        entry = await _password(client, auth_headers)

        await client.put(
            f"{API}/vault/passwords/{entry['id']}", json={"password": "rotated"}, headers=auth_headers
        )
        resp = await client.get(f"{API}/vault/passwords/{entry['id']}/reveal", headers=auth_headers)

        assert resp.json()["password"] == "rotated"

    @staticmethod
    async def test_delete(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        entry = await _password(client, auth_headers)

        deleted = await client.delete(f"{API}/vault/passwords/{entry['id']}", headers=auth_headers)
        listed = await client.get(f"{API}/vault/passwords", headers=auth_headers)

        assert deleted.status_code == 204
        assert listed.json() == []

    @staticmethod
    async def test_reveal_sets_last_used(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        entry = await _password(client, auth_headers)
        assert entry["last_used"] is None

        await client.get(f"{API}/vault/passwords/{entry['id']}/reveal", headers=auth_headers)
        listed = await client.get(f"{API}/vault/passwords", headers=auth_headers)

        assert listed.json()[0]["last_used"] is not None

    @staticmethod
    async def test_stats(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        used = await _password(client, auth_headers, category="work")
        await _password(client, auth_headers, category="work")
        await _password(client, auth_headers)
        await client.get(f"{API}/vault/passwords/{used['id']}/reveal", headers=auth_headers)

        resp = await client.get(f"{API}/vault/passwords/stats/summary", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json() == {
            "total_passwords": 3,
            "by_category": {"work": 2},
            "recently_used": 1,
        }

    @staticmethod
    async def test_categories(client: AsyncClient, auth_headers: dict[str, str]) -> None:
        await _password(client, auth_headers, category="work")
        await _password(client, auth_headers, category="bank")
        gone = await _password(client, auth_headers, category="old")
        await client.delete(f"{API}/vault/passwords/{gone['id']}", headers=auth_headers)

        resp = await client.get(f"{API}/vault/passwords/categories/list", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json() == ["bank", "work"]
