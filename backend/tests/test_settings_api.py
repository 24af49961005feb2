"""Tests for the settings API routes."""

from __future__ import annotations

import json

import pytest

from app.services.setting_catalog import DEFAULT_SETTINGS


# =============================================================================
# Index & Update
# =============================================================================


class TestSettingsIndex:
    @pytest.mark.asyncio
    async def test_initialize(self, api_client):
        response = await api_client.post("/api/v1/settings/initialize")
        assert response.status_code == 200
        assert response.json()["count"] == len(DEFAULT_SETTINGS)

    @pytest.mark.asyncio
    async def test_get_settings(self, seeded_client):
        response = await seeded_client.get("/api/v1/settings/")
        assert response.status_code == 200
        data = response.json()

        assert list(data["groups"])[0] == "general"
        assert data["groups"]["maintenance"]["icon"] == "build"
        site_name = data["settings"]["general"][0]
        assert site_name["key"] == "site_name"
        assert site_name["value"] == "MDR Construcciones"
        assert site_name["validation_rules"] == ["required", "string", "max:255"]

    @pytest.mark.asyncio
    async def test_empty_database(self, api_client):
        response = await api_client.get("/api/v1/settings/")
        assert response.status_code == 200
        assert response.json()["settings"] == {}

    @pytest.mark.asyncio
    async def test_public(self, seeded_client):
        response = await seeded_client.get("/api/v1/settings/public")
        assert response.status_code == 200
        public = response.json()["settings"]
        assert public["company_email"] == "info@mdrconstrucciones.com"
        assert "session_timeout" not in public


class TestSettingsUpdate:
    @pytest.mark.asyncio
    async def test_update(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/",
            json={"settings": {"site_name": "MDR Reformas", "blog_posts_per_page": 9}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Configuraciones actualizadas correctamente."
        assert sorted(data["updated"]) == ["blog_posts_per_page", "site_name"]

        public = (await seeded_client.get("/api/v1/settings/public")).json()["settings"]
        assert public["site_name"] == "MDR Reformas"
        assert public["blog_posts_per_page"] == 9

    @pytest.mark.asyncio
    async def test_no_changes(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/", json={"settings": {"site_name": "MDR Construcciones"}}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "No se detectaron cambios para actualizar."
        assert response.json()["updated"] == []

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_valid_keys(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/",
            json={"settings": {"site_name": "MDR Reformas", "company_email": "nope"}},
        )
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["message"] == "Algunas configuraciones se actualizaron."
        assert detail["updated"] == ["site_name"]
        assert detail["errors"]["company_email"] == [
            "The company email field must be a valid email address."
        ]

        public = (await seeded_client.get("/api/v1/settings/public")).json()["settings"]
        assert public["site_name"] == "MDR Reformas"
        assert public["company_email"] == "info@mdrconstrucciones.com"

    @pytest.mark.asyncio
    async def test_total_failure(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/", json={"settings": {"site_name": ""}}
        )
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["message"] == "No se pudieron actualizar las configuraciones."
        assert detail["updated"] == []


# =============================================================================
# Upload
# =============================================================================


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/upload",
            data={"key": "site_logo"},
            files={"file": ("logo.png", b"\x89PNG", "image/png")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["key"] == "site_logo"
        assert data["path"].startswith("settings/")

        public = (await seeded_client.get("/api/v1/settings/public")).json()["settings"]
        assert public["site_logo"] == data["path"]

    @pytest.mark.asyncio
    async def test_unknown_key(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/upload",
            data={"key": "nope"},
            files={"file": ("logo.png", b"x", "image/png")},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_rejected_file(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/upload",
            data={"key": "site_logo"},
            files={"file": ("run.exe", b"x", "application/octet-stream")},
        )
        assert response.status_code == 422
        assert "file" in response.json()["detail"]["errors"]


# =============================================================================
# History & Revert
# =============================================================================


class TestHistoryApi:
    @pytest.mark.asyncio
    async def test_history_and_revert(self, seeded_client):
        await seeded_client.post(
            "/api/v1/settings/",
            json={"settings": {"session_timeout": 60}},
            headers={"X-Admin-User": "ana"},
        )

        response = await seeded_client.get("/api/v1/settings/history/session_timeout")
        assert response.status_code == 200
        data = response.json()
        assert data["setting"] == {"key": "session_timeout", "label": "Session Time (minutes)"}
        entry = data["history"][0]
        assert entry["old_value"] == "120"
        assert entry["new_value"] == "60"
        assert entry["changed_by"] == "ana"
        assert entry["reason"] == "Updated via admin panel"
        assert len(entry["changed_at"]) == len("2025-01-01 00:00:00")

        response = await seeded_client.post(
            "/api/v1/settings/revert/session_timeout", json={"history_id": entry["id"]}
        )
        assert response.status_code == 200
        assert response.json()["setting"]["value"] == 120

    @pytest.mark.asyncio
    async def test_history_unknown_key(self, seeded_client):
        response = await seeded_client.get("/api/v1/settings/history/nope")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_revert_unknown_entry(self, seeded_client):
        response = await seeded_client.post(
            "/api/v1/settings/revert/site_name", json={"history_id": 12345}
        )
        assert response.status_code == 422
        assert "history_id" in response.json()["detail"]["errors"]


# =============================================================================
# Export, Import & Reset
# =============================================================================


class TestExportImport:
    @pytest.mark.asyncio
    async def test_export(self, seeded_client):
        response = await seeded_client.get("/api/v1/settings/export")
        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert 'filename="admin-settings-' in disposition
        assert disposition.endswith('.json"')
        assert len(response.json()) == len(DEFAULT_SETTINGS)

    @pytest.mark.asyncio
    async def test_import(self, seeded_client):
        content = json.dumps([{"key": "site_name", "value": "Importado"}]).encode()
        response = await seeded_client.post(
            "/api/v1/settings/import",
            files={"file": ("settings.json", content, "application/json")},
        )
        assert response.status_code == 200
        assert response.json()["imported"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "filename,content",
        [
            ("settings.txt", b"[]"),
            ("settings.json", b"{not json"),
            ("settings.json", b'{"key": "site_name"}'),
        ],
    )
    async def test_import_rejects(self, seeded_client, filename, content):
        response = await seeded_client.post(
            "/api/v1/settings/import",
            files={"file": (filename, content, "application/json")},
        )
        assert response.status_code == 422
        assert "file" in response.json()["detail"]["errors"]

    @pytest.mark.asyncio
    async def test_import_too_large(self, seeded_client):
        content = b"[" + b" " * (1024 * 1024) + b"]"
        response = await seeded_client.post(
            "/api/v1/settings/import",
            files={"file": ("settings.json", content, "application/json")},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_reset_all(self, seeded_client):
        await seeded_client.post("/api/v1/settings/", json={"settings": {"site_name": "Otro"}})

        response = await seeded_client.post("/api/v1/settings/reset-all")
        assert response.status_code == 200
        assert response.json()["reset"] == 1

        response = await seeded_client.post("/api/v1/settings/reset-all")
        assert response.json()["reset"] == 0
        assert response.json()["message"] == (
            "Todas las configuraciones ya tienen sus valores por defecto."
        )


# =============================================================================
# Preferences
# =============================================================================


class TestPreferencesApi:
    @pytest.mark.asyncio
    async def test_round_trip(self, api_client):
        headers = {"X-Admin-User": "prefs-api-admin"}
        response = await api_client.put(
            "/api/v1/settings/preferences",
            json={"preferences": {"search": "mail", "active_group": "email"}},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["updated_at"] is not None

        response = await api_client.get("/api/v1/settings/preferences", headers=headers)
        assert response.json()["preferences"] == {"search": "mail", "active_group": "email"}

    @pytest.mark.asyncio
    async def test_unknown_admin_has_empty_preferences(self, api_client):
        response = await api_client.get(
            "/api/v1/settings/preferences", headers={"X-Admin-User": "nobody-yet"}
        )
        assert response.json()["preferences"] == {}
