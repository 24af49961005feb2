"""Tests for the settings HTTP client."""

from __future__ import annotations

from datetime import datetime, timedelta

import httpx
import pytest

from app.services.settings_client import (
    INVALID_RESPONSE_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    SettingsClient,
    SettingsClientError,
    apply_maintenance_status,
)
from app.services.settings_state import SaveStatus, SettingsState


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")


@pytest.fixture
async def client(seeded_client):
    """SettingsClient talking to the app over the test transport."""
    return SettingsClient(http_client=seeded_client, admin="ana")


# =============================================================================
# Load & Save
# =============================================================================


class TestLoadAndSave:
    @pytest.mark.asyncio
    async def test_load_state(self, client):
        state = await client.load_state()

        assert state.active_group == "general"
        assert state.values["site_name"] == "MDR Construcciones"
        assert state.values["maintenance_mode"] is False
        assert state.dirty_count == 0

    @pytest.mark.asyncio
    async def test_save_commits_state(self, client):
        state = await client.load_state()
        state.set_value("site_name", "MDR Reformas")

        result = await client.save(state)

        assert result.ok
        assert result.updated == ["site_name"]
        assert state.dirty_count == 0
        assert state.save_status is SaveStatus.SUCCESS
        assert state.original_values["site_name"] == "MDR Reformas"

        fresh = await client.load_state()
        assert fresh.values["site_name"] == "MDR Reformas"

    @pytest.mark.asyncio
    async def test_save_records_actor(self, client):
        state = await client.load_state()
        state.set_value("site_name", "MDR Reformas")
        await client.save(state)

        history = await client.fetch_history("site_name")
        assert history.data["history"][0]["changed_by"] == "ana"

    @pytest.mark.asyncio
    async def test_save_without_changes(self, client):
        state = await client.load_state()
        result = await client.save(state)
        assert result.ok
        assert state.save_status is SaveStatus.IDLE

    @pytest.mark.asyncio
    async def test_save_with_validation_errors(self, client):
        state = await client.load_state()
        state.set_value("company_email", "not-an-email")
        state.set_value("site_name", "MDR Reformas")

        result = await client.save(state)

        assert not result.ok
        assert result.errors == {
            "company_email": "The company email field must be a valid email address."
        }
        assert state.errors["company_email"] == result.errors["company_email"]
        assert state.save_status is SaveStatus.ERROR
        assert not state.is_saving
        assert state.is_dirty("company_email")

    @pytest.mark.asyncio
    async def test_refresh_drops_local_edits(self, client):
        state = await client.load_state()
        state.set_value("site_name", "Local")

        result = await client.refresh(state)

        assert result.ok
        assert state.values["site_name"] == "MDR Construcciones"
        assert state.dirty_count == 0


# =============================================================================
# Upload
# =============================================================================


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_reports_progress(self, client):
        state = await client.load_state()
        progress: list[int] = []

        result = await client.upload_file(
            state, "site_logo", "logo.png", b"\x89PNG" * 1000, "image/png",
            on_progress=progress.append,
        )

        assert result.ok
        assert result.path.startswith("settings/")
        assert progress[-1] == 100
        assert state.values["site_logo"] == result.path
        assert not state.is_dirty("site_logo")

    @pytest.mark.asyncio
    async def test_upload_error_is_recorded_on_key(self, client):
        state = await client.load_state()

        result = await client.upload_file(state, "site_logo", "virus.exe", b"x")

        assert not result.ok
        assert result.error.startswith("El archivo debe ser de tipo")
        assert state.errors["site_logo"] == result.error
        assert state.values["site_logo"] == "/images/logo.png"


# =============================================================================
# History & Maintenance
# =============================================================================


class TestRevertAndMaintenance:
    @pytest.mark.asyncio
    async def test_revert_syncs_state(self, client):
        state = await client.load_state()
        state.set_value("session_timeout", 60)
        await client.save(state)
        entry_id = (await client.fetch_history("session_timeout")).data["history"][0]["id"]

        result = await client.revert(state, "session_timeout", entry_id)

        assert result.ok
        assert state.values["session_timeout"] == 120
        assert state.original_values["session_timeout"] == 120

    @pytest.mark.asyncio
    async def test_revert_failure(self, client):
        state = await client.load_state()
        result = await client.revert(state, "site_name", 99999)
        assert not result.ok
        assert "history_id" in result.errors

    @pytest.mark.asyncio
    async def test_toggle_maintenance_syncs_state(self, client):
        state = await client.load_state()

        result = await client.toggle_maintenance(state, True, "Obras")

        assert result.ok
        assert state.values["maintenance_mode"] is True
        assert state.values["maintenance_message"] == "Obras"
        assert not state.has_unsaved_changes

    @pytest.mark.asyncio
    async def test_toggle_maintenance_error(self, client):
        state = await client.load_state()
        result = await client.toggle_maintenance(state, True)
        assert not result.ok
        assert "message" in result.errors
        assert state.values["maintenance_mode"] is False

    @pytest.mark.asyncio
    async def test_allowed_ips(self, client):
        state = await client.load_state()

        assert (await client.add_allowed_ip(state, "10.0.0.1")).ok
        assert state.values["maintenance_allowed_ips"] == ["10.0.0.1"]

        assert (await client.remove_allowed_ip(state, "10.0.0.1")).ok
        assert state.values["maintenance_allowed_ips"] == []

    @pytest.mark.asyncio
    async def test_schedule_maintenance(self, client):
        start = (datetime.now() + timedelta(days=1)).strftime("%Y-%m-%dT%H:%M")
        end = (datetime.now() + timedelta(days=2)).strftime("%Y-%m-%dT%H:%M")
        state = await client.load_state()

        result = await client.schedule_maintenance(state, start, end, "Obras")

        assert result.ok
        assert state.values["maintenance_start_at"] == start
        assert state.values["maintenance_end_at"] == end

    @pytest.mark.asyncio
    async def test_maintenance_status(self, client):
        result = await client.maintenance_status()
        assert result.ok
        assert result.data["enabled"] is False


# =============================================================================
# Failure handling
# =============================================================================


class TestFailures:
    @pytest.mark.asyncio
    async def test_load_state_raises_on_server_error(self):
        http = _mock_client(lambda request: httpx.Response(500, text="boom"))
        async with SettingsClient(http_client=http) as client:
            with pytest.raises(SettingsClientError):
                await client.load_state()
        await http.aclose()

    @pytest.mark.asyncio
    async def test_network_error_on_save(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        http = _mock_client(handler)
        client = SettingsClient(http_client=http)
        state = SettingsState.from_payload(
            {"general": [{"key": "site_name", "type": "string", "value": "MDR"}]}
        )
        state.set_value("site_name", "Otro")

        result = await client.save(state)

        assert not result.ok
        assert result.message == NETWORK_ERROR_MESSAGE
        assert state.save_status is SaveStatus.ERROR
        assert state.is_dirty("site_name")
        await http.aclose()

    @pytest.mark.asyncio
    async def test_string_detail_becomes_message(self):
        http = _mock_client(lambda request: httpx.Response(404, json={"detail": "Setting not found"}))
        client = SettingsClient(http_client=http)

        result = await client.fetch_history("nope")

        assert not result.ok
        assert result.message == "Setting not found"
        assert result.errors == {}
        await http.aclose()

    @pytest.mark.asyncio
    async def test_admin_header_is_sent(self):
        seen = {}

        def handler(request):
            seen["admin"] = request.headers.get("X-Admin-User")
            return httpx.Response(200, json={"enabled": False})

        http = _mock_client(handler)
        client = SettingsClient(http_client=http, admin="ana")
        await client.maintenance_status()

        assert seen["admin"] == "ana"
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_sends_admin_per_request_only(self):
        client = SettingsClient("http://localhost:8080", admin="ana")
        http = await client._get_client()
        assert "X-Admin-User" not in http.headers
        await client.close()
        assert http.is_closed

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client_open(self):
        http = _mock_client(lambda request: httpx.Response(200, json={}))
        client = SettingsClient(http_client=http)
        await client.close()
        assert not http.is_closed
        await http.aclose()


class TestNonJsonSuccess:
    """A 2xx response whose body is not JSON, e.g. an HTML page from a proxy."""

    @staticmethod
    def _html_client() -> httpx.AsyncClient:
        return _mock_client(lambda request: httpx.Response(200, text="<html>ok</html>"))

    @staticmethod
    def _state() -> SettingsState:
        return SettingsState.from_payload(
            {"general": [
                {"key": "site_name", "type": "string", "value": "MDR"},
                {"key": "site_logo", "type": "file", "value": "/images/logo.png"},
            ]}
        )

    @pytest.mark.asyncio
    async def test_save_still_commits(self):
        http = self._html_client()
        client = SettingsClient(http_client=http)
        state = self._state()
        state.set_value("site_name", "Otro")

        result = await client.save(state)

        assert result.ok
        assert result.updated == []
        assert not state.is_saving
        assert state.save_status is SaveStatus.SUCCESS
        assert state.dirty_count == 0
        await http.aclose()

    @pytest.mark.asyncio
    async def test_upload_keeps_current_value(self):
        http = self._html_client()
        client = SettingsClient(http_client=http)
        state = self._state()

        result = await client.upload_file(state, "site_logo", "logo.png", b"\x89PNG")

        assert result.ok
        assert result.path is None
        assert state.values["site_logo"] == "/images/logo.png"
        await http.aclose()

    @pytest.mark.asyncio
    async def test_refresh_fails(self):
        http = self._html_client()
        client = SettingsClient(http_client=http)
        state = self._state()
        state.set_value("site_name", "Local")

        result = await client.refresh(state)

        assert not result.ok
        assert result.message == INVALID_RESPONSE_MESSAGE
        assert state.values["site_name"] == "Local"
        await http.aclose()

    @pytest.mark.asyncio
    async def test_action_fails(self):
        http = self._html_client()
        client = SettingsClient(http_client=http)

        result = await client.maintenance_status()

        assert not result.ok
        assert result.message == INVALID_RESPONSE_MESSAGE
        await http.aclose()


class TestApplyMaintenanceStatus:
    def test_only_known_keys_are_synced(self):
        state = SettingsState.from_payload(
            {"maintenance": [
                {"key": "maintenance_mode", "type": "boolean", "value": False},
                {"key": "maintenance_allowed_ips", "type": "json", "value": []},
            ]}
        )

        apply_maintenance_status(state, {"enabled": True, "allowed_ips": ["1.1.1.1"], "message": "x"})

        assert state.values == {"maintenance_mode": True, "maintenance_allowed_ips": ["1.1.1.1"]}
        assert state.dirty_count == 0
