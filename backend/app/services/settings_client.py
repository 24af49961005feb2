"""HTTP client that keeps a ``SettingsState`` in sync with the settings API.

Every operation except ``load_state`` reports failure through its result
object and leaves the local state as it was; nothing is retried.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from app.core.logging import get_logger
from app.services.settings_state import SettingsState

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
NETWORK_ERROR_MESSAGE = "No se pudo conectar con el servidor."
INVALID_RESPONSE_MESSAGE = "El servidor devolvió una respuesta no válida."

# Maintenance status field -> setting key
MAINTENANCE_STATUS_KEYS = {
    "enabled": "maintenance_mode",
    "message": "maintenance_message",
    "allowed_ips": "maintenance_allowed_ips",
    "start_at": "maintenance_start_at",
    "end_at": "maintenance_end_at",
}

ProgressCallback = Callable[[int], None]


class SettingsClientError(Exception):
    """Raised when the settings payload cannot be loaded."""

    pass


@dataclass
class SaveResult:
    ok: bool
    message: str = ""
    errors: dict[str, str] = field(default_factory=dict)
    updated: list[str] = field(default_factory=list)


@dataclass
class UploadResult:
    ok: bool
    path: str | None = None
    message: str = ""
    error: str | None = None


@dataclass
class ActionResult:
    """Outcome of a maintenance, history or revert request."""

    ok: bool
    message: str = ""
    errors: dict[str, str] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict)


class _ProgressReader(io.BytesIO):
    """In-memory file that reports how much of it has been read."""

    def __init__(self, content: bytes, on_progress: ProgressCallback | None):
        super().__init__(content)
        self._total = len(content)
        self._on_progress = on_progress
        self.last_reported = -1

    def report(self, percentage: int) -> None:
        if self._on_progress is None or percentage == self.last_reported:
            return
        self.last_reported = percentage
        self._on_progress(percentage)

    def read(self, size: int | None = -1) -> bytes:
        chunk = super().read(size)
        if self._total:
            self.report(min(100, self.tell() * 100 // self._total))
        return chunk


def _flatten_errors(errors: Any) -> dict[str, str]:
    """Per-key errors with the first message for each key."""
    if not isinstance(errors, dict):
        return {}
    flat: dict[str, str] = {}
    for key, messages in errors.items():
        if isinstance(messages, (list, tuple)):
            if not messages:
                continue
            messages = messages[0]
        flat[str(key)] = str(messages)
    return flat


def _error_details(response: httpx.Response) -> tuple[str, dict[str, str]]:
    """Message and per-key errors from an error response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}", {}

    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return str(detail.get("message") or f"HTTP {response.status_code}"), _flatten_errors(
            detail.get("errors")
        )
    if isinstance(detail, str):
        return detail, {}
    return f"HTTP {response.status_code}", {}


def _success_body(response: httpx.Response) -> Any:
    """Decoded JSON of a 2xx response, or None when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        logger.warning(
            "settings_response_not_json",
            url=str(response.request.url),
            status=response.status_code,
        )
        return None


def apply_maintenance_status(state: SettingsState, status: dict[str, Any]) -> None:
    """Adopt a server maintenance status as the committed maintenance values."""
    for field_name, key in MAINTENANCE_STATUS_KEYS.items():
        if field_name in status and key in state.values:
            state.sync_committed(key, status[field_name])


class SettingsClient:
    """Client for the ``/api/v1/settings`` and ``/api/v1/maintenance`` endpoints.

    Usage:
        async with SettingsClient("http://localhost:8080", admin="ana") as client:
            state = await client.load_state()
            state.set_value("site_name", "MDR")
            result = await client.save(state)
    """

    def __init__(
        self,
        base_url: str = "",
        http_client: httpx.AsyncClient | None = None,
        admin: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.admin = admin
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "SettingsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        if self.admin:
            headers = dict(kwargs.pop("headers", None) or {})
            headers.setdefault("X-Admin-User", self.admin)
            kwargs["headers"] = headers
        return await client.request(method, url, **kwargs)

    # ========== Settings ==========

    async def load_state(self) -> SettingsState:
        """Fetch the settings payload and build a fresh state.

        Raises:
            SettingsClientError: If the payload cannot be fetched.
        """
        try:
            response = await self._request("GET", "/api/v1/settings/")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("settings_load_failed", error=str(e))
            raise SettingsClientError(f"Could not load settings: {e}") from e

        return SettingsState.from_payload(data.get("settings"), data.get("groups"))

    async def refresh(self, state: SettingsState) -> ActionResult:
        """Re-hydrate ``state`` from the server, dropping local edits."""
        try:
            response = await self._request("GET", "/api/v1/settings/")
        except httpx.HTTPError as e:
            logger.warning("settings_refresh_failed", error=str(e))
            return ActionResult(ok=False, message=NETWORK_ERROR_MESSAGE)

        if response.is_error:
            message, errors = _error_details(response)
            return ActionResult(ok=False, message=message, errors=errors)

        data = _success_body(response)
        if not isinstance(data, dict):
            return ActionResult(ok=False, message=INVALID_RESPONSE_MESSAGE)
        state.hydrate(data.get("settings"), data.get("groups"))
        return ActionResult(ok=True)

    async def save(self, state: SettingsState) -> SaveResult:
        """Send the dirty values of ``state`` and commit or record errors."""
        payload = state.dirty_payload
        if not payload:
            return SaveResult(ok=True, message="No hay cambios para guardar.")

        state.begin_save()
        try:
            response = await self._request(
                "POST", "/api/v1/settings/", json={"settings": payload}
            )
        except httpx.HTTPError as e:
            logger.warning("settings_save_request_failed", error=str(e))
            state.fail_save({})
            return SaveResult(ok=False, message=NETWORK_ERROR_MESSAGE)

        if response.is_error:
            message, errors = _error_details(response)
            state.fail_save(errors)
            return SaveResult(ok=False, message=message, errors=errors)

        data = _success_body(response)
        if not isinstance(data, dict):
            data = {}
        state.commit_changes()
        logger.info("settings_saved", count=len(payload))
        return SaveResult(
            ok=True,
            message=data.get("message", ""),
            updated=list(data.get("updated") or []),
        )

    async def upload_file(
        self,
        state: SettingsState,
        key: str,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Upload a file for a file-type setting.

        ``on_progress`` receives percentages while the body is sent and 100
        once the server has accepted the file.
        """
        reader = _ProgressReader(content, on_progress)
        try:
            response = await self._request(
                "POST",
                "/api/v1/settings/upload",
                data={"key": key},
                files={"file": (filename, reader, content_type)},
            )
        except httpx.HTTPError as e:
            logger.warning("settings_upload_request_failed", key=key, error=str(e))
            state.errors[key] = NETWORK_ERROR_MESSAGE
            return UploadResult(ok=False, message=NETWORK_ERROR_MESSAGE, error=NETWORK_ERROR_MESSAGE)

        if response.is_error:
            message, errors = _error_details(response)
            error = errors.get("file") or errors.get(key) or message
            state.errors[key] = error
            return UploadResult(ok=False, message=message, error=error)

        data = _success_body(response)
        if not isinstance(data, dict):
            data = {}
        path = data.get("path")
        if path is not None:
            state.sync_committed(key, path)
        reader.report(100)
        return UploadResult(ok=True, path=path, message=data.get("message", ""))

    async def fetch_history(self, key: str) -> ActionResult:
        return await self._action("GET", f"/api/v1/settings/history/{key}")

    async def revert(self, state: SettingsState, key: str, history_id: int) -> ActionResult:
        """Revert a setting to a history entry and adopt the restored value."""
        result = await self._action(
            "POST", f"/api/v1/settings/revert/{key}", json={"history_id": history_id}
        )
        if result.ok and "setting" in result.data:
            state.sync_committed(key, result.data["setting"].get("value"))
        return result

    # ========== Maintenance ==========

    async def maintenance_status(self) -> ActionResult:
        return await self._action("GET", "/api/v1/maintenance/status")

    async def toggle_maintenance(
        self, state: SettingsState, enabled: bool, message: str | None = None
    ) -> ActionResult:
        return await self._maintenance_action(
            state, "POST", "/api/v1/maintenance/toggle",
            json={"enabled": enabled, "message": message},
        )

    async def schedule_maintenance(
        self, state: SettingsState, start_at: str, end_at: str, message: str
    ) -> ActionResult:
        return await self._maintenance_action(
            state, "POST", "/api/v1/maintenance/schedule",
            json={"start_at": start_at, "end_at": end_at, "message": message},
        )

    async def add_allowed_ip(self, state: SettingsState, ip: str) -> ActionResult:
        return await self._maintenance_action(
            state, "POST", "/api/v1/maintenance/ip", json={"ip": ip}
        )

    async def remove_allowed_ip(self, state: SettingsState, ip: str) -> ActionResult:
        return await self._maintenance_action(
            state, "DELETE", f"/api/v1/maintenance/ip/{ip}"
        )

    async def _maintenance_action(
        self, state: SettingsState, method: str, url: str, **kwargs: Any
    ) -> ActionResult:
        result = await self._action(method, url, **kwargs)
        if result.ok and isinstance(result.data.get("status"), dict):
            apply_maintenance_status(state, result.data["status"])
        return result

    async def _action(self, method: str, url: str, **kwargs: Any) -> ActionResult:
        try:
            response = await self._request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("settings_request_failed", url=url, error=str(e))
            return ActionResult(ok=False, message=NETWORK_ERROR_MESSAGE)

        if response.is_error:
            message, errors = _error_details(response)
            return ActionResult(ok=False, message=message, errors=errors)

        data = _success_body(response)
        if data is None:
            return ActionResult(ok=False, message=INVALID_RESPONSE_MESSAGE)
        if not isinstance(data, dict):
            data = {"items": data}
        return ActionResult(ok=True, message=str(data.get("message", "")), data=data)
