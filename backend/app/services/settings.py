"""Settings service for managing the admin settings catalogue."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, TypeVar

import aiofiles
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings as env_settings
from app.core.logging import get_logger
from app.db.models import AdminSetting, AdminSettingHistory
from app.services.coercion import coerce_setting_value
from app.services.events import get_event_broadcaster
from app.services.setting_catalog import DEFAULT_SETTINGS
from app.services.setting_rules import validate_value
from app.services.setting_storage import (
    decrypted_raw,
    encode_for_storage,
    read_value,
    serialize_value,
)

logger = get_logger(__name__)

T = TypeVar("T")

UPLOAD_DIR = "settings"
DEFAULT_MAX_UPLOAD_KB = 10240
DEFAULT_UPLOAD_EXTENSIONS = "jpg,jpeg,png,pdf,doc,docx"

REASON_UPDATED = "Updated via admin panel"
REASON_UPLOADED = "File uploaded via admin panel"
REASON_IMPORTED = "Imported from JSON file"
REASON_RESET = "Reset to default value"


class SettingsError(Exception):
    """Base exception for settings errors."""

    pass


class SettingNotFoundError(SettingsError):
    """Raised when a setting key does not exist."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Setting not found: {key}")


class SettingsValidationError(SettingsError):
    """Raised when one or more setting values are invalid.

    ``errors`` maps each failing key to its messages.
    """

    def __init__(self, errors: Mapping[str, list[str]], message: str = "Invalid setting values"):
        self.errors = dict(errors)
        super().__init__(message)


class SettingUploadError(SettingsError):
    """Raised when an uploaded file is rejected."""

    pass


class HistoryEntryNotFoundError(SettingsError):
    """Raised when a history entry does not exist for the setting."""

    pass


@dataclass(frozen=True)
class Actor:
    """Who made a change, recorded on every history entry."""

    name: str = "System"
    ip_address: str | None = None
    user_agent: str | None = None


SYSTEM_ACTOR = Actor()


def serialize_setting(setting: AdminSetting) -> dict[str, Any]:
    """Setting as sent to the admin panel."""
    return {
        "id": setting.id,
        "key": setting.key,
        "value": read_value(setting),
        "type": setting.type,
        "group": setting.group,
        "label": setting.label,
        "description": setting.description,
        "validation_rules": setting.rules,
        "options": setting.options,
        "is_public": setting.is_public,
        "is_encrypted": setting.is_encrypted,
        "sort_order": setting.sort_order,
    }


class SettingsService:
    """Service for managing admin settings.

    Provides methods to read and write settings with:
    - In-memory caching with TTL
    - Type-aware storage encoding and encryption
    - Rule-based validation
    - Change history with actor metadata
    """

    # Class-level cache shared across instances: key -> (value, expires_at)
    _cache: dict[str, tuple[Any, float]] = {}

    def __init__(self, db: AsyncSession):
        """Initialize the settings service.

        Args:
            db: AsyncSession for database operations.
        """
        self.db = db
        self._replaced_files: list[str] = []

    # ========== Reads ==========

    async def get_setting(self, key: str) -> AdminSetting | None:
        result = await self.db.execute(
            select(AdminSetting).where(AdminSetting.key == key)
        )
        return result.scalar_one_or_none()

    async def require_setting(self, key: str) -> AdminSetting:
        setting = await self.get_setting(key)
        if setting is None:
            raise SettingNotFoundError(key)
        return setting

    async def get(self, key: str, default: T | None = None) -> T | None:
        """Get a typed setting value, or ``default`` when the key is unknown."""
        setting = await self.get_setting(key)
        if setting is None:
            return default
        return read_value(setting)

    async def get_cached(
        self, key: str, default: T | None = None, ttl: float | None = None
    ) -> T | None:
        """Get a setting value through the in-memory cache.

        Args:
            key: The setting key to retrieve.
            default: Returned (and cached) when the key is unknown.
            ttl: Seconds the value stays cached; defaults to the configured TTL.
        """
        cached = self._get_from_cache(key)
        if cached is not None:
            return cached[0]

        value = await self.get(key, default)
        if ttl is None:
            ttl = env_settings.settings_cache_ttl
        self._cache[key] = (value, time.monotonic() + ttl)
        return value

    async def get_all(self) -> list[AdminSetting]:
        result = await self.db.execute(
            select(AdminSetting).order_by(
                AdminSetting.group, AdminSetting.sort_order, AdminSetting.label
            )
        )
        return list(result.scalars().all())

    async def get_grouped(self, public_only: bool = False) -> dict[str, list[dict[str, Any]]]:
        """Settings grouped by group, ordered by group, sort order and label."""
        grouped: dict[str, list[dict[str, Any]]] = {}
        for setting in await self.get_all():
            if public_only and not setting.is_public:
                continue
            grouped.setdefault(setting.group, []).append(serialize_setting(setting))
        return grouped

    async def get_public(self) -> dict[str, Any]:
        """Key to value map of settings flagged public."""
        result = await self.db.execute(
            select(AdminSetting).where(AdminSetting.is_public.is_(True))
        )
        return {setting.key: read_value(setting) for setting in result.scalars().all()}

    async def get_history(self, key: str, limit: int | None = None) -> list[AdminSettingHistory]:
        """Most recent changes of a setting, newest first."""
        setting = await self.require_setting(key)
        result = await self.db.execute(
            select(AdminSettingHistory)
            .where(AdminSettingHistory.setting_id == setting.id)
            .order_by(AdminSettingHistory.created_at.desc(), AdminSettingHistory.id.desc())
            .limit(limit or env_settings.history_limit)
        )
        return list(result.scalars().all())

    # ========== Writes ==========

    async def set_value_with_history(
        self,
        key: str,
        value: Any,
        reason: str | None = None,
        actor: Actor | None = None,
    ) -> AdminSetting:
        """Store a new value and record the change.

        Raises:
            SettingNotFoundError: If the key does not exist.
        """
        setting = await self.require_setting(key)
        return await self._write_raw(
            setting, encode_for_storage(setting, value), reason, actor
        )

    async def _write_raw(
        self,
        setting: AdminSetting,
        new_raw: str | None,
        reason: str | None,
        actor: Actor | None,
    ) -> AdminSetting:
        actor = actor or SYSTEM_ACTOR
        old_raw = setting.value
        old_value = read_value(setting)

        setting.value = new_raw
        self.db.add(
            AdminSettingHistory(
                setting_id=setting.id,
                changed_by=actor.name,
                old_value=old_raw,
                new_value=new_raw,
                ip_address=actor.ip_address,
                user_agent=actor.user_agent,
                change_reason=reason,
            )
        )
        await self.db.flush()
        self.invalidate(setting.key)

        new_value = read_value(setting)
        logger.info(
            "setting_updated",
            key=setting.key,
            value_type=setting.type,
            changed_by=actor.name,
            reason=reason,
        )
        await get_event_broadcaster().broadcast_setting_changed(
            key=setting.key,
            group=setting.group,
            old_value=old_value,
            new_value=new_value,
            changed_by=actor.name,
            reason=reason,
            is_encrypted=setting.is_encrypted,
        )
        return setting

    async def update_settings(
        self, payload: Mapping[str, Any], actor: Actor | None = None
    ) -> dict[str, Any]:
        """Validate and store a batch of changed values.

        Valid keys are saved even when other keys fail validation; values
        equal to what is stored are skipped.

        Returns:
            ``{"updated": [keys], "errors": {key: [messages]}}``.
        """
        known = {setting.key: setting for setting in await self.get_all()}
        context: dict[str, Any] = {key: read_value(setting) for key, setting in known.items()}
        for key, value in payload.items():
            if key in known:
                context[key] = coerce_setting_value(known[key].type, value)

        updated: list[str] = []
        errors: dict[str, list[str]] = {}

        for key, value in payload.items():
            setting = known.get(key)
            if setting is None:
                errors[key] = [f"Unknown setting: {key}"]
                continue

            messages = validate_value(key, value, setting.rules, context)
            if messages:
                errors[key] = messages
                continue

            if serialize_value(setting.type, value) == decrypted_raw(setting):
                continue

            await self._write_raw(
                setting, encode_for_storage(setting, value), REASON_UPDATED, actor
            )
            updated.append(key)

        if errors:
            logger.info("settings_update_rejected", error_keys=sorted(errors))
        logger.info("settings_updated", count=len(updated))
        return {"updated": updated, "errors": errors}

    async def revert_to(
        self, key: str, history_id: int, actor: Actor | None = None
    ) -> AdminSetting:
        """Restore the value a setting had before the given history entry.

        Raises:
            SettingNotFoundError: If the key does not exist.
            HistoryEntryNotFoundError: If the entry does not belong to the setting.
        """
        setting = await self.require_setting(key)
        entry = await self.db.get(AdminSettingHistory, history_id)
        if entry is None or entry.setting_id != setting.id:
            raise HistoryEntryNotFoundError(
                f"History entry {history_id} not found for setting {key}"
            )

        reason = f"Reverted to value from {entry.created_at:%Y-%m-%d %H:%M:%S}"
        return await self._write_raw(setting, entry.old_value, reason, actor)

    async def export_settings(self) -> list[dict[str, Any]]:
        return [
            {
                "key": setting.key,
                "value": read_value(setting),
                "type": setting.type,
                "group": setting.group,
                "label": setting.label,
                "description": setting.description,
            }
            for setting in await self.get_all()
        ]

    async def import_settings(
        self, entries: Iterable[Any], actor: Actor | None = None
    ) -> int:
        """Apply exported entries to existing settings.

        Entries without a key or value and unknown keys are skipped.

        Returns:
            Number of settings imported.
        """
        imported = 0
        for entry in entries:
            if not isinstance(entry, dict) or "key" not in entry:
                continue
            if entry.get("value") is None:
                continue
            setting = await self.get_setting(str(entry["key"]))
            if setting is None:
                continue
            await self._write_raw(
                setting, encode_for_storage(setting, entry["value"]), REASON_IMPORTED, actor
            )
            imported += 1

        logger.info("settings_imported", count=imported)
        return imported

    async def reset_all(self, actor: Actor | None = None) -> int:
        """Restore catalogue defaults for settings whose value differs.

        Returns:
            Number of settings reset.
        """
        reset = 0
        for definition in DEFAULT_SETTINGS:
            setting = await self.get_setting(definition["key"])
            if setting is None:
                continue
            if serialize_value(setting.type, definition["value"]) == decrypted_raw(setting):
                continue
            await self._write_raw(
                setting,
                encode_for_storage(setting, definition["value"]),
                REASON_RESET,
                actor,
            )
            reset += 1

        logger.info("settings_reset_to_defaults", count=reset)
        return reset

    async def initialize_defaults(self) -> int:
        """Create or overwrite every catalogue setting with its definition.

        Returns:
            Number of settings written.
        """
        for definition in DEFAULT_SETTINGS:
            setting = await self.get_setting(definition["key"])
            if setting is None:
                setting = AdminSetting(key=definition["key"])
                self.db.add(setting)

            for field in (
                "type", "group", "label", "description", "validation_rules",
                "options", "is_public", "is_encrypted", "sort_order",
            ):
                setattr(setting, field, definition[field])
            setting.value = encode_for_storage(setting, definition["value"])

        await self.db.flush()
        self.clear_cache()
        logger.info("settings_defaults_initialized", count=len(DEFAULT_SETTINGS))
        return len(DEFAULT_SETTINGS)

    async def store_upload(
        self,
        key: str,
        filename: str,
        content: bytes,
        actor: Actor | None = None,
    ) -> str:
        """Store an uploaded file for a file-type setting.

        The file it replaces stays on disk until ``discard_replaced_files``
        is called after the transaction has been committed.

        Returns:
            The stored path relative to the storage root, now the setting value.

        Raises:
            SettingNotFoundError: If the key does not exist.
            SettingUploadError: If the setting or the file is not acceptable.
        """
        setting = await self.require_setting(key)
        if setting.type != "file":
            raise SettingUploadError("Esta configuración no acepta archivos.")

        max_kb = await self.get_cached("max_upload_size", DEFAULT_MAX_UPLOAD_KB)
        max_kb = int(max_kb or DEFAULT_MAX_UPLOAD_KB)
        if len(content) > max_kb * 1024:
            raise SettingUploadError(
                f"El archivo no debe superar {round(max_kb / 1024, 2)}MB."
            )

        allowed = await self.get_cached("allowed_upload_extensions", DEFAULT_UPLOAD_EXTENSIONS)
        extensions = {
            ext.strip().lower().lstrip(".")
            for ext in str(allowed or DEFAULT_UPLOAD_EXTENSIONS).split(",")
            if ext.strip()
        }
        suffix = Path(filename).suffix.lower().lstrip(".")
        if suffix not in extensions:
            raise SettingUploadError(
                f"El archivo debe ser de tipo: {', '.join(sorted(extensions))}."
            )

        upload_dir = env_settings.uploads_path
        upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"{uuid.uuid4().hex}.{suffix}"
        async with aiofiles.open(upload_dir / stored_name, "wb") as f:
            await f.write(content)

        relative_path = f"{UPLOAD_DIR}/{stored_name}"
        old_value = read_value(setting)
        await self._write_raw(
            setting, encode_for_storage(setting, relative_path), REASON_UPLOADED, actor
        )
        if isinstance(old_value, str):
            self._replaced_files.append(old_value)

        logger.info("setting_file_uploaded", key=key, path=relative_path, size=len(content))
        return relative_path

    def discard_replaced_files(self) -> None:
        """Delete the files replaced by uploads since the last call."""
        replaced, self._replaced_files = self._replaced_files, []
        for relative_path in replaced:
            self._delete_stored_file(relative_path)

    def _delete_stored_file(self, relative_path: Any) -> None:
        """Remove a previously uploaded file; paths outside the upload dir are left alone."""
        if not isinstance(relative_path, str) or not relative_path.startswith(f"{UPLOAD_DIR}/"):
            return
        path = env_settings.uploads_path / Path(relative_path).name
        if path.is_file():
            path.unlink()
            logger.debug("setting_file_deleted", path=relative_path)

    # ========== Cache ==========

    def _get_from_cache(self, key: str) -> tuple[Any] | None:
        """Get a cached value wrapped in a tuple, or None if missing or expired."""
        if key in self._cache:
            value, expires_at = self._cache[key]
            if time.monotonic() < expires_at:
                return (value,)
            # Expired, remove from cache
            del self._cache[key]
        return None

    @classmethod
    def invalidate(cls, key: str) -> None:
        cls._cache.pop(key, None)

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the settings cache (useful for testing)."""
        cls._cache.clear()
