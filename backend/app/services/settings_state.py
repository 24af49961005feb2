"""Settings state container for one admin settings session.

``SettingsState`` holds the values an admin is editing, the last committed
baseline they are compared against, and the per-key dirty flags and errors
derived from that comparison. One instance is created when the settings page
loads (``SettingsState.from_payload``) and dropped when it goes away; nothing
here is shared between sessions.

Invariant kept by every operation: a key is dirty if and only if its current
value is not ``values_equal`` to its baseline value.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

from app.core.logging import get_logger
from app.services.coercion import coerce_setting_value, format_value, values_equal

logger = get_logger(__name__)

MAINTENANCE_PREFIX = "maintenance_"
DEFAULT_GROUP_META = {
    "label": "General",
    "description": "Configuraciones generales",
    "icon": "settings",
}


class SaveStatus(str, Enum):
    """Outcome of the last save attempt."""

    IDLE = "idle"
    SAVING = "saving"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class SettingDefinition:
    """A setting as sent by the server, value already coerced to its type."""

    key: str
    type: str = "string"
    value: Any = None
    group: str | None = None
    label: str = ""
    description: str = ""
    validation_rules: list[str] = field(default_factory=list)
    options: Any = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], group_key: str) -> "SettingDefinition":
        setting_type = data.get("type") or "string"
        return cls(
            key=data["key"],
            type=setting_type,
            value=coerce_setting_value(setting_type, data.get("value")),
            group=data.get("group") or group_key,
            label=data.get("label") or "",
            description=data.get("description") or "",
            validation_rules=list(data.get("validation_rules") or []),
            options=data.get("options"),
        )


@dataclass
class SettingGroup:
    """A named collection of settings shown together."""

    key: str
    label: str
    description: str = ""
    icon: str = "settings"
    settings: list[SettingDefinition] = field(default_factory=list)

    @property
    def keys(self) -> list[str]:
        return [setting.key for setting in self.settings]


@dataclass(frozen=True)
class SettingView:
    """A setting hydrated with the current session state."""

    definition: SettingDefinition
    value: Any
    original_value: Any
    is_dirty: bool
    error: str | None

    @property
    def key(self) -> str:
        return self.definition.key

    @property
    def label(self) -> str:
        return self.definition.label

    @property
    def description(self) -> str:
        return self.definition.description


@dataclass(frozen=True)
class GroupView:
    key: str
    label: str
    description: str
    icon: str
    settings: list[SettingView]
    visible_settings: list[SettingView]
    dirty_count: int
    total_settings: int
    match_count: int


@dataclass(frozen=True)
class GroupData:
    sidebar_groups: list[GroupView]
    content_groups: list[GroupView]
    search_active: bool


def build_groups(
    settings: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
    groups_meta: Mapping[str, Mapping[str, Any]] | None = None,
) -> list[SettingGroup]:
    """Build the ordered group list from the server payload.

    Groups with metadata come first in metadata order, followed by any
    remaining groups found in ``settings``. With nothing at all an empty
    ``general`` group is produced.
    """
    settings = settings or {}
    groups_meta = groups_meta or {}
    groups: list[SettingGroup] = []
    seen: set[str] = set()

    def push(group_key: str, items: Iterable[Mapping[str, Any]], meta: Mapping[str, Any]) -> None:
        groups.append(
            SettingGroup(
                key=group_key,
                label=meta.get("label") or group_key,
                description=meta.get("description") or "",
                icon=meta.get("icon") or "settings",
                settings=[
                    SettingDefinition.from_payload(item, group_key) for item in items or []
                ],
            )
        )
        seen.add(group_key)

    for group_key, meta in groups_meta.items():
        push(group_key, settings.get(group_key, []), meta)

    for group_key, items in settings.items():
        if group_key not in seen:
            push(group_key, items, {})

    if not groups:
        push("general", settings.get("general", []), DEFAULT_GROUP_META)

    return groups


def matches_search(view: SettingView, term: str) -> bool:
    """Case-insensitive substring match on label, description, key and value.

    ``term`` must already be trimmed and lower-cased.
    """
    haystack = " ".join(
        [view.label, view.description, view.key, format_value(view.value)]
    ).lower()
    return term in haystack


class SettingsState:
    """Client-side truth for a set of typed settings.

    Usage:
        state = SettingsState.from_payload(payload["settings"], payload["groups"])
        state.set_value("maintenance_mode", "1")
        state.dirty_payload  # {"maintenance_mode": True}
        state.commit_changes()
    """

    def __init__(self, groups: list[SettingGroup] | None = None):
        self.groups: list[SettingGroup] = []
        self.values: dict[str, Any] = {}
        self.original_values: dict[str, Any] = {}
        self.errors: dict[str, str] = {}
        self.active_group: str | None = None
        self.search: str = ""
        self.is_saving = False
        self.save_status = SaveStatus.IDLE
        self.last_saved_at: str | None = None
        # Insertion-ordered set of dirty keys
        self._dirty: dict[str, None] = {}
        self._types: dict[str, str] = {}
        self._load(groups or [])

    @classmethod
    def from_payload(
        cls,
        settings: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        groups: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> "SettingsState":
        return cls(build_groups(settings, groups))

    def hydrate(
        self,
        settings: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        groups: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        """Replace everything with fresh server props.

        The last save time and status survive so a reload after saving still
        reports the save.
        """
        self._load(build_groups(settings, groups))

    def _load(self, groups: list[SettingGroup]) -> None:
        self.groups = groups
        self.values = {}
        self._types = {}
        for group in groups:
            for setting in group.settings:
                self.values[setting.key] = setting.value
                self._types[setting.key] = setting.type

        self.original_values = copy.deepcopy(self.values)
        self._dirty = {}
        self.errors = {}
        self.search = ""
        self.is_saving = False
        self.active_group = groups[0].key if groups else None

    # ========== Edits ==========

    def set_value(self, key: str, value: Any) -> None:
        """Set a value, coerced to the key's declared type."""
        setting_type = self._types.get(key)
        if setting_type is not None:
            value = coerce_setting_value(setting_type, value)
        self._store(key, value)

    def edit_json_text(self, key: str, text: str) -> str | None:
        """Apply text typed into a JSON editor.

        Invalid JSON keeps the raw text as the displayed value and records a
        parse error for the key; the baseline is left alone.

        Returns:
            The parse error message, or None when the text was accepted.
        """
        if not text.strip():
            self._store(key, None)
            return None

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            self._store(key, text)
            message = f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
            self.errors[key] = message
            return message

        self._store(key, parsed)
        return None

    def _store(self, key: str, value: Any) -> None:
        self.values[key] = value
        self.errors.pop(key, None)
        self._mark(key)
        self.save_status = SaveStatus.IDLE

    def _mark(self, key: str) -> None:
        if values_equal(self.values.get(key), self.original_values.get(key)):
            self._dirty.pop(key, None)
        else:
            self._dirty[key] = None

    # ========== Resets ==========

    def reset_setting(self, key: str) -> None:
        self._restore(key)
        self.save_status = SaveStatus.IDLE

    def reset_group(self, group_key: str) -> None:
        group = self.group(group_key)
        if group is None:
            return
        for key in group.keys:
            self._restore(key)
        self.save_status = SaveStatus.IDLE

    def reset_all(self) -> None:
        self.values = copy.deepcopy(self.original_values)
        self._dirty = {}
        self.errors = {}
        self.save_status = SaveStatus.IDLE

    def _restore(self, key: str) -> None:
        self.values[key] = copy.deepcopy(self.original_values.get(key))
        self._dirty.pop(key, None)
        self.errors.pop(key, None)

    # ========== Save lifecycle ==========

    def begin_save(self) -> None:
        self.is_saving = True
        self.save_status = SaveStatus.SAVING

    def commit_changes(self) -> None:
        """Make the current values the new baseline."""
        self.original_values = copy.deepcopy(self.values)
        self._dirty = {}
        self.errors = {}
        self.save_status = SaveStatus.SUCCESS
        self.is_saving = False
        self.last_saved_at = datetime.now(timezone.utc).isoformat()

    def fail_save(self, errors: Mapping[str, Any] | None = None) -> None:
        """Record a rejected save; values, dirty flags and baseline stay as they are."""
        for key, message in (errors or {}).items():
            if isinstance(message, (list, tuple)):
                message = message[0] if message else ""
            self.errors[key] = str(message)
        self.is_saving = False
        self.save_status = SaveStatus.ERROR
        logger.info("settings_save_failed", error_keys=sorted(self.errors))

    def set_errors(self, errors: Mapping[str, str] | None) -> None:
        self.errors = dict(errors or {})

    def sync_committed(self, key: str, value: Any) -> None:
        """Adopt a value the server has already stored as the key's baseline."""
        setting_type = self._types.get(key)
        if setting_type is not None:
            value = coerce_setting_value(setting_type, value)
        self.values[key] = value
        self.original_values[key] = copy.deepcopy(value)
        self._dirty.pop(key, None)
        self.errors.pop(key, None)

    # ========== Navigation ==========

    def set_active_group(self, group_key: str | None) -> None:
        self.active_group = group_key

    def set_search(self, term: str) -> None:
        self.search = term
        self._ensure_active_group()

    def _ensure_active_group(self) -> None:
        available = [group.key for group in self.group_data().content_groups]
        if self.active_group in available:
            return
        if available:
            self.active_group = available[0]

    # ========== Derived views ==========

    def group(self, group_key: str) -> SettingGroup | None:
        for group in self.groups:
            if group.key == group_key:
                return group
        return None

    def is_dirty(self, key: str) -> bool:
        return key in self._dirty

    @property
    def dirty_keys(self) -> list[str]:
        return list(self._dirty)

    @property
    def dirty_count(self) -> int:
        return len(self._dirty)

    @property
    def has_unsaved_changes(self) -> bool:
        return bool(self._dirty)

    @property
    def dirty_payload(self) -> dict[str, Any]:
        """Changed keys with their current values, as sent on save."""
        return {key: self.values.get(key) for key in self._dirty}

    @property
    def maintenance_values(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in self.values.items()
            if key.startswith(MAINTENANCE_PREFIX)
        }

    def group_data(self) -> GroupData:
        term = self.search.strip().lower()
        search_active = bool(term)

        sidebar: list[GroupView] = []
        for group in self.groups:
            views = [
                SettingView(
                    definition=setting,
                    value=self.values.get(setting.key),
                    original_value=self.original_values.get(setting.key),
                    is_dirty=setting.key in self._dirty,
                    error=self.errors.get(setting.key),
                )
                for setting in group.settings
            ]
            visible = [view for view in views if matches_search(view, term)] if search_active else views
            sidebar.append(
                GroupView(
                    key=group.key,
                    label=group.label,
                    description=group.description,
                    icon=group.icon,
                    settings=views,
                    visible_settings=visible,
                    dirty_count=sum(1 for view in views if view.is_dirty),
                    total_settings=len(views),
                    match_count=len(visible),
                )
            )

        content = [group for group in sidebar if group.match_count > 0] if search_active else sidebar
        return GroupData(
            sidebar_groups=sidebar,
            content_groups=content,
            search_active=search_active,
        )
