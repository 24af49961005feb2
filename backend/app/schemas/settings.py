"""Pydantic schemas for settings API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SettingResponse(BaseModel):
    """A single admin setting with its typed value."""

    id: int
    key: str = Field(description="Setting key")
    value: Any = Field(description="Setting value (type varies)")
    type: str
    group: str
    label: str
    description: str | None = None
    validation_rules: list[str] = Field(default_factory=list)
    options: Any = None
    is_public: bool = False
    is_encrypted: bool = False
    sort_order: int = 0


class SettingGroupMeta(BaseModel):
    label: str
    description: str = ""
    icon: str = "settings"


class SettingsIndexResponse(BaseModel):
    """Grouped settings plus group metadata, as consumed by the admin panel."""

    settings: dict[str, list[SettingResponse]]
    groups: dict[str, SettingGroupMeta]


class SettingsUpdateRequest(BaseModel):
    """Bulk update of changed setting values."""

    settings: dict[str, Any] = Field(default_factory=dict, description="Key to new value")


class SettingsUpdateResponse(BaseModel):
    message: str
    updated: list[str] = Field(default_factory=list)
    errors: dict[str, list[str]] = Field(default_factory=dict)


class PublicSettingsResponse(BaseModel):
    settings: dict[str, Any]


class InitializeResponse(BaseModel):
    message: str
    count: int


class UploadResponse(BaseModel):
    key: str
    path: str
    message: str


class HistoryEntryResponse(BaseModel):
    id: int
    old_value: str | None = None
    new_value: str | None = None
    changed_by: str
    changed_at: str
    ip_address: str | None = None
    reason: str | None = None


class HistorySettingRef(BaseModel):
    key: str
    label: str


class HistoryResponse(BaseModel):
    setting: HistorySettingRef
    history: list[HistoryEntryResponse]


class RevertRequest(BaseModel):
    history_id: int = Field(description="History entry to revert to")


class RevertResponse(BaseModel):
    message: str
    setting: SettingResponse


class ImportResponse(BaseModel):
    message: str
    imported: int


class ResetAllResponse(BaseModel):
    message: str
    reset: int


class ExportEntry(BaseModel):
    key: str
    value: Any = None
    type: str
    group: str
    label: str | None = None
    description: str | None = None


class PreferencesPayload(BaseModel):
    """Opaque filter preferences of one admin."""

    preferences: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime | None = None
