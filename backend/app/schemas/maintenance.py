"""Pydantic schemas for maintenance mode API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MaintenanceToggleRequest(BaseModel):
    enabled: bool = Field(description="Whether maintenance mode should be on")
    message: str | None = Field(default=None, description="Message shown to visitors")


class MaintenanceScheduleRequest(BaseModel):
    start_at: str | None = Field(default=None, description="Window start, YYYY-MM-DDTHH:MM")
    end_at: str | None = Field(default=None, description="Window end, after start_at")
    message: str | None = None


class MaintenanceIpRequest(BaseModel):
    ip: str = Field(default="", description="IPv4 or IPv6 address")


class MaintenanceStatus(BaseModel):
    enabled: bool
    message: str = ""
    allowed_ips: list[str] = Field(default_factory=list)
    start_at: str | None = None
    end_at: str | None = None
    is_scheduled: bool = False


class MaintenanceActionResponse(BaseModel):
    """Result of a maintenance change, with the status after it."""

    message: str
    status: MaintenanceStatus


class MaintenanceIpResponse(MaintenanceActionResponse):
    allowed_ips: list[str]


class MaintenancePreview(BaseModel):
    message: str
    show_countdown: bool
    end_at: str | None = None
    site_name: str
    preview: bool = True
