"""Maintenance mode management.

All state lives in the ``maintenance_*`` settings; every change goes through
``SettingsService.set_value_with_history`` so it is audited like any other
setting edit.
"""

from __future__ import annotations

import ipaddress
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings as env_settings
from app.core.logging import get_logger
from app.services.coercion import normalize_datetime
from app.services.events import get_event_broadcaster
from app.services.setting_catalog import DEFAULT_MAINTENANCE_MESSAGE
from app.services.setting_rules import parse_date
from app.services.settings import Actor, SettingsService

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 1000


class MaintenanceError(Exception):
    """Base exception for maintenance errors."""

    pass


class MaintenanceValidationError(MaintenanceError):
    """Raised when a maintenance request is invalid.

    ``errors`` maps each failing field to its message.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))


def _check_message(message: str | None, required: bool) -> str | None:
    if not message or not message.strip():
        if required:
            return "El mensaje es requerido cuando el modo mantenimiento está activo."
        return None
    if len(message) > MAX_MESSAGE_LENGTH:
        return f"El mensaje no debe superar {MAX_MESSAGE_LENGTH} caracteres."
    return None


def _as_ip_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(ip) for ip in value]
    return []


class MaintenanceService:
    """Toggle, schedule and inspect maintenance mode."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = SettingsService(db)

    async def toggle(
        self, enabled: bool, message: str | None = None, actor: Actor | None = None
    ) -> dict[str, Any]:
        """Turn maintenance mode on or off.

        Raises:
            MaintenanceValidationError: If enabling without a message or the
                message is too long.
        """
        error = _check_message(message, required=enabled)
        if error:
            raise MaintenanceValidationError({"message": error})

        await self.settings.set_value_with_history(
            "maintenance_mode",
            enabled,
            "Enabled via admin panel" if enabled else "Disabled via admin panel",
            actor,
        )
        if message:
            await self.settings.set_value_with_history(
                "maintenance_message", message, "Updated via admin panel", actor
            )

        logger.info(
            "maintenance_toggled",
            enabled=enabled,
            changed_by=(actor.name if actor else None),
        )
        await get_event_broadcaster().broadcast_maintenance_toggled(
            enabled=enabled,
            message=message,
            changed_by=actor.name if actor else None,
        )
        return await self.status()

    async def schedule(
        self,
        start_at: str | datetime | None,
        end_at: str | datetime | None,
        message: str | None,
        actor: Actor | None = None,
    ) -> dict[str, Any]:
        """Schedule a maintenance window and enable maintenance mode.

        Raises:
            MaintenanceValidationError: If the window or message is invalid.
        """
        errors: dict[str, str] = {}
        start = parse_date(start_at)
        end = parse_date(end_at)

        if start_at in (None, ""):
            errors["start_at"] = "La fecha de inicio es requerida."
        elif start is None:
            errors["start_at"] = "La fecha de inicio debe ser una fecha válida."
        elif start <= datetime.now():
            errors["start_at"] = "La fecha de inicio debe ser futura."

        if end_at in (None, ""):
            errors["end_at"] = "La fecha de fin es requerida."
        elif end is None:
            errors["end_at"] = "La fecha de fin debe ser una fecha válida."
        elif start is not None and end <= start:
            errors["end_at"] = "La fecha de fin debe ser posterior a la fecha de inicio."

        if not message or not message.strip():
            errors["message"] = "El mensaje es requerido."
        else:
            message_error = _check_message(message, required=True)
            if message_error:
                errors["message"] = message_error

        if errors:
            raise MaintenanceValidationError(errors)

        start_text = normalize_datetime(start)
        end_text = normalize_datetime(end)
        await self.settings.set_value_with_history(
            "maintenance_mode", True, "Scheduled maintenance", actor
        )
        await self.settings.set_value_with_history(
            "maintenance_start_at", start_text, "Scheduled via admin panel", actor
        )
        await self.settings.set_value_with_history(
            "maintenance_end_at", end_text, "Scheduled via admin panel", actor
        )
        await self.settings.set_value_with_history(
            "maintenance_message", message, "Scheduled via admin panel", actor
        )

        logger.info("maintenance_scheduled", start_at=start_text, end_at=end_text)
        await get_event_broadcaster().broadcast_maintenance_toggled(
            enabled=True,
            message=message,
            changed_by=actor.name if actor else None,
            start_at=start_text,
            end_at=end_text,
        )
        return await self.status()

    async def add_ip(self, ip: str, actor: Actor | None = None) -> list[str]:
        """Add an address to the maintenance allow-list.

        Raises:
            MaintenanceValidationError: If the address is invalid or already listed.
        """
        ip = (ip or "").strip()
        if not ip:
            raise MaintenanceValidationError({"ip": "La dirección IP es requerida."})
        try:
            ipaddress.ip_address(ip)
        except ValueError:
            raise MaintenanceValidationError({"ip": "Debe ser una dirección IP válida."})

        allowed = _as_ip_list(await self.settings.get("maintenance_allowed_ips", []))
        if ip in allowed:
            raise MaintenanceValidationError({"ip": "Esta IP ya está en la lista."})

        allowed.append(ip)
        await self.settings.set_value_with_history(
            "maintenance_allowed_ips", allowed, f"Added IP {ip} via admin panel", actor
        )
        logger.info("maintenance_ip_added", ip=ip)
        return allowed

    async def remove_ip(self, ip: str, actor: Actor | None = None) -> list[str]:
        """Remove an address from the maintenance allow-list.

        Raises:
            MaintenanceValidationError: If the address is not listed.
        """
        allowed = _as_ip_list(await self.settings.get("maintenance_allowed_ips", []))
        if ip not in allowed:
            raise MaintenanceValidationError({"ip": "Esta IP no está en la lista."})

        allowed.remove(ip)
        await self.settings.set_value_with_history(
            "maintenance_allowed_ips", allowed, f"Removed IP {ip} via admin panel", actor
        )
        logger.info("maintenance_ip_removed", ip=ip)
        return allowed

    async def status(self) -> dict[str, Any]:
        start_at = await self.settings.get("maintenance_start_at")
        end_at = await self.settings.get("maintenance_end_at")
        return {
            "enabled": bool(await self.settings.get("maintenance_mode", False)),
            "message": await self.settings.get("maintenance_message", "") or "",
            "allowed_ips": _as_ip_list(await self.settings.get("maintenance_allowed_ips", [])),
            "start_at": start_at,
            "end_at": end_at,
            "is_scheduled": start_at is not None or end_at is not None,
        }

    async def preview(self) -> dict[str, Any]:
        """Data the maintenance page would be rendered with."""
        return {
            "message": await self.settings.get("maintenance_message")
            or DEFAULT_MAINTENANCE_MESSAGE,
            "show_countdown": bool(await self.settings.get("maintenance_show_countdown", True)),
            "end_at": await self.settings.get("maintenance_end_at"),
            "site_name": await self.settings.get("site_name")
            or env_settings.site_name_default,
            "preview": True,
        }
