"""API routes for maintenance mode."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor
from app.core.logging import get_logger
from app.db import get_db
from app.schemas.maintenance import (
    MaintenanceActionResponse,
    MaintenanceIpRequest,
    MaintenanceIpResponse,
    MaintenancePreview,
    MaintenanceScheduleRequest,
    MaintenanceStatus,
    MaintenanceToggleRequest,
)
from app.services.maintenance import MaintenanceService, MaintenanceValidationError
from app.services.settings import Actor, SettingNotFoundError

logger = get_logger(__name__)

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, MaintenanceValidationError):
        return HTTPException(
            status_code=422,
            detail={
                "message": "Datos de mantenimiento no válidos.",
                "errors": {field: [message] for field, message in e.errors.items()},
            },
        )
    return HTTPException(status_code=404, detail=str(e))


@router.post("/toggle", response_model=MaintenanceActionResponse)
async def toggle_maintenance(
    request: MaintenanceToggleRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> MaintenanceActionResponse:
    """Turn maintenance mode on or off. A message is required to turn it on."""
    service = MaintenanceService(db)

    try:
        status = await service.toggle(request.enabled, request.message, actor)
        await db.commit()
    except (MaintenanceValidationError, SettingNotFoundError) as e:
        raise _to_http(e)

    message = (
        "Modo mantenimiento activado correctamente."
        if request.enabled
        else "Modo mantenimiento desactivado correctamente."
    )
    return MaintenanceActionResponse(message=message, status=MaintenanceStatus(**status))


@router.post("/schedule", response_model=MaintenanceActionResponse)
async def schedule_maintenance(
    request: MaintenanceScheduleRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> MaintenanceActionResponse:
    """Schedule a maintenance window."""
    service = MaintenanceService(db)

    try:
        status = await service.schedule(
            request.start_at, request.end_at, request.message, actor
        )
        await db.commit()
    except (MaintenanceValidationError, SettingNotFoundError) as e:
        raise _to_http(e)

    return MaintenanceActionResponse(
        message="Mantenimiento programado correctamente.",
        status=MaintenanceStatus(**status),
    )


@router.post("/ip", response_model=MaintenanceIpResponse)
async def add_allowed_ip(
    request: MaintenanceIpRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> MaintenanceIpResponse:
    """Add an address to the maintenance allow-list."""
    service = MaintenanceService(db)

    try:
        allowed = await service.add_ip(request.ip, actor)
        await db.commit()
    except (MaintenanceValidationError, SettingNotFoundError) as e:
        raise _to_http(e)

    return MaintenanceIpResponse(
        message=f"IP {request.ip.strip()} agregada a la lista permitida.",
        allowed_ips=allowed,
        status=MaintenanceStatus(**await service.status()),
    )


@router.delete("/ip/{ip}", response_model=MaintenanceIpResponse)
async def remove_allowed_ip(
    ip: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> MaintenanceIpResponse:
    """Remove an address from the maintenance allow-list."""
    service = MaintenanceService(db)

    try:
        allowed = await service.remove_ip(ip, actor)
        await db.commit()
    except (MaintenanceValidationError, SettingNotFoundError) as e:
        raise _to_http(e)

    return MaintenanceIpResponse(
        message=f"IP {ip} eliminada de la lista permitida.",
        allowed_ips=allowed,
        status=MaintenanceStatus(**await service.status()),
    )


@router.get("/status", response_model=MaintenanceStatus)
async def get_maintenance_status(
    db: AsyncSession = Depends(get_db),
) -> MaintenanceStatus:
    """Get the current maintenance mode status."""
    service = MaintenanceService(db)
    return MaintenanceStatus(**await service.status())


@router.get("/preview", response_model=MaintenancePreview)
async def preview_maintenance(
    db: AsyncSession = Depends(get_db),
) -> MaintenancePreview:
    """Get the data the maintenance page is rendered with."""
    service = MaintenanceService(db)
    return MaintenancePreview(**await service.preview())
