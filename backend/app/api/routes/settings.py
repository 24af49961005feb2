"""API routes for admin settings management."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor
from app.core.logging import get_logger
from app.db import get_db
from app.schemas.settings import (
    HistoryEntryResponse,
    HistoryResponse,
    HistorySettingRef,
    ImportResponse,
    InitializeResponse,
    PreferencesPayload,
    PublicSettingsResponse,
    ResetAllResponse,
    RevertRequest,
    RevertResponse,
    SettingResponse,
    SettingsIndexResponse,
    SettingsUpdateRequest,
    SettingsUpdateResponse,
    UploadResponse,
)
from app.services.preferences import PreferenceStore
from app.services.setting_catalog import SETTING_GROUPS
from app.services.settings import (
    Actor,
    HistoryEntryNotFoundError,
    SettingNotFoundError,
    SettingsService,
    SettingUploadError,
    serialize_setting,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])

MAX_IMPORT_BYTES = 1024 * 1024


def _validation_error(message: str, errors: dict[str, list[str]], **extra: Any) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": message, "errors": errors, **extra},
    )


@router.get("/", response_model=SettingsIndexResponse)
async def get_settings(
    db: AsyncSession = Depends(get_db),
) -> SettingsIndexResponse:
    """Get all settings grouped by group, plus the group metadata."""
    service = SettingsService(db)
    grouped = await service.get_grouped()
    return SettingsIndexResponse(settings=grouped, groups=SETTING_GROUPS)


@router.post("/", response_model=SettingsUpdateResponse)
async def update_settings(
    update: SettingsUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> SettingsUpdateResponse:
    """Save changed setting values.

    Valid keys are stored even when others fail; failures answer 422 with
    the per-key messages and the list of keys that were saved.
    """
    service = SettingsService(db)
    result = await service.update_settings(update.settings, actor)
    await db.commit()

    if result["errors"]:
        message = (
            "Algunas configuraciones se actualizaron."
            if result["updated"]
            else "No se pudieron actualizar las configuraciones."
        )
        raise _validation_error(message, result["errors"], updated=result["updated"])

    if not result["updated"]:
        message = "No se detectaron cambios para actualizar."
    else:
        message = "Configuraciones actualizadas correctamente."

    return SettingsUpdateResponse(message=message, updated=result["updated"])


@router.get("/public", response_model=PublicSettingsResponse)
async def get_public_settings(
    db: AsyncSession = Depends(get_db),
) -> PublicSettingsResponse:
    """Get the settings flagged public as a key to value map."""
    service = SettingsService(db)
    return PublicSettingsResponse(settings=await service.get_public())


@router.post("/initialize", response_model=InitializeResponse)
async def initialize_settings(
    db: AsyncSession = Depends(get_db),
) -> InitializeResponse:
    """Create or overwrite the default settings catalogue."""
    service = SettingsService(db)
    count = await service.initialize_defaults()
    await db.commit()

    logger.info("settings_initialized_via_api", count=count)

    return InitializeResponse(
        message="Default settings initialized successfully.",
        count=count,
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_setting_file(
    key: str = Form(..., description="Key of a file-type setting"),
    file: UploadFile = File(..., description="File to store"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> UploadResponse:
    """Upload a file and store its path as the setting value."""
    service = SettingsService(db)
    content = await file.read()

    try:
        path = await service.store_upload(
            key, file.filename or "upload", content, actor
        )
        await db.commit()
    except SettingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SettingUploadError as e:
        raise _validation_error(str(e), {"file": [str(e)]})

    service.discard_replaced_files()
    return UploadResponse(key=key, path=path, message="Archivo subido correctamente.")


@router.get("/history/{key}", response_model=HistoryResponse)
async def get_setting_history(
    key: str,
    db: AsyncSession = Depends(get_db),
) -> HistoryResponse:
    """Get the most recent changes of a setting, newest first."""
    service = SettingsService(db)

    try:
        setting = await service.require_setting(key)
        entries = await service.get_history(key)
    except SettingNotFoundError:
        raise HTTPException(status_code=404, detail="Setting not found")

    return HistoryResponse(
        setting=HistorySettingRef(key=setting.key, label=setting.label),
        history=[
            HistoryEntryResponse(
                id=entry.id,
                old_value=entry.old_value,
                new_value=entry.new_value,
                changed_by=entry.changed_by or "System",
                changed_at=entry.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                ip_address=entry.ip_address,
                reason=entry.change_reason,
            )
            for entry in entries
        ],
    )


@router.post("/revert/{key}", response_model=RevertResponse)
async def revert_setting(
    key: str,
    request: RevertRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> RevertResponse:
    """Restore the value a setting had before a history entry."""
    service = SettingsService(db)

    try:
        setting = await service.revert_to(key, request.history_id, actor)
        await db.commit()
    except SettingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HistoryEntryNotFoundError as e:
        raise _validation_error(str(e), {"history_id": ["El registro de historial no existe."]})

    return RevertResponse(
        message="Configuración revertida correctamente.",
        setting=SettingResponse(**serialize_setting(setting)),
    )


@router.get("/export")
async def export_settings(
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Download every setting as a JSON file."""
    service = SettingsService(db)
    entries = await service.export_settings()
    filename = f"admin-settings-{datetime.now():%Y-%m-%d-%H%M%S}.json"

    logger.info("settings_exported", count=len(entries))

    return JSONResponse(
        content=entries,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_settings(
    file: UploadFile = File(..., description="JSON file produced by the export"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ImportResponse:
    """Apply an exported settings file to the existing settings."""
    if not (file.filename or "").lower().endswith(".json"):
        raise _validation_error("El archivo debe ser JSON.", {"file": ["El archivo debe ser JSON."]})

    content = await file.read()
    if len(content) > MAX_IMPORT_BYTES:
        raise _validation_error(
            "El archivo no debe superar 1MB.", {"file": ["El archivo no debe superar 1MB."]}
        )

    try:
        entries = json.loads(content)
    except ValueError:
        entries = None
    if not isinstance(entries, list):
        raise _validation_error(
            "El archivo JSON no es válido.", {"file": ["El archivo JSON no es válido."]}
        )

    service = SettingsService(db)
    imported = await service.import_settings(entries, actor)
    await db.commit()

    return ImportResponse(
        message=f"{imported} configuraciones importadas correctamente.",
        imported=imported,
    )


@router.post("/reset-all", response_model=ResetAllResponse)
async def reset_all_settings(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> ResetAllResponse:
    """Restore the default value of every setting that differs from it."""
    service = SettingsService(db)
    reset = await service.reset_all(actor)
    await db.commit()

    if reset:
        message = f"{reset} configuraciones restablecidas a sus valores por defecto."
    else:
        message = "Todas las configuraciones ya tienen sus valores por defecto."

    return ResetAllResponse(message=message, reset=reset)


@router.get("/preferences", response_model=PreferencesPayload)
async def get_preferences(
    actor: Actor = Depends(get_actor),
) -> PreferencesPayload:
    """Get the stored filter preferences of the calling admin."""
    store = PreferenceStore()
    return PreferencesPayload(preferences=await store.load(actor.name))


@router.put("/preferences", response_model=PreferencesPayload)
async def save_preferences(
    payload: PreferencesPayload,
    actor: Actor = Depends(get_actor),
) -> PreferencesPayload:
    """Replace the stored filter preferences of the calling admin."""
    store = PreferenceStore()
    await store.save(actor.name, payload.preferences)
    return PreferencesPayload(preferences=payload.preferences, updated_at=datetime.now())
