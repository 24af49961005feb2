"""Per-admin filter preferences persisted as JSON files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import aiofiles

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class PreferenceStore:
    """Stores one opaque JSON blob per admin.

    The blob is not validated; a missing or unreadable file reads as ``{}``.
    """

    def __init__(self, base_path: Path | None = None):
        self.base_path = base_path or settings.preferences_path

    def _path_for(self, admin: str) -> Path:
        name = _UNSAFE_CHARS.sub("_", admin or "default").strip(".") or "default"
        return self.base_path / f"{name}.json"

    async def load(self, admin: str) -> dict[str, Any]:
        path = self._path_for(admin)
        if not path.exists():
            return {}

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, ValueError) as e:
            logger.warning("preferences_read_failed", admin=admin, error=str(e))
            return {}

        return data if isinstance(data, dict) else {}

    async def save(self, admin: str, preferences: dict[str, Any]) -> None:
        path = self._path_for(admin)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(preferences, ensure_ascii=False, indent=2))
        logger.debug("preferences_saved", admin=admin, keys=sorted(preferences))

    async def clear(self, admin: str) -> None:
        path = self._path_for(admin)
        if path.exists():
            path.unlink()
