"""Encoding of setting values to and from their stored text form.

Values are stored as text in ``admin_settings.value``. Booleans become
``"1"``/``"0"``, JSON and array settings become JSON text (an empty list is
stored as NULL), everything else is stored as ``str(value)``. Settings flagged
``is_encrypted`` are Fernet-encrypted on top of that.
"""

from __future__ import annotations

import json
import math
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from app.core.config import settings
from app.core.logging import get_logger
from app.db.models import AdminSetting
from app.services.coercion import to_number

logger = get_logger(__name__)

_JSON_TYPES = ("json", "array")
_BOOLEAN_TRUE = frozenset({"1", "true", "on", "yes"})

_encryption_key: bytes | None = None


def _get_encryption_key() -> bytes:
    """Get or generate the encryption key."""
    global _encryption_key
    if _encryption_key:
        return _encryption_key

    if settings.encryption_key:
        # Fernet expects the key as base64-encoded bytes (not decoded)
        _encryption_key = settings.encryption_key.encode()
    else:
        # Only persists for the lifetime of the process
        _encryption_key = Fernet.generate_key()
        logger.warning(
            "encryption_key_generated",
            message="Using auto-generated encryption key. Set CIMIENTO_ENCRYPTION_KEY for persistence.",
        )

    return _encryption_key


def encrypt(data: str) -> str:
    """Encrypt a string using Fernet."""
    return Fernet(_get_encryption_key()).encrypt(data.encode()).decode()


def decrypt(encrypted_data: str) -> str:
    """Decrypt a Fernet-encrypted string."""
    return Fernet(_get_encryption_key()).decrypt(encrypted_data.encode()).decode()


def cast_boolean(value: Any) -> bool:
    """Read a stored or submitted boolean.

    ``1``, ``true``, ``on`` and ``yes`` are true; blanks, ``null`` and any
    other text are false. Numbers are true when their integer part is
    non-zero.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return math.isfinite(value) and int(value) != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        number = to_number(normalized)
        if normalized and math.isfinite(number):
            return int(number) != 0
        return normalized in _BOOLEAN_TRUE
    return bool(value)


def serialize_value(setting_type: str, value: Any) -> str | None:
    """Encode ``value`` as stored text for a setting of ``setting_type``."""
    if setting_type == "boolean":
        return "1" if cast_boolean(value) else "0"
    if setting_type in _JSON_TYPES:
        if value is None or (isinstance(value, list) and not value):
            return None
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "1" if value else "0"
    if value is None:
        return None
    if setting_type == "datetime" and value == "":
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cast_stored_value(setting_type: str, raw: str | None) -> Any:
    """Decode stored text into the typed value for ``setting_type``."""
    if setting_type == "boolean":
        return cast_boolean(raw)
    if setting_type == "integer":
        if raw is None:
            return None
        number = to_number(raw)
        return int(number) if math.isfinite(number) else 0
    if setting_type == "float":
        if raw is None:
            return None
        number = to_number(raw)
        return number if math.isfinite(number) else 0.0
    if setting_type in _JSON_TYPES:
        if not raw:
            return []
        try:
            decoded = json.loads(raw)
        except ValueError:
            return []
        return decoded if isinstance(decoded, (list, dict)) else []
    return raw


def encode_for_storage(setting: AdminSetting, value: Any) -> str | None:
    """Stored text for ``value``, encrypted when the setting requires it."""
    raw = serialize_value(setting.type, value)
    if setting.is_encrypted and raw:
        return encrypt(raw)
    return raw


def decrypted_raw(setting: AdminSetting) -> str | None:
    """The setting's stored text with encryption removed.

    An encrypted value that no longer decrypts reads as None.
    """
    raw = setting.value
    if not setting.is_encrypted or not raw:
        return raw
    try:
        return decrypt(raw)
    except InvalidToken:
        logger.warning("setting_decrypt_failed", key=setting.key)
        return None


def read_value(setting: AdminSetting) -> Any:
    """Typed value of a stored setting."""
    return cast_stored_value(setting.type, decrypted_raw(setting))
