"""Type-directed coercion and comparison of setting values.

The admin panel edits settings as loosely typed values (form strings,
parsed JSON, booleans from switches). These helpers normalise a value for a
declared setting type and decide whether two values count as the same
setting value, which is what dirty-tracking relies on.

Truthiness and number parsing follow what a browser form would do with the
same input, so the panel and the server agree on what changed.
"""

from __future__ import annotations

import json
import math
import re
from datetime import datetime
from typing import Any

from app.db.models.enums import SettingType

TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})

# Shape used by datetime-local inputs
DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unexpected token {name}")


def _json_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _type_name(setting_type: SettingType | str | None) -> str:
    if setting_type is None:
        return SettingType.STRING.value
    return getattr(setting_type, "value", setting_type)


def is_truthy(value: Any) -> bool:
    """Truthiness of a form value: empty string, zero, NaN and None are false."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def to_number(value: Any) -> float:
    """Numeric reading of a value; NaN when it has none.

    Blank strings read as zero, matching numeric form inputs.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return float(value)
    if value is None:
        return 0.0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if not _NUMBER.fullmatch(text):
            return math.nan
        return float(text)
    return math.nan


def format_value(value: Any) -> str:
    """String form of a value used for display and search."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        try:
            return _json_dumps(value)
        except (TypeError, ValueError):
            return ""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    return str(value)


def coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value == 1
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
    return is_truthy(value)


def coerce_json(value: Any, fallback: Any = None) -> Any:
    """Parse JSON text, keeping the raw text when it does not parse.

    A text holding a JSON string literal stays as written so that coercing
    twice gives the same result.
    """
    if value is None or value == "":
        return fallback
    if isinstance(value, (list, dict)):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value, parse_constant=_reject_constant)
        except ValueError:
            return value if fallback is None else fallback
        if isinstance(parsed, str):
            return value
        return parsed
    return value if fallback is None else fallback


def _coerce_number(value: Any) -> int | float | None:
    if value is None or value == "" or isinstance(value, (list, dict)):
        return None
    number = to_number(value)
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def _coerce_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, (bool, list, dict)):
        return None
    if _is_number(value):
        number = float(value)
    else:
        match = _NUMBER.match(str(value).lstrip())
        if match is None:
            return None
        number = float(match.group(0))
    return number if math.isfinite(number) else None


def normalize_datetime(value: Any) -> Any:
    """Normalise a timestamp to ``YYYY-MM-DDTHH:MM``.

    Accepts ``YYYY-MM-DD HH:MM:SS`` as stored by the server as well as ISO
    text. Aware timestamps are shown in local time. Unparseable text gives
    None; values that are neither text nor datetimes pass through.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip().replace(" ", "T", 1))
        except ValueError:
            return None
    else:
        return value
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment.strftime(DATETIME_FORMAT)


def coerce_setting_value(setting_type: SettingType | str | None, value: Any) -> Any:
    """Normalise ``value`` for a declared setting type."""
    kind = _type_name(setting_type)

    if kind == SettingType.BOOLEAN.value:
        return coerce_boolean(value)
    if kind in (SettingType.INTEGER.value, SettingType.NUMBER.value):
        return _coerce_number(value)
    if kind == SettingType.FLOAT.value:
        return _coerce_float(value)
    if kind == SettingType.DATETIME.value:
        return normalize_datetime(value)
    if kind == SettingType.JSON.value:
        return coerce_json(value, None)
    if kind == SettingType.ARRAY.value:
        parsed = coerce_json(value, [])
        return parsed if isinstance(parsed, list) else []
    return value


def values_equal(a: Any, b: Any) -> bool:
    """Type-aware equality used for dirty-tracking.

    Booleans compare by truthiness, numbers by numeric value, containers by
    their JSON serialisation and everything else by string form.
    """
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return is_truthy(a) == is_truthy(b)
    if a is None or b is None:
        return False
    if _is_number(a) or _is_number(b):
        return to_number(a) == to_number(b)
    if isinstance(a, (list, dict)) or isinstance(b, (list, dict)):
        try:
            return _json_dumps(a) == _json_dumps(b)
        except (TypeError, ValueError):
            return False
    return format_value(a) == format_value(b)
