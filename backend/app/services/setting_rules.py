"""Validation of setting values against their rule strings.

Each setting carries a list of rules such as ``["required", "integer",
"min:5", "max:1440"]``. ``validate_value`` checks one value and returns the
failure messages in rule order; an empty list means the value is valid.

Empty values (None, blank text, empty list) are only checked by ``required``
and ``required_if``; every other rule applies to non-empty values.
"""

from __future__ import annotations

import ipaddress
import math
import re
from datetime import datetime
from typing import Any, Callable, Mapping, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AnyUrl, EmailStr, TypeAdapter, ValidationError

from app.core.logging import get_logger
from app.services.coercion import format_value, to_number
from app.services.setting_storage import cast_boolean

logger = get_logger(__name__)

_EMAIL_ADAPTER = TypeAdapter(EmailStr)
_URL_ADAPTER = TypeAdapter(AnyUrl)
_URL_SCHEMES = frozenset({"http", "https", "ftp"})
_INTEGER = re.compile(r"^[+-]?\d+$")
_BOOLEAN_TEXT = frozenset({"0", "1", "true", "false"})
_NUMERIC_RULES = ("integer", "numeric")


def _attribute(key: str) -> str:
    return key.replace("_", " ")


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return not value
    return False


def is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, str) and bool(_INTEGER.match(value.strip()))


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    return isinstance(value, str) and math.isfinite(to_number(value)) and bool(value.strip())


def parse_date(value: Any) -> datetime | None:
    """Parse a date or timestamp into a naive local datetime."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value.strip():
        try:
            moment = datetime.fromisoformat(value.strip().replace(" ", "T", 1))
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment


def _size(value: Any, rules: Sequence[str]) -> float:
    if any(rule in _NUMERIC_RULES for rule in rules) and is_numeric(value):
        return to_number(value)
    if isinstance(value, (list, dict, str)):
        return len(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return len(format_value(value))


def _size_unit(value: Any, rules: Sequence[str]) -> str:
    if any(rule in _NUMERIC_RULES for rule in rules):
        return ""
    if isinstance(value, (list, dict)):
        return " items"
    if isinstance(value, str):
        return " characters"
    return ""


def _check_string(key, value, param, rules, context):
    if not isinstance(value, str):
        return f"The {_attribute(key)} field must be a string."
    return None


def _check_integer(key, value, param, rules, context):
    if not is_integer(value):
        return f"The {_attribute(key)} field must be an integer."
    return None


def _check_numeric(key, value, param, rules, context):
    if not is_numeric(value):
        return f"The {_attribute(key)} field must be a number."
    return None


def _check_boolean(key, value, param, rules, context):
    if isinstance(value, bool) or value in (0, 1):
        return None
    if isinstance(value, str) and value.strip().lower() in _BOOLEAN_TEXT:
        return None
    return f"The {_attribute(key)} field must be true or false."


def _check_array(key, value, param, rules, context):
    if not isinstance(value, (list, dict)):
        return f"The {_attribute(key)} field must be an array."
    return None


def _check_email(key, value, param, rules, context):
    message = f"The {_attribute(key)} field must be a valid email address."
    if not isinstance(value, str):
        return message
    try:
        _EMAIL_ADAPTER.validate_python(value.strip())
    except ValidationError:
        return message
    return None


def _check_url(key, value, param, rules, context):
    message = f"The {_attribute(key)} field must be a valid URL."
    if not isinstance(value, str):
        return message
    try:
        url = _URL_ADAPTER.validate_python(value.strip())
    except ValidationError:
        return message
    if url.scheme not in _URL_SCHEMES or not url.host:
        return message
    return None


def _check_ip(key, value, param, rules, context):
    try:
        ipaddress.ip_address(str(value).strip())
    except ValueError:
        return f"The {_attribute(key)} field must be a valid IP address."
    return None


def _check_date(key, value, param, rules, context):
    if parse_date(value) is None:
        return f"The {_attribute(key)} field must be a valid date."
    return None


def _check_timezone(key, value, param, rules, context):
    try:
        ZoneInfo(str(value))
    except (ZoneInfoNotFoundError, ValueError):
        return f"The {_attribute(key)} field must be a valid timezone."
    return None


def _check_min(key, value, param, rules, context):
    limit = to_number(param)
    if _size(value, rules) < limit:
        return f"The {_attribute(key)} field must be at least {param}{_size_unit(value, rules)}."
    return None


def _check_max(key, value, param, rules, context):
    limit = to_number(param)
    if _size(value, rules) > limit:
        return (
            f"The {_attribute(key)} field must not be greater than "
            f"{param}{_size_unit(value, rules)}."
        )
    return None


def _check_in(key, value, param, rules, context):
    allowed = param.split(",") if param else []
    if format_value(value) not in allowed:
        return f"The selected {_attribute(key)} is invalid."
    return None


def _check_after(key, value, param, rules, context):
    moment = parse_date(value)
    if param == "now":
        reference = datetime.now()
        other = "now"
    else:
        reference = parse_date(context.get(param))
        other = _attribute(param)
    if moment is None or reference is None or moment <= reference:
        return f"The {_attribute(key)} field must be a date after {other}."
    return None


RuleCheck = Callable[[str, Any, str, Sequence[str], Mapping[str, Any]], "str | None"]

RULE_CHECKS: dict[str, RuleCheck] = {
    "string": _check_string,
    "integer": _check_integer,
    "numeric": _check_numeric,
    "boolean": _check_boolean,
    "array": _check_array,
    "email": _check_email,
    "url": _check_url,
    "ip": _check_ip,
    "date": _check_date,
    "timezone": _check_timezone,
    "min": _check_min,
    "max": _check_max,
    "in": _check_in,
    "after": _check_after,
}


def _required_if_applies(param: str, context: Mapping[str, Any]) -> bool:
    other_key, _, expected = param.partition(",")
    other = context.get(other_key)
    if isinstance(other, bool):
        return other == cast_boolean(expected)
    return format_value(other) == expected


def validate_value(
    key: str,
    value: Any,
    rules: Sequence[str] | None,
    context: Mapping[str, Any] | None = None,
) -> list[str]:
    """Validate ``value`` for setting ``key`` against ``rules``.

    Args:
        key: Setting key, used in messages.
        value: Submitted value.
        rules: Rule strings, e.g. ``["required", "max:255"]``.
        context: Values of other settings, for ``after:<key>`` and
            ``required_if:<key>,<value>``.

    Returns:
        Failure messages, empty when the value passes every rule.
    """
    rules = [rule for rule in (rules or []) if isinstance(rule, str)]
    context = context or {}
    errors: list[str] = []

    if is_empty(value):
        for rule in rules:
            name, _, param = rule.partition(":")
            if name == "required" or (
                name == "required_if" and _required_if_applies(param, context)
            ):
                errors.append(f"The {_attribute(key)} field is required.")
                break
        return errors

    for rule in rules:
        name, _, param = rule.partition(":")
        if name in ("required", "required_if", "nullable"):
            continue
        check = RULE_CHECKS.get(name)
        if check is None:
            logger.debug("unknown_setting_rule", key=key, rule=rule)
            continue
        message = check(key, value, param, rules, context)
        if message:
            errors.append(message)

    return errors
