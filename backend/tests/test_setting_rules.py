"""Tests for setting validation rules."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from app.services.setting_rules import is_empty, parse_date, validate_value


def _future(days: int = 1) -> str:
    return (datetime.now() + timedelta(days=days)).strftime("%Y-%m-%dT%H:%M")


def _past(days: int = 1) -> str:
    return (datetime.now() - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M")


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    def test_is_empty(self):
        assert is_empty(None)
        assert is_empty("  ")
        assert is_empty([])
        assert is_empty({})
        assert not is_empty(0)
        assert not is_empty(False)
        assert not is_empty("x")

    def test_parse_date(self):
        assert parse_date("2030-01-01 08:00:00") == datetime(2030, 1, 1, 8, 0)
        assert parse_date("2030-01-01T08:00") == datetime(2030, 1, 1, 8, 0)
        assert parse_date("2030-01-01") == datetime(2030, 1, 1)
        assert parse_date("soon") is None
        assert parse_date(None) is None


# =============================================================================
# Presence rules
# =============================================================================


class TestPresence:
    def test_required(self):
        assert validate_value("site_name", "", ["required", "string"]) == [
            "The site name field is required."
        ]
        assert validate_value("site_name", None, ["required"]) == [
            "The site name field is required."
        ]

    def test_empty_value_skips_other_rules(self):
        assert validate_value("facebook_url", "", ["nullable", "url", "max:255"]) == []
        assert validate_value("maintenance_retry_after", None, ["nullable", "integer", "min:60"]) == []

    def test_required_if_applies(self):
        rules = ["required_if:maintenance_mode,true", "string", "max:1000"]
        assert validate_value(
            "maintenance_message", "", rules, {"maintenance_mode": True}
        ) == ["The maintenance message field is required."]

    def test_required_if_does_not_apply(self):
        rules = ["required_if:maintenance_mode,true", "string"]
        assert validate_value("maintenance_message", "", rules, {"maintenance_mode": False}) == []
        assert validate_value("maintenance_message", "", rules, {}) == []

    def test_required_if_text_comparison(self):
        rules = ["required_if:backup_frequency,daily"]
        assert validate_value("x", "", rules, {"backup_frequency": "daily"})
        assert not validate_value("x", "", rules, {"backup_frequency": "weekly"})


# =============================================================================
# Type rules
# =============================================================================


class TestTypeRules:
    def test_string(self):
        assert validate_value("site_name", "MDR", ["string"]) == []
        assert validate_value("site_name", 5, ["string"]) == [
            "The site name field must be a string."
        ]

    def test_integer(self):
        assert validate_value("session_timeout", "30", ["integer"]) == []
        assert validate_value("session_timeout", 30.0, ["integer"]) == []
        assert validate_value("session_timeout", "1.5", ["integer"]) == [
            "The session timeout field must be an integer."
        ]
        assert validate_value("session_timeout", True, ["integer"])

    def test_numeric(self):
        assert validate_value("ratio", "1.5", ["numeric"]) == []
        assert validate_value("ratio", "abc", ["numeric"]) == [
            "The ratio field must be a number."
        ]

    @pytest.mark.parametrize("value", [True, False, 0, 1, "0", "1", "true", "false"])
    def test_boolean_accepts(self, value):
        assert validate_value("enable_2fa", value, ["boolean"]) == []

    @pytest.mark.parametrize("value", ["yes", 2, "on"])
    def test_boolean_rejects(self, value):
        assert validate_value("enable_2fa", value, ["boolean"]) == [
            "The enable 2fa field must be true or false."
        ]

    def test_array(self):
        assert validate_value("maintenance_allowed_ips", ["1.1.1.1"], ["array"]) == []
        assert validate_value("maintenance_allowed_ips", "1.1.1.1", ["array"]) == [
            "The maintenance allowed ips field must be an array."
        ]

    def test_email(self):
        assert validate_value("company_email", "info@mdr.es", ["email"]) == []
        assert validate_value("company_email", "info@", ["email"]) == [
            "The company email field must be a valid email address."
        ]

    @pytest.mark.parametrize("value", ["a@..c", "@mdr.es", "info@mdr..es", 42])
    def test_malformed_email(self, value):
        assert validate_value("company_email", value, ["email"]) == [
            "The company email field must be a valid email address."
        ]

    def test_url(self):
        assert validate_value("facebook_url", "https://facebook.com/mdr", ["url"]) == []
        assert validate_value("facebook_url", "ftp://files.mdr.es/docs", ["url"]) == []
        assert validate_value("facebook_url", "facebook.com/mdr", ["url"]) == [
            "The facebook url field must be a valid URL."
        ]

    @pytest.mark.parametrize(
        "value", ["http://exa mple.com", "http://", "mailto:info@mdr.es", "javascript:alert(1)"]
    )
    def test_malformed_url(self, value):
        assert validate_value("facebook_url", value, ["url"]) == [
            "The facebook url field must be a valid URL."
        ]

    def test_ip(self):
        assert validate_value("ip", "192.168.1.10", ["ip"]) == []
        assert validate_value("ip", "::1", ["ip"]) == []
        assert validate_value("ip", "999.1.1.1", ["ip"]) == [
            "The ip field must be a valid IP address."
        ]

    def test_timezone(self):
        assert validate_value("timezone", "Europe/Madrid", ["timezone"]) == []
        assert validate_value("timezone", "Mars/Olympus", ["timezone"]) == [
            "The timezone field must be a valid timezone."
        ]

    def test_date(self):
        assert validate_value("maintenance_start_at", "2030-01-01T10:00", ["date"]) == []
        assert validate_value("maintenance_start_at", "someday", ["date"]) == [
            "The maintenance start at field must be a valid date."
        ]


# =============================================================================
# Size, choice and ordering rules
# =============================================================================


class TestSizeRules:
    def test_numeric_bounds(self):
        rules = ["required", "integer", "min:5", "max:1440"]
        assert validate_value("session_timeout", 120, rules) == []
        assert validate_value("session_timeout", "3", rules) == [
            "The session timeout field must be at least 5."
        ]
        assert validate_value("session_timeout", 2000, rules) == [
            "The session timeout field must not be greater than 1440."
        ]

    def test_string_length(self):
        assert validate_value("site_name", "x" * 255, ["string", "max:255"]) == []
        assert validate_value("site_name", "x" * 256, ["string", "max:255"]) == [
            "The site name field must not be greater than 255 characters."
        ]
        assert validate_value("maintenance_secret", "short", ["string", "min:8"]) == [
            "The maintenance secret field must be at least 8 characters."
        ]

    def test_multiple_failures_in_rule_order(self):
        errors = validate_value("session_timeout", "abc", ["integer", "min:5"])
        assert errors[0] == "The session timeout field must be an integer."
        assert len(errors) == 2


class TestChoiceAndOrdering:
    def test_in(self):
        rules = ["in:d/m/Y,m/d/Y,Y-m-d"]
        assert validate_value("date_format", "Y-m-d", rules) == []
        assert validate_value("date_format", "Y/m/d", rules) == [
            "The selected date format is invalid."
        ]

    def test_after_now(self):
        assert validate_value("maintenance_start_at", _future(), ["date", "after:now"]) == []
        assert validate_value("maintenance_start_at", _past(), ["date", "after:now"]) == [
            "The maintenance start at field must be a date after now."
        ]

    def test_after_other_setting(self):
        start = _future(1)
        context = {"maintenance_start_at": start}
        rules = ["date", "after:maintenance_start_at"]
        assert validate_value("maintenance_end_at", _future(2), rules, context) == []
        assert validate_value("maintenance_end_at", start, rules, context) == [
            "The maintenance end at field must be a date after maintenance start at."
        ]

    def test_after_missing_reference_fails(self):
        assert validate_value("maintenance_end_at", _future(), ["after:maintenance_start_at"], {})


class TestUnknownRules:
    def test_unknown_rules_are_ignored(self):
        assert validate_value("site_name", "MDR", ["string", "regex:/x/", 42]) == []
