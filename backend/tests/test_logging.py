"""Tests for logging helpers."""

from app.core.logging import REDACTED, redact_secrets


def test_redacts_secret_keys():
    event = redact_secrets(None, "info", {"event": "x", "password": "p", "secret": "s", "key": "k"})
    assert event["password"] == REDACTED
    assert event["secret"] == REDACTED
    assert event["key"] == "k"
