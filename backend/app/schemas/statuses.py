"""Pydantic schemas for the status vocabularies."""

from __future__ import annotations

from pydantic import BaseModel


class StatusOption(BaseModel):
    """One status value with its display data."""

    value: str
    label: str
    badge_color: str
    flags: dict[str, bool]


class StatusVocabularies(BaseModel):
    comment: list[StatusOption]
    contact_request: list[StatusOption]
    post: list[StatusOption]
    user: list[StatusOption]
