"""Enum types for domain records and settings."""

from __future__ import annotations

import enum


class StatusEnum(str, enum.Enum):
    """Shared helpers for the status vocabularies.

    Labels and badge colors live in the STATUS_LABELS and STATUS_BADGE_COLORS
    tables at the bottom of this module; every member appears in both.
    """

    @classmethod
    def values(cls) -> list[str]:
        """Return all raw values in declaration order."""
        return [member.value for member in cls]

    def label(self) -> str:
        """Return the display label shown to site visitors and admins."""
        return STATUS_LABELS[type(self)][self.value]

    def badge_color(self) -> str:
        """Return the UI color token used for status badges."""
        return STATUS_BADGE_COLORS[type(self)][self.value]

    def flags(self) -> dict[str, bool]:
        """Return the predicate results for this status."""
        return {}


class CommentStatus(StatusEnum):
    """Moderation status of a blog comment."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SPAM = "spam"

    def is_public(self) -> bool:
        """Only approved comments are shown on the site."""
        return self is CommentStatus.APPROVED

    def requires_attention(self) -> bool:
        """Pending comments wait for a moderator."""
        return self is CommentStatus.PENDING

    def flags(self) -> dict[str, bool]:
        return {
            "is_public": self.is_public(),
            "requires_attention": self.requires_attention(),
        }


class ContactRequestStatus(StatusEnum):
    """Handling status of a contact form request."""

    NEW = "new"
    READ = "read"
    RESPONDED = "responded"
    ARCHIVED = "archived"

    def requires_attention(self) -> bool:
        """New requests have not been opened by anyone yet."""
        return self is ContactRequestStatus.NEW

    def flags(self) -> dict[str, bool]:
        return {"requires_attention": self.requires_attention()}


class PostStatus(StatusEnum):
    """Publication status of a blog post."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"
    ARCHIVED = "archived"

    def is_public(self) -> bool:
        return self is PostStatus.PUBLISHED

    def flags(self) -> dict[str, bool]:
        return {"is_public": self.is_public()}


class UserStatus(StatusEnum):
    """Account status of a registered user."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    BANNED = "banned"

    def can_login(self) -> bool:
        return self in (UserStatus.ACTIVE, UserStatus.INACTIVE)

    def is_blocked(self) -> bool:
        return self in (UserStatus.SUSPENDED, UserStatus.BANNED)

    def flags(self) -> dict[str, bool]:
        return {
            "can_login": self.can_login(),
            "is_blocked": self.is_blocked(),
        }


# Keyed by enum class first: str-backed members of different vocabularies
# compare equal when they share a raw value ("archived").
STATUS_LABELS: dict[type[StatusEnum], dict[str, str]] = {
    CommentStatus: {
        "pending": "Pendiente",
        "approved": "Aprobado",
        "rejected": "Rechazado",
        "spam": "Spam",
    },
    ContactRequestStatus: {
        "new": "Nuevo",
        "read": "Leído",
        "responded": "Respondido",
        "archived": "Archivado",
    },
    PostStatus: {
        "draft": "Borrador",
        "published": "Publicado",
        "scheduled": "Programado",
        "archived": "Archivado",
    },
    UserStatus: {
        "active": "Activo",
        "inactive": "Inactivo",
        "suspended": "Suspendido",
        "banned": "Bloqueado",
    },
}

STATUS_BADGE_COLORS: dict[type[StatusEnum], dict[str, str]] = {
    CommentStatus: {
        "pending": "warning",
        "approved": "success",
        "rejected": "error",
        "spam": "secondary",
    },
    ContactRequestStatus: {
        "new": "info",
        "read": "primary",
        "responded": "success",
        "archived": "default",
    },
    PostStatus: {
        "draft": "default",
        "published": "success",
        "scheduled": "info",
        "archived": "secondary",
    },
    UserStatus: {
        "active": "success",
        "inactive": "default",
        "suspended": "warning",
        "banned": "error",
    },
}


class SettingType(str, enum.Enum):
    """Declared type of an admin setting, drives coercion and storage."""

    STRING = "string"
    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    FLOAT = "float"
    DATETIME = "datetime"
    JSON = "json"
    ARRAY = "array"
    SELECT = "select"
    EMAIL = "email"
    PASSWORD = "password"
    URL = "url"
    FILE = "file"
