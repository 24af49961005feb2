"""Admin setting model for the configurable site preferences."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models.admin_setting_history import AdminSettingHistory


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdminSetting(Base):
    """A typed setting shown in the admin settings panel.

    ``value`` holds the storage encoding produced by
    ``app.services.setting_storage.serialize_value``; read typed values through
    the settings service rather than this column.
    """

    __tablename__ = "admin_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(128), unique=True, index=True)

    # Raw stored text (possibly encrypted)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Declared type, see SettingType
    type: Mapped[str] = mapped_column(String(32), default="string")
    group: Mapped[str] = mapped_column(String(64), default="general", index=True)

    label: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    validation_rules: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    options: Mapped[Any | None] = mapped_column(JSON, nullable=True)

    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    is_encrypted: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    history: Mapped[list["AdminSettingHistory"]] = relationship(
        back_populates="setting",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def rules(self) -> list[str]:
        """Validation rules, never None."""
        return list(self.validation_rules or [])

    def has_rule(self, rule: str) -> bool:
        """Check whether a rule (or a parameterised form of it) is declared."""
        return any(
            isinstance(declared, str) and declared.split(":", 1)[0] == rule
            for declared in self.rules
        )

    @property
    def is_required(self) -> bool:
        return self.has_rule("required")

    def select_options(self) -> list[Any]:
        """Options for select-type settings, empty for everything else."""
        if self.type != "select" or not self.options:
            return []
        return list(self.options)

    def __repr__(self) -> str:
        return f"<AdminSetting {self.key} ({self.type})>"
