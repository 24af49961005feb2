"""Audit trail of admin setting changes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models.admin_setting import AdminSetting


class AdminSettingHistory(Base):
    """One recorded change of a setting.

    ``old_value`` and ``new_value`` keep the raw stored text so a revert
    writes back exactly what was there before.
    """

    __tablename__ = "admin_setting_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    setting_id: Mapped[int] = mapped_column(
        ForeignKey("admin_settings.id", ondelete="CASCADE"), index=True
    )

    changed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    change_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    setting: Mapped["AdminSetting"] = relationship(back_populates="history")

    def __repr__(self) -> str:
        return f"<AdminSettingHistory {self.setting_id} at {self.created_at}>"
