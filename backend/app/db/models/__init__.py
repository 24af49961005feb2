"""Database models for Cimiento."""

from app.db.models.admin_setting import AdminSetting
from app.db.models.admin_setting_history import AdminSettingHistory
from app.db.models.enums import (
    CommentStatus,
    ContactRequestStatus,
    PostStatus,
    SettingType,
    StatusEnum,
    UserStatus,
)

__all__ = [
    # Models
    "AdminSetting",
    "AdminSettingHistory",
    # Enums
    "CommentStatus",
    "ContactRequestStatus",
    "PostStatus",
    "SettingType",
    "StatusEnum",
    "UserStatus",
]
