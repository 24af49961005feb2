"""Business logic services for Cimiento."""

from app.services.maintenance import MaintenanceError, MaintenanceService
from app.services.preferences import PreferenceStore
from app.services.settings import Actor, SettingsError, SettingsService
from app.services.settings_client import SettingsClient
from app.services.settings_state import SettingsState

__all__ = [
    "Actor",
    "MaintenanceError",
    "MaintenanceService",
    "PreferenceStore",
    "SettingsClient",
    "SettingsError",
    "SettingsService",
    "SettingsState",
]
