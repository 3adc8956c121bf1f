"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)
from expense_tracker.config.preferences import (
    PreferencesStore,
    UserPreferences,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "PreferencesStore",
    "Settings",
    "UserPreferences",
    "get_settings",
    "validate_all_settings",
]
