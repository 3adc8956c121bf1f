"""
User Preferences

Currency and theme chosen by the user. Loaded once at startup from a
JSON file and written back on every change.

DESIGN DECISION: Preferences are an explicit object handed to whoever
needs them, not module-level state. The store owns the file; callers
only see UserPreferences values.
"""

import json
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from expense_tracker.models.records import DEFAULT_CURRENCY, Theme


logger = structlog.get_logger(__name__)


class UserPreferences(BaseModel):
    """Display preferences for one user session."""
    model_config = ConfigDict(frozen=True)

    currency: str = Field(
        default=DEFAULT_CURRENCY,
        description="Currency preselected in forms and used for totals"
    )
    theme: Theme = Field(
        default=Theme.LIGHT,
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError(f"Currency must be a 3-letter code, got: {v!r}")
        return v


class PreferencesStore:
    """
    Persists UserPreferences to a JSON file.

    Lifecycle:
        store = PreferencesStore(path)
        prefs = store.load()            # once, at startup
        prefs = store.set_currency("EUR")  # writes immediately
    """

    def __init__(
        self,
        path: Union[str, Path],
        default_currency: str = DEFAULT_CURRENCY,
    ):
        self._path = Path(path)
        self._defaults = UserPreferences(currency=default_currency)
        self._current: Optional[UserPreferences] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def current(self) -> UserPreferences:
        """Loaded preferences (loads on first access)."""
        if self._current is None:
            return self.load()
        return self._current

    def load(self) -> UserPreferences:
        """
        Read preferences from disk.

        A missing or unreadable file yields the defaults; it is not an error.
        """
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            self._current = UserPreferences(**{**self._defaults.model_dump(), **data})
        except FileNotFoundError:
            self._current = self._defaults
        except (OSError, UnicodeDecodeError, json.JSONDecodeError,
                TypeError, ValidationError) as e:
            logger.warning("preferences_unreadable", path=str(self._path), error=str(e))
            self._current = self._defaults
        return self._current

    def save(self, preferences: UserPreferences) -> UserPreferences:
        """Write preferences to disk and make them current."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(preferences.model_dump(mode="json"), indent=2),
            encoding="utf-8",
        )
        self._current = preferences
        return preferences

    def set_currency(self, currency: str) -> UserPreferences:
        return self.save(UserPreferences(currency=currency, theme=self.current.theme))

    def set_theme(self, theme: Union[Theme, str]) -> UserPreferences:
        return self.save(UserPreferences(currency=self.current.currency, theme=theme))
