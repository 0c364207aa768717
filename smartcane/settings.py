"""
User preferences, passed explicitly to the components that read them.

Stored in the key-value store under the same keys the mobile app used, so a
store written by either side reads the same.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from smartcane.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

# field name -> persisted key
SETTINGS_KEYS: Dict[str, str] = {
    "voice_feedback_enabled": "voiceFeedbackEnabled",
    "dark_mode_enabled": "darkModeEnabled",
    "notifications_enabled": "notificationsEnabled",
    "font_size": "fontSize",
}


class SettingsError(ValueError):
    """Unknown option or invalid value."""


class AppSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    voice_feedback_enabled: bool = True
    dark_mode_enabled: bool = False
    notifications_enabled: bool = True
    font_size: float = Field(default=17.0, gt=0)

    def with_updates(self, updates: Mapping[str, Any]) -> "AppSettings":
        unknown = sorted(set(updates) - set(SETTINGS_KEYS))
        if unknown:
            raise SettingsError(f"Unknown setting(s): {', '.join(unknown)}")
        try:
            return AppSettings.model_validate({**self.model_dump(), **dict(updates)})
        except PydanticValidationError as e:
            raise SettingsError(str(e)) from e


def load_settings(store: KeyValueStore) -> AppSettings:
    """Read settings; missing or unparseable values fall back to defaults."""
    raw: Dict[str, Any] = {}
    for name, key in SETTINGS_KEYS.items():
        value = store.get(key)
        if value is not None:
            raw[name] = value

    settings = AppSettings()
    for name, value in raw.items():
        try:
            settings = settings.with_updates({name: value})
        except SettingsError:
            logger.warning("Ignoring invalid stored value for %s: %r", SETTINGS_KEYS[name], value)
    return settings


def save_settings(store: KeyValueStore, settings: AppSettings) -> None:
    for name, key in SETTINGS_KEYS.items():
        value = getattr(settings, name)
        store.set(key, ("true" if value else "false") if isinstance(value, bool) else str(value))
