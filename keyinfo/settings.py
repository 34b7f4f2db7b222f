"""
Persisted user settings for KeyInfo.

Settings live in a small JSON document next to the item store. They are
loaded once at startup into a Settings object which is then handed to the
components that need it (AuthGate, ListEngine, the presentation layer).
"""

import os
import json
import logging
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from . import config
from .utils import ensure_dir, set_owner_only_permissions

logger = logging.getLogger(__name__)

# Flags restored by SettingsManager.reset(); list layout choices are left alone
RESETTABLE_SETTINGS = ("use_biometric_auth", "require_auth_on_launch", "relock_on_background")


@dataclass
class Settings:
    """User-changeable flags."""
    group_by_category: bool = True
    use_biometric_auth: bool = True
    require_auth_on_launch: bool = True
    relock_on_background: bool = False
    sort_option: str = "label"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        """Build from a dictionary, ignoring unknown keys and wrongly typed values."""
        defaults = cls()
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if isinstance(value, type(getattr(defaults, f.name))):
                values[f.name] = value
            else:
                logger.warning(f"Ignoring setting {f.name!r}: unexpected value {value!r}")
        return cls(**values)


class SettingsManager:
    """Loads and saves Settings as JSON."""

    def __init__(self, filepath: Optional[str] = None):
        if filepath is None:
            filepath = os.path.join(config.get_config_dir(), config.SETTINGS_FILE)
        self.filepath = filepath
        self.settings = self.load()

    def load(self) -> Settings:
        """Read settings from disk; missing or unreadable files give the defaults."""
        if not os.path.exists(self.filepath):
            return Settings()
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("settings document is not an object")
        except (OSError, ValueError) as e:
            logger.error(f"Could not read settings from {self.filepath}, using defaults: {e}")
            return Settings()
        return Settings.from_dict(data)

    def save(self) -> None:
        """
        Write the current settings to disk.
        Raises:
            OSError: if the file cannot be written
        """
        ensure_dir(os.path.dirname(self.filepath) or ".")
        with open(self.filepath, 'w', encoding='utf-8') as f:
            json.dump(self.settings.to_dict(), f, indent=2)
        set_owner_only_permissions(self.filepath)
        logger.debug(f"Settings saved to {self.filepath}")

    def _apply(self, changes: Dict[str, Any]) -> Settings:
        previous = {name: getattr(self.settings, name) for name in changes}
        for name, value in changes.items():
            setattr(self.settings, name, value)
        try:
            self.save()
        except OSError as e:
            logger.error(f"Failed to save settings to {self.filepath}: {e}")
            for name, value in previous.items():
                setattr(self.settings, name, value)
            raise
        return self.settings

    def update(self, **changes) -> Settings:
        """
        Change one or more flags and write them through.
        If the write fails the flags keep their previous values and the
        OSError is re-raised.
        """
        for name in changes:
            if not hasattr(self.settings, name):
                raise AttributeError(f"Unknown setting: {name}")
        return self._apply(changes)

    def reset(self) -> Settings:
        """
        Restore the authentication flags to their defaults.
        Grouping and sort order are kept.
        """
        defaults = Settings()
        self._apply({name: getattr(defaults, name) for name in RESETTABLE_SETTINGS})
        logger.info("Authentication settings reset to defaults")
        return self.settings
