"""Persisted preferences for the Firebase configuration switcher.

Holds the last chosen configuration and the migration completion marker.
The migration manager updates the marker from a worker thread, so every
access goes through one lock.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional

from fbswitch.config.paths import get_settings_path

logger = logging.getLogger("fbswitch.settings")


@dataclass
class AppSettings:
    """Preferences that persist between sessions."""

    # ConfigurationKind value; only written in development mode
    current_configuration: Optional[str] = None

    migration_completed: bool = False
    migration_timestamp: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        """Create settings from stored data; unknown keys are dropped."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class SettingsManager:
    """Reads and writes AppSettings as a JSON file."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_path: Settings file, defaults to the platform app data dir
        """
        self._config_path = config_path or get_settings_path()
        self._settings: Optional[AppSettings] = None
        self._lock = threading.RLock()

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def settings(self) -> AppSettings:
        """Current settings, read from disk on first access."""
        with self._lock:
            return self._settings if self._settings is not None else self.load()

    def load(self) -> AppSettings:
        """
        Read settings from disk.

        A missing or corrupt file yields defaults; a corrupt one is logged.

        Returns:
            AppSettings instance
        """
        with self._lock:
            self._settings = self._read()
            return self._settings

    def save(self, settings: AppSettings) -> None:
        """
        Write settings to disk.

        The file is replaced in one step so a crash mid-write cannot leave
        a truncated file behind.

        Args:
            settings: Settings to save
        """
        with self._lock:
            self._settings = settings
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            staging = self._config_path.with_suffix(self._config_path.suffix + ".tmp")
            with open(staging, "w", encoding="utf-8") as f:
                json.dump(settings.to_dict(), f, indent=2)
            os.replace(staging, self._config_path)

    def reset(self) -> AppSettings:
        """
        Forget every preference and delete the file.

        Returns:
            Default AppSettings instance
        """
        with self._lock:
            self._settings = AppSettings()
            if self._config_path.exists():
                self._config_path.unlink()
            return self._settings

    def update(self, **kwargs) -> AppSettings:
        """
        Change some fields and save.

        Args:
            **kwargs: Field names and new values; unknown names are logged
                and skipped

        Returns:
            Updated AppSettings instance
        """
        with self._lock:
            settings = self.settings
            for key, value in kwargs.items():
                if hasattr(settings, key):
                    setattr(settings, key, value)
                else:
                    logger.warning(f"Ignoring unknown setting: {key}")
            self.save(settings)
            return settings

    def _read(self) -> AppSettings:
        if not self._config_path.exists():
            return AppSettings()
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return AppSettings.from_dict(data)
        except (json.JSONDecodeError, OSError, TypeError, AttributeError) as e:
            logger.warning(f"Settings file unreadable, using defaults: {e}")
            return AppSettings()
