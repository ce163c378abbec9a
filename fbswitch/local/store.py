"""Local key-value store for data staged on the device.

The migration reads the user's profile from this store. Keys match the
ones the legacy app wrote, so an existing store can be migrated as is.
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from fbswitch.config.paths import get_local_data_path

logger = logging.getLogger("fbswitch.local_store")


# Staged profile keys
KEY_USER_NAME = "userName"
KEY_USER_EMAIL = "userEmail"
KEY_USER_ROLE = "userRole"
KEY_THEME = "theme"
KEY_LANGUAGE = "language"
KEY_NOTIFICATIONS = "notifications"
KEY_USER_CREATED_AT = "userCreatedAt"

PROFILE_KEYS = (
    KEY_USER_NAME,
    KEY_USER_EMAIL,
    KEY_USER_ROLE,
    KEY_THEME,
    KEY_LANGUAGE,
    KEY_NOTIFICATIONS,
    KEY_USER_CREATED_AT,
)


@dataclass
class LocalProfile:
    """User profile as entered on the device."""
    user_name: str = ""
    user_email: str = ""
    user_role: str = "user"
    theme: str = "light"
    language: str = "ru"
    notifications: bool = True


class LocalDataStore:
    """JSON-file backed key-value store."""

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            path: Optional custom path, defaults to platform standard
        """
        self._path = path or get_local_data_path()
        self._values: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def get_string(self, key: str) -> Optional[str]:
        """String value, or None if absent or not a string."""
        value = self.get(key)
        return value if isinstance(value, str) else None

    def get_bool(self, key: str) -> bool:
        """Boolean value, False if absent."""
        return bool(self.get(key, False))

    def get_float(self, key: str) -> float:
        """Numeric value, 0.0 if absent or not numeric."""
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    def set(self, key: str, value: Any) -> None:
        """Store a value and persist the store."""
        with self._lock:
            self._load()[key] = value
            self._save()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._load().pop(key, None) is not None:
                self._save()

    def clear(self) -> None:
        """Remove every value."""
        with self._lock:
            self._values = {}
            if self._path.exists():
                self._path.unlink()

    def save_profile(self, profile: LocalProfile, created_at: Optional[float] = None) -> None:
        """
        Stage a profile for migration.

        Args:
            profile: Profile entered by the user
            created_at: Creation time in epoch seconds (defaults to now)
        """
        with self._lock:
            values = self._load()
            values.update({
                KEY_USER_NAME: profile.user_name,
                KEY_USER_EMAIL: profile.user_email,
                KEY_USER_ROLE: profile.user_role,
                KEY_THEME: profile.theme,
                KEY_LANGUAGE: profile.language,
                KEY_NOTIFICATIONS: profile.notifications,
                KEY_USER_CREATED_AT: created_at if created_at is not None else time.time(),
            })
            self._save()
        logger.debug(f"Staged profile fields: {', '.join(PROFILE_KEYS)}")

    def _load(self) -> Dict[str, Any]:
        if self._values is None:
            self._values = {}
            if self._path.exists():
                try:
                    with open(self._path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                    if isinstance(data, dict):
                        self._values = data
                except (json.JSONDecodeError, IOError) as e:
                    logger.warning(f"Local data unreadable, starting empty: {e}")
        return self._values

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)
