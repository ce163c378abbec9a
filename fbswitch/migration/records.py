"""User record copied between Firebase projects.

Remote document layout (users/{userId}):
    name, email, role: String
    createdAt, migratedAt: Timestamp
    settings: Map (theme, language, notifications)
    migratedFrom, migrationVersion: String
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fbswitch.local.store import (
    KEY_LANGUAGE,
    KEY_NOTIFICATIONS,
    KEY_THEME,
    KEY_USER_CREATED_AT,
    KEY_USER_EMAIL,
    KEY_USER_NAME,
    KEY_USER_ROLE,
    LocalDataStore,
)


DEFAULT_MIGRATED_FROM = "OldApp"
DEFAULT_MIGRATION_VERSION = "1.0"

RECORD_KEYS = (
    "name", "email", "role", "createdAt", "settings",
    "migratedAt", "migratedFrom", "migrationVersion",
)


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


@dataclass
class UserSettings:
    """User preferences."""
    theme: Optional[str] = None
    language: Optional[str] = None
    notifications_enabled: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.theme is not None:
            data["theme"] = self.theme
        if self.language is not None:
            data["language"] = self.language
        if self.notifications_enabled is not None:
            data["notifications"] = self.notifications_enabled
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserSettings":
        notifications = data.get("notifications")
        return cls(
            theme=data.get("theme"),
            language=data.get("language"),
            notifications_enabled=bool(notifications) if notifications is not None else None,
        )


@dataclass
class UserRecord:
    """User profile plus migration metadata."""
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None
    settings: UserSettings = field(default_factory=UserSettings)
    migrated_at: Optional[datetime] = None
    migrated_from: Optional[str] = None
    migration_version: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Remote document fields; unset fields are left out."""
        data: Dict[str, Any] = dict(self.extra)
        for key, value in (
            ("name", self.name),
            ("email", self.email),
            ("role", self.role),
            ("createdAt", self.created_at),
        ):
            if value is not None:
                data[key] = value

        settings = self.settings.to_dict()
        if settings:
            data["settings"] = settings

        for key, value in (
            ("migratedAt", self.migrated_at),
            ("migratedFrom", self.migrated_from),
            ("migrationVersion", self.migration_version),
        ):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        """Create a record from remote document fields, keeping unknown ones."""
        settings = data.get("settings")
        return cls(
            name=data.get("name"),
            email=data.get("email"),
            role=data.get("role"),
            created_at=_to_datetime(data.get("createdAt")),
            settings=UserSettings.from_dict(settings) if isinstance(settings, dict) else UserSettings(),
            migrated_at=_to_datetime(data.get("migratedAt")),
            migrated_from=data.get("migratedFrom"),
            migration_version=data.get("migrationVersion"),
            extra={k: v for k, v in data.items() if k not in RECORD_KEYS},
        )

    @classmethod
    def from_local_store(
        cls,
        store: LocalDataStore,
        migrated_from: str = DEFAULT_MIGRATED_FROM,
        migration_version: str = DEFAULT_MIGRATION_VERSION,
        now: Optional[datetime] = None
    ) -> Optional["UserRecord"]:
        """
        Build a record from the staged local fields.

        Args:
            store: Local data store
            migrated_from: Name of the source application
            migration_version: Migration format version
            now: Migration time (defaults to current UTC time)

        Returns:
            UserRecord, or None if neither name nor e-mail is staged
        """
        name = store.get_string(KEY_USER_NAME)
        email = store.get_string(KEY_USER_EMAIL)
        if name is None and email is None:
            return None

        created_at = store.get_float(KEY_USER_CREATED_AT)

        return cls(
            name=name,
            email=email,
            role=store.get_string(KEY_USER_ROLE),
            created_at=_to_datetime(created_at) if created_at > 0 else None,
            settings=UserSettings(
                theme=store.get_string(KEY_THEME),
                language=store.get_string(KEY_LANGUAGE),
                notifications_enabled=store.get_bool(KEY_NOTIFICATIONS),
            ),
            migrated_at=now or datetime.now(tz=timezone.utc),
            migrated_from=migrated_from,
            migration_version=migration_version,
        )
