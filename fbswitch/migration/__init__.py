"""Migration module for the Firebase configuration switcher.

This module moves the user record between projects:
- MigrationManager: Writes the local record to the Migration project
- ImportManager: Reads, checks and deletes migrated records
- UserRecord: Record layout shared by both
"""

from .records import UserRecord, UserSettings
from .manager import MigrationManager, MigrationState, USERS_COLLECTION
from .importer import ImportManager

__all__ = [
    "UserRecord",
    "UserSettings",
    "MigrationManager",
    "MigrationState",
    "USERS_COLLECTION",
    "ImportManager",
]
