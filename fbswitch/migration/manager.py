"""Data migration from the local store to the Migration project.

Migration process:
1. Data collection: read the staged profile from the local store
2. Enable migration mode: connect the named Migration slot
3. Write: merge the record into users/{userId}
4. Disable migration mode, whatever the outcome of the write
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from fbswitch.config.settings import SettingsManager
from fbswitch.firebase.configuration import ConfigurationManager
from fbswitch.firebase.exceptions import (
    MigrationError,
    NoDataToMigrateError,
    RemoteError,
)
from fbswitch.local.store import LocalDataStore
from fbswitch.migration.records import (
    DEFAULT_MIGRATED_FROM,
    DEFAULT_MIGRATION_VERSION,
    UserRecord,
)
from fbswitch.utils.threading import TaskResult, ThreadedTask
from fbswitch.utils.validators import validate_user_id

logger = logging.getLogger("fbswitch.migration")


# Remote collection holding migrated users
USERS_COLLECTION = "users"


class MigrationState(Enum):
    """Stage of a migration attempt."""
    IDLE = "idle"
    COLLECTING_LOCAL = "collecting_local"
    CONNECTING_SECONDARY = "connecting_secondary"
    WRITING = "writing"
    DISCONNECTING = "disconnecting"
    COMPLETED = "completed"
    FAILED = "failed"


def check_user_id(user_id: str) -> None:
    """Raise ValueError for ids that cannot be used as document keys."""
    valid, error = validate_user_id(user_id)
    if not valid:
        raise ValueError(error)


class MigrationManager:
    """Copies the local user record into the Migration project."""

    def __init__(
        self,
        config_manager: ConfigurationManager,
        local_store: LocalDataStore,
        settings_manager: SettingsManager,
        migrated_from: str = DEFAULT_MIGRATED_FROM,
        migration_version: str = DEFAULT_MIGRATION_VERSION,
        ready_timeout: Optional[float] = None
    ):
        """
        Initialize the migration manager.

        Args:
            config_manager: Configuration manager owning the slots
            local_store: Store holding the staged profile
            settings_manager: Persisted preferences (completion marker)
            migrated_from: Name of the source application
            migration_version: Migration format version
            ready_timeout: Seconds to wait for the Migration connection
        """
        self._config_manager = config_manager
        self._local_store = local_store
        self._settings_manager = settings_manager
        self._migrated_from = migrated_from
        self._migration_version = migration_version
        self._ready_timeout = ready_timeout
        self._state = MigrationState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> MigrationState:
        """Stage of the current or last migration attempt."""
        return self._state

    def collect_local_data(self) -> Optional[UserRecord]:
        """
        Collect the staged profile.

        Returns:
            UserRecord with migration metadata, or None if nothing is staged
        """
        record = UserRecord.from_local_store(
            self._local_store,
            migrated_from=self._migrated_from,
            migration_version=self._migration_version,
        )
        if record is None:
            logger.info("No local data found for migration")
            return None

        logger.info(f"Collected data fields: {', '.join(record.to_dict())}")
        return record

    def migrate(self, user_id: str) -> None:
        """
        Migrate the staged profile to users/{user_id}.

        Args:
            user_id: User identifier (email or external id)

        Raises:
            ValueError: If user_id is not a valid document key
            NoDataToMigrateError: If nothing is staged locally
            FirebaseNotConfiguredError: If the Migration slot cannot be used
            RemoteError: If the write fails
        """
        check_user_id(user_id)

        with self._lock:
            logger.info(f"Starting migration for user: {user_id}")

            self._state = MigrationState.COLLECTING_LOCAL
            record = self.collect_local_data()
            if record is None:
                self._state = MigrationState.FAILED
                raise NoDataToMigrateError()

            self._state = MigrationState.CONNECTING_SECONDARY
            try:
                with self._config_manager.migration_connection(self._ready_timeout) as connection:
                    self._state = MigrationState.WRITING
                    logger.info(f"Writing to: {USERS_COLLECTION}/{user_id}")
                    try:
                        connection.store.set_document(
                            USERS_COLLECTION, user_id, record.to_dict(), merge=True
                        )
                    except Exception as e:
                        logger.error(f"Migration failed: {e}")
                        raise RemoteError("write", e)
                    finally:
                        self._state = MigrationState.DISCONNECTING
            except MigrationError:
                self._state = MigrationState.FAILED
                raise

            self._mark_migration_complete()
            self._state = MigrationState.COMPLETED
            logger.info("Migration successful!")

    def migrate_in_background(
        self,
        user_id: str,
        completion: Callable[[TaskResult[None]], None]
    ) -> ThreadedTask[None]:
        """
        Run migrate() on a background thread.

        Args:
            user_id: User identifier
            completion: Receives the TaskResult (error holds the MigrationError)

        Returns:
            The started task
        """
        task: ThreadedTask[None] = ThreadedTask(
            self.migrate,
            args=(user_id,),
            on_complete=completion,
            name="fbswitch-migration",
        )
        task.start()
        return task

    def is_migration_completed(self) -> bool:
        """True once a migration has succeeded on this device."""
        return self._settings_manager.settings.migration_completed

    def migration_timestamp(self) -> Optional[float]:
        """Epoch seconds of the last successful migration."""
        return self._settings_manager.settings.migration_timestamp

    def _mark_migration_complete(self) -> None:
        self._settings_manager.update(
            migration_completed=True,
            migration_timestamp=time.time(),
        )
        logger.info("Migration marked as complete")
