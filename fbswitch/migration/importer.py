"""Import of migrated data from the Migration project.

Every operation connects the Migration slot for its duration only and
disconnects it afterwards, also when the remote call fails.
"""

import logging
from typing import Optional

from fbswitch.firebase.configuration import ConfigurationManager
from fbswitch.firebase.exceptions import RemoteError, UserNotFoundError
from fbswitch.migration.manager import USERS_COLLECTION, check_user_id
from fbswitch.migration.records import UserRecord

logger = logging.getLogger("fbswitch.importer")


class ImportManager:
    """Reads, checks and deletes migrated user records."""

    def __init__(self, config_manager: ConfigurationManager, ready_timeout: Optional[float] = None):
        self._config_manager = config_manager
        self._ready_timeout = ready_timeout

    def import_user_data(self, user_id: str) -> Optional[UserRecord]:
        """
        Import a user's migrated record.

        Args:
            user_id: Same identifier as used during migration

        Returns:
            UserRecord, or None if no data exists

        Raises:
            FirebaseNotConfiguredError: If the Migration slot cannot be used
            RemoteError: If the read fails
        """
        check_user_id(user_id)
        logger.info(f"Importing data for user: {user_id}")

        with self._config_manager.migration_connection(self._ready_timeout) as connection:
            try:
                data = connection.store.get_document(USERS_COLLECTION, user_id)
            except Exception as e:
                logger.error(f"Import failed: {e}")
                raise RemoteError("read", e)

        if data is None:
            logger.info(f"No data found for user: {user_id}")
            return None

        logger.info(f"Data imported successfully. Fields: {', '.join(data)}")
        return UserRecord.from_dict(data)

    def require_user_data(self, user_id: str) -> UserRecord:
        """
        Import a user's migrated record, failing if it does not exist.

        Raises:
            UserNotFoundError: If no data exists
        """
        record = self.import_user_data(user_id)
        if record is None:
            raise UserNotFoundError(user_id)
        return record

    def has_migration_data(self, user_id: str) -> bool:
        """
        Check for migration data for a user.

        Raises:
            FirebaseNotConfiguredError: If the Migration slot cannot be used
            RemoteError: If the read fails
        """
        check_user_id(user_id)
        logger.info(f"Checking migration data for: {user_id}")

        with self._config_manager.migration_connection(self._ready_timeout) as connection:
            try:
                exists = connection.store.get_document(USERS_COLLECTION, user_id) is not None
            except Exception as e:
                logger.error(f"Check failed: {e}")
                raise RemoteError("read", e)

        logger.info("Migration data found" if exists else "No migration data")
        return exists

    def delete_migration_data(self, user_id: str) -> None:
        """
        Delete migration data after a successful import.

        Raises:
            FirebaseNotConfiguredError: If the Migration slot cannot be used
            RemoteError: If the delete fails
        """
        check_user_id(user_id)
        logger.info(f"Deleting migration data for: {user_id}")

        with self._config_manager.migration_connection(self._ready_timeout) as connection:
            try:
                connection.store.delete_document(USERS_COLLECTION, user_id)
            except Exception as e:
                logger.error(f"Delete failed: {e}")
                raise RemoteError("delete", e)

        logger.info("Migration data deleted")
