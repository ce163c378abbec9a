"""Main application entry point for the Firebase configuration switcher.

Builds the managers, restores the persisted configuration and exposes
them to the UI layer.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config.credentials import ApiKeyVault, CredentialStore
from .config.kinds import EnvironmentMode
from .config.paths import get_log_file_path
from .config.settings import SettingsManager
from .firebase.configuration import ConfigurationManager
from .firebase.slots import ConnectionSlotRegistry
from .firebase.store import FirestoreRestStore, StoreFactory
from .local.store import LocalDataStore
from .migration.importer import ImportManager
from .migration.manager import MigrationManager
from .utils.logging import setup_logging


class Application:
    """
    Composition root.

    Creates exactly one of each manager and wires them together; the UI
    layer receives them from here instead of reaching for globals.
    """

    def __init__(
        self,
        environment: Optional[EnvironmentMode] = None,
        store_factory: Optional[StoreFactory] = None,
        resource_paths: Optional[List[Path]] = None,
        settings_path: Optional[Path] = None,
        local_data_path: Optional[Path] = None,
        log_file: Optional[Path] = None,
        log_level: int = logging.INFO
    ):
        """
        Initialize the application.

        Args:
            environment: Runtime mode (defaults to FBSWITCH_ENV)
            store_factory: Remote store factory (defaults to Firestore REST)
            resource_paths: Credential resource search paths
            settings_path: Preferences file
            local_data_path: Local staging store file
            log_file: Log file (defaults to the platform log directory)
            log_level: Logging level
        """
        self._logger = setup_logging(level=log_level, log_file=log_file or get_log_file_path())
        self._environment = environment or EnvironmentMode.from_environment()
        self._logger.info(f"Application starting ({self._environment.value})")

        self._settings_manager = SettingsManager(settings_path)
        self._settings_manager.load()
        self._local_store = LocalDataStore(local_data_path)

        self._credential_store = CredentialStore(resource_paths, vault=ApiKeyVault())
        self._registry = ConnectionSlotRegistry(store_factory or FirestoreRestStore.factory())
        self._config_manager = ConfigurationManager(
            self._credential_store,
            self._registry,
            self._settings_manager,
            environment=self._environment,
        )

        self._migration_manager = MigrationManager(
            self._config_manager,
            self._local_store,
            self._settings_manager,
        )
        self._import_manager = ImportManager(self._config_manager)

        self._logger.info("Application initialized")

    @property
    def config_manager(self) -> ConfigurationManager:
        return self._config_manager

    @property
    def migration_manager(self) -> MigrationManager:
        return self._migration_manager

    @property
    def import_manager(self) -> ImportManager:
        return self._import_manager

    @property
    def local_store(self) -> LocalDataStore:
        return self._local_store

    @property
    def settings_manager(self) -> SettingsManager:
        return self._settings_manager

    def start(self) -> bool:
        """
        Connect the persisted configuration.

        Returns:
            True if Firebase is ready; otherwise the UI should show setup
            instructions using config_manager.last_error
        """
        current = self._config_manager.get_current_configuration()
        self._logger.info(f"Configuring Firebase: {current.display_name}")

        if self._config_manager.switch_configuration(current):
            connection = self._config_manager.get_connection(current)
            project = connection.credentials.project_id if connection else None
            self._logger.info(f"Firebase ready. Project: {project or 'unknown'}")
            return True

        self._logger.warning("Firebase not configured. App will show setup instructions.")
        return False

    def shutdown(self) -> None:
        """Release every connection."""
        self._config_manager.shutdown()
        self._logger.info("Application cleanup complete")


def main() -> int:
    """
    Application entry point.

    Returns:
        Exit code (0 when Firebase is configured)
    """
    try:
        app = Application()
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1

    try:
        if app.start():
            return 0
        print(f"Firebase Setup Required: {app.config_manager.last_error}", file=sys.stderr)
        print("Download GoogleService-Info.plist from https://console.firebase.google.com/", file=sys.stderr)
        return 1
    finally:
        app.shutdown()


if __name__ == "__main__":
    sys.exit(main())
