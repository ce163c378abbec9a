"""Configuration manager for the Firebase configuration switcher.

Decides which credential bundle is active in which slot. Production and
Sandbox share the default slot; Migration uses a named slot so that one
primary and one secondary connection can coexist while data is moved.

Usage:
    manager = ConfigurationManager(credential_store, registry, settings_manager)
    manager.switch_configuration(manager.get_current_configuration())

    with manager.migration_connection() as connection:
        connection.store.set_document("users", user_id, data)
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, Optional

from fbswitch.config.credentials import CredentialStore
from fbswitch.config.kinds import ConfigurationKind, EnvironmentMode
from fbswitch.config.settings import SettingsManager
from fbswitch.firebase.exceptions import (
    ConfigError,
    ConfigurationFailedError,
    FirebaseNotConfiguredError,
)
from fbswitch.firebase.slots import (
    DEFAULT_READY_TIMEOUT,
    ConnectionSlotRegistry,
    SlotConnection,
    SlotState,
)

logger = logging.getLogger("fbswitch.configuration")


@dataclass(frozen=True)
class ManagerState:
    """Snapshot of the configuration manager's state."""
    current_configuration: ConfigurationKind
    is_configured: bool = False
    last_error: Optional[str] = None
    migration_mode: bool = False


class ConfigurationManager:
    """Owns the active configuration and the connection slots."""

    def __init__(
        self,
        credential_store: CredentialStore,
        registry: ConnectionSlotRegistry,
        settings_manager: SettingsManager,
        environment: EnvironmentMode = EnvironmentMode.DEVELOPMENT,
        ready_timeout: float = DEFAULT_READY_TIMEOUT
    ):
        """
        Initialize the configuration manager.

        Args:
            credential_store: Loads and validates credential bundles
            registry: Connection slot registry
            settings_manager: Persisted preferences
            environment: Runtime environment mode
            ready_timeout: Seconds to wait for a connection to become ready
        """
        self._credential_store = credential_store
        self._registry = registry
        self._settings_manager = settings_manager
        self._environment = environment
        self._ready_timeout = ready_timeout
        self._lock = threading.RLock()
        self._state = ManagerState(current_configuration=environment.default_kind)

    @property
    def state(self) -> ManagerState:
        """Current state snapshot."""
        return self._state

    @property
    def current_configuration(self) -> ConfigurationKind:
        return self._state.current_configuration

    @property
    def is_configured(self) -> bool:
        """True if the current configuration has a live connection."""
        return self._state.is_configured

    @property
    def last_error(self) -> Optional[str]:
        """Last configuration error message, if any."""
        return self._state.last_error

    @property
    def environment(self) -> EnvironmentMode:
        return self._environment

    @property
    def registry(self) -> ConnectionSlotRegistry:
        return self._registry

    def get_current_configuration(self) -> ConfigurationKind:
        """
        Configuration the application should use.

        In production mode this is always Production, regardless of any
        persisted choice.
        """
        if self._environment.is_production:
            return ConfigurationKind.PRODUCTION

        saved = ConfigurationKind.from_value(self._settings_manager.settings.current_configuration)
        return saved or self._environment.default_kind

    def switch_configuration(self, kind: ConfigurationKind) -> bool:
        """
        Switch the active configuration.

        Switching a default-slot kind replaces the connection of the
        previous one; its remote state (listeners, cache) is lost.

        Args:
            kind: Configuration to activate

        Returns:
            True if the configuration is live; on False see last_error
        """
        logger.info(f"Switching to {kind.display_name}")

        with self._lock:
            if not self._environment.is_production:
                self._settings_manager.update(current_configuration=kind.value)

            try:
                self._activate(kind)
            except ConfigError as e:
                logger.error(f"Configuration of {kind.display_name} failed: {e}")
                self._state = replace(
                    self._state,
                    current_configuration=kind,
                    is_configured=False,
                    last_error=str(e),
                )
                return False

            self._state = replace(
                self._state,
                current_configuration=kind,
                is_configured=True,
                last_error=None,
            )
            return True

    def set_migration_mode(self, enabled: bool) -> bool:
        """
        Enable or disable migration mode.

        Enabling activates the Migration configuration into its named slot
        while the default slot stays connected; disabling removes only the
        named slot.

        Args:
            enabled: True to enable migration mode

        Returns:
            True on success; on False see last_error
        """
        kind = ConfigurationKind.MIGRATION

        with self._lock:
            if not enabled:
                logger.info("Disabling Migration Mode")
                self._registry.deactivate(self._registry.slot_for(kind))
                self._state = replace(self._state, migration_mode=False)
                return True

            logger.info("Enabling Migration Mode")
            try:
                self._activate(kind)
            except ConfigError as e:
                logger.error(f"Migration Mode failed: {e}")
                self._state = replace(self._state, migration_mode=False, last_error=str(e))
                return False

            self._state = replace(self._state, migration_mode=True)
            return True

    def get_connection(self, kind: ConfigurationKind) -> Optional[SlotConnection]:
        """
        Connection for a configuration kind.

        Returns:
            SlotConnection, or None if the kind is not active
        """
        connection = self._registry.get(self._registry.slot_for(kind))
        if connection is None or not connection.is_active or connection.kind is not kind:
            logger.warning(f"Firebase app not configured for {kind.display_name}")
            return None
        return connection

    @contextmanager
    def migration_connection(self, timeout: Optional[float] = None) -> Iterator[SlotConnection]:
        """
        Run a block with migration mode enabled.

        Migration mode is disabled when the block exits, whether it
        returns or raises. The manager lock is held for the whole block,
        so brackets from other threads (and switches) wait until the
        named slot has been torn down.

        Args:
            timeout: Seconds to wait for readiness (defaults to ready_timeout)

        Yields:
            The ready Migration connection

        Raises:
            FirebaseNotConfiguredError: If the connection cannot be made ready
        """
        kind = ConfigurationKind.MIGRATION
        wait = self._ready_timeout if timeout is None else timeout
        with self._lock:
            try:
                if not self.set_migration_mode(True):
                    raise FirebaseNotConfiguredError(kind.slot_name)
                connection = self.get_connection(kind)
                if connection is None:
                    raise FirebaseNotConfiguredError(kind.slot_name)
                try:
                    connection.wait_until_ready(wait)
                except ConfigurationFailedError as e:
                    logger.error(f"Migration app not ready: {e}")
                    raise FirebaseNotConfiguredError(kind.slot_name, e)
                yield connection
            finally:
                self.set_migration_mode(False)

    def shutdown(self) -> None:
        """Tear down every connection."""
        with self._lock:
            self._registry.teardown_all()
            self._state = replace(self._state, is_configured=False, migration_mode=False)

    def _activate(self, kind: ConfigurationKind) -> SlotConnection:
        """
        Load, validate and activate a configuration.

        Raises:
            ResourceNotFoundError: If the resource is missing
            InvalidCredentialsError: If the bundle holds placeholders
            ConfigurationFailedError: If no live connection results
        """
        bundle = self._credential_store.load(kind)
        if bundle.project_id:
            logger.info(f"Project ID: {bundle.project_id}")
        self._credential_store.validate(bundle)

        slot_name = self._registry.slot_for(kind)
        connection = self._registry.activate(slot_name, bundle)

        if connection.state == SlotState.FAILED:
            self._registry.deactivate(slot_name)
            raise ConfigurationFailedError(slot_name, connection.error)
        if self._registry.get(slot_name) is not connection:
            raise ConfigurationFailedError(slot_name)

        logger.info(f"Firebase configured successfully: {bundle.project_id or 'unknown'}")
        return connection
