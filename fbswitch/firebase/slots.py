"""Connection slot management for the Firebase configuration switcher.

Provides SlotState enum, SlotConnection, and ConnectionSlotRegistry,
the table holding at most one default connection and any number of
named connections.
"""

import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from fbswitch.config.credentials import CredentialBundle
from fbswitch.config.kinds import ConfigurationKind
from fbswitch.firebase.exceptions import ConfigurationFailedError
from fbswitch.firebase.store import DocumentStore, StoreFactory

logger = logging.getLogger("fbswitch.slots")


# Seconds to wait for a connection's store to tear down
DEFAULT_TEARDOWN_TIMEOUT = 10.0

# Seconds to wait for a connection to become ready
DEFAULT_READY_TIMEOUT = 5.0


class SlotState(Enum):
    """Connection slot state."""
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"
    TORN_DOWN = "torn_down"


class SlotConnection:
    """A live connection occupying one slot."""

    def __init__(self, name: str, credentials: CredentialBundle, store: DocumentStore):
        """
        Initialize a slot connection.

        Args:
            name: Slot name
            credentials: Bundle the connection was created from
            store: Remote document store behind the connection
        """
        self._name = name
        self._credentials = credentials
        self._store = store
        self._state = SlotState.CONNECTING
        self._activated_at = datetime.now()
        self._ready = threading.Event()
        self._error: Optional[BaseException] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def credentials(self) -> CredentialBundle:
        return self._credentials

    @property
    def kind(self) -> ConfigurationKind:
        return self._credentials.kind

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def state(self) -> SlotState:
        return self._state

    @property
    def is_active(self) -> bool:
        """True while the connection is connecting or ready."""
        return self._state in (SlotState.CONNECTING, SlotState.READY)

    @property
    def is_ready(self) -> bool:
        return self._state == SlotState.READY

    @property
    def activated_at(self) -> datetime:
        return self._activated_at

    @property
    def error(self) -> Optional[BaseException]:
        """Failure reported while opening, if any."""
        return self._error

    def wait_until_ready(self, timeout: Optional[float] = DEFAULT_READY_TIMEOUT) -> None:
        """
        Block until the connection is confirmed live.

        Args:
            timeout: Maximum seconds to wait (None = forever)

        Raises:
            ConfigurationFailedError: If opening failed, timed out, or the
                connection was torn down
        """
        if not self._ready.wait(timeout):
            raise ConfigurationFailedError(
                self._name, TimeoutError(f"not ready after {timeout} seconds")
            )
        if self._state != SlotState.READY:
            raise ConfigurationFailedError(self._name, self._error)

    def _track_open(self, future: Future) -> None:
        future.add_done_callback(self._on_open)

    def _on_open(self, future: Future) -> None:
        error = future.exception()
        if self._state == SlotState.CONNECTING:
            if error is None:
                self._state = SlotState.READY
                logger.info(f"Slot '{self._name}' ready: {self._credentials.project_id or 'unknown'}")
            else:
                self._error = error
                self._state = SlotState.FAILED
                logger.error(f"Slot '{self._name}' failed to connect: {error}")
        self._ready.set()

    def _mark_torn_down(self) -> None:
        self._state = SlotState.TORN_DOWN
        self._ready.set()


class ConnectionSlotRegistry:
    """Process-wide table of connection slots, keyed by slot name."""

    def __init__(
        self,
        store_factory: StoreFactory,
        teardown_timeout: float = DEFAULT_TEARDOWN_TIMEOUT
    ):
        """
        Initialize the registry.

        Args:
            store_factory: Creates the remote store for an activated bundle
            teardown_timeout: Seconds to wait for a store to tear down
        """
        self._store_factory = store_factory
        self._teardown_timeout = teardown_timeout
        self._slots: Dict[str, SlotConnection] = {}
        self._lock = threading.RLock()

    @staticmethod
    def slot_for(kind: ConfigurationKind) -> str:
        """Slot a configuration kind is activated into."""
        return kind.slot_name

    def activate(self, slot_name: str, bundle: CredentialBundle) -> SlotConnection:
        """
        Activate a bundle into a slot.

        Any connection already occupying the slot is torn down first; the
        call does not return until that teardown has completed.

        Args:
            slot_name: Slot to activate into
            bundle: Validated credential bundle

        Returns:
            The new SlotConnection (readiness resolves asynchronously)

        Raises:
            ConfigurationFailedError: If the store cannot be created
        """
        with self._lock:
            existing = self._slots.pop(slot_name, None)
            if existing is not None:
                logger.info(f"Deleting existing app '{slot_name}'...")
                self._teardown(existing)
                logger.info(f"App '{slot_name}' deleted")

            logger.info(f"Configuring app '{slot_name}' for {bundle.kind.display_name}")
            try:
                store = self._store_factory(bundle)
                open_future = store.open()
            except Exception as e:
                logger.error(f"Failed to create connection for '{slot_name}': {e}")
                raise ConfigurationFailedError(slot_name, e)

            connection = SlotConnection(slot_name, bundle, store)
            self._slots[slot_name] = connection
            connection._track_open(open_future)
            return connection

    def deactivate(self, slot_name: str) -> None:
        """
        Tear down and remove a slot's connection.

        No-op if the slot is empty.
        """
        with self._lock:
            connection = self._slots.pop(slot_name, None)
            if connection is None:
                return
            logger.info(f"Deleting app '{slot_name}'...")
            self._teardown(connection)

    def get(self, slot_name: str) -> Optional[SlotConnection]:
        """Connection occupying a slot, if any."""
        with self._lock:
            return self._slots.get(slot_name)

    def active_slots(self) -> List[str]:
        """Names of occupied slots."""
        with self._lock:
            return sorted(self._slots)

    def teardown_all(self) -> None:
        """Tear down every slot."""
        with self._lock:
            for slot_name in list(self._slots):
                self.deactivate(slot_name)

    def _teardown(self, connection: SlotConnection) -> None:
        """
        Close a connection's store and wait for it to finish.

        Failures are logged and never block the caller beyond the
        teardown timeout.
        """
        connection._mark_torn_down()
        try:
            succeeded = connection.store.close().result(timeout=self._teardown_timeout)
        except FutureTimeoutError:
            logger.warning(
                f"Teardown of '{connection.name}' did not finish within "
                f"{self._teardown_timeout} seconds"
            )
            return
        except Exception as e:
            logger.warning(f"Teardown of '{connection.name}' failed: {e}")
            return

        if succeeded is False:
            logger.warning(f"Teardown of '{connection.name}' reported failure")
        else:
            logger.info(f"App '{connection.name}' deleted successfully")
