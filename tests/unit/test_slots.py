"""Unit tests for ConnectionSlotRegistry.

Tests slot activation order, teardown handling, and readiness.
"""

import logging
import pytest
from concurrent.futures import Future
from unittest.mock import MagicMock

from fbswitch.config.credentials import CredentialBundle
from fbswitch.config.kinds import DEFAULT_SLOT_NAME, MIGRATION_SLOT_NAME, ConfigurationKind
from fbswitch.firebase.exceptions import ConfigurationFailedError
from fbswitch.firebase.slots import ConnectionSlotRegistry, SlotState
from fbswitch.firebase.store import InMemoryBackend

from tests.helpers import TEST_APP_ID, FailingStore


def make_bundle(kind, project_id):
    return CredentialBundle(kind=kind, app_id=TEST_APP_ID, project_id=project_id)


def resolved(value):
    future = Future()
    future.set_result(value)
    return future


class TestActivate:
    """Tests for ConnectionSlotRegistry.activate."""

    def test_activate_empty_slot(self, registry, journal):
        """Test activation creates a ready connection."""
        connection = registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))

        assert connection.state == SlotState.READY
        assert connection.is_active is True
        assert connection.kind is ConfigurationKind.SANDBOX
        assert registry.get(DEFAULT_SLOT_NAME) is connection
        assert journal == ["open:sandbox"]

    def test_replacement_tears_down_first(self, registry, journal):
        """Test the previous connection is closed before the new one opens."""
        first = registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))
        second = registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.PRODUCTION, "production"))

        assert journal == ["open:sandbox", "close:sandbox", "open:production"]
        assert first.state == SlotState.TORN_DOWN
        assert first.is_active is False
        assert registry.get(DEFAULT_SLOT_NAME) is second
        assert registry.active_slots() == [DEFAULT_SLOT_NAME]

    def test_named_slot_coexists_with_default(self, registry):
        """Test a named slot does not disturb the default slot."""
        default = registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))
        named = registry.activate(MIGRATION_SLOT_NAME, make_bundle(ConfigurationKind.MIGRATION, "migration"))

        assert registry.get(DEFAULT_SLOT_NAME) is default
        assert registry.get(MIGRATION_SLOT_NAME) is named
        assert registry.active_slots() == [DEFAULT_SLOT_NAME, MIGRATION_SLOT_NAME]

    def test_factory_failure(self):
        """Test a failing store factory raises ConfigurationFailedError."""
        registry = ConnectionSlotRegistry(MagicMock(side_effect=ValueError("Project ID is required")))

        with pytest.raises(ConfigurationFailedError) as exc_info:
            registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, None))

        assert isinstance(exc_info.value.original_error, ValueError)
        assert registry.get(DEFAULT_SLOT_NAME) is None

    def test_open_failure_marks_failed(self):
        """Test a failed open leaves a FAILED connection with its error."""
        backend = InMemoryBackend()
        error = ConnectionError("unreachable")
        registry = ConnectionSlotRegistry(lambda bundle: FailingStore(backend, bundle, open_error=error))

        connection = registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))

        assert connection.state == SlotState.FAILED
        assert connection.error is error
        with pytest.raises(ConfigurationFailedError):
            connection.wait_until_ready(0.1)


class TestReadiness:
    """Tests for SlotConnection.wait_until_ready."""

    def test_pending_open_times_out(self):
        """Test waiting on a store that never finishes opening."""
        store = MagicMock()
        store.open.return_value = Future()
        registry = ConnectionSlotRegistry(lambda bundle: store)

        connection = registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))

        assert connection.state == SlotState.CONNECTING
        with pytest.raises(ConfigurationFailedError, match="not ready"):
            connection.wait_until_ready(0.05)

    def test_open_resolving_later(self):
        """Test readiness follows the open future."""
        pending = Future()
        store = MagicMock()
        store.open.return_value = pending
        registry = ConnectionSlotRegistry(lambda bundle: store)
        connection = registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))

        pending.set_result(None)

        connection.wait_until_ready(0.1)
        assert connection.is_ready is True

    def test_torn_down_connection_is_not_ready(self, registry):
        """Test waiting on a torn down connection fails."""
        connection = registry.activate(MIGRATION_SLOT_NAME, make_bundle(ConfigurationKind.MIGRATION, "migration"))
        registry.deactivate(MIGRATION_SLOT_NAME)

        assert connection.state == SlotState.TORN_DOWN
        with pytest.raises(ConfigurationFailedError):
            connection.wait_until_ready(0.1)


class TestTeardown:
    """Tests for deactivate and teardown failure handling."""

    def test_deactivate_empty_slot_is_noop(self, registry, journal):
        """Test deactivating an empty slot does nothing."""
        registry.deactivate(MIGRATION_SLOT_NAME)

        assert journal == []
        assert registry.active_slots() == []

    def test_deactivate_named_slot_only(self, registry, journal):
        """Test deactivating the named slot leaves the default slot alone."""
        registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))
        registry.activate(MIGRATION_SLOT_NAME, make_bundle(ConfigurationKind.MIGRATION, "migration"))

        registry.deactivate(MIGRATION_SLOT_NAME)

        assert registry.active_slots() == [DEFAULT_SLOT_NAME]
        assert journal[-1] == "close:migration"

    def test_teardown_exception_is_logged(self, caplog):
        """Test a close that raises does not block activation."""
        store = MagicMock()
        store.open.return_value = resolved(None)
        store.close.side_effect = RuntimeError("boom")
        registry = ConnectionSlotRegistry(lambda bundle: store)
        registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))

        with caplog.at_level(logging.WARNING, logger="fbswitch.slots"):
            registry.deactivate(DEFAULT_SLOT_NAME)

        assert "failed: boom" in caplog.text
        assert registry.get(DEFAULT_SLOT_NAME) is None

    def test_teardown_timeout_is_logged(self, caplog):
        """Test a close that never completes is abandoned after the timeout."""
        store = MagicMock()
        store.open.return_value = resolved(None)
        store.close.return_value = Future()
        registry = ConnectionSlotRegistry(lambda bundle: store, teardown_timeout=0.05)
        registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))

        with caplog.at_level(logging.WARNING, logger="fbswitch.slots"):
            replacement = registry.activate(
                DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.PRODUCTION, "production")
            )

        assert "did not finish" in caplog.text
        assert registry.get(DEFAULT_SLOT_NAME) is replacement

    def test_teardown_reported_failure_is_logged(self, caplog):
        """Test a close resolving to False is logged."""
        store = MagicMock()
        store.open.return_value = resolved(None)
        store.close.return_value = resolved(False)
        registry = ConnectionSlotRegistry(lambda bundle: store)
        registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))

        with caplog.at_level(logging.WARNING, logger="fbswitch.slots"):
            registry.deactivate(DEFAULT_SLOT_NAME)

        assert "reported failure" in caplog.text

    def test_teardown_all(self, registry, journal):
        """Test every slot is torn down."""
        registry.activate(DEFAULT_SLOT_NAME, make_bundle(ConfigurationKind.SANDBOX, "sandbox"))
        registry.activate(MIGRATION_SLOT_NAME, make_bundle(ConfigurationKind.MIGRATION, "migration"))

        registry.teardown_all()

        assert registry.active_slots() == []
        assert sorted(j for j in journal if j.startswith("close:")) == ["close:migration", "close:sandbox"]
