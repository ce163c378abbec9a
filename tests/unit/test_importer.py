"""Unit tests for ImportManager."""

import pytest
import threading
import time
from datetime import datetime, timezone

from fbswitch.config.credentials import CredentialStore
from fbswitch.config.kinds import MIGRATION_SLOT_NAME, ConfigurationKind
from fbswitch.firebase.configuration import ConfigurationManager
from fbswitch.firebase.exceptions import (
    DocumentStoreError,
    FirebaseNotConfiguredError,
    RemoteError,
    UserNotFoundError,
)
from fbswitch.firebase.slots import ConnectionSlotRegistry
from fbswitch.migration.importer import ImportManager
from fbswitch.migration.manager import USERS_COLLECTION

from tests.helpers import TEST_PROJECT_IDS, TEST_USER_ID, FailingStore, SlowStore


MIGRATION_PROJECT = TEST_PROJECT_IDS[ConfigurationKind.MIGRATION]


@pytest.fixture
def import_manager(config_manager):
    """Import manager over the in-memory backend."""
    return ImportManager(config_manager, ready_timeout=1.0)


@pytest.fixture
def migrated_user(backend):
    """Write a migrated record into the Migration project."""
    backend.write(MIGRATION_PROJECT, USERS_COLLECTION, TEST_USER_ID, {
        "name": "A",
        "email": "a@example.com",
        "settings": {"theme": "dark"},
        "migratedAt": datetime(2024, 5, 1, tzinfo=timezone.utc),
        "migratedFrom": "OldApp",
        "points": 10,
    }, merge=False)


class TestImportUserData:
    """Tests for ImportManager.import_user_data."""

    def test_import_existing(self, import_manager, migrated_user, registry):
        """Test importing a migrated record."""
        record = import_manager.import_user_data(TEST_USER_ID)

        assert record.name == "A"
        assert record.settings.theme == "dark"
        assert record.migrated_at == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert record.extra == {"points": 10}
        assert registry.get(MIGRATION_SLOT_NAME) is None

    def test_import_missing(self, import_manager, registry):
        """Test a missing record yields None."""
        assert import_manager.import_user_data("nobody") is None
        assert registry.get(MIGRATION_SLOT_NAME) is None

    def test_require_missing(self, import_manager):
        """Test require_user_data raises UserNotFoundError."""
        with pytest.raises(UserNotFoundError, match="nobody"):
            import_manager.require_user_data("nobody")

    def test_invalid_user_id(self, import_manager, journal):
        """Test invalid ids are rejected before connecting."""
        with pytest.raises(ValueError):
            import_manager.import_user_data("")

        assert journal == []

    def test_read_failure(self, credential_store, backend, settings_manager):
        """Test read failures are wrapped and the slot is removed."""
        registry = ConnectionSlotRegistry(
            lambda bundle: FailingStore(backend, bundle, read_error=DocumentStoreError("denied"))
        )
        manager = ImportManager(ConfigurationManager(credential_store, registry, settings_manager))

        with pytest.raises(RemoteError) as exc_info:
            manager.import_user_data(TEST_USER_ID)

        assert exc_info.value.operation == "read"
        assert registry.active_slots() == []

    def test_not_configured(self, tmp_path, registry, settings_manager):
        """Test a missing Migration resource raises FirebaseNotConfiguredError."""
        manager = ImportManager(
            ConfigurationManager(CredentialStore(search_paths=[tmp_path]), registry, settings_manager)
        )

        with pytest.raises(FirebaseNotConfiguredError):
            manager.has_migration_data(TEST_USER_ID)


class TestMigrationData:
    """Tests for has_migration_data and delete_migration_data."""

    def test_has_migration_data(self, import_manager, migrated_user):
        assert import_manager.has_migration_data(TEST_USER_ID) is True
        assert import_manager.has_migration_data("nobody") is False

    def test_delete_migration_data(self, import_manager, migrated_user, backend, registry):
        """Test deleting removes the record and disconnects."""
        import_manager.delete_migration_data(TEST_USER_ID)

        assert backend.documents(MIGRATION_PROJECT, USERS_COLLECTION) == {}
        assert registry.get(MIGRATION_SLOT_NAME) is None

    def test_delete_missing_is_noop(self, import_manager):
        """Test deleting an absent record succeeds."""
        import_manager.delete_migration_data("nobody")


class TestConcurrentImports:
    """Tests for imports running on several threads."""

    def test_overlapping_checks_both_succeed(self, credential_store, backend, settings_manager, journal):
        """Test a second check does not tear down the connection of one in progress."""
        backend.write(MIGRATION_PROJECT, USERS_COLLECTION, TEST_USER_ID, {"name": "A"}, merge=False)
        registry = ConnectionSlotRegistry(lambda bundle: SlowStore(backend, bundle, journal, delay=0.3))
        manager = ImportManager(
            ConfigurationManager(credential_store, registry, settings_manager),
            ready_timeout=2.0,
        )
        results = []
        errors = []

        def check():
            try:
                results.append(manager.has_migration_data(TEST_USER_ID))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=check) for _ in range(2)]
        for thread in threads:
            thread.start()
            time.sleep(0.1)
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert results == [True, True]
        assert registry.active_slots() == []
