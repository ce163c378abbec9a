"""Pytest configuration and shared fixtures for the Firebase configuration switcher tests."""

import pytest
from pathlib import Path
from typing import List

from fbswitch.config.credentials import CredentialStore
from fbswitch.config.kinds import ConfigurationKind, EnvironmentMode
from fbswitch.config.settings import SettingsManager
from fbswitch.firebase.configuration import ConfigurationManager
from fbswitch.firebase.slots import ConnectionSlotRegistry
from fbswitch.firebase.store import InMemoryBackend
from fbswitch.local.store import LocalDataStore

from tests.helpers import RecordingStore, write_bundle


@pytest.fixture
def resources_dir(tmp_path: Path) -> Path:
    """Directory holding valid credential resources for every kind."""
    directory = tmp_path / "resources"
    for kind in ConfigurationKind:
        write_bundle(directory, kind)
    return directory


@pytest.fixture
def backend() -> InMemoryBackend:
    """Fresh in-memory Firebase backend."""
    return InMemoryBackend()


@pytest.fixture
def journal() -> List[str]:
    """Shared open/close journal for RecordingStore connections."""
    return []


@pytest.fixture
def registry(backend: InMemoryBackend, journal: List[str]) -> ConnectionSlotRegistry:
    """Slot registry creating RecordingStore connections."""
    return ConnectionSlotRegistry(lambda bundle: RecordingStore(backend, bundle, journal))


@pytest.fixture
def settings_manager(tmp_path: Path) -> SettingsManager:
    """Settings manager writing to a temporary file."""
    return SettingsManager(config_path=tmp_path / "settings.json")


@pytest.fixture
def local_store(tmp_path: Path) -> LocalDataStore:
    """Local data store writing to a temporary file."""
    return LocalDataStore(tmp_path / "local_data.json")


@pytest.fixture
def credential_store(resources_dir: Path) -> CredentialStore:
    """Credential store reading the temporary resources."""
    return CredentialStore(search_paths=[resources_dir])


@pytest.fixture
def config_manager(
    credential_store: CredentialStore,
    registry: ConnectionSlotRegistry,
    settings_manager: SettingsManager
) -> ConfigurationManager:
    """Development-mode configuration manager."""
    return ConfigurationManager(
        credential_store,
        registry,
        settings_manager,
        environment=EnvironmentMode.DEVELOPMENT,
        ready_timeout=1.0,
    )
