"""Helpers shared by the unit and integration tests."""

import json
import plistlib
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Dict, List, Optional

from fbswitch.config.credentials import CredentialBundle
from fbswitch.config.kinds import ConfigurationKind
from fbswitch.firebase.store import InMemoryBackend, InMemoryDocumentStore


# Test constants
TEST_APP_ID = "1:123456789012:ios:0a1b2c3d4e5f6789"
TEST_PROJECT_IDS = {
    ConfigurationKind.PRODUCTION: "oldapp-production",
    ConfigurationKind.SANDBOX: "oldapp-sandbox",
    ConfigurationKind.MIGRATION: "newapp-migration",
}
TEST_USER_ID = "user@example.com"


def write_bundle(
    directory: Path,
    kind: ConfigurationKind,
    app_id: str = TEST_APP_ID,
    project_id: Optional[str] = None,
    api_key: Optional[str] = "AIzaSyTestKey",
    extension: str = ".plist"
) -> Path:
    """Write a GoogleService-Info resource for a kind."""
    data: Dict[str, object] = {
        "GOOGLE_APP_ID": app_id,
        "PROJECT_ID": project_id or TEST_PROJECT_IDS[kind],
        "BUNDLE_ID": "com.example.demo",
        "GCM_SENDER_ID": "123456789012",
    }
    if api_key:
        data["API_KEY"] = api_key

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{kind.resource_name}{extension}"
    if extension == ".plist":
        with open(path, "wb") as f:
            plistlib.dump(data, f)
    else:
        path.write_text(json.dumps(data))
    return path


class RecordingStore(InMemoryDocumentStore):
    """In-memory store that records open/close calls in a shared journal."""

    def __init__(self, backend: InMemoryBackend, bundle: CredentialBundle, journal: List[str]):
        super().__init__(backend, bundle)
        self._journal = journal

    def open(self) -> Future:
        self._journal.append(f"open:{self.project_id}")
        return super().open()

    def close(self) -> Future:
        self._journal.append(f"close:{self.project_id}")
        return super().close()


class FailingStore(InMemoryDocumentStore):
    """In-memory store whose operations fail on demand."""

    def __init__(
        self,
        backend: InMemoryBackend,
        bundle: CredentialBundle,
        open_error: Optional[Exception] = None,
        write_error: Optional[Exception] = None,
        read_error: Optional[Exception] = None
    ):
        super().__init__(backend, bundle)
        self._open_error = open_error
        self._write_error = write_error
        self._read_error = read_error

    def open(self) -> Future:
        if self._open_error is None:
            return super().open()
        future: Future = Future()
        future.set_exception(self._open_error)
        return future

    def set_document(self, collection, key, data, merge=True):
        if self._write_error is not None:
            raise self._write_error
        super().set_document(collection, key, data, merge)

    def get_document(self, collection, key):
        if self._read_error is not None:
            raise self._read_error
        return super().get_document(collection, key)


class SlowStore(RecordingStore):
    """RecordingStore that pauses after opening and before reads and writes."""

    def __init__(self, backend: InMemoryBackend, bundle: CredentialBundle, journal: List[str], delay: float = 0.05):
        super().__init__(backend, bundle, journal)
        self._delay = delay

    def open(self) -> Future:
        future = super().open()
        time.sleep(self._delay)
        return future

    def get_document(self, collection, key):
        time.sleep(self._delay)
        return super().get_document(collection, key)

    def set_document(self, collection, key, data, merge=True):
        time.sleep(self._delay)
        super().set_document(collection, key, data, merge)


def slot_events(journal: List[str], project_ids) -> List[str]:
    """Open/close events recorded for the given projects, in order."""
    events = []
    for entry in journal:
        action, project = entry.split(":", 1)
        if project in project_ids:
            events.append(action)
    return events


def alternates(events: List[str]) -> bool:
    """True if events go open, close, open, close... starting with open."""
    return all(event == ("open" if i % 2 == 0 else "close") for i, event in enumerate(events))
