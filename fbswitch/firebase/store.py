"""Remote document stores reached through a connection slot.

Provides the DocumentStore protocol, an in-process backend used for
demos and tests, and a Firestore REST client built on requests.
"""

import base64
import copy
import logging
import re
import threading
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol
from urllib.parse import quote

import requests

from fbswitch.config.credentials import CredentialBundle
from fbswitch.firebase.exceptions import DocumentStoreError

logger = logging.getLogger("fbswitch.store")


# Firestore REST API constants
FIRESTORE_API_BASE = "https://firestore.googleapis.com/v1"
DEFAULT_DATABASE = "(default)"

# Request timeout in seconds
REQUEST_TIMEOUT = 30

# Field names that can appear unquoted in a field path
SIMPLE_FIELD_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def _completed(result: Any = None) -> Future:
    future: Future = Future()
    future.set_result(result)
    return future


class DocumentStore(Protocol):
    """Protocol implemented by remote document stores."""

    def open(self) -> Future:
        """Start connecting; the future resolves once the store is live."""

    def close(self) -> Future:
        """Tear down; the future resolves to True on clean shutdown."""

    def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Return the document's fields, or None if it does not exist."""

    def set_document(
        self,
        collection: str,
        key: str,
        data: Dict[str, Any],
        merge: bool = True
    ) -> None:
        """Write a document; with merge, fields absent from data are kept."""

    def delete_document(self, collection: str, key: str) -> None:
        """Delete a document (no error if absent)."""


StoreFactory = Callable[[CredentialBundle], DocumentStore]


def deep_merge(target: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge updates into target, recursing into nested maps.

    Args:
        target: Existing document (modified in place)
        updates: Fields to write

    Returns:
        The merged target
    """
    for key, value in updates.items():
        existing = target.get(key)
        if isinstance(value, dict) and isinstance(existing, dict):
            deep_merge(existing, value)
        else:
            target[key] = copy.deepcopy(value)
    return target


class InMemoryBackend:
    """
    Process-local stand-in for the Firebase backend.

    Documents are kept per project id, so data written through one
    connection is visible to any later connection to the same project.
    """

    def __init__(self):
        self._projects: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = {}
        self._lock = threading.Lock()

    def documents(self, project_id: str, collection: str) -> Dict[str, Dict[str, Any]]:
        """Snapshot of a collection's documents."""
        with self._lock:
            return copy.deepcopy(self._projects.get(project_id, {}).get(collection, {}))

    def read(self, project_id: str, collection: str, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._projects.get(project_id, {}).get(collection, {}).get(key)
            return copy.deepcopy(document) if document is not None else None

    def write(
        self,
        project_id: str,
        collection: str,
        key: str,
        data: Dict[str, Any],
        merge: bool
    ) -> None:
        with self._lock:
            documents = self._projects.setdefault(project_id, {}).setdefault(collection, {})
            if merge and key in documents:
                deep_merge(documents[key], data)
            else:
                documents[key] = copy.deepcopy(data)

    def delete(self, project_id: str, collection: str, key: str) -> None:
        with self._lock:
            self._projects.get(project_id, {}).get(collection, {}).pop(key, None)

    def store_factory(self) -> StoreFactory:
        """Factory creating InMemoryDocumentStore connections to this backend."""

        def _factory(bundle: CredentialBundle) -> "InMemoryDocumentStore":
            return InMemoryDocumentStore(self, bundle)

        return _factory


class InMemoryDocumentStore:
    """DocumentStore connection to an InMemoryBackend."""

    def __init__(self, backend: InMemoryBackend, bundle: CredentialBundle):
        self._backend = backend
        self._project_id = bundle.project_id or bundle.app_id
        self._open = False

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> Future:
        self._open = True
        return _completed()

    def close(self) -> Future:
        self._open = False
        return _completed(True)

    def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        self._ensure_open()
        return self._backend.read(self._project_id, collection, key)

    def set_document(
        self,
        collection: str,
        key: str,
        data: Dict[str, Any],
        merge: bool = True
    ) -> None:
        self._ensure_open()
        self._backend.write(self._project_id, collection, key, data, merge)

    def delete_document(self, collection: str, key: str) -> None:
        self._ensure_open()
        self._backend.delete(self._project_id, collection, key)

    def _ensure_open(self) -> None:
        if not self._open:
            raise DocumentStoreError(f"Connection to '{self._project_id}' is closed")


# Firestore typed value encoding


def encode_value(value: Any) -> Dict[str, Any]:
    """
    Encode a Python value as a Firestore REST typed value.

    Args:
        value: str, bool, int, float, datetime, bytes, dict, list/tuple or None

    Returns:
        Firestore Value JSON object
    """
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        stamp = value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
        return {"timestampValue": stamp}
    if isinstance(value, bytes):
        return {"bytesValue": base64.b64encode(value).decode("ascii")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Encode a document's fields."""
    return {str(key): encode_value(value) for key, value in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """Decode a Firestore REST typed value into a Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return datetime.fromisoformat(_trim_fraction(value["timestampValue"].replace("Z", "+00:00")))
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    raise ValueError(f"Unknown Firestore value: {value}")


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Decode a document's fields."""
    return {key: decode_value(value) for key, value in fields.items()}


def _trim_fraction(stamp: str) -> str:
    # Firestore returns nanoseconds; datetime accepts at most microseconds
    match = re.match(r'^(.*\.\d{6})\d+(.*)$', stamp)
    if match:
        return match.group(1) + match.group(2)
    return stamp


def quote_field_name(name: str) -> str:
    """Quote a field name for use in a field path."""
    if SIMPLE_FIELD_NAME.match(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"


def merge_field_paths(data: Dict[str, Any], prefix: str = "") -> List[str]:
    """
    Field paths written by a merge.

    Nested non-empty maps contribute their leaves so that sibling fields
    already stored under the same map are preserved.

    Args:
        data: Fields being written
        prefix: Path of the enclosing map

    Returns:
        Sorted list of field paths
    """
    paths: List[str] = []
    for key, value in data.items():
        path = f"{prefix}{quote_field_name(str(key))}"
        if isinstance(value, dict) and value:
            paths.extend(merge_field_paths(value, prefix=f"{path}."))
        else:
            paths.append(path)
    return sorted(paths)


class FirestoreRestStore:
    """DocumentStore backed by the Firestore v1 REST API."""

    def __init__(
        self,
        bundle: CredentialBundle,
        timeout: int = REQUEST_TIMEOUT,
        database: str = DEFAULT_DATABASE,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the Firestore client.

        Args:
            bundle: Credentials of the project to talk to
            timeout: Request timeout in seconds
            database: Firestore database id
            session: Optional pre-built session (testing)
        """
        if not bundle.project_id:
            raise ValueError("Project ID is required for Firestore access")
        self._project_id = bundle.project_id
        self._api_key = bundle.api_key
        self._timeout = timeout
        self._database = database
        self._session = session
        self._owns_session = session is None

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def documents_url(self) -> str:
        """Base URL for documents in this project's database."""
        return (
            f"{FIRESTORE_API_BASE}/projects/{self._project_id}"
            f"/databases/{self._database}/documents"
        )

    def document_url(self, collection: str, key: str) -> str:
        return f"{self.documents_url}/{quote(collection, safe='')}/{quote(key, safe='')}"

    def open(self) -> Future:
        if self._session is None:
            self._session = requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "User-Agent": "FirebaseConfigSwitcher/1.0",
        })
        return _completed()

    def close(self) -> Future:
        if self._session is not None and self._owns_session:
            self._session.close()
        self._session = None
        return _completed(True)

    def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        url = self.document_url(collection, key)
        response = self._request("GET", url)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, url)
        return decode_fields(response.json().get("fields", {}))

    def set_document(
        self,
        collection: str,
        key: str,
        data: Dict[str, Any],
        merge: bool = True
    ) -> None:
        url = self.document_url(collection, key)
        params: Dict[str, Any] = {}
        if merge:
            params["updateMask.fieldPaths"] = merge_field_paths(data)
        response = self._request("PATCH", url, params=params, json={"fields": encode_fields(data)})
        self._raise_for_status(response, url)

    def delete_document(self, collection: str, key: str) -> None:
        url = self.document_url(collection, key)
        response = self._request("DELETE", url)
        self._raise_for_status(response, url)

    def _request(self, method: str, url: str, params: Optional[dict] = None, **kwargs) -> requests.Response:
        """
        Make a request to the Firestore API.

        Raises:
            DocumentStoreError: If the store is closed or the request fails
        """
        if self._session is None:
            raise DocumentStoreError(f"Connection to '{self._project_id}' is closed")

        params = dict(params or {})
        if self._api_key:
            params["key"] = self._api_key

        try:
            logger.debug(f"{method} {url}")
            return self._session.request(method, url, params=params, timeout=self._timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error("Firestore request timed out")
            raise DocumentStoreError("Request timed out connecting to Firestore", e)
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Firestore connection error: {e}")
            raise DocumentStoreError("Unable to connect to Firestore. Check your internet connection.", e)
        except requests.exceptions.RequestException as e:
            logger.error(f"Firestore request error: {e}")
            raise DocumentStoreError(f"Request failed: {e}")

    @staticmethod
    def _raise_for_status(response: requests.Response, url: str) -> None:
        if 200 <= response.status_code < 300:
            return
        if response.status_code == 403:
            raise DocumentStoreError(f"Access denied: {response.text}")
        if response.status_code == 404:
            raise DocumentStoreError(f"Resource not found: {url}")
        raise DocumentStoreError(f"Firestore API error {response.status_code}: {response.text}")

    @classmethod
    def factory(cls, timeout: int = REQUEST_TIMEOUT) -> StoreFactory:
        """Factory creating FirestoreRestStore connections."""

        def _factory(bundle: CredentialBundle) -> "FirestoreRestStore":
            return cls(bundle, timeout=timeout)

        return _factory
