"""Credential bundles for the Firebase configuration switcher.

CredentialStore locates the GoogleService-Info resource for a
configuration kind and validates it is not a template placeholder.
ApiKeyVault uses the system keyring (Windows Credential Manager, macOS
Keychain, Linux Secret Service) to hold API keys outside the resource
files.
"""

import json
import logging
import plistlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from xml.parsers.expat import ExpatError

import keyring
from keyring.errors import KeyringError

from fbswitch.config.kinds import ConfigurationKind
from fbswitch.config.paths import RESOURCE_EXTENSIONS, get_resource_search_paths
from fbswitch.firebase.exceptions import InvalidCredentialsError, ResourceNotFoundError
from fbswitch.utils.validators import (
    is_placeholder,
    is_well_formed_app_id,
    validate_app_id,
    validate_project_id,
)

logger = logging.getLogger("fbswitch.credentials")


# Resource keys as written by the Firebase console (plist) and web config (JSON)
APP_ID_KEYS = ("GOOGLE_APP_ID", "appId")
PROJECT_ID_KEYS = ("PROJECT_ID", "projectId")
API_KEY_KEYS = ("API_KEY", "apiKey")


def _first(data: dict, keys: tuple) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


@dataclass(frozen=True)
class CredentialBundle:
    """Credentials for one Firebase project."""
    kind: ConfigurationKind
    app_id: str
    project_id: Optional[str] = None
    api_key: Optional[str] = None
    source: Optional[Path] = None
    raw: Dict[str, object] = field(default_factory=dict, compare=False)

    @property
    def resource_name(self) -> str:
        """Resource name the bundle was loaded for."""
        return self.kind.resource_name

    def with_api_key(self, api_key: str) -> "CredentialBundle":
        """Return a copy carrying the given API key."""
        return CredentialBundle(
            kind=self.kind,
            app_id=self.app_id,
            project_id=self.project_id,
            api_key=api_key,
            source=self.source,
            raw=self.raw,
        )

    @classmethod
    def from_mapping(
        cls,
        kind: ConfigurationKind,
        data: dict,
        source: Optional[Path] = None
    ) -> "CredentialBundle":
        """Create a bundle from parsed resource data."""
        known = set(APP_ID_KEYS + PROJECT_ID_KEYS + API_KEY_KEYS)
        return cls(
            kind=kind,
            app_id=_first(data, APP_ID_KEYS) or "",
            project_id=_first(data, PROJECT_ID_KEYS),
            api_key=_first(data, API_KEY_KEYS),
            source=source,
            raw={k: v for k, v in data.items() if k not in known},
        )


class ApiKeyVault:
    """Secure API key storage using system keyring."""

    SERVICE_NAME = "fbswitch"

    def _make_key(self, kind: ConfigurationKind) -> str:
        """
        Create a unique key for the credential.

        Args:
            kind: Configuration kind

        Returns:
            Unique key string
        """
        return f"{kind.resource_name}:API_KEY"

    def save_api_key(self, kind: ConfigurationKind, api_key: str) -> bool:
        """
        Save an API key securely.

        Args:
            kind: Configuration kind the key belongs to
            api_key: Key to save

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            keyring.set_password(self.SERVICE_NAME, self._make_key(kind), api_key)
            return True
        except KeyringError:
            return False

    def get_api_key(self, kind: ConfigurationKind) -> Optional[str]:
        """
        Retrieve a saved API key.

        Returns:
            API key or None if not found
        """
        try:
            return keyring.get_password(self.SERVICE_NAME, self._make_key(kind))
        except KeyringError:
            return None

    def delete_api_key(self, kind: ConfigurationKind) -> bool:
        """
        Remove a saved API key.

        Returns:
            True if deleted successfully, False otherwise
        """
        try:
            keyring.delete_password(self.SERVICE_NAME, self._make_key(kind))
            return True
        except KeyringError:
            return False

    def has_api_key(self, kind: ConfigurationKind) -> bool:
        """True if an API key is saved for the kind."""
        return self.get_api_key(kind) is not None


class CredentialStore:
    """Loads and validates credential bundles from resource files."""

    def __init__(
        self,
        search_paths: Optional[List[Path]] = None,
        vault: Optional[ApiKeyVault] = None,
        expected_project_ids: Optional[Dict[ConfigurationKind, str]] = None
    ):
        """
        Initialize the credential store.

        Args:
            search_paths: Directories to search, highest priority first
            vault: Keyring vault consulted when a bundle has no API key
            expected_project_ids: Overrides for ConfigurationKind.expected_project_id
        """
        self._search_paths = list(search_paths) if search_paths is not None else get_resource_search_paths()
        self._vault = vault
        self._expected_project_ids = dict(expected_project_ids or {})

    @property
    def search_paths(self) -> List[Path]:
        return list(self._search_paths)

    def expected_project_id(self, kind: ConfigurationKind) -> str:
        """Project id the kind's resource is expected to carry."""
        return self._expected_project_ids.get(kind, kind.expected_project_id)

    def find_resource(self, kind: ConfigurationKind) -> Optional[Path]:
        """
        Locate the resource file for a kind.

        Returns:
            Path to the first matching file, or None
        """
        for directory in self._search_paths:
            for extension in RESOURCE_EXTENSIONS:
                candidate = Path(directory) / f"{kind.resource_name}{extension}"
                if candidate.is_file():
                    return candidate
        return None

    def load(self, kind: ConfigurationKind) -> CredentialBundle:
        """
        Load the credential bundle for a kind.

        Args:
            kind: Configuration kind to load

        Returns:
            CredentialBundle read from the resource file

        Raises:
            ResourceNotFoundError: If no resource file exists
            InvalidCredentialsError: If the file cannot be parsed
        """
        logger.info(f"Loading config: {kind.resource_name}")

        path = self.find_resource(kind)
        if path is None:
            raise ResourceNotFoundError(kind.resource_name)

        data = self._parse(kind, path)
        bundle = CredentialBundle.from_mapping(kind, data, source=path)

        if self._vault and (not bundle.api_key or is_placeholder(bundle.api_key)):
            api_key = self._vault.get_api_key(kind)
            if api_key:
                logger.debug(f"Using keyring API key for {kind.display_name}")
                bundle = bundle.with_api_key(api_key)

        return bundle

    def validate(self, bundle: CredentialBundle) -> List[str]:
        """
        Validate a bundle against placeholder values.

        Args:
            bundle: Bundle to validate

        Returns:
            List of non-fatal warnings (already logged)

        Raises:
            InvalidCredentialsError: If the app id or project id is a placeholder
        """
        resource = f"{bundle.resource_name}{bundle.source.suffix if bundle.source else ''}"

        valid, error = validate_app_id(bundle.app_id)
        if not valid:
            logger.error(f"{error} in {resource}. Please replace with your real Firebase configuration.")
            logger.error("HINT: Download GoogleService-Info.plist from https://console.firebase.google.com/")
            raise InvalidCredentialsError(resource, error)

        valid, error = validate_project_id(bundle.project_id)
        if not valid:
            logger.error(f"{error} in {resource}. Please use real Firebase configuration.")
            raise InvalidCredentialsError(resource, error)

        warnings: List[str] = []

        if not is_well_formed_app_id(bundle.app_id):
            warnings.append(f"GOOGLE_APP_ID '{bundle.app_id}' is not in the expected format")

        expected = self.expected_project_id(bundle.kind)
        if bundle.project_id and not is_placeholder(expected) and bundle.project_id != expected:
            warnings.append(
                f"Project ID mismatch for {bundle.kind.display_name}: "
                f"expected '{expected}', got '{bundle.project_id}'"
            )

        for warning in warnings:
            logger.warning(warning)

        return warnings

    def _parse(self, kind: ConfigurationKind, path: Path) -> dict:
        try:
            if path.suffix == ".plist":
                with open(path, "rb") as f:
                    data = plistlib.load(f)
            else:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
        except (plistlib.InvalidFileException, ExpatError, json.JSONDecodeError, ValueError, OSError) as e:
            logger.error(f"Failed to parse {path.name}: {e}")
            raise InvalidCredentialsError(path.name, "Failed to parse configuration", e)

        if not isinstance(data, dict):
            raise InvalidCredentialsError(path.name, "Expected a key-value configuration")
        return data
