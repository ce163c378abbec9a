"""Configuration kinds and environment modes.

Each ConfigurationKind corresponds to a separate Firebase project with its
own credential resource. Production and Sandbox share the default slot and
are mutually exclusive; Migration lives in a named slot so it can be
connected at the same time as either of them.
"""

import os
from enum import Enum
from typing import Optional


DEFAULT_SLOT_NAME = "[DEFAULT]"
MIGRATION_SLOT_NAME = "MigrationFirebaseApp"

# Environment variable read by the composition root
ENVIRONMENT_VARIABLE = "FBSWITCH_ENV"


class ConfigurationKind(Enum):
    """Firebase project a connection can point at."""
    PRODUCTION = "Production"
    SANDBOX = "Sandbox"
    MIGRATION = "Migration"

    @property
    def resource_name(self) -> str:
        """Credential resource file name without extension."""
        return f"GoogleService-Info-{self.value}"

    @property
    def expected_project_id(self) -> str:
        """
        Project id the resource is expected to carry.

        These are placeholders until replaced with real project ids; the
        credential store skips the mismatch check while they are.
        """
        return {
            ConfigurationKind.PRODUCTION: "your-production-project-id",
            ConfigurationKind.SANDBOX: "your-sandbox-project-id",
            ConfigurationKind.MIGRATION: "your-migration-project-id",
        }[self]

    @property
    def uses_default_slot(self) -> bool:
        """True for kinds that occupy the single default slot."""
        return self is not ConfigurationKind.MIGRATION

    @property
    def slot_name(self) -> str:
        """Name of the connection slot this kind is activated into."""
        if self.uses_default_slot:
            return DEFAULT_SLOT_NAME
        return MIGRATION_SLOT_NAME

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["ConfigurationKind"]:
        """Parse a persisted value, returning None for unknown input."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class EnvironmentMode(Enum):
    """Runtime environment injected at startup."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @property
    def is_production(self) -> bool:
        return self is EnvironmentMode.PRODUCTION

    @property
    def default_kind(self) -> ConfigurationKind:
        """Configuration used when nothing has been persisted."""
        if self.is_production:
            return ConfigurationKind.PRODUCTION
        return ConfigurationKind.SANDBOX

    @classmethod
    def from_environment(cls, environ: Optional[dict] = None) -> "EnvironmentMode":
        """
        Read the environment mode from FBSWITCH_ENV.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            EnvironmentMode, DEVELOPMENT when unset or unrecognized
        """
        environ = os.environ if environ is None else environ
        value = environ.get(ENVIRONMENT_VARIABLE, "").strip().lower()
        if value in ("production", "prod", "release"):
            return cls.PRODUCTION
        return cls.DEVELOPMENT
