"""Firebase-specific exceptions for the Firebase configuration switcher.

Custom exception hierarchy for configuration, remote store and migration
operations to provide clear error handling and user-friendly messages.
"""


class FirebaseError(Exception):
    """Base exception for all Firebase-related errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


# Configuration errors (captured into ManagerState by the configuration manager)


class ConfigError(FirebaseError):
    """Base exception for configuration loading and activation errors."""


class ResourceNotFoundError(ConfigError):
    """Credential resource file is missing."""

    def __init__(self, resource_name: str):
        self.resource_name = resource_name
        message = (
            f"{resource_name} (.plist or .json) not found! "
            "Add your Firebase configuration file."
        )
        super().__init__(message)


class InvalidCredentialsError(ConfigError):
    """Credential bundle holds placeholder or malformed values."""

    def __init__(self, resource_name: str, reason: str, original_error: Exception = None):
        self.resource_name = resource_name
        self.reason = reason
        message = f"{reason} in {resource_name}"
        super().__init__(message, original_error)


class ConfigurationFailedError(ConfigError):
    """Activation finished but no live connection was found."""

    def __init__(self, slot_name: str, original_error: Exception = None):
        self.slot_name = slot_name
        message = f"Firebase configuration failed - app '{slot_name}' not created"
        super().__init__(message, original_error)


# Remote store errors (raised by DocumentStore implementations)


class DocumentStoreError(FirebaseError):
    """Remote document store operation failed."""


# Migration errors (raised to callers of the migration and import managers)


class MigrationError(FirebaseError):
    """Base exception for data migration errors."""


class FirebaseNotConfiguredError(MigrationError):
    """Operation attempted against an inactive slot."""

    def __init__(self, slot_name: str = "", original_error: Exception = None):
        self.slot_name = slot_name
        message = "Firebase is not configured. Check configuration."
        if slot_name:
            message = f"Firebase is not configured for '{slot_name}'. Check configuration."
        super().__init__(message, original_error)


class NoDataToMigrateError(MigrationError):
    """No local record fields are staged."""

    def __init__(self):
        super().__init__("No data to migrate.")


class RemoteError(MigrationError):
    """Remote read, write or delete failed."""

    def __init__(self, operation: str, original_error: Exception = None):
        self.operation = operation
        message = f"Firestore error during {operation}"
        super().__init__(message, original_error)

    @property
    def cause(self) -> Exception:
        """The underlying failure."""
        return self.original_error


class UserNotFoundError(MigrationError):
    """No remote record exists for the user."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: '{user_id}'")
