"""Configuration module for the Firebase configuration switcher.

This module handles configuration sources and persisted preferences:
- ConfigurationKind / EnvironmentMode: Which project to talk to
- CredentialStore: Loads and validates packaged credential bundles
- ApiKeyVault: Secure API key storage via keyring
- SettingsManager: JSON-based preferences persistence
- Paths: Path constants and discovery
"""
