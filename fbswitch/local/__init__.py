"""Local data module.

Holds the on-device key-value store the migration reads from.
"""

from .store import LocalDataStore, LocalProfile

__all__ = [
    "LocalDataStore",
    "LocalProfile",
]
