"""Firebase connection module for the Firebase configuration switcher.

This module handles everything that talks to a Firebase project:
- ConfigurationManager: Chooses the active configuration per slot
- ConnectionSlotRegistry: Default and named connection slots
- DocumentStore: Remote document stores (in-memory, Firestore REST)
- Exceptions: Configuration, store and migration error types
"""
