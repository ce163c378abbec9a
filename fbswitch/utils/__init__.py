"""Utility module for the Firebase configuration switcher.

This module provides cross-cutting utilities:
- Logging: Configured logging with secret and e-mail redaction
- Validators: Credential value and user id validation
- Threading: Background task helper for non-blocking operations
"""
