"""Input validators for the Firebase configuration switcher.

Provides validation functions for credential values and user ids.
"""

import re
from typing import Optional, Tuple


# Firebase app id: "<project number>:<number>:ios:<hex>"
APP_ID_PATTERN = re.compile(r'^\d+:\d+:ios:[0-9a-fA-F]+$')

# Substrings left behind by configuration templates
PLACEHOLDER_MARKERS = ("YOUR_", "your-")

# Canonical template app id
TEMPLATE_APP_ID = "1:YOUR_PROJECT_NUMBER:ios:YOUR_APP_ID"

# Firestore document ids cannot contain "/" and cannot be "." or ".."
USER_ID_MAX_LENGTH = 1500


def is_placeholder(value: Optional[str]) -> bool:
    """
    Check whether a value was copied from a configuration template.

    Args:
        value: Value to check

    Returns:
        True if the value contains a placeholder marker
    """
    if not value:
        return False
    return any(marker in value for marker in PLACEHOLDER_MARKERS)


def validate_app_id(app_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate a Firebase app id against placeholder values.

    Args:
        app_id: GOOGLE_APP_ID value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not app_id or not app_id.strip():
        return False, "Missing GOOGLE_APP_ID"

    if (
        app_id == TEMPLATE_APP_ID
        or app_id.startswith("1:YOUR_")
        or is_placeholder(app_id)
    ):
        return False, "Invalid GOOGLE_APP_ID"

    return True, None


def is_well_formed_app_id(app_id: str) -> bool:
    """True if the app id matches the "<number>:<number>:ios:<hex>" layout."""
    return bool(APP_ID_PATTERN.match(app_id or ""))


def validate_project_id(project_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate a Firebase project id against placeholder values.

    A missing project id is accepted; only placeholders are rejected.

    Args:
        project_id: PROJECT_ID value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if project_id and is_placeholder(project_id):
        return False, "Invalid PROJECT_ID"
    return True, None


def validate_user_id(user_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate a user id used as a remote document key.

    Args:
        user_id: User identifier (email or external id)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not user_id or not user_id.strip():
        return False, "User id is required"

    if "/" in user_id:
        return False, "User id cannot contain '/'"

    if user_id in (".", ".."):
        return False, f"Invalid user id: {user_id}"

    if len(user_id.encode("utf-8")) > USER_ID_MAX_LENGTH:
        return False, f"User id too long (max {USER_ID_MAX_LENGTH} bytes)"

    return True, None
