"""Path constants and discovery for the Firebase configuration switcher.

Defines application data directories and where credential resources
are searched for.
"""

import os
import sys
from pathlib import Path
from typing import List


# Application name for config directories
APP_NAME = "FirebaseConfigSwitcher"

# Credential resources shipped inside the package
PACKAGED_RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources" / "firebase"

# Resource file extensions, in lookup order
RESOURCE_EXTENSIONS: List[str] = [".plist", ".json"]


def get_app_data_dir() -> Path:
    """
    Get the application data directory.

    Returns:
        Path to app data directory (created if not exists)

    Platform-specific locations:
        - Windows: %APPDATA%/FirebaseConfigSwitcher
        - Linux: ~/.config/FirebaseConfigSwitcher
        - macOS: ~/Library/Application Support/FirebaseConfigSwitcher
    """
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    app_dir = base / APP_NAME
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_settings_path() -> Path:
    """Path to the persisted preferences file."""
    return get_app_data_dir() / "settings.json"


def get_local_data_path() -> Path:
    """Path to the local staging store the migration reads from."""
    return get_app_data_dir() / "local_data.json"


def get_user_resources_dir() -> Path:
    """
    Get the directory for user-supplied credential resources.

    Real GoogleService-Info files dropped here take precedence over
    the placeholder copies shipped with the package.
    """
    return get_app_data_dir() / "firebase"


def get_resource_search_paths() -> List[Path]:
    """
    Directories searched for credential resources, highest priority first.

    Returns:
        List of directories (user override, then packaged)
    """
    return [get_user_resources_dir(), PACKAGED_RESOURCES_DIR]


def get_log_dir() -> Path:
    """
    Get the directory for log files.

    Returns:
        Path to logs directory (created if not exists)
    """
    log_dir = get_app_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_file_path() -> Path:
    """Path to the main log file."""
    return get_log_dir() / "app.log"
