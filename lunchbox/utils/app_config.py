"""
Persistent settings storage for the desktop app.

Stores the Lunchbox settings object (plugins, per-view state, VM status)
in a JSON file at the platform-appropriate config directory.
"""

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Config file location
_CONFIG_DIR_NAME = "Lunchbox"
_SETTINGS_FILE_NAME = "settings.json"


class SettingsStoreError(Exception):
    """Raised when the settings file cannot be read or written."""


def _get_config_dir() -> Path:
    """Get the platform-appropriate config directory."""
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif system == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / _CONFIG_DIR_NAME


def _get_config_path() -> Path:
    return _get_config_dir() / _SETTINGS_FILE_NAME


def get_user_data_dir(override: Optional[Path] = None) -> Path:
    """Directory holding user data (settings file, plugins)."""
    if override is not None:
        return Path(override)
    return _get_config_dir()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load() -> Dict[str, Any]:
    """
    Read the stored settings.

    Returns an empty dict when nothing has been saved yet.

    Raises:
        SettingsStoreError: the file exists but cannot be read or parsed
    """
    path = _get_config_path()
    if not path.exists():
        logger.info("No settings file at %s; starting fresh", path)
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error("Failed to read settings %s: %s", path, e)
        raise SettingsStoreError(f"Could not read settings file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsStoreError(f"Settings file {path} does not contain an object")
    return data


def save(data: Dict[str, Any]) -> None:
    """
    Write the settings (persisted immediately).

    Raises:
        SettingsStoreError: the file cannot be written
    """
    path = _get_config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except (OSError, TypeError, ValueError) as e:
        logger.error("Failed to write settings %s: %s", path, e)
        raise SettingsStoreError(f"Could not write settings file {path}: {e}") from e
