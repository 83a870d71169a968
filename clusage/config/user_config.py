#region Imports
import json
import os
from pathlib import Path
from typing import Any, Optional

from clusage.config.defaults import (
    SUPPORTED_BOX_STYLES,
    SUPPORTED_CURRENCIES,
    SUPPORTED_GRAPH_STYLES,
    SUPPORTED_LANGUAGES,
    get_default_settings,
)
from clusage.config.settings import SETTINGS_PATH
from clusage.utils.logger import get_logger
#endregion


#region Constants
logger = get_logger(__name__)

ENV_LANG = "CLUSAGE_LANG"
ENV_CACHE_TTL = "CLUSAGE_CACHE_TTL"
#endregion


#region Validation


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_setting(key: str, value: Any) -> bool:
    """
    Check a single setting value.

    Unknown keys are accepted so newer files keep working with older builds.

    Args:
        key: Setting name
        value: Candidate value

    Returns:
        True if the value is acceptable for the key
    """
    if key == "cacheTtlSeconds":
        return _is_int(value) and value >= 1
    if key == "language":
        return value in SUPPORTED_LANGUAGES
    if key == "currency":
        return value in SUPPORTED_CURRENCIES
    if key == "exchangeRate":
        return (_is_int(value) or isinstance(value, float)) and value > 0
    if key == "graphStyle":
        return value in SUPPORTED_GRAPH_STYLES
    if key == "boxStyle":
        return value in SUPPORTED_BOX_STYLES
    if key == "timezone":
        return isinstance(value, str) and bool(value)
    return True


def validate_settings(data: Any) -> bool:
    """Return True if every key in a settings mapping is valid."""
    if not isinstance(data, dict):
        return False
    return all(validate_setting(key, value) for key, value in data.items())


def coerce_setting(key: str, raw: str) -> Any:
    """
    Convert a command-line string into the type a setting expects.

    Raises:
        ValueError: If the string cannot be converted or fails validation
    """
    defaults = get_default_settings()
    if key not in defaults:
        raise ValueError(f"Unknown setting: {key}")

    template = defaults[key]
    if isinstance(template, bool):
        value: Any = raw.lower() in ("1", "true", "yes", "on")
    elif isinstance(template, int):
        try:
            value = int(raw)
        except ValueError:
            value = float(raw)
    else:
        value = raw

    if not validate_setting(key, value):
        raise ValueError(f"Invalid value for {key}: {raw}")
    return value
#endregion


#region Load/Save


def load_config(path: Path = SETTINGS_PATH) -> dict:
    """
    Load user settings from disk, merged over defaults.

    A missing file yields the defaults. Malformed JSON or any invalid value
    makes the whole file ignored.

    Args:
        path: Settings file location

    Returns:
        Settings dictionary
    """
    config = get_default_settings()
    if not path.exists():
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return config

    if not validate_settings(data):
        logger.warning("Ignoring invalid settings file %s", path)
        return config

    config.update(data)
    return config


def save_config(config: dict, path: Path = SETTINGS_PATH) -> None:
    """
    Save user settings to disk.

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)
#endregion


#region Settings Provider


class Settings:
    """
    Effective settings for one process: file values plus env overrides.

    Views receive this object through their context instead of reading a
    module-level cache, so tests can pass their own instance.
    """

    def __init__(self, path: Path = SETTINGS_PATH, values: Optional[dict] = None):
        self.path = path
        if values is None:
            self._values = load_config(path)
        else:
            self._values = get_default_settings()
            self._values.update(values)

    def _env_override(self, key: str) -> Any:
        if key == "language":
            lang = os.environ.get(ENV_LANG, "").strip().lower()
            if lang in SUPPORTED_LANGUAGES:
                return lang
        elif key == "cacheTtlSeconds":
            raw = os.environ.get(ENV_CACHE_TTL)
            if raw:
                try:
                    ttl = int(raw)
                except ValueError:
                    return None
                if ttl >= 1:
                    return ttl
        return None

    def get_setting(self, key: str) -> Any:
        """Return the effective value for a key, or None if unknown."""
        override = self._env_override(key)
        if override is not None:
            return override
        return self._values.get(key)

    def all_settings(self) -> dict:
        """Return every effective setting."""
        return {key: self.get_setting(key) for key in self._values}

    def update_setting(self, key: str, value: Any) -> None:
        """
        Change a setting in memory.

        Raises:
            ValueError: If the value fails validation
        """
        if not validate_setting(key, value):
            raise ValueError(f"Invalid value for {key}: {value!r}")
        self._values[key] = value

    def save(self) -> None:
        """Persist the file-level values (env overrides are never written)."""
        save_config(self._values, self.path)
#endregion
