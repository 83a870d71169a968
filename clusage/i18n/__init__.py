"""
Message catalogues and the translation function used by every view.

Catalogues are flat-by-section JSON files (``ko.json``, ``en.json``) next to
this module. Keys are dotted paths such as ``calendar.title``.
"""

#region Imports
import json
import os
import string
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from clusage.config.defaults import SUPPORTED_LANGUAGES
#endregion


#region Constants
DEFAULT_LOCALE = "ko"
_CATALOG_DIR = Path(__file__).parent
_SYSTEM_LOCALE_VARS = ("LC_ALL", "LC_MESSAGES", "LANG", "LANGUAGE")
#endregion


#region Functions


@lru_cache(maxsize=None)
def load_catalog(locale: str) -> dict:
    """
    Load the message catalogue for a locale.

    Returns:
        Nested dictionary of messages, empty if the locale has no file
    """
    path = _CATALOG_DIR / f"{locale}.json"
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _lookup(catalog: dict, key: str) -> Optional[str]:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


class _SafeFormatter(string.Formatter):
    """Leave unknown ``{placeholders}`` untouched instead of raising."""

    def get_value(self, key, args, kwargs):
        if isinstance(key, str) and key not in kwargs:
            return "{" + key + "}"
        return super().get_value(key, args, kwargs)


_formatter = _SafeFormatter()


def detect_system_locale() -> Optional[str]:
    """Return ``ko``/``en`` from the POSIX locale variables, if any match."""
    for var in _SYSTEM_LOCALE_VARS:
        value = os.environ.get(var, "").lower()
        for locale in SUPPORTED_LANGUAGES:
            if value.startswith(locale):
                return locale
    return None


def resolve_locale(settings=None) -> str:
    """
    Pick the display language.

    Order: CLUSAGE_LANG, the ``language`` setting, the system locale, then ko.
    A Settings object already applies CLUSAGE_LANG, but it is checked here too
    so callers without settings get the same result.
    """
    env_lang = os.environ.get("CLUSAGE_LANG", "").strip().lower()
    if env_lang in SUPPORTED_LANGUAGES:
        return env_lang
    if settings is not None:
        configured = settings.get_setting("language")
        if configured in SUPPORTED_LANGUAGES:
            return configured
    return detect_system_locale() or DEFAULT_LOCALE
#endregion


#region Translator


class Translator:
    """Translate dotted message keys for one locale."""

    def __init__(self, locale: str = DEFAULT_LOCALE):
        self.locale = locale if locale in SUPPORTED_LANGUAGES else DEFAULT_LOCALE

    def get_locale(self) -> str:
        return self.locale

    def t(self, key: str, **params: Any) -> str:
        """
        Translate a key, interpolating ``{name}`` placeholders.

        Falls back to the Korean catalogue, then to the key itself.

        Args:
            key: Dotted message key
            **params: Placeholder values

        Returns:
            Translated string
        """
        message = _lookup(load_catalog(self.locale), key)
        if message is None and self.locale != DEFAULT_LOCALE:
            message = _lookup(load_catalog(DEFAULT_LOCALE), key)
        if message is None:
            return key
        if not params:
            return message
        return _formatter.format(message, **params)

    __call__ = t
#endregion
