"""
Tests for user settings and message catalogues.
"""

import json
from unittest.mock import patch

import pytest

from clusage.config.defaults import DEFAULT_SETTINGS, get_default_settings
from clusage.config.user_config import (
    Settings,
    coerce_setting,
    load_config,
    save_config,
    validate_setting,
    validate_settings,
)
from clusage.i18n import Translator, load_catalog, resolve_locale


def _keys(node, prefix=""):
    keys = set()
    for name, value in node.items():
        path = f"{prefix}{name}"
        if isinstance(value, dict):
            keys |= _keys(value, f"{path}.")
        else:
            keys.add(path)
    return keys


class TestValidation:
    """Per-key value checks."""

    @pytest.mark.parametrize("key,value,valid", [
        ("cacheTtlSeconds", 30, True),
        ("cacheTtlSeconds", 0, False),
        ("cacheTtlSeconds", True, False),
        ("language", "en", True),
        ("language", "fr", False),
        ("currency", "KRW", True),
        ("currency", "krw", False),
        ("exchangeRate", 1350.5, True),
        ("exchangeRate", -1, False),
        ("graphStyle", "line", True),
        ("boxStyle", "dotted", False),
        ("timezone", "", False),
        ("somethingNew", object(), True),
    ])
    def test_validate_setting(self, key, value, valid):
        """Known keys are checked; unknown keys pass."""
        assert validate_setting(key, value) is valid

    def test_validate_settings_requires_mapping(self):
        """Only dictionaries are valid settings files."""
        assert validate_settings({"language": "en"})
        assert not validate_settings(["language"])
        assert not validate_settings({"language": "en", "currency": "EUR"})

    def test_coerce(self):
        """Command-line strings become typed values."""
        assert coerce_setting("cacheTtlSeconds", "60") == 60
        assert coerce_setting("exchangeRate", "1350.5") == pytest.approx(1350.5)
        assert coerce_setting("language", "en") == "en"

    @pytest.mark.parametrize("key,raw", [
        ("cacheTtlSeconds", "soon"),
        ("cacheTtlSeconds", "0"),
        ("language", "fr"),
        ("unknownKey", "x"),
    ])
    def test_coerce_rejects(self, key, raw):
        """Unknown keys and invalid values raise ValueError."""
        with pytest.raises(ValueError):
            coerce_setting(key, raw)


class TestLoadSave:
    """Settings files on disk."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """No file means every default."""
        assert load_config(tmp_path / "settings.json") == DEFAULT_SETTINGS

    def test_values_merge_over_defaults(self, tmp_path):
        """Stored values replace only their own keys."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"language": "en", "currency": "KRW"}), encoding="utf-8")
        config = load_config(path)
        assert config["language"] == "en"
        assert config["currency"] == "KRW"
        assert config["graphStyle"] == DEFAULT_SETTINGS["graphStyle"]

    def test_invalid_file_is_ignored(self, tmp_path):
        """One bad value discards the whole file."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"language": "en", "cacheTtlSeconds": -5}), encoding="utf-8")
        assert load_config(path) == DEFAULT_SETTINGS

    def test_unreadable_file_is_ignored(self, tmp_path):
        """Malformed JSON falls back to defaults."""
        path = tmp_path / "settings.json"
        path.write_text("{oops", encoding="utf-8")
        assert load_config(path) == DEFAULT_SETTINGS

    def test_save_creates_directories(self, tmp_path):
        """Saving writes pretty JSON, creating parents as needed."""
        path = tmp_path / "config" / "settings.json"
        save_config({"language": "한국어"}, path)
        assert json.loads(path.read_text(encoding="utf-8")) == {"language": "한국어"}
        assert "한국어" in path.read_text(encoding="utf-8")

    def test_defaults_are_copies(self):
        """Mutating a defaults copy leaves the table alone."""
        defaults = get_default_settings()
        defaults["language"] = "en"
        assert DEFAULT_SETTINGS["language"] == "ko"


class TestSettings:
    """Effective settings with environment overrides."""

    def test_env_language_override(self, tmp_path, monkeypatch):
        """CLUSAGE_LANG wins over the file value."""
        settings = Settings(tmp_path / "settings.json", values={"language": "ko"})
        monkeypatch.setenv("CLUSAGE_LANG", "EN")
        assert settings.get_setting("language") == "en"

    def test_unsupported_env_language_ignored(self, tmp_path, monkeypatch):
        """An unsupported override is ignored."""
        settings = Settings(tmp_path / "settings.json", values={"language": "en"})
        monkeypatch.setenv("CLUSAGE_LANG", "fr")
        assert settings.get_setting("language") == "en"

    @pytest.mark.parametrize("raw,expected", [("120", 120), ("0", 30), ("abc", 30)])
    def test_env_cache_ttl(self, tmp_path, monkeypatch, raw, expected):
        """Only positive integers override the cache TTL."""
        settings = Settings(tmp_path / "settings.json", values={})
        monkeypatch.setenv("CLUSAGE_CACHE_TTL", raw)
        assert settings.get_setting("cacheTtlSeconds") == expected

    def test_update_and_save(self, tmp_path, monkeypatch):
        """Updates persist; environment overrides are never written."""
        path = tmp_path / "settings.json"
        settings = Settings(path)
        monkeypatch.setenv("CLUSAGE_LANG", "en")
        settings.update_setting("graphStyle", "line")
        settings.save()

        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored["graphStyle"] == "line"
        assert stored["language"] == "ko"
        assert Settings(path).get_setting("graphStyle") == "line"

    def test_update_rejects_invalid(self, tmp_path):
        """Invalid values are refused before anything changes."""
        settings = Settings(tmp_path / "settings.json", values={})
        with pytest.raises(ValueError):
            settings.update_setting("currency", "EUR")
        assert settings.get_setting("currency") == "USD"

    def test_unknown_key(self, tmp_path):
        """Unknown keys read as None."""
        assert Settings(tmp_path / "settings.json", values={}).get_setting("nope") is None


class TestTranslator:
    """Catalogue lookup, fallback and interpolation."""

    def test_catalogues_share_keys(self):
        """Korean and English define the same messages."""
        assert _keys(load_catalog("ko")) == _keys(load_catalog("en"))

    def test_lookup(self):
        """Dotted keys resolve per locale."""
        assert Translator("en").t("compare.title") == "Period Comparison"
        assert Translator("ko").t("compare.title") == "기간 비교"

    def test_placeholders(self):
        """Named placeholders are filled; unknown ones are left intact."""
        t = Translator("en")
        assert t("calendar.records", count=3) == "3 records"
        assert t("common.read_warning", count=1) == "Could not read 1 file(s): {dates}"

    def test_missing_key_returns_key(self):
        """An unknown key is shown as-is."""
        assert Translator("en").t("nope.missing") == "nope.missing"

    def test_falls_back_to_korean(self):
        """Keys missing from a locale come from the Korean catalogue."""
        catalogs = {"en": {"a": {}}, "ko": {"a": {"b": "한국어"}}}
        with patch("clusage.i18n.load_catalog", side_effect=lambda locale: catalogs.get(locale, {})):
            assert Translator("en").t("a.b") == "한국어"

    def test_unsupported_locale(self):
        """Unknown locales use Korean."""
        assert Translator("fr").get_locale() == "ko"

    def test_resolve_locale_order(self, monkeypatch, tmp_path):
        """Environment beats settings, which beat the system locale."""
        settings = Settings(tmp_path / "settings.json", values={"language": "en"})
        monkeypatch.setenv("LANG", "ko_KR.UTF-8")
        assert resolve_locale(settings) == "en"
        monkeypatch.setenv("CLUSAGE_LANG", "ko")
        assert resolve_locale(settings) == "ko"

    def test_resolve_locale_from_system(self, monkeypatch):
        """Without settings the POSIX locale decides."""
        for var in ("LC_ALL", "LC_MESSAGES", "LANGUAGE"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("LANG", "en_US.UTF-8")
        assert resolve_locale() == "en"
