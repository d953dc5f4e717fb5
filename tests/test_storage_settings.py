"""Tests for persisted locale settings and their reconciliation with catalog files."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from i18nvault.errors import InvalidArgumentError, NotFoundError
from i18nvault.storage.settings import LocaleInfo, LocaleSettings, SettingsStore

PRESENT = ("en", "es", "fr")


@pytest.fixture
def settings_store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.json", fallback_default="en")


class TestLoad:
    """Reconciliation on read."""

    def test_absent_file_registers_present_locales(self, settings_store: SettingsStore) -> None:
        """With no file every catalog is enabled and labelled by Babel."""
        loaded = settings_store.load(PRESENT)
        assert loaded.default_locale == "en"
        assert loaded.enabled_codes == PRESENT
        es = loaded.get("es")
        assert es is not None
        assert es.label == "Spanish"
        assert es.is_default is False

    def test_stale_records_dropped(self, settings_store: SettingsStore) -> None:
        """Records without a catalog file are ignored."""
        settings_store.update(PRESENT, "es", label="Castellano")
        loaded = settings_store.load(("en", "fr"))
        assert loaded.get("es") is None
        assert [info.code for info in loaded.locales] == ["en", "fr"]

    def test_default_falls_back_when_missing(self, tmp_path: Path) -> None:
        """A default with no catalog is replaced by the first present locale."""
        store = SettingsStore(tmp_path / "settings.json", fallback_default="de")
        loaded = store.load(PRESENT)
        assert loaded.default_locale == "en"
        assert loaded.get("en").is_default  # type: ignore[union-attr]

    def test_default_is_forced_enabled(self, tmp_path: Path) -> None:
        """A disabled default on disk is read back as enabled."""
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps({"defaultLocale": "es", "locales": {"es": {"enabled": False}}}),
            encoding="utf-8",
        )
        loaded = SettingsStore(path, fallback_default="en").load(PRESENT)
        assert loaded.default_locale == "es"
        assert loaded.get("es").enabled is True  # type: ignore[union-attr]

    def test_malformed_file(self, tmp_path: Path) -> None:
        """A settings file that is not an object is reported."""
        path = tmp_path / "settings.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(InvalidArgumentError):
            SettingsStore(path, fallback_default="en").load(PRESENT)


class TestSave:
    """Invariant checks on write."""

    def test_two_defaults_refused(self, settings_store: SettingsStore) -> None:
        """Exactly one locale may be default."""
        broken = LocaleSettings(
            default_locale="en",
            locales=(
                LocaleInfo("en", "English", True, is_default=True),
                LocaleInfo("es", "Spanish", True, is_default=True),
            ),
        )
        with pytest.raises(InvalidArgumentError, match="Exactly one default"):
            settings_store.save(broken)

    def test_disabled_default_refused(self, settings_store: SettingsStore) -> None:
        """The default locale must be enabled."""
        broken = LocaleSettings(
            default_locale="en", locales=(LocaleInfo("en", "English", False, is_default=True),)
        )
        with pytest.raises(InvalidArgumentError, match="must be enabled"):
            settings_store.save(broken)


class TestUpdate:
    """Single-locale changes."""

    def test_disable_and_relabel(self, settings_store: SettingsStore) -> None:
        """Changes persist across loads."""
        settings_store.update(PRESENT, "fr", label="Français", enabled=False)
        reloaded = settings_store.load(PRESENT)
        fr = reloaded.get("fr")
        assert fr == LocaleInfo("fr", "Français", False)
        assert reloaded.enabled_codes == ("en", "es")

    def test_make_default_moves_flag(self, settings_store: SettingsStore) -> None:
        """Promoting a locale demotes the previous default and enables the new one."""
        settings_store.update(PRESENT, "es", enabled=False)
        updated = settings_store.update(PRESENT, "es", make_default=True)
        assert updated.default_locale == "es"
        assert [info.code for info in updated.locales if info.is_default] == ["es"]
        assert updated.get("es").enabled is True  # type: ignore[union-attr]

    def test_unknown_locale(self, settings_store: SettingsStore) -> None:
        """Updating a locale with no catalog raises NotFoundError."""
        with pytest.raises(NotFoundError):
            settings_store.update(PRESENT, "de", enabled=False)
