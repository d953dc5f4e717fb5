"""Tests for CatalogConfig construction, paths and environment loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from i18nvault.config import CatalogConfig
from i18nvault.constants import MAX_CHANGELOG_ENTRIES, MAX_SNAPSHOTS_PER_LOCALE


class TestDefaults:
    """CatalogConfig(root=...) alone is usable."""

    def test_paths(self, tmp_path: Path) -> None:
        """Every path derives from the root."""
        config = CatalogConfig(root=tmp_path)
        assert config.messages_path == tmp_path / "messages"
        assert config.archive_path == tmp_path / "messages" / ".archived"
        assert config.data_path == tmp_path / ".i18nvault"
        assert config.versions_path == tmp_path / ".i18nvault" / "versions"
        assert config.changelog_path == tmp_path / ".i18nvault" / "changelog.json"
        assert config.settings_path == tmp_path / ".i18nvault" / "settings.json"
        assert config.source_path is None

    def test_limits(self, tmp_path: Path) -> None:
        """Retention defaults come from constants."""
        config = CatalogConfig(root=tmp_path)
        assert config.changelog_limit == MAX_CHANGELOG_ENTRIES
        assert config.snapshot_limit == MAX_SNAPSHOTS_PER_LOCALE
        assert config.admin_token is None

    def test_string_root_coerced(self, tmp_path: Path) -> None:
        """A str root becomes a Path."""
        config = CatalogConfig(root=str(tmp_path))  # type: ignore[arg-type]
        assert isinstance(config.root, Path)

    def test_source_dir(self, tmp_path: Path) -> None:
        """source_dir resolves under the root."""
        assert CatalogConfig(root=tmp_path, source_dir="app").source_path == tmp_path / "app"


class TestValidation:
    """Bad values fail at construction."""

    @pytest.mark.parametrize(
        "field", ["changelog_limit", "snapshot_limit", "bulk_update_limit", "translation_batch_size"]
    )
    def test_non_positive_limit(self, tmp_path: Path, field: str) -> None:
        """Limits must be positive."""
        with pytest.raises(ValueError, match=f"{field} must be positive"):
            CatalogConfig(root=tmp_path, **{field: 0})  # type: ignore[arg-type]

    def test_non_positive_timeout(self, tmp_path: Path) -> None:
        """The translation timeout must be positive."""
        with pytest.raises(ValueError, match="translation_timeout"):
            CatalogConfig(root=tmp_path, translation_timeout=0)

    @pytest.mark.parametrize("code", ["en_US", "", "english!"])
    def test_bad_default_locale(self, tmp_path: Path, code: str) -> None:
        """The fallback default must be BCP-47 shaped."""
        with pytest.raises(ValueError, match="BCP-47"):
            CatalogConfig(root=tmp_path, default_locale=code)


class TestFromEnv:
    """I18NVAULT_* variables."""

    def test_reads_variables(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Each recognized variable lands on its field."""
        monkeypatch.setenv("I18NVAULT_ROOT", str(tmp_path))
        monkeypatch.setenv("I18NVAULT_MESSAGES_DIR", "locales")
        monkeypatch.setenv("I18NVAULT_DEFAULT_LOCALE", "es")
        monkeypatch.setenv("I18NVAULT_ADMIN_TOKEN", "secret")
        monkeypatch.setenv("I18NVAULT_TRANSLATION_TIMEOUT", "12.5")
        monkeypatch.setenv("I18NVAULT_BATCH_SIZE", "7")
        config = CatalogConfig.from_env()
        assert config.root == tmp_path
        assert config.messages_path == tmp_path / "locales"
        assert config.default_locale == "es"
        assert config.admin_token == "secret"
        assert config.translation_timeout == 12.5
        assert config.translation_batch_size == 7

    def test_argument_overrides_root(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An explicit root wins over I18NVAULT_ROOT."""
        monkeypatch.setenv("I18NVAULT_ROOT", "/elsewhere")
        assert CatalogConfig.from_env(tmp_path).root == tmp_path

    def test_empty_values_ignored(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Blank variables fall back to defaults."""
        monkeypatch.setenv("I18NVAULT_ADMIN_TOKEN", "")
        assert CatalogConfig.from_env(tmp_path).admin_token is None

    def test_unparseable_number(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Numeric variables must parse."""
        monkeypatch.setenv("I18NVAULT_TRANSLATION_TIMEOUT", "soon")
        with pytest.raises(ValueError):
            CatalogConfig.from_env(tmp_path)
