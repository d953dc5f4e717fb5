"""Tests for locale add, archive, restore and flag changes."""

from __future__ import annotations

import pytest

from i18nvault.core.paths import count_leaves, leaf_map
from i18nvault.enums import ChangeAction, SeedStrategy
from i18nvault.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    UnsupportedError,
)
from i18nvault.service import CatalogService
from tests.helpers.catalogs import ADMIN_TOKEN

AUTH = {"credential": ADMIN_TOKEN}


class TestAddLocale:
    """Seeding new catalogs."""

    def test_clone_empty(self, service: CatalogService) -> None:
        """The baseline structure is copied with empty values; the locale starts disabled."""
        result = service.add_locale("de", **AUTH)
        assert result.locale.code == "de"
        assert result.locale.label == "German"
        assert result.locale.enabled is False
        assert result.entry.action is ChangeAction.LOCALE_ADD
        assert result.translation is None
        tree = service.store.load("de")
        assert set(leaf_map(tree).values()) == {""}
        assert count_leaves(tree) == 6

    def test_import_later(self, service: CatalogService) -> None:
        """An empty catalog is created."""
        service.add_locale("it", "Italiano", SeedStrategy.IMPORT_LATER, **AUTH)
        assert service.store.load("it") == {}
        (info,) = (i for i in service.list_locales() if i.code == "it")
        assert info.label == "Italiano"

    def test_code_is_canonicalized(self, service: CatalogService) -> None:
        """Casing follows BCP-47 convention."""
        result = service.add_locale("DE-at", strategy="import-later", **AUTH)
        assert result.locale.code == "de-AT"
        assert "de-AT" in service.store.locales()

    def test_duplicate_is_case_insensitive(self, service: CatalogService) -> None:
        """An existing locale in other casing conflicts."""
        with pytest.raises(ConflictError):
            service.add_locale("ES", **AUTH)

    @pytest.mark.parametrize(
        ("code", "strategy"),
        [
            ("en_US", "clone-empty"),
            ("settings", "import-later"),
            ("de", "copy-everything"),
            ("de", "ai-seed"),
        ],
    )
    def test_invalid_requests(self, service: CatalogService, code: str, strategy: str) -> None:
        """Malformed codes, unknown strategies and ai-seed without a client are refused."""
        with pytest.raises(InvalidArgumentError):
            service.add_locale(code, strategy=strategy, **AUTH)
        assert service.ledger.count() == 0


class TestRemoveAndRestore:
    """Archiving instead of deleting."""

    def test_remove_requires_confirmation(self, service: CatalogService) -> None:
        """Without the code or name repeated, nothing happens."""
        with pytest.raises(InvalidArgumentError, match="Confirmation"):
            service.remove_locale("fr", **AUTH)
        with pytest.raises(InvalidArgumentError):
            service.remove_locale("fr", "es", **AUTH)
        assert "fr" in service.store.locales()

    def test_remove_archives_then_restore(self, service: CatalogService) -> None:
        """A removed locale is archived, invisible, and restorable byte for byte."""
        original = service.store.read_bytes("fr")
        entry = service.remove_locale("fr", "fr", **AUTH)
        assert entry.action is ChangeAction.LOCALE_REMOVE
        assert "fr" not in service.store.locales()
        assert all(info.code != "fr" for info in service.list_locales())

        (archived,) = service.list_archived_locales()
        assert archived.locale == "fr"
        assert archived.size == len(original)

        info = service.restore_locale(archived.filename, **AUTH)
        assert info.code == "fr"
        assert service.store.read_bytes("fr") == original
        assert service.list_archived_locales() == ()

    def test_confirmation_by_label(self, service: CatalogService) -> None:
        """The display name, in any case, also confirms."""
        service.remove_locale("fr", "  FRENCH ", **AUTH)
        assert "fr" not in service.store.locales()

    def test_default_cannot_be_removed(self, service: CatalogService) -> None:
        """The baseline stays."""
        with pytest.raises(UnsupportedError):
            service.remove_locale("en", "en", **AUTH)

    def test_unknown_locale(self, service: CatalogService) -> None:
        """Removing a locale that does not exist is NotFound."""
        with pytest.raises(NotFoundError):
            service.remove_locale("de", "de", **AUTH)

    def test_restore_over_live_catalog(self, service: CatalogService) -> None:
        """Restoring while the locale is live again conflicts."""
        service.remove_locale("fr", "fr", **AUTH)
        service.add_locale("fr", strategy="import-later", **AUTH)
        (archived,) = service.list_archived_locales()
        with pytest.raises(ConflictError):
            service.restore_locale(archived.filename, **AUTH)

    @pytest.mark.parametrize(
        ("name", "error"),
        [
            ("../fr_20260101T000000000000Z.json", InvalidArgumentError),
            ("fr.json", InvalidArgumentError),
            ("fr_20260101T000000000000Z.json", NotFoundError),
        ],
    )
    def test_restore_bad_names(
        self, service: CatalogService, name: str, error: type[Exception]
    ) -> None:
        """Malformed names are invalid; absent archives are NotFound."""
        with pytest.raises(error):
            service.restore_locale(name, **AUTH)


class TestFlags:
    """Default and enabled flags."""

    def test_toggle(self, service: CatalogService) -> None:
        """Flip, then set explicitly."""
        assert service.toggle_locale_enabled("fr", **AUTH).enabled is False
        assert service.toggle_locale_enabled("fr", **AUTH).enabled is True
        assert service.toggle_locale_enabled("fr", False, **AUTH).enabled is False

    def test_default_cannot_be_disabled(self, service: CatalogService) -> None:
        """Disabling the baseline is unsupported."""
        with pytest.raises(UnsupportedError):
            service.toggle_locale_enabled("en", False, **AUTH)

    def test_set_default_changes_baseline(self, service: CatalogService) -> None:
        """The new default becomes the baseline for edits and coverage."""
        service.toggle_locale_enabled("es", False, **AUTH)
        updated = service.set_default_locale("es", **AUTH)
        assert updated.default_locale == "es"
        assert updated.get("es").enabled is True  # type: ignore[union-attr]
        assert service.get_coverage_report().summary.baseline == "es"
        with pytest.raises(InvalidArgumentError, match="Baseline"):
            service.update_key("es", "Nav", "home", "Portada", **AUTH)
        service.update_key("en", "Nav", "home", "Start", **AUTH)

    def test_set_default_unknown(self, service: CatalogService) -> None:
        """Only existing locales can become default."""
        with pytest.raises(NotFoundError):
            service.set_default_locale("de", **AUTH)
