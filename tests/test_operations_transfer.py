"""Tests for catalog export and import."""

from __future__ import annotations

import csv
import io
import json
import threading
import xml.etree.ElementTree as ET

import pytest

from i18nvault.core.paths import get_path
from i18nvault.enums import ChangeAction, ImportStatus
from i18nvault.errors import InvalidArgumentError, NotFoundError, UnauthorizedError
from i18nvault.operations.transfer import XLIFF_NAMESPACE, ExportFilter, parse_import
from i18nvault.service import CatalogService
from i18nvault.storage.snapshots import SnapshotInfo, SnapshotStore
from tests.helpers.catalogs import ADMIN_TOKEN

AUTH = {"credential": ADMIN_TOKEN}
Q = f"{{{XLIFF_NAMESPACE}}}"


class TestExport:
    """Serialization of the key matrix."""

    def test_json_shape(self, service: CatalogService) -> None:
        """{namespace: {key: {locale: value}}}, absent values as empty strings."""
        result = service.export_catalog("json")
        data = json.loads(result.content)
        assert data["Nav"]["menu.open"] == {"en": "Open menu", "es": "Abrir menú", "fr": ""}
        assert result.key_count == 6
        assert result.media_type == "application/json"
        assert result.filename == "messages.json"

    def test_csv_header_and_rows(self, service: CatalogService) -> None:
        """Locale columns are uppercase, baseline first."""
        result = service.export_catalog("csv", ExportFilter(namespace="Nav"))
        rows = list(csv.reader(io.StringIO(result.content.decode("utf-8"))))
        assert rows[0] == ["Namespace", "Key", "EN", "ES", "FR"]
        assert rows[1] == ["Nav", "home", "Home", "Inicio", "Accueil"]
        assert len(rows) == 4
        assert result.filename == "messages-Nav.csv"

    def test_missing_only(self, service: CatalogService) -> None:
        """Only keys empty or absent in the target survive."""
        result = service.export_catalog("json", ExportFilter(locale="es", missing_only=True))
        assert json.loads(result.content) == {
            "Nav": {"menu.close": {"en": "Close menu", "es": ""}}
        }

    def test_xliff_states(self, service: CatalogService) -> None:
        """Translated units are marked translated, empty ones new."""
        result = service.export_catalog("xliff", ExportFilter(locale="es"))
        root = ET.fromstring(result.content)
        assert root.get("version") == "1.2"
        files = root.findall(f"{Q}file")
        assert [f.get("original") for f in files] == ["Greeting", "Nav"]
        assert {f.get("target-language") for f in files} == {"es"}
        states = {
            unit.get("id"): unit.find(f"{Q}target").get("state")  # type: ignore[union-attr]
            for unit in root.iter(f"{Q}trans-unit")
        }
        assert states["menu.close"] == "new"
        assert states["home"] == "translated"

    def test_xliff_needs_target(self, service: CatalogService) -> None:
        """Exporting only the baseline as XLIFF is refused."""
        with pytest.raises(InvalidArgumentError):
            service.export_catalog("xliff", ExportFilter(locale="en"))

    @pytest.mark.parametrize(
        ("fmt", "export_filter", "error"),
        [
            ("yaml", ExportFilter(), InvalidArgumentError),
            ("json", ExportFilter(locale="de"), NotFoundError),
            ("json", ExportFilter(namespace="Footer"), NotFoundError),
        ],
    )
    def test_bad_requests(
        self,
        service: CatalogService,
        fmt: str,
        export_filter: ExportFilter,
        error: type[Exception],
    ) -> None:
        """Unknown formats, locales and namespaces are refused."""
        with pytest.raises(error):
            service.export_catalog(fmt, export_filter)


class TestImportPreview:
    """Classification without writing."""

    def test_csv_unchanged(self, service: CatalogService) -> None:
        """Importing the current value classifies it as unchanged."""
        content = "Namespace,Key,EN,ES\nNav,home,Home,Inicio\n"
        result = service.import_catalog("csv", content)
        assert result.preview is True
        assert result.counts == {"added": 0, "updated": 0, "unchanged": 1, "skipped": 0}
        (item,) = result.items
        assert (item.locale, item.status) == ("es", ImportStatus.UNCHANGED)

    @pytest.mark.parametrize("fmt", ["json", "csv"])
    def test_export_then_import_changes_nothing(self, service: CatalogService, fmt: str) -> None:
        """An unmodified export previews with nothing added or updated."""
        exported = service.export_catalog(fmt)
        result = service.import_catalog(fmt, exported.content)
        assert result.counts["added"] == 0
        assert result.counts["updated"] == 0
        assert result.counts["unchanged"] > 0

    def test_classification(self, service: CatalogService) -> None:
        """added, updated and skipped items with reasons."""
        content = json.dumps(
            {
                "Nav": {
                    "home": {"es": "Portada", "fr": "Accueil"},
                    "menu.open": {"fr": "Ouvrir le menu"},
                    "menu": {"es": "x"},
                },
                "Footer": {"terms": {"es": "Términos"}},
                "Greeting": {"hello": {"de": "Hallo, {name}!", "en": "ignored"}},
            }
        )
        result = service.import_catalog("json", content)
        statuses = {(i.namespace, i.key, i.locale): i.status for i in result.items}
        assert statuses[("Nav", "home", "es")] is ImportStatus.UPDATED
        assert statuses[("Nav", "home", "fr")] is ImportStatus.UNCHANGED
        assert statuses[("Nav", "menu.open", "fr")] is ImportStatus.ADDED
        assert statuses[("Nav", "menu", "es")] is ImportStatus.SKIPPED
        assert statuses[("Footer", "terms", "es")] is ImportStatus.SKIPPED
        assert statuses[("Greeting", "hello", "de")] is ImportStatus.SKIPPED
        assert ("Greeting", "hello", "en") not in statuses
        assert result.affected_locales == ("es", "fr")
        assert service.ledger.count() == 0

    @pytest.mark.parametrize(
        ("fmt", "content"),
        [
            ("json", "{not json"),
            ("json", "[]"),
            ("csv", ""),
            ("csv", "Key,Namespace,ES\n"),
            ("csv", "Namespace,Key,ES\nNav,home,a,b,c\n"),
            ("xml", "<x/>"),
        ],
    )
    def test_malformed(self, service: CatalogService, fmt: str, content: str) -> None:
        """Malformed files raise InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError):
            service.import_catalog(fmt, content)

    def test_parse_import_matches_locale_case(self) -> None:
        """Column names match known locales case-insensitively."""
        candidates = parse_import(
            "csv", "Namespace,Key,EN,PT-br\nNav,home,Home,Início\n",
            baseline="en", known_locales=("en", "pt-BR"),
        )
        assert [(c.locale, c.value) for c in candidates] == [("pt-BR", "Início")]


class TestImportCommit:
    """Applying an import."""

    def test_commit_requires_credential(self, service: CatalogService) -> None:
        """Only previews are open."""
        with pytest.raises(UnauthorizedError):
            service.import_catalog("csv", "Namespace,Key,ES\nNav,home,Portada\n", preview=False)

    def test_commit_snapshots_and_writes(self, service: CatalogService) -> None:
        """Affected locales are snapshotted, written, and logged once."""
        content = "Namespace,Key,EN,ES,FR\nNav,home,Home,Portada,Accueil\nGreeting,welcome,,,Bon retour\n"
        result = service.import_catalog("csv", content, preview=False, **AUTH)
        assert result.preview is False
        assert sorted(info.locale for info in result.snapshots) == ["es", "fr"]
        assert get_path(service.store.load("es"), "Nav.home") == "Portada"
        assert get_path(service.store.load("fr"), "Greeting.welcome") == "Bon retour"
        assert result.entry is not None
        assert result.entry.action is ChangeAction.IMPORT
        assert result.entry.locale == "*"
        assert result.entry.new_value == "1 added, 1 updated, 0 skipped"
        assert service.ledger.count() == 1

    def test_writer_started_during_backup_waits_for_import(
        self, service: CatalogService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The backup holds exactly the state the import replaced."""
        errors: list[Exception] = []

        def write() -> None:
            try:
                service.update_key("es", "Nav", "home", "Concurrent", **AUTH)
            except Exception as exc:
                errors.append(exc)

        writer = threading.Thread(target=write)
        original_create = SnapshotStore.create

        def create_then_race(
            self: SnapshotStore, locale: str | None = None
        ) -> tuple[SnapshotInfo, ...]:
            created = original_create(self, locale)
            if writer.ident is None:
                writer.start()
                writer.join(timeout=0.3)
            return created

        monkeypatch.setattr(SnapshotStore, "create", create_then_race)
        content = "Namespace,Key,ES\nNav,menu.close,Cerrar menú\n"
        result = service.import_catalog("csv", content, preview=False, **AUTH)
        writer.join(timeout=5)

        assert not writer.is_alive()
        assert errors == []
        (backup,) = result.snapshots
        backed_up = service.snapshots.load(backup.filename)[1]
        assert get_path(backed_up, "Nav.home") == "Inicio"
        assert get_path(backed_up, "Nav.menu.close") == ""
        tree = service.store.load("es")
        assert get_path(tree, "Nav.menu.close") == "Cerrar menú"
        assert get_path(tree, "Nav.home") == "Concurrent"
        actions = [entry.action for entry in service.get_changelog().entries]
        assert actions == [ChangeAction.UPDATE, ChangeAction.IMPORT]

    def test_commit_with_nothing_to_write(self, service: CatalogService) -> None:
        """No snapshots, no entry, no writes when nothing changes."""
        result = service.import_catalog(
            "csv", "Namespace,Key,ES\nNav,home,Inicio\n", preview=False, **AUTH
        )
        assert result.snapshots == ()
        assert result.entry is None
        assert service.list_snapshots() == ()
