"""Tests for snapshot rollback preview and apply."""

from __future__ import annotations

import threading

import pytest

from i18nvault.core.paths import get_path
from i18nvault.enums import ChangeAction, ChangeSource, DiffCategory
from i18nvault.errors import InvalidArgumentError, NotFoundError
from i18nvault.operations.rollback import diff_trees
from i18nvault.service import CatalogService
from i18nvault.storage.snapshots import SnapshotInfo, SnapshotStore
from tests.helpers.catalogs import ADMIN_TOKEN

AUTH = {"credential": ADMIN_TOKEN}


class TestDiffTrees:
    """Leaf diffs from the rollback's point of view."""

    def test_categories(self) -> None:
        """added = snapshot only, removed = current only, changed = both, different."""
        snapshot = {"Nav": {"home": "Inicio", "old": "Viejo"}}
        current = {"Nav": {"home": "Portada", "new": "Nuevo"}}
        diff = diff_trees("es_x.json", "es", snapshot, current)
        assert (diff.added, diff.removed, diff.changed) == (1, 1, 1)
        assert diff.examples[DiffCategory.ADDED][0].key == "Nav.old"
        assert diff.examples[DiffCategory.REMOVED][0].current_value == "Nuevo"
        changed = diff.examples[DiffCategory.CHANGED][0]
        assert (changed.snapshot_value, changed.current_value) == ("Inicio", "Portada")
        assert diff.summary() == "+1 -1 ~1"

    def test_examples_capped_counts_exact(self) -> None:
        """Examples stop at the limit; counts do not."""
        snapshot = {"Ns": {f"k{i:02d}": "x" for i in range(10)}}
        diff = diff_trees("f", "es", snapshot, {}, example_limit=3)
        assert diff.added == 10
        assert [e.key for e in diff.examples[DiffCategory.ADDED]] == ["Ns.k00", "Ns.k01", "Ns.k02"]

    def test_identical_is_empty(self) -> None:
        """No differences."""
        tree = {"Nav": {"home": "Inicio"}}
        assert diff_trees("f", "es", tree, tree).is_empty


class TestRollback:
    """Store-backed preview and apply."""

    def test_preview_never_writes(self, service: CatalogService) -> None:
        """preview reports the diff and leaves the file alone."""
        (snapshot,) = service.create_snapshot("es", **AUTH)
        service.update_key("es", "Nav", "home", "Portada", **AUTH)
        before = service.store.read_bytes("es")
        diff = service.preview_rollback(snapshot.filename)
        assert (diff.added, diff.removed, diff.changed) == (0, 0, 1)
        assert service.store.read_bytes("es") == before

    def test_apply_restores_snapshot_bytes(self, service: CatalogService) -> None:
        """After apply the catalog equals the snapshot content."""
        (snapshot,) = service.create_snapshot("es", **AUTH)
        service.update_key("es", "Nav", "home", "Portada", **AUTH)
        service.add_key("Footer", "terms", {"en": "Terms", "es": "Términos"}, **AUTH)

        result = service.apply_rollback(snapshot.filename, **AUTH)
        assert service.store.load("es") == service.snapshots.load(snapshot.filename)[1]
        assert result.diff.summary() == "+0 -1 ~1"
        assert result.entry.action is ChangeAction.ROLLBACK
        assert result.entry.source is ChangeSource.ROLLBACK
        assert result.backup.filename in (info.filename for info in service.list_snapshots("es"))

    def test_rollback_of_rollback(self, service: CatalogService) -> None:
        """The automatic backup undoes the rollback."""
        (snapshot,) = service.create_snapshot("es", **AUTH)
        service.update_key("es", "Nav", "home", "Portada", **AUTH)
        edited = service.store.load("es")
        result = service.apply_rollback(snapshot.filename, **AUTH)
        service.apply_rollback(result.backup.filename, **AUTH)
        assert service.store.load("es") == edited

    def test_apply_survives_pruning_of_its_snapshot(self, service: CatalogService) -> None:
        """Rolling back to the oldest retained snapshot works even when the backup prunes it."""
        limit = service.config.snapshot_limit
        oldest = service.create_snapshot("es", **AUTH)[0].filename
        for _ in range(limit - 1):
            service.create_snapshot("es", **AUTH)
        service.update_key("es", "Nav", "home", "Portada", **AUTH)
        service.apply_rollback(oldest, **AUTH)
        assert service.store.load("es")["Nav"]["home"] == "Inicio"  # type: ignore[index]
        assert oldest not in (info.filename for info in service.list_snapshots("es"))

    def test_unknown_and_malformed_names(self, service: CatalogService) -> None:
        """Missing snapshots are NotFound; malformed names are invalid."""
        with pytest.raises(NotFoundError):
            service.preview_rollback("es_20000101T000000000000Z.json")
        with pytest.raises(InvalidArgumentError):
            service.apply_rollback("../../etc/passwd", **AUTH)


class TestRollbackBackupUnderLock:
    """The automatic backup and the rollback write form one step."""

    def test_writer_started_during_backup_waits_for_rollback(
        self, service: CatalogService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A write racing the backup lands after the rollback instead of being lost."""
        (snapshot,) = service.create_snapshot("es", **AUTH)
        service.update_key("es", "Nav", "home", "Portada", **AUTH)

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
            writer.start()
            writer.join(timeout=0.3)
            return created

        monkeypatch.setattr(SnapshotStore, "create", create_then_race)
        result = service.apply_rollback(snapshot.filename, **AUTH)
        writer.join(timeout=5)

        assert not writer.is_alive()
        assert errors == []
        backup = service.snapshots.load(result.backup.filename)[1]
        assert get_path(backup, "Nav.home") == "Portada"
        assert get_path(service.store.load("es"), "Nav.home") == "Concurrent"
        actions = [entry.action for entry in service.get_changelog().entries]
        assert actions[:2] == [ChangeAction.UPDATE, ChangeAction.ROLLBACK]
