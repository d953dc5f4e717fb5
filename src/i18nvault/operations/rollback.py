"""Restore a locale catalog from a snapshot.

The diff between a snapshot and the current file is expressed in leaf
keys from the point of view of the rollback:

    added    in the snapshot only; the rollback brings it back
    removed  in the current file only; the rollback discards it
    changed  in both with different values

Applying a rollback first snapshots the current state, so every rollback
can itself be rolled back.

Python 3.13+.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from i18nvault.constants import ROLLBACK_EXAMPLE_LIMIT, WILDCARD
from i18nvault.core.paths import leaf_map
from i18nvault.enums import ChangeAction, ChangeSource, DiffCategory
from i18nvault.storage.changelog import ChangeEntry

if TYPE_CHECKING:
    from i18nvault.core.types import CatalogTree, KeyPath, LocaleCode
    from i18nvault.storage.catalog import CatalogStore
    from i18nvault.storage.snapshots import SnapshotInfo, SnapshotStore

logger = logging.getLogger(__name__)

__all__ = ["DiffExample", "RollbackDiff", "RollbackEngine", "RollbackResult", "diff_trees"]


@dataclass(frozen=True, slots=True)
class DiffExample:
    """One differing key: its value in the snapshot and in the current file."""

    key: KeyPath
    snapshot_value: str | None
    current_value: str | None

    def to_dict(self) -> dict[str, str | None]:
        """JSON-ready representation."""
        return {
            "key": self.key,
            "snapshotValue": self.snapshot_value,
            "currentValue": self.current_value,
        }


@dataclass(frozen=True, slots=True)
class RollbackDiff:
    """Difference a rollback would make.

    Counts are exact; examples are capped per category.
    """

    filename: str
    locale: LocaleCode
    added: int
    removed: int
    changed: int
    examples: dict[DiffCategory, tuple[DiffExample, ...]]

    @property
    def is_empty(self) -> bool:
        """True when the snapshot equals the current file."""
        return self.added == self.removed == self.changed == 0

    def summary(self) -> str:
        """Compact "+added -removed ~changed" description."""
        return f"+{self.added} -{self.removed} ~{self.changed}"

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "filename": self.filename,
            "locale": self.locale,
            "added": self.added,
            "removed": self.removed,
            "changed": self.changed,
            "examples": {
                str(category): [example.to_dict() for example in examples]
                for category, examples in self.examples.items()
            },
        }


@dataclass(frozen=True, slots=True)
class RollbackResult:
    """Outcome of an applied rollback."""

    diff: RollbackDiff
    backup: SnapshotInfo
    entry: ChangeEntry

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "diff": self.diff.to_dict(),
            "backup": self.backup.to_dict(),
            "entryId": self.entry.id,
        }


def diff_trees(
    filename: str,
    locale: LocaleCode,
    snapshot: CatalogTree,
    current: CatalogTree,
    *,
    example_limit: int = ROLLBACK_EXAMPLE_LIMIT,
) -> RollbackDiff:
    """Leaf-key diff of snapshot against current."""
    old = leaf_map(snapshot)
    new = leaf_map(current)
    added = sorted(old.keys() - new.keys())
    removed = sorted(new.keys() - old.keys())
    changed = sorted(key for key in old.keys() & new.keys() if old[key] != new[key])
    return RollbackDiff(
        filename=filename,
        locale=locale,
        added=len(added),
        removed=len(removed),
        changed=len(changed),
        examples={
            DiffCategory.ADDED: tuple(
                DiffExample(key, old[key], None) for key in added[:example_limit]
            ),
            DiffCategory.REMOVED: tuple(
                DiffExample(key, None, new[key]) for key in removed[:example_limit]
            ),
            DiffCategory.CHANGED: tuple(
                DiffExample(key, old[key], new[key]) for key in changed[:example_limit]
            ),
        },
    )


class RollbackEngine:
    """Previews and applies snapshot rollbacks."""

    __slots__ = ("_example_limit", "_snapshots", "_store")

    def __init__(
        self,
        store: CatalogStore,
        snapshots: SnapshotStore,
        *,
        example_limit: int = ROLLBACK_EXAMPLE_LIMIT,
    ) -> None:
        self._store = store
        self._snapshots = snapshots
        self._example_limit = example_limit

    def preview(self, filename: str) -> RollbackDiff:
        """What apply(filename) would change. Never writes.

        Raises:
            InvalidArgumentError: If filename is malformed
            NotFoundError: If the snapshot or its locale's catalog is missing
        """
        locale, snapshot = self._snapshots.load(filename)
        current = self._store.load(locale)
        return diff_trees(
            filename, locale, snapshot, current, example_limit=self._example_limit
        )

    def apply(self, filename: str, *, author: str = "system") -> RollbackResult:
        """Replace the locale's catalog with the snapshot content.

        The snapshot is read before the backup snapshot is taken, because
        retention pruning during the backup may delete it. The backup is
        taken under the locale lock, so it holds exactly the state the
        rollback replaces.

        Raises:
            InvalidArgumentError: If filename is malformed
            NotFoundError: If the snapshot or its locale's catalog is missing
        """
        locale, snapshot = self._snapshots.load(filename)

        with self._store.transaction([locale]) as txn:
            (backup,) = self._snapshots.create(locale)
            diff = diff_trees(
                filename, locale, snapshot, txn.tree(locale), example_limit=self._example_limit
            )
            txn.replace(locale, snapshot)
            entry = ChangeEntry.create(
                ChangeAction.ROLLBACK,
                locale=locale,
                namespace=WILDCARD,
                key=WILDCARD,
                old_value=f"Backed up as {backup.filename}",
                new_value=f"Restored {filename} ({diff.summary()})",
                author=author,
                source=ChangeSource.ROLLBACK,
            )
            txn.record(entry)

        logger.info("Rolled back %s to %s (%s)", locale, filename, diff.summary())
        return RollbackResult(diff=diff, backup=backup, entry=entry)
