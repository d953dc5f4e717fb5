"""Persistence layer: catalogs, changelog, snapshots, locale settings.

Submodules:
    files      - Atomic JSON file primitives and timestamp helpers
    catalog    - CatalogStore and CatalogTransaction (one tree per locale)
    changelog  - ChangelogLedger and ChangeEntry (capped mutation history)
    snapshots  - SnapshotStore and SnapshotInfo (capped per-locale copies)
    settings   - SettingsStore, LocaleSettings, LocaleInfo

Python 3.13+.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability

from i18nvault.storage.catalog import CatalogStore, CatalogTransaction, validate_tree
from i18nvault.storage.changelog import ChangeEntry, ChangelogLedger, ChangelogPage
from i18nvault.storage.settings import LocaleInfo, LocaleSettings, SettingsStore
from i18nvault.storage.snapshots import SnapshotInfo, SnapshotStore, parse_snapshot_name

__all__ = [
    # Catalogs
    "CatalogStore",
    "CatalogTransaction",
    "validate_tree",
    # History
    "ChangeEntry",
    "ChangelogLedger",
    "ChangelogPage",
    # Snapshots
    "SnapshotInfo",
    "SnapshotStore",
    "parse_snapshot_name",
    # Settings
    "LocaleInfo",
    "LocaleSettings",
    "SettingsStore",
]
