"""Write paths: key edits, import/export, rollback, undo, locale lifecycle.

Every write goes through a CatalogStore transaction and records ledger
entries in the same commit.

Python 3.13+.
"""

from .history import UNDOABLE_ACTIONS, undo_change
from .lifecycle import ArchivedLocale, LocaleAddResult, LocaleManager
from .mutations import BulkItemError, BulkUpdateResult, CatalogEditor, KeyLookup, KeyUpdate
from .rollback import DiffExample, RollbackDiff, RollbackEngine, RollbackResult, diff_trees
from .transfer import (
    CatalogTransfer,
    ExportFilter,
    ExportResult,
    ImportCandidate,
    ImportItem,
    ImportResult,
    classify_candidates,
    parse_import,
)

__all__ = [
    "UNDOABLE_ACTIONS",
    "ArchivedLocale",
    "BulkItemError",
    "BulkUpdateResult",
    "CatalogEditor",
    "CatalogTransfer",
    "DiffExample",
    "ExportFilter",
    "ExportResult",
    "ImportCandidate",
    "ImportItem",
    "ImportResult",
    "KeyLookup",
    "KeyUpdate",
    "LocaleAddResult",
    "LocaleManager",
    "RollbackDiff",
    "RollbackEngine",
    "RollbackResult",
    "classify_candidates",
    "diff_trees",
    "parse_import",
    "undo_change",
]
