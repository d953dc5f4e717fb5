"""Undo of individual changelog entries.

Only entries that carry their previous state can be undone:

    update  restore the old value, or remove the key if there was none
    add     remove the key from every locale
    delete  put back every per-locale value that was removed

Bulk updates, imports, rollbacks and locale lifecycle entries only hold
summaries and raise UnsupportedError; restore a snapshot for those. The
undo is itself written through a transaction and logged as a new
``rollback`` entry with source ``undo``.

Python 3.13+.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from i18nvault.constants import WILDCARD
from i18nvault.core.paths import delete_path, get_path, join_path, leaf_prefix, set_path
from i18nvault.enums import ChangeAction, ChangeSource
from i18nvault.errors import ConflictError, ErrorContext, NotFoundError, UnsupportedError
from i18nvault.storage.changelog import ChangeEntry

if TYPE_CHECKING:
    from i18nvault.core.types import CatalogTree
    from i18nvault.storage.catalog import CatalogStore

logger = logging.getLogger(__name__)

__all__ = ["UNDOABLE_ACTIONS", "undo_change"]

UNDOABLE_ACTIONS: frozenset[ChangeAction] = frozenset(
    {ChangeAction.UPDATE, ChangeAction.ADD, ChangeAction.DELETE}
)


def undo_change(store: CatalogStore, entry_id: str, *, author: str = "system") -> ChangeEntry:
    """Reverse one ledger entry and log the reversal.

    Returns:
        The new rollback entry

    Raises:
        NotFoundError: If the entry id is unknown, or the key/locale it
            refers to no longer exists
        UnsupportedError: If the entry has no recoverable previous state
        ConflictError: If restoring a value would overwrite a value now
            stored at a prefix of its key
    """
    original = store.ledger.get(entry_id)
    context = ErrorContext(
        "undo", locale=original.locale, namespace=original.namespace, key=original.key
    )
    if original.action not in UNDOABLE_ACTIONS:
        msg = f"Entry {entry_id} ({original.action}) has no recoverable previous value"
        raise UnsupportedError(msg, context)

    path = join_path(original.namespace, original.key)
    match original.action:
        case ChangeAction.UPDATE:
            entry = _undo_update(store, original, path, author)
        case ChangeAction.ADD:
            entry = _undo_add(store, original, path, author, context)
        case _:
            entry = _undo_delete(store, original, path, author, context)

    logger.info("Undid %s entry %s as %s", original.action, entry_id, entry.id)
    return entry


def _refuse_leaf_prefix(tree: CatalogTree, path: str, locale: str) -> None:
    prefix = leaf_prefix(tree, path)
    if prefix is not None:
        msg = f"Cannot restore '{path}': '{prefix}' now holds a value in '{locale}'"
        raise ConflictError(msg, ErrorContext("undo_change", locale=locale, key=path))


def _undo_update(store: CatalogStore, original: ChangeEntry, path: str, author: str) -> ChangeEntry:
    with store.transaction([original.locale]) as txn:
        tree = txn.tree(original.locale)
        current = get_path(tree, path)
        if original.old_value is None:
            delete_path(tree, path)
        else:
            _refuse_leaf_prefix(tree, path, original.locale)
            set_path(tree, path, original.old_value)
        entry = ChangeEntry.create(
            ChangeAction.ROLLBACK,
            locale=original.locale,
            namespace=original.namespace,
            key=original.key,
            old_value=current if isinstance(current, str) else None,
            new_value=original.old_value,
            author=author,
            source=ChangeSource.UNDO,
        )
        txn.record(entry)
    return entry


def _undo_add(
    store: CatalogStore,
    original: ChangeEntry,
    path: str,
    author: str,
    context: ErrorContext,
) -> ChangeEntry:
    with store.transaction(store.locales()) as txn:
        removed: dict[str, str] = {}
        for locale in txn.locales:
            tree = txn.tree(locale)
            current = get_path(tree, path)
            if isinstance(current, str):
                delete_path(tree, path)
                removed[locale] = current
        if not removed:
            msg = f"Key '{path}' no longer exists in any locale"
            raise NotFoundError(msg, context)
        entry = ChangeEntry.create(
            ChangeAction.ROLLBACK,
            locale=WILDCARD,
            namespace=original.namespace,
            key=original.key,
            old_value=original.new_value,
            new_value=None,
            author=author,
            source=ChangeSource.UNDO,
            locale_values=removed,
        )
        txn.record(entry)
    return entry


def _undo_delete(
    store: CatalogStore,
    original: ChangeEntry,
    path: str,
    author: str,
    context: ErrorContext,
) -> ChangeEntry:
    present = set(store.locales())
    targets = sorted(locale for locale in original.locale_values if locale in present)
    if not targets:
        msg = f"Entry {original.id} records no removed values for any current locale"
        raise UnsupportedError(msg, context)

    with store.transaction(targets) as txn:
        restored: dict[str, str] = {}
        for locale in txn.locales:
            value = original.locale_values[locale]
            _refuse_leaf_prefix(txn.tree(locale), path, locale)
            set_path(txn.tree(locale), path, value)
            restored[locale] = value
        entry = ChangeEntry.create(
            ChangeAction.ROLLBACK,
            locale=WILDCARD,
            namespace=original.namespace,
            key=original.key,
            old_value=None,
            new_value=original.old_value,
            author=author,
            source=ChangeSource.UNDO,
            locale_values=restored,
        )
        txn.record(entry)
    return entry
