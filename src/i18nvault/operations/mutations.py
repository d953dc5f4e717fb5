"""Key-level edits: add, update, delete, bulk update, lookup.

Every edit runs inside one CatalogStore transaction and records exactly
one changelog entry, so history and file state never diverge. The
baseline locale is only ever changed by add_key and delete_key, which
act on every locale at once; update_key and bulk_update refuse it.

Python 3.13+.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from i18nvault.constants import MAX_BULK_UPDATES, WILDCARD
from i18nvault.core.paths import (
    delete_path,
    get_path,
    is_group,
    is_valid_path,
    join_path,
    leaf_map,
    leaf_prefix,
    set_path,
    split_path,
)
from i18nvault.enums import ChangeAction, ChangeSource
from i18nvault.errors import (
    ConflictError,
    ErrorContext,
    InvalidArgumentError,
    NotFoundError,
)
from i18nvault.storage.changelog import ChangeEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from i18nvault.core.types import CatalogTree, KeyPath, LocaleCode, Namespace
    from i18nvault.storage.catalog import CatalogStore
    from i18nvault.translation.pipeline import TranslationProposal

logger = logging.getLogger(__name__)

__all__ = [
    "BulkItemError",
    "BulkUpdateResult",
    "CatalogEditor",
    "KeyLookup",
    "KeyUpdate",
]


@dataclass(frozen=True, slots=True)
class KeyUpdate:
    """One value to write: namespace, key within it, new text."""

    namespace: Namespace
    key: KeyPath
    value: str


@dataclass(frozen=True, slots=True)
class BulkItemError:
    """A bulk item that was not applied, and why."""

    namespace: Namespace
    key: KeyPath
    reason: str

    def to_dict(self) -> dict[str, str]:
        """JSON-ready representation."""
        return {"namespace": self.namespace, "key": self.key, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class BulkUpdateResult:
    """Outcome of a bulk update: what was written, what was refused.

    Attributes:
        locale: Target locale
        applied: Items written, in request order
        errors: Items refused, in request order
        entries: Ledger entries recorded (none when nothing was applied)
    """

    locale: LocaleCode
    applied: tuple[KeyUpdate, ...]
    errors: tuple[BulkItemError, ...]
    entries: tuple[ChangeEntry, ...] = ()

    @property
    def ok(self) -> bool:
        """True when every item was applied."""
        return not self.errors

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "locale": self.locale,
            "applied": len(self.applied),
            "errors": [error.to_dict() for error in self.errors],
            "entryIds": [entry.id for entry in self.entries],
        }


@dataclass(frozen=True, slots=True)
class KeyLookup:
    """Result of lookup_key.

    With no key: ``keys`` lists every baseline key of the namespace.
    With a key: ``values`` maps each locale to its value (None if absent).
    """

    namespace: Namespace
    key: KeyPath | None
    keys: tuple[KeyPath, ...] = ()
    values: dict[LocaleCode, str | None] | None = None

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        if self.key is None:
            return {"namespace": self.namespace, "keys": list(self.keys)}
        return {"namespace": self.namespace, "key": self.key, "values": dict(self.values or {})}


def _check_namespace(namespace: Namespace, context: ErrorContext) -> None:
    if not namespace or split_path(namespace) != (namespace,):
        msg = f"Invalid namespace: '{namespace}'"
        raise InvalidArgumentError(msg, context)


def _check_key(key: KeyPath, context: ErrorContext) -> None:
    if not is_valid_path(key):
        msg = f"Invalid key path: '{key}'"
        raise InvalidArgumentError(msg, context)


class CatalogEditor:
    """Mutation API over a CatalogStore.

    Args:
        store: Catalog store all writes go through
        baseline: Returns the current baseline (default) locale
        bulk_limit: Maximum items per bulk_update call
    """

    __slots__ = ("_baseline", "_bulk_limit", "_store")

    def __init__(
        self,
        store: CatalogStore,
        *,
        baseline: Callable[[], LocaleCode],
        bulk_limit: int = MAX_BULK_UPDATES,
    ) -> None:
        self._store = store
        self._baseline = baseline
        self._bulk_limit = bulk_limit

    @property
    def baseline(self) -> LocaleCode:
        """Current baseline locale."""
        return self._baseline()

    def _refuse_baseline(self, locale: LocaleCode, context: ErrorContext) -> None:
        if locale == self._baseline():
            msg = (
                f"Baseline locale '{locale}' cannot be edited directly; "
                "use add_key/delete_key"
            )
            raise InvalidArgumentError(msg, context)

    # ------------------------------------------------------------------------
    # Single-key edits
    # ------------------------------------------------------------------------

    def add_key(
        self,
        namespace: Namespace,
        key: KeyPath,
        values: Mapping[LocaleCode, str],
        *,
        author: str = "system",
        source: ChangeSource = ChangeSource.MANUAL,
    ) -> ChangeEntry:
        """Add a key to every locale.

        The baseline value is required. Other locales get their value from
        values or "" when none is given. The namespace is created wherever
        it does not yet exist.

        Raises:
            InvalidArgumentError: If namespace/key is malformed, the baseline
                value is missing, or a value is not a string
            NotFoundError: If values names a locale with no catalog
            ConflictError: If the baseline already has the key, or the path
                collides with an existing group or leaf
        """
        baseline = self._baseline()
        context = ErrorContext("add_key", locale=baseline, namespace=namespace, key=key)
        _check_namespace(namespace, context)
        _check_key(key, context)
        baseline_value = values.get(baseline)
        if not isinstance(baseline_value, str) or not baseline_value:
            msg = f"A non-empty value for the baseline locale '{baseline}' is required"
            raise InvalidArgumentError(msg, context)
        for locale, value in values.items():
            if not isinstance(value, str):
                msg = f"Value for '{locale}' must be a string, got {type(value).__name__}"
                raise InvalidArgumentError(msg, context)

        locales = self._store.locales()
        if baseline not in locales:
            msg = f"Baseline locale '{baseline}' has no catalog"
            raise NotFoundError(msg, context)
        unknown = sorted(set(values) - set(locales))
        if unknown:
            msg = f"Unknown locale(s): {', '.join(unknown)}"
            raise NotFoundError(msg, ErrorContext("add_key", locale=unknown[0]))

        path = join_path(namespace, key)
        with self._store.transaction(locales) as txn:
            self._check_free(txn.tree(baseline), path, context)
            for locale in txn.locales:
                tree = txn.tree(locale)
                prefix = leaf_prefix(tree, path)
                if prefix is not None or is_group(get_path(tree, path)):
                    msg = f"Key collides with existing content in '{locale}': '{prefix or path}'"
                    raise ConflictError(
                        msg, ErrorContext("add_key", locale=locale, namespace=namespace, key=key)
                    )
            written: dict[LocaleCode, str] = {}
            for locale in txn.locales:
                value = values.get(locale, "")
                set_path(txn.tree(locale), path, value)
                written[locale] = value
            entry = ChangeEntry.create(
                ChangeAction.ADD,
                locale=WILDCARD,
                namespace=namespace,
                key=key,
                old_value=None,
                new_value=baseline_value,
                author=author,
                source=source,
                locale_values=written,
            )
            txn.record(entry)
        logger.info("Added %s.%s to %d locale(s)", namespace, key, len(written))
        return entry

    @staticmethod
    def _check_free(tree: CatalogTree, path: KeyPath, context: ErrorContext) -> None:
        existing = get_path(tree, path)
        if isinstance(existing, str):
            msg = f"Key already exists: '{path}'"
            raise ConflictError(msg, context)
        if is_group(existing):
            msg = f"Key collides with an existing group: '{path}'"
            raise ConflictError(msg, context)
        prefix = leaf_prefix(tree, path)
        if prefix is not None:
            msg = f"Key collides with existing leaf '{prefix}'"
            raise ConflictError(msg, context)

    def update_key(
        self,
        locale: LocaleCode,
        namespace: Namespace,
        key: KeyPath,
        value: str,
        *,
        author: str = "system",
        source: ChangeSource = ChangeSource.MANUAL,
        expected_version: str | None = None,
    ) -> ChangeEntry:
        """Set one value in one non-baseline locale.

        Args:
            expected_version: Version token from CatalogStore.version(); the
                write fails with ConflictError if the file changed since.

        Raises:
            InvalidArgumentError: If locale is the baseline, key is malformed,
                value is not a string, key addresses a group, or a prefix
                of key holds a value
            NotFoundError: If locale or namespace does not exist
            ConflictError: If expected_version no longer matches
        """
        context = ErrorContext("update_key", locale=locale, namespace=namespace, key=key)
        self._refuse_baseline(locale, context)
        _check_namespace(namespace, context)
        _check_key(key, context)
        if not isinstance(value, str):
            msg = f"Value must be a string, got {type(value).__name__}"
            raise InvalidArgumentError(msg, context)

        versions = {locale: expected_version} if expected_version else None
        with self._store.transaction([locale], expected_versions=versions) as txn:
            tree = txn.tree(locale)
            if not is_group(tree.get(namespace)):
                msg = f"Namespace '{namespace}' does not exist in '{locale}'"
                raise NotFoundError(msg, context)
            path = join_path(namespace, key)
            old = get_path(tree, path)
            if is_group(old):
                msg = f"'{path}' is a group, not a translatable key"
                raise InvalidArgumentError(msg, context)
            prefix = leaf_prefix(tree, path)
            if prefix is not None:
                msg = f"'{path}' runs through the existing value '{prefix}'"
                raise InvalidArgumentError(msg, context)
            set_path(tree, path, value)
            entry = ChangeEntry.create(
                ChangeAction.UPDATE,
                locale=locale,
                namespace=namespace,
                key=key,
                old_value=old if isinstance(old, str) else None,
                new_value=value,
                author=author,
                source=source,
            )
            txn.record(entry)
        logger.info("Updated %s/%s.%s", locale, namespace, key)
        return entry

    def delete_key(
        self,
        namespace: Namespace,
        key: KeyPath,
        *,
        author: str = "system",
        source: ChangeSource = ChangeSource.MANUAL,
    ) -> ChangeEntry:
        """Remove a key from every locale that has it.

        Groups emptied by the removal are pruned; the namespace itself stays.

        Raises:
            InvalidArgumentError: If namespace/key is malformed
            NotFoundError: If no locale has the key
        """
        context = ErrorContext("delete_key", namespace=namespace, key=key)
        _check_namespace(namespace, context)
        _check_key(key, context)
        path = join_path(namespace, key)
        baseline = self._baseline()

        with self._store.transaction(self._store.locales()) as txn:
            removed: dict[LocaleCode, str] = {}
            for locale in txn.locales:
                tree = txn.tree(locale)
                old = get_path(tree, path)
                if isinstance(old, str):
                    delete_path(tree, path)
                    removed[locale] = old
            if not removed:
                msg = f"No locale has key '{path}'"
                raise NotFoundError(msg, context)
            entry = ChangeEntry.create(
                ChangeAction.DELETE,
                locale=WILDCARD,
                namespace=namespace,
                key=key,
                old_value=removed.get(baseline),
                new_value=None,
                author=author,
                source=source,
                locale_values=removed,
            )
            txn.record(entry)
        logger.info("Deleted %s from %d locale(s)", path, len(removed))
        return entry

    # ------------------------------------------------------------------------
    # Batch edits
    # ------------------------------------------------------------------------

    def bulk_update(
        self,
        locale: LocaleCode,
        updates: Iterable[KeyUpdate | tuple[str, str, str]],
        *,
        author: str = "system",
        source: ChangeSource = ChangeSource.BULK,
        create_namespaces: bool = False,
    ) -> BulkUpdateResult:
        """Apply many values to one non-baseline locale in one write.

        Items that cannot be applied (malformed key, missing namespace,
        group target, non-string value) are reported in the result; the
        rest are written together under one ledger entry. When nothing can
        be applied, nothing is written and no entry is recorded.

        Args:
            create_namespaces: Create a namespace missing from the locale
                when the baseline has it, instead of refusing the item

        Raises:
            InvalidArgumentError: If locale is the baseline or the batch
                exceeds the per-call limit
            NotFoundError: If locale does not exist
        """
        context = ErrorContext("bulk_update", locale=locale)
        self._refuse_baseline(locale, context)
        items = [item if isinstance(item, KeyUpdate) else KeyUpdate(*item) for item in updates]
        if len(items) > self._bulk_limit:
            msg = f"Too many updates: {len(items)} (limit {self._bulk_limit})"
            raise InvalidArgumentError(msg, context)

        baseline_tree = self._store.load(self._baseline()) if create_namespaces else {}
        applied: list[KeyUpdate] = []
        errors: list[BulkItemError] = []
        entries: list[ChangeEntry] = []

        with self._store.transaction([locale]) as txn:
            tree = txn.tree(locale)
            for item in items:
                reason = self._apply_item(tree, item, baseline_tree)
                if reason is None:
                    applied.append(item)
                else:
                    errors.append(BulkItemError(item.namespace, item.key, reason))
                    logger.debug("Bulk item %s.%s refused: %s", item.namespace, item.key, reason)
            if applied:
                namespaces = {item.namespace for item in applied}
                entry = ChangeEntry.create(
                    ChangeAction.BULK_UPDATE,
                    locale=locale,
                    namespace=namespaces.pop() if len(namespaces) == 1 else WILDCARD,
                    key=WILDCARD,
                    new_value=f"{len(applied)} key(s) updated",
                    author=author,
                    source=source,
                )
                txn.record(entry)
                entries.append(entry)

        logger.info(
            "Bulk update %s: %d applied, %d refused", locale, len(applied), len(errors)
        )
        return BulkUpdateResult(locale, tuple(applied), tuple(errors), tuple(entries))

    @staticmethod
    def _apply_item(tree: CatalogTree, item: KeyUpdate, baseline_tree: CatalogTree) -> str | None:
        """Write one bulk item into tree, or return why it was refused."""
        if not item.namespace or split_path(item.namespace) != (item.namespace,):
            return f"invalid namespace '{item.namespace}'"
        if not is_valid_path(item.key):
            return f"invalid key '{item.key}'"
        if not isinstance(item.value, str):
            return f"value must be a string, got {type(item.value).__name__}"
        if not is_group(tree.get(item.namespace)):
            if not is_group(baseline_tree.get(item.namespace)):
                return f"namespace '{item.namespace}' does not exist"
            tree[item.namespace] = {}
        path = join_path(item.namespace, item.key)
        if is_group(get_path(tree, path)):
            return f"'{path}' is a group"
        prefix = leaf_prefix(tree, path)
        if prefix is not None:
            return f"'{path}' runs through the existing value '{prefix}'"
        set_path(tree, path, item.value)
        return None

    def apply_translations(
        self,
        locale: LocaleCode,
        proposals: Iterable[KeyUpdate | TranslationProposal],
        *,
        author: str = "ai",
    ) -> BulkUpdateResult:
        """Commit reviewed translation proposals to locale.

        Proposals are anything with namespace, key and value attributes
        (TranslationProposal included). Large sets are written in several
        bulk updates of at most the per-call limit; the result merges them.
        """
        items = [KeyUpdate(p.namespace, p.key, p.value) for p in proposals]
        if not items:
            return BulkUpdateResult(locale, (), ())
        applied: list[KeyUpdate] = []
        errors: list[BulkItemError] = []
        entries: list[ChangeEntry] = []
        for start in range(0, len(items), self._bulk_limit):
            chunk = items[start : start + self._bulk_limit]
            result = self.bulk_update(
                locale, chunk, author=author, source=ChangeSource.AI, create_namespaces=True
            )
            applied.extend(result.applied)
            errors.extend(result.errors)
            entries.extend(result.entries)
        return BulkUpdateResult(locale, tuple(applied), tuple(errors), tuple(entries))

    # ------------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------------

    def lookup_key(self, namespace: Namespace, key: KeyPath | None = None) -> KeyLookup:
        """List a namespace's baseline keys, or one key's value in every locale.

        Raises:
            InvalidArgumentError: If namespace/key is malformed
            NotFoundError: If the baseline has no such namespace (or key)
        """
        baseline = self._baseline()
        context = ErrorContext("lookup_key", locale=baseline, namespace=namespace, key=key)
        _check_namespace(namespace, context)
        baseline_tree = self._store.load(baseline)
        group = baseline_tree.get(namespace)
        if not is_group(group):
            msg = f"Unknown namespace: '{namespace}'"
            raise NotFoundError(msg, context)
        if key is None:
            return KeyLookup(namespace, None, keys=tuple(sorted(leaf_map(group))))  # type: ignore[arg-type]

        _check_key(key, context)
        path = join_path(namespace, key)
        if not isinstance(get_path(baseline_tree, path), str):
            msg = f"Unknown key: '{path}'"
            raise NotFoundError(msg, context)
        values: dict[LocaleCode, str | None] = {}
        for locale in self._store.locales():
            node = get_path(self._store.load(locale), path)
            values[locale] = node if isinstance(node, str) else None
        return KeyLookup(namespace, key, values=values)
