"""Catalog store: one JSON tree per locale in a messages directory.

The set of locales is whatever ``{locale}.json`` files exist; there is no
static list. Every write goes through a CatalogTransaction, which

1. takes the per-locale locks (sorted order) for every locale it touches,
2. optionally checks caller-supplied version tokens (SHA-256 of file bytes),
3. hands out freshly parsed trees for in-memory mutation,
4. on clean exit, stages every changed file, renames them into place, and
   appends the ledger entries recorded during the transaction.

A transaction that changes a file must record at least one ledger entry;
this pairs every committed write with history.

Python 3.13+.
"""

from __future__ import annotations

import contextlib
import copy
import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from i18nvault.constants import CATALOG_SUFFIX
from i18nvault.core.locks import LocaleLockRegistry
from i18nvault.core.paths import leaf_map
from i18nvault.errors import ConflictError, ErrorContext, InvalidArgumentError, NotFoundError
from i18nvault.locale_utils import is_catalog_locale
from i18nvault.storage.files import content_hash, dump_json, stage_bytes

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable, Mapping

    from i18nvault.core.types import CatalogTree, LocaleCode
    from i18nvault.storage.changelog import ChangeEntry, ChangelogLedger

logger = logging.getLogger(__name__)

__all__ = ["CatalogStore", "CatalogTransaction", "validate_tree"]


def validate_tree(tree: object, locale: str) -> CatalogTree:
    """Check that tree is a JSON object whose leaves are all strings.

    Raises:
        InvalidArgumentError: Naming the first offending path
    """
    context = ErrorContext("catalog.validate", locale=locale)
    if not isinstance(tree, dict):
        msg = f"Catalog for '{locale}' must be a JSON object"
        raise InvalidArgumentError(msg, context)

    stack: list[tuple[str, dict[str, object]]] = [("", tree)]
    while stack:
        prefix, node = stack.pop()
        for key, child in node.items():
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(child, dict):
                stack.append((path, child))
            elif not isinstance(child, str):
                msg = (
                    f"Catalog for '{locale}' has a non-string value at '{path}': "
                    f"{type(child).__name__}"
                )
                raise InvalidArgumentError(msg, context)
    return tree  # type: ignore[return-value]


class CatalogTransaction:
    """Mutable view over the locked catalogs of one transaction.

    Obtained from CatalogStore.transaction(); not constructed directly.
    """

    __slots__ = ("_entries", "_existed", "_originals", "_trees")

    def __init__(self, trees: dict[LocaleCode, CatalogTree], existed: set[LocaleCode]) -> None:
        self._trees = trees
        self._originals = copy.deepcopy(trees)
        self._existed = existed
        self._entries: list[ChangeEntry] = []

    @property
    def locales(self) -> tuple[LocaleCode, ...]:
        """Locales held by this transaction, sorted."""
        return tuple(sorted(self._trees))

    def tree(self, locale: LocaleCode) -> CatalogTree:
        """The working tree for locale; mutate it in place.

        Raises:
            KeyError: If locale was not part of the transaction
        """
        return self._trees[locale]

    def replace(self, locale: LocaleCode, tree: CatalogTree) -> None:
        """Replace the working tree for locale wholesale."""
        if locale not in self._trees:
            msg = f"Locale '{locale}' is not part of this transaction"
            raise KeyError(msg)
        self._trees[locale] = tree

    def existed(self, locale: LocaleCode) -> bool:
        """Whether locale's file existed when the transaction began."""
        return locale in self._existed

    def record(self, entry: ChangeEntry) -> None:
        """Queue a ledger entry to be appended on commit."""
        self._entries.append(entry)

    @property
    def entries(self) -> tuple[ChangeEntry, ...]:
        """Entries recorded so far."""
        return tuple(self._entries)

    def changed_locales(self) -> tuple[LocaleCode, ...]:
        """Locales whose tree differs from the file (or whose file is new)."""
        return tuple(
            locale
            for locale in self.locales
            if locale not in self._existed or self._trees[locale] != self._originals[locale]
        )


class CatalogStore:
    """Loads and persists one catalog tree per locale.

    Reads are lock-free full-file parses: files are only ever replaced by
    rename, so a reader sees either the old or the new content. Writers
    serialize per locale through the lock registry.

    Example:
        >>> store = CatalogStore(Path("messages"), ledger)
        >>> store.locales()
        ('en', 'es', 'fr')
        >>> with store.transaction(["es"]) as txn:
        ...     set_path(txn.tree("es"), "Greeting.hello", "Hola")
        ...     txn.record(ChangeEntry.create(ChangeAction.UPDATE, locale="es", ...))
    """

    __slots__ = ("_ledger", "_locks", "_root")

    def __init__(self, messages_path: Path, ledger: ChangelogLedger) -> None:
        self._root = messages_path
        self._ledger = ledger
        self._locks = LocaleLockRegistry()

    @property
    def root(self) -> Path:
        """Messages directory."""
        return self._root

    @property
    def ledger(self) -> ChangelogLedger:
        """Ledger receiving the entries of committed transactions."""
        return self._ledger

    @property
    def locks(self) -> LocaleLockRegistry:
        """Per-locale lock registry (shared with the lifecycle manager)."""
        return self._locks

    @staticmethod
    def _validate_locale(locale: LocaleCode) -> None:
        """Reject locale codes that are unsafe as file names.

        Raises:
            InvalidArgumentError: If locale is empty or contains path components
        """
        context = ErrorContext("catalog.path", locale=locale)
        if not locale:
            msg = "Locale code cannot be empty"
            raise InvalidArgumentError(msg, context)
        if ".." in locale or "/" in locale or "\\" in locale:
            msg = f"Path components not allowed in locale: '{locale}'"
            raise InvalidArgumentError(msg, context)

    def path_for(self, locale: LocaleCode) -> Path:
        """File backing locale's catalog (may not exist)."""
        self._validate_locale(locale)
        return self._root / f"{locale}{CATALOG_SUFFIX}"

    def locales(self) -> tuple[LocaleCode, ...]:
        """Locale codes discovered from catalog files, sorted."""
        if not self._root.is_dir():
            return ()
        found: list[LocaleCode] = []
        for path in self._root.glob(f"*{CATALOG_SUFFIX}"):
            if path.name.startswith(".") or not path.is_file():
                continue
            if not is_catalog_locale(path.stem):
                logger.debug("Ignoring non-locale file in messages directory: %s", path.name)
                continue
            found.append(path.stem)
        return tuple(sorted(found))

    def exists(self, locale: LocaleCode) -> bool:
        """Whether locale has a catalog file."""
        return self.path_for(locale).is_file()

    def read_bytes(self, locale: LocaleCode) -> bytes:
        """Raw file content for locale.

        Raises:
            NotFoundError: If locale has no catalog file
        """
        try:
            return self.path_for(locale).read_bytes()
        except FileNotFoundError as e:
            msg = f"Unknown locale: '{locale}'"
            raise NotFoundError(msg, ErrorContext("catalog.load", locale=locale)) from e

    @staticmethod
    def parse(data: bytes, locale: LocaleCode) -> CatalogTree:
        """Parse and validate catalog bytes.

        Raises:
            InvalidArgumentError: If data is not a JSON object of string leaves
        """
        try:
            raw = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            msg = f"Catalog for '{locale}' is not valid UTF-8 JSON: {e}"
            raise InvalidArgumentError(msg, ErrorContext("catalog.load", locale=locale)) from e
        return validate_tree(raw, locale)

    def load(self, locale: LocaleCode) -> CatalogTree:
        """Parse locale's catalog from disk (fresh copy on every call).

        Raises:
            NotFoundError: If locale has no catalog file
            InvalidArgumentError: If the file is malformed
        """
        return self.parse(self.read_bytes(locale), locale)

    def load_all(self) -> dict[LocaleCode, CatalogTree]:
        """Parse every discovered locale."""
        return {locale: self.load(locale) for locale in self.locales()}

    def leaves(self, locale: LocaleCode) -> dict[str, str]:
        """Flat {dot.path: value} view of locale's catalog."""
        return leaf_map(self.load(locale))

    def version(self, locale: LocaleCode) -> str:
        """Optimistic-concurrency token for locale: SHA-256 of the file bytes.

        Raises:
            NotFoundError: If locale has no catalog file
        """
        return content_hash(self.read_bytes(locale))

    @contextmanager
    def transaction(
        self,
        locales: Iterable[LocaleCode],
        *,
        expected_versions: Mapping[LocaleCode, str] | None = None,
        allow_create: bool = False,
    ) -> Generator[CatalogTransaction]:
        """Lock, load, mutate and commit one or more locale catalogs.

        Args:
            locales: Locales the transaction may read and write
            expected_versions: Version tokens the caller read earlier. A
                mismatch means another writer got in first.
            allow_create: Start missing locales from an empty tree instead
                of raising NotFoundError.

        Raises:
            NotFoundError: If a locale is missing and allow_create is False
            ConflictError: If a file changed since its expected version
            RuntimeError: If files changed but no ledger entry was recorded
        """
        requested = list(locales)
        for locale in requested:
            self._validate_locale(locale)

        with self._locks.hold(requested) as held:
            trees: dict[LocaleCode, CatalogTree] = {}
            existed: set[LocaleCode] = set()
            for locale in held:
                path = self.path_for(locale)
                if path.is_file():
                    data = path.read_bytes()
                    if expected_versions and locale in expected_versions:
                        actual = content_hash(data)
                        if actual != expected_versions[locale]:
                            msg = (
                                f"Catalog '{locale}' changed since it was read "
                                f"(expected {expected_versions[locale][:12]}, found {actual[:12]})"
                            )
                            raise ConflictError(
                                msg, ErrorContext("catalog.transaction", locale=locale)
                            )
                    trees[locale] = self.parse(data, locale)
                    existed.add(locale)
                elif allow_create:
                    trees[locale] = {}
                else:
                    msg = f"Unknown locale: '{locale}'"
                    raise NotFoundError(msg, ErrorContext("catalog.transaction", locale=locale))

            txn = CatalogTransaction(trees, existed)
            yield txn
            self._commit(txn)

    def _commit(self, txn: CatalogTransaction) -> None:
        changed = txn.changed_locales()
        entries = txn.entries
        if changed and not entries:
            msg = f"Refusing to write {', '.join(changed)} without a changelog entry"
            raise RuntimeError(msg)

        staged: list[tuple[Path, Path]] = []
        try:
            for locale in changed:
                tree = validate_tree(txn.tree(locale), locale)
                target = self.path_for(locale)
                staged.append((stage_bytes(target, dump_json(tree)), target))
        except BaseException:
            for temp, _ in staged:
                with contextlib.suppress(FileNotFoundError):
                    temp.unlink()
            raise

        for temp, target in staged:
            os.replace(temp, target)
        if entries:
            self._ledger.append(*entries)
        if changed:
            logger.info(
                "Committed %d catalog(s) [%s] with %d changelog entr%s",
                len(changed), ", ".join(changed), len(entries),
                "y" if len(entries) == 1 else "ies",
            )

    def write(self, locale: LocaleCode, tree: CatalogTree, entry: ChangeEntry) -> None:
        """Replace locale's whole catalog (last writer wins) and log entry.

        Raises:
            NotFoundError: If locale has no catalog file
        """
        with self.transaction([locale]) as txn:
            txn.replace(locale, tree)
            txn.record(entry)

    def move_out(self, locale: LocaleCode, destination: Path, entry: ChangeEntry) -> None:
        """Move locale's file to destination (archival) and log entry.

        Raises:
            NotFoundError: If locale has no catalog file
            ConflictError: If destination already exists
        """
        with self._locks.hold([locale]):
            source = self.path_for(locale)
            if not source.is_file():
                msg = f"Unknown locale: '{locale}'"
                raise NotFoundError(msg, ErrorContext("catalog.archive", locale=locale))
            if destination.exists():
                msg = f"Archive target already exists: {destination.name}"
                raise ConflictError(msg, ErrorContext("catalog.archive", locale=locale))
            destination.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, destination)
            self._ledger.append(entry)
        logger.info("Moved catalog '%s' to %s", locale, destination)

    def move_in(self, source: Path, locale: LocaleCode, entry: ChangeEntry) -> None:
        """Move an external catalog file into place as locale (restore) and log entry.

        Raises:
            NotFoundError: If source does not exist
            ConflictError: If locale already has a catalog file
            InvalidArgumentError: If source is not a valid catalog
        """
        with self._locks.hold([locale]):
            target = self.path_for(locale)
            context = ErrorContext("catalog.restore", locale=locale, key=source.name)
            if not source.is_file():
                msg = f"Archived catalog not found: {source.name}"
                raise NotFoundError(msg, context)
            if target.exists():
                msg = f"Locale '{locale}' already has a catalog"
                raise ConflictError(msg, context)
            self.parse(source.read_bytes(), locale)
            self._root.mkdir(parents=True, exist_ok=True)
            os.replace(source, target)
            self._ledger.append(entry)
        logger.info("Restored catalog '%s' from %s", locale, source.name)
