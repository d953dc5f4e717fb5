"""Locale lifecycle: add, archive, restore, default and enabled flags.

Locales are never hard-deleted. Removing one moves its catalog into the
archive directory as ``{locale}_{timestamp}.json``, where it is no longer
discovered as a locale but can be restored.

Python 3.13+.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from i18nvault.constants import CATALOG_SUFFIX
from i18nvault.core.paths import mirror_tree, set_path
from i18nvault.enums import ChangeAction, ChangeSource, SeedStrategy
from i18nvault.errors import (
    ConflictError,
    ErrorContext,
    InvalidArgumentError,
    NotFoundError,
    UnsupportedError,
)
from i18nvault.locale_utils import canonicalize_locale, is_catalog_locale, locale_display_name
from i18nvault.storage.changelog import ChangeEntry
from i18nvault.storage.files import format_timestamp, utc_now
from i18nvault.storage.snapshots import parse_snapshot_name

if TYPE_CHECKING:
    from pathlib import Path

    from i18nvault.core.types import CatalogTree, LocaleCode
    from i18nvault.storage.catalog import CatalogStore
    from i18nvault.storage.settings import LocaleInfo, LocaleSettings, SettingsStore
    from i18nvault.translation.pipeline import BatchTranslator, TranslationResult

logger = logging.getLogger(__name__)

__all__ = ["ArchivedLocale", "LocaleAddResult", "LocaleManager"]


@dataclass(frozen=True, slots=True)
class ArchivedLocale:
    """An archived catalog that can be restored."""

    filename: str
    locale: LocaleCode
    archived_at: datetime
    size: int

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "filename": self.filename,
            "locale": self.locale,
            "archivedAt": self.archived_at.isoformat(),
            "size": self.size,
        }


@dataclass(frozen=True, slots=True)
class LocaleAddResult:
    """Outcome of add_locale.

    Attributes:
        locale: Settings of the new locale (disabled until reviewed)
        entry: The locale_add ledger entry
        translation: Pipeline output for ai-seed, else None
    """

    locale: LocaleInfo
    entry: ChangeEntry
    translation: TranslationResult | None = None

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "locale": self.locale.to_dict(),
            "entryId": self.entry.id,
            "translation": self.translation.to_dict() if self.translation else None,
        }


class LocaleManager:
    """Creates, archives and configures locales.

    Args:
        store: Catalog store
        settings: Locale settings store
        archive_path: Directory receiving archived catalogs
        translator: Pipeline used by the ai-seed strategy (optional)
    """

    __slots__ = ("_archive", "_settings", "_store", "_translator")

    def __init__(
        self,
        store: CatalogStore,
        settings: SettingsStore,
        *,
        archive_path: Path,
        translator: BatchTranslator | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._archive = archive_path
        self._translator = translator

    # ------------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------------

    def settings(self) -> LocaleSettings:
        """Current settings, reconciled with the catalogs on disk."""
        return self._settings.load(self._store.locales())

    def default_locale(self) -> LocaleCode:
        """Current baseline locale."""
        return self.settings().default_locale

    def list_locales(self) -> tuple[LocaleInfo, ...]:
        """Every live locale with its label and flags."""
        return self.settings().locales

    def _info(self, code: LocaleCode, operation: str) -> LocaleInfo:
        info = self.settings().get(code)
        if info is None:
            msg = f"Unknown locale: '{code}'"
            raise NotFoundError(msg, ErrorContext(operation, locale=code))
        return info

    def list_archived(self) -> tuple[ArchivedLocale, ...]:
        """Archived catalogs, newest first."""
        if not self._archive.is_dir():
            return ()
        found: list[ArchivedLocale] = []
        for path in self._archive.glob(f"*{CATALOG_SUFFIX}"):
            parsed = parse_snapshot_name(path.name)
            if parsed is None or not path.is_file():
                continue
            found.append(ArchivedLocale(path.name, parsed[0], parsed[1], path.stat().st_size))
        found.sort(key=lambda item: (item.archived_at, item.filename), reverse=True)
        return tuple(found)

    # ------------------------------------------------------------------------
    # Add / remove / restore
    # ------------------------------------------------------------------------

    def add_locale(
        self,
        code: LocaleCode,
        label: str | None = None,
        strategy: SeedStrategy | str = SeedStrategy.CLONE_EMPTY,
        *,
        author: str = "system",
    ) -> LocaleAddResult:
        """Create a new locale catalog. The locale starts disabled.

        Strategies:
            clone-empty   baseline structure with every value ""
            ai-seed       clone-empty filled with model translations
            import-later  empty catalog {}

        Raises:
            InvalidArgumentError: If code is not a locale code, strategy is
                unknown, or ai-seed is requested without a translator
            ConflictError: If the locale already exists
        """
        context = ErrorContext("add_locale", locale=code)
        if not is_catalog_locale(code):
            msg = f"Not a locale code: '{code}'"
            raise InvalidArgumentError(msg, context)
        code = canonicalize_locale(code)
        try:
            strategy = SeedStrategy(strategy)
        except ValueError:
            msg = f"Unknown seed strategy: '{strategy}'"
            raise InvalidArgumentError(msg, context) from None
        if strategy is SeedStrategy.AI_SEED and self._translator is None:
            msg = "The ai-seed strategy needs a configured translation client"
            raise InvalidArgumentError(msg, context)

        existing = {locale.lower(): locale for locale in self._store.locales()}
        if code.lower() in existing:
            msg = f"Locale already exists: '{existing[code.lower()]}'"
            raise ConflictError(msg, context)

        baseline = self.default_locale()
        translation: TranslationResult | None = None
        match strategy:
            case SeedStrategy.IMPORT_LATER:
                tree: CatalogTree = {}
            case SeedStrategy.CLONE_EMPTY:
                tree = mirror_tree(self._store.load(baseline))
            case _:
                tree = mirror_tree(self._store.load(baseline))
                translation = self._translator.translate_all(code)  # type: ignore[union-attr]
                for proposal in translation.proposals:
                    set_path(tree, f"{proposal.namespace}.{proposal.key}", proposal.value)

        label = label.strip() if label and label.strip() else locale_display_name(code)
        with self._store.transaction([code], allow_create=True) as txn:
            if txn.existed(code):
                msg = f"Locale already exists: '{code}'"
                raise ConflictError(msg, context)
            txn.replace(code, tree)
            entry = ChangeEntry.create(
                ChangeAction.LOCALE_ADD,
                locale=code,
                new_value=f"{label} ({strategy})",
                author=author,
                source=ChangeSource.AI if translation is not None else ChangeSource.SYSTEM,
            )
            txn.record(entry)

        updated = self._settings.update(self._store.locales(), code, label=label, enabled=False)
        info = updated.get(code)
        logger.info("Added locale %s (%s) with strategy %s", code, label, strategy)
        return LocaleAddResult(locale=info, entry=entry, translation=translation)  # type: ignore[arg-type]

    def remove_locale(
        self,
        code: LocaleCode,
        confirmation: str | None = None,
        *,
        author: str = "system",
    ) -> ChangeEntry:
        """Archive a locale's catalog.

        Args:
            confirmation: Must repeat the locale code or its label

        Raises:
            NotFoundError: If the locale does not exist
            UnsupportedError: If the locale is the default
            InvalidArgumentError: If confirmation does not match
        """
        context = ErrorContext("remove_locale", locale=code)
        current = self.settings()
        info = current.get(code)
        if info is None:
            msg = f"Unknown locale: '{code}'"
            raise NotFoundError(msg, context)
        if code == current.default_locale:
            msg = f"The default locale '{code}' cannot be removed"
            raise UnsupportedError(msg, context)
        answer = (confirmation or "").strip().casefold()
        if answer not in {code.casefold(), info.label.casefold()}:
            msg = f"Confirmation must repeat the locale code '{code}' or its name '{info.label}'"
            raise InvalidArgumentError(msg, context)

        destination = self._archive / f"{code}_{format_timestamp(utc_now())}{CATALOG_SUFFIX}"
        entry = ChangeEntry.create(
            ChangeAction.LOCALE_REMOVE,
            locale=code,
            old_value=info.label,
            new_value=f"Archived as {destination.name}",
            author=author,
            source=ChangeSource.SYSTEM,
        )
        self._store.move_out(code, destination, entry)
        logger.info("Archived locale %s as %s", code, destination.name)
        return entry

    def restore_locale(self, archive_name: str, *, author: str = "system") -> LocaleInfo:
        """Move an archived catalog back into service.

        Raises:
            InvalidArgumentError: If archive_name is malformed or the file
                is not a valid catalog
            NotFoundError: If no such archive exists
            ConflictError: If the locale already has a live catalog
        """
        context = ErrorContext("restore_locale", key=archive_name)
        if "/" in archive_name or "\\" in archive_name or ".." in archive_name:
            msg = f"Path components not allowed in archive name: '{archive_name}'"
            raise InvalidArgumentError(msg, context)
        parsed = parse_snapshot_name(archive_name)
        if parsed is None:
            msg = f"Not an archive name (expected '{{locale}}_{{timestamp}}.json'): '{archive_name}'"
            raise InvalidArgumentError(msg, context)
        code = parsed[0]
        entry = ChangeEntry.create(
            ChangeAction.LOCALE_RESTORE,
            locale=code,
            new_value=f"Restored from {archive_name}",
            author=author,
            source=ChangeSource.SYSTEM,
        )
        self._store.move_in(self._archive / archive_name, code, entry)
        logger.info("Restored locale %s from %s", code, archive_name)
        return self._info(code, "restore_locale")

    # ------------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------------

    def set_default(self, code: LocaleCode) -> LocaleSettings:
        """Make code the default (baseline) locale; it is enabled as well.

        Raises:
            NotFoundError: If the locale does not exist
        """
        updated = self._settings.update(self._store.locales(), code, make_default=True)
        logger.info("Default locale is now %s", code)
        return updated

    def toggle_enabled(self, code: LocaleCode, enabled: bool | None = None) -> LocaleInfo:
        """Set (or flip, when enabled is None) a locale's enabled flag.

        Raises:
            NotFoundError: If the locale does not exist
            UnsupportedError: If this would disable the default locale
        """
        with self._settings.lock:
            current = self.settings()
            info = current.get(code)
            if info is None:
                msg = f"Unknown locale: '{code}'"
                raise NotFoundError(msg, ErrorContext("toggle_enabled", locale=code))
            target = (not info.enabled) if enabled is None else enabled
            if not target and code == current.default_locale:
                msg = f"The default locale '{code}' cannot be disabled"
                raise UnsupportedError(msg, ErrorContext("toggle_enabled", locale=code))
            updated = self._settings.update(self._store.locales(), code, enabled=target)
        logger.info("Locale %s %s", code, "enabled" if target else "disabled")
        return updated.get(code)  # type: ignore[return-value]
