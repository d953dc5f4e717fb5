"""Boundary facade: every externally callable catalog operation.

CatalogService wires the stores and engines for one workspace and
exposes them as plain method calls. Read operations are open; every
operation that writes, or that spends translation tokens, takes a
keyword ``credential`` that must match the configured admin token.
With no admin token configured, those operations are refused.

Example:
    >>> service = CatalogService(CatalogConfig(root=Path("."), admin_token="s3cret"))
    >>> service.get_coverage_report().summary.average_completion
    87.5
    >>> service.update_key("es", "Greeting", "hello", "Hola", credential="s3cret")

Python 3.13+.
"""

from __future__ import annotations

import hmac
import logging
import os
from typing import TYPE_CHECKING

from i18nvault.analysis.coverage import CoverageAnalyzer
from i18nvault.analysis.quality import QualityScanner
from i18nvault.config import CatalogConfig
from i18nvault.enums import ChangeSource, SeedStrategy
from i18nvault.errors import ErrorContext, InvalidArgumentError, UnauthorizedError
from i18nvault.operations.history import undo_change
from i18nvault.operations.lifecycle import LocaleManager
from i18nvault.operations.mutations import CatalogEditor
from i18nvault.operations.rollback import RollbackEngine
from i18nvault.operations.transfer import CatalogTransfer, ExportFilter
from i18nvault.storage.catalog import CatalogStore
from i18nvault.storage.changelog import ChangelogLedger
from i18nvault.storage.settings import SettingsStore
from i18nvault.storage.snapshots import SnapshotStore
from i18nvault.translation.client import AnthropicCompletionClient
from i18nvault.translation.pipeline import BatchTranslator
from i18nvault.translation.prompts import PromptBuilder

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping
    from pathlib import Path

    from i18nvault.analysis.coverage import CoverageReport
    from i18nvault.analysis.quality import QualityReport
    from i18nvault.core.types import KeyPath, LocaleCode, Namespace
    from i18nvault.enums import ChangeAction, ExportFormat, ImportFormat
    from i18nvault.operations.lifecycle import ArchivedLocale, LocaleAddResult
    from i18nvault.operations.mutations import BulkUpdateResult, KeyLookup, KeyUpdate
    from i18nvault.operations.rollback import RollbackDiff, RollbackResult
    from i18nvault.operations.transfer import ExportResult, ImportResult
    from i18nvault.storage.changelog import ChangeEntry, ChangelogPage
    from i18nvault.storage.settings import LocaleInfo, LocaleSettings
    from i18nvault.storage.snapshots import SnapshotInfo
    from i18nvault.translation.client import CompletionClient
    from i18nvault.translation.pipeline import TranslationProposal, TranslationResult

logger = logging.getLogger(__name__)

__all__ = ["CatalogService"]


class CatalogService:
    """All catalog operations for one workspace.

    Args:
        config: Workspace configuration
        client: Translation model client; translation operations and the
            ai-seed strategy are unavailable without one
        pages: Explicit {route: namespaces} consumer map, overriding the
            source-tree scan
    """

    def __init__(
        self,
        config: CatalogConfig,
        *,
        client: CompletionClient | None = None,
        pages: Mapping[str, Iterable[Namespace]] | None = None,
    ) -> None:
        self.config = config
        self.ledger = ChangelogLedger(config.changelog_path, limit=config.changelog_limit)
        self.store = CatalogStore(config.messages_path, self.ledger)
        self.snapshots = SnapshotStore(
            config.versions_path, self.store, limit=config.snapshot_limit
        )
        self.settings = SettingsStore(
            config.settings_path, fallback_default=config.default_locale
        )
        self.translator = (
            BatchTranslator(
                self.store,
                client,
                baseline=self._baseline,
                batch_size=config.translation_batch_size,
                prompts=PromptBuilder(config.app_name),
            )
            if client is not None
            else None
        )
        self.locales = LocaleManager(
            self.store,
            self.settings,
            archive_path=config.archive_path,
            translator=self.translator,
        )
        self.editor = CatalogEditor(
            self.store, baseline=self._baseline, bulk_limit=config.bulk_update_limit
        )
        self.transfer = CatalogTransfer(self.store, self.snapshots, baseline=self._baseline)
        self.rollback = RollbackEngine(
            self.store, self.snapshots, example_limit=config.rollback_example_limit
        )
        self.coverage = CoverageAnalyzer(
            self.store, pages=pages, source_root=config.source_path
        )
        self.quality = QualityScanner(self.store)

    @classmethod
    def from_env(cls, root: Path | str | None = None) -> CatalogService:
        """Service configured from I18NVAULT_* variables.

        An Anthropic client is attached when ANTHROPIC_API_KEY is set.
        """
        config = CatalogConfig.from_env(root)
        client = None
        if os.getenv("ANTHROPIC_API_KEY"):
            client = AnthropicCompletionClient(
                model=config.translation_model,
                max_tokens=config.max_tokens,
                timeout=config.translation_timeout,
            )
        return cls(config, client=client)

    def _baseline(self) -> LocaleCode:
        return self.locales.default_locale()

    def _authorize(self, credential: str | None, operation: str) -> None:
        """Check credential against the admin token in constant time.

        Raises:
            UnauthorizedError: If no token is configured, or credential is
                missing or wrong
        """
        context = ErrorContext(operation)
        token = self.config.admin_token
        if not token:
            msg = f"'{operation}' refused: no admin token is configured"
            raise UnauthorizedError(msg, context)
        if credential is None or not hmac.compare_digest(
            credential.encode("utf-8"), token.encode("utf-8")
        ):
            logger.warning("Rejected unauthorized call to %s", operation)
            msg = f"'{operation}' requires a valid admin credential"
            raise UnauthorizedError(msg, context)

    def _require_translator(self, operation: str) -> BatchTranslator:
        if self.translator is None:
            msg = "No translation client is configured"
            raise InvalidArgumentError(msg, ErrorContext(operation))
        return self.translator

    # ------------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------------

    def get_coverage_report(self) -> CoverageReport:
        """Coverage of every locale against the baseline."""
        return self.coverage.report(self._baseline())

    def lookup_key(self, namespace: Namespace, key: KeyPath | None = None) -> KeyLookup:
        """Keys of a namespace, or one key's value in every locale."""
        return self.editor.lookup_key(namespace, key)

    def run_quality_scan(
        self,
        *,
        locales: Collection[LocaleCode] | None = None,
        namespaces: Collection[Namespace] | None = None,
    ) -> QualityReport:
        """Structural checks of every translation."""
        return self.quality.scan(self._baseline(), locales=locales, namespaces=namespaces)

    def catalog_version(self, locale: LocaleCode) -> str:
        """Version token to pass back as update_key(expected_version=...)."""
        return self.store.version(locale)

    def export_catalog(
        self, fmt: ExportFormat | str, export_filter: ExportFilter | None = None
    ) -> ExportResult:
        """Serialize the key matrix as json, csv or xliff."""
        return self.transfer.export(fmt, export_filter or ExportFilter())

    def list_snapshots(self, locale: LocaleCode | None = None) -> tuple[SnapshotInfo, ...]:
        """Snapshot metadata, newest first."""
        return self.snapshots.list(locale)

    def preview_rollback(self, filename: str) -> RollbackDiff:
        """Diff a rollback to filename would apply."""
        return self.rollback.preview(filename)

    def list_locales(self) -> tuple[LocaleInfo, ...]:
        """Every live locale with label and flags."""
        return self.locales.list_locales()

    def list_archived_locales(self) -> tuple[ArchivedLocale, ...]:
        """Archived locale catalogs, newest first."""
        return self.locales.list_archived()

    def get_changelog(
        self,
        *,
        locale: LocaleCode | None = None,
        namespace: Namespace | None = None,
        action: ChangeAction | str | None = None,
        source: ChangeSource | str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> ChangelogPage:
        """Filtered, paginated ledger entries plus counts."""
        return self.ledger.query(
            locale=locale,
            namespace=namespace,
            action=action,
            source=source,
            limit=limit,
            offset=offset,
        )

    # ------------------------------------------------------------------------
    # Key edits
    # ------------------------------------------------------------------------

    def add_key(
        self,
        namespace: Namespace,
        key: KeyPath,
        values: Mapping[LocaleCode, str],
        *,
        credential: str | None = None,
        author: str = "admin",
    ) -> ChangeEntry:
        """Add a key to every locale."""
        self._authorize(credential, "add_key")
        return self.editor.add_key(namespace, key, values, author=author)

    def update_key(
        self,
        locale: LocaleCode,
        namespace: Namespace,
        key: KeyPath,
        value: str,
        *,
        credential: str | None = None,
        author: str = "admin",
        expected_version: str | None = None,
    ) -> ChangeEntry:
        """Change one value in one non-baseline locale."""
        self._authorize(credential, "update_key")
        return self.editor.update_key(
            locale, namespace, key, value, author=author, expected_version=expected_version
        )

    def delete_key(
        self,
        namespace: Namespace,
        key: KeyPath,
        *,
        credential: str | None = None,
        author: str = "admin",
    ) -> ChangeEntry:
        """Remove a key from every locale."""
        self._authorize(credential, "delete_key")
        return self.editor.delete_key(namespace, key, author=author)

    def bulk_update(
        self,
        locale: LocaleCode,
        updates: Iterable[KeyUpdate | tuple[str, str, str]],
        *,
        credential: str | None = None,
        author: str = "admin",
    ) -> BulkUpdateResult:
        """Apply many values to one locale; per-item errors are collected."""
        self._authorize(credential, "bulk_update")
        return self.editor.bulk_update(locale, updates, author=author)

    def undo_change(
        self, entry_id: str, *, credential: str | None = None, author: str = "admin"
    ) -> ChangeEntry:
        """Reverse one update/add/delete ledger entry."""
        self._authorize(credential, "undo_change")
        return undo_change(self.store, entry_id, author=author)

    # ------------------------------------------------------------------------
    # Import / snapshots / rollback
    # ------------------------------------------------------------------------

    def import_catalog(
        self,
        fmt: ImportFormat | str,
        content: bytes | str,
        *,
        preview: bool = True,
        credential: str | None = None,
        author: str = "admin",
    ) -> ImportResult:
        """Classify an import; apply it when preview is False (credential required)."""
        if not preview:
            self._authorize(credential, "import_catalog")
        return self.transfer.import_catalog(fmt, content, preview=preview, author=author)

    def create_snapshot(
        self, locale: LocaleCode | None = None, *, credential: str | None = None
    ) -> tuple[SnapshotInfo, ...]:
        """Snapshot one locale, or every locale."""
        self._authorize(credential, "create_snapshot")
        return self.snapshots.create(locale)

    def apply_rollback(
        self, filename: str, *, credential: str | None = None, author: str = "admin"
    ) -> RollbackResult:
        """Restore a locale from a snapshot (after backing up the current state)."""
        self._authorize(credential, "apply_rollback")
        return self.rollback.apply(filename, author=author)

    # ------------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------------

    def translate_key(
        self,
        namespace: Namespace,
        key: KeyPath,
        target: LocaleCode,
        *,
        credential: str | None = None,
    ) -> TranslationResult:
        """Propose a translation for one key."""
        self._authorize(credential, "translate_key")
        return self._require_translator("translate_key").translate_key(namespace, key, target)

    def translate_missing(
        self,
        target: LocaleCode,
        namespaces: Collection[Namespace] | None = None,
        *,
        credential: str | None = None,
    ) -> TranslationResult:
        """Propose translations for every key target lacks."""
        self._authorize(credential, "translate_missing")
        return self._require_translator("translate_missing").translate_missing(
            target, namespaces
        )

    def translate_namespace(
        self,
        namespace: Namespace,
        targets: Iterable[LocaleCode],
        *,
        credential: str | None = None,
    ) -> dict[LocaleCode, TranslationResult]:
        """Propose translations of a whole namespace for several locales."""
        self._authorize(credential, "translate_namespace")
        return self._require_translator("translate_namespace").translate_namespace(
            namespace, targets
        )

    def apply_translations(
        self,
        locale: LocaleCode,
        proposals: Iterable[TranslationProposal],
        *,
        credential: str | None = None,
        author: str = "ai",
    ) -> BulkUpdateResult:
        """Commit reviewed proposals."""
        self._authorize(credential, "apply_translations")
        return self.editor.apply_translations(locale, proposals, author=author)

    # ------------------------------------------------------------------------
    # Locale lifecycle
    # ------------------------------------------------------------------------

    def add_locale(
        self,
        code: LocaleCode,
        label: str | None = None,
        strategy: SeedStrategy | str = SeedStrategy.CLONE_EMPTY,
        *,
        credential: str | None = None,
        author: str = "admin",
    ) -> LocaleAddResult:
        """Create a new (disabled) locale."""
        self._authorize(credential, "add_locale")
        return self.locales.add_locale(code, label, strategy, author=author)

    def remove_locale(
        self,
        code: LocaleCode,
        confirmation: str | None = None,
        *,
        credential: str | None = None,
        author: str = "admin",
    ) -> ChangeEntry:
        """Archive a locale; confirmation must repeat its code or name."""
        self._authorize(credential, "remove_locale")
        return self.locales.remove_locale(code, confirmation, author=author)

    def restore_locale(
        self, archive_name: str, *, credential: str | None = None, author: str = "admin"
    ) -> LocaleInfo:
        """Bring an archived locale back."""
        self._authorize(credential, "restore_locale")
        return self.locales.restore_locale(archive_name, author=author)

    def set_default_locale(
        self, code: LocaleCode, *, credential: str | None = None
    ) -> LocaleSettings:
        """Make code the baseline locale."""
        self._authorize(credential, "set_default_locale")
        return self.locales.set_default(code)

    def toggle_locale_enabled(
        self,
        code: LocaleCode,
        enabled: bool | None = None,
        *,
        credential: str | None = None,
    ) -> LocaleInfo:
        """Set or flip a locale's enabled flag."""
        self._authorize(credential, "toggle_locale_enabled")
        return self.locales.toggle_enabled(code, enabled)
