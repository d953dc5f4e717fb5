"""Batch translation of baseline strings into target locales.

The pipeline proposes; it never writes. Callers review the proposals and
commit them through CatalogEditor.apply_translations.

Baseline entries are chunked into batches and sent one request per batch.
Batches for one locale run sequentially; different locales run in
parallel on a thread pool. A failed or timed-out request is recorded as a
BatchFailure and contributes no translations; lines the model garbles are
dropped and their keys reported as unresolved. Nothing is retried.

Python 3.13+.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from i18nvault.constants import DEFAULT_BATCH_SIZE
from i18nvault.core.paths import get_path, join_path, namespace_leaves
from i18nvault.errors import (
    ErrorContext,
    ExternalServiceError,
    InvalidArgumentError,
    NotFoundError,
)
from i18nvault.translation.parsing import parse_numbered_list
from i18nvault.translation.prompts import PromptBuilder

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable

    from i18nvault.core.types import KeyPath, LocaleCode, Namespace
    from i18nvault.storage.catalog import CatalogStore
    from i18nvault.translation.client import CompletionClient

logger = logging.getLogger(__name__)

__all__ = [
    "BatchFailure",
    "BatchTranslator",
    "SourceEntry",
    "TokenUsage",
    "TranslationProposal",
    "TranslationResult",
]

_DEFAULT_MAX_WORKERS = 4


# ============================================================================
# RESULT TYPES
# ============================================================================


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Aggregate token cost of one or more model calls."""

    input_tokens: int = 0
    output_tokens: int = 0
    calls: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            self.input_tokens + other.input_tokens,
            self.output_tokens + other.output_tokens,
            self.calls + other.calls,
        )

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens."""
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict[str, int]:
        """JSON-ready representation."""
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "calls": self.calls,
        }


@dataclass(frozen=True, slots=True)
class SourceEntry:
    """One baseline string to translate."""

    namespace: Namespace
    key: KeyPath
    text: str


@dataclass(frozen=True, slots=True)
class TranslationProposal:
    """A proposed value for one key in one locale, awaiting review."""

    locale: LocaleCode
    namespace: Namespace
    key: KeyPath
    source: str
    value: str

    def to_dict(self) -> dict[str, str]:
        """JSON-ready representation."""
        return {
            "locale": self.locale,
            "namespace": self.namespace,
            "key": self.key,
            "source": self.source,
            "value": self.value,
        }


@dataclass(frozen=True, slots=True)
class BatchFailure:
    """A batch whose request failed; none of its keys were translated."""

    locale: LocaleCode
    batch_index: int
    keys: tuple[KeyPath, ...]
    error: str

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "locale": self.locale,
            "batchIndex": self.batch_index,
            "keys": list(self.keys),
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class TranslationResult:
    """Everything one locale run produced.

    Attributes:
        locale: Target locale
        proposals: Successfully parsed translations
        unresolved: Full dot paths requested but not translated
        failures: Batches whose request failed
        usage: Token cost of the run
    """

    locale: LocaleCode
    proposals: tuple[TranslationProposal, ...] = ()
    unresolved: tuple[KeyPath, ...] = ()
    failures: tuple[BatchFailure, ...] = ()
    usage: TokenUsage = TokenUsage()

    @property
    def requested(self) -> int:
        """Number of entries sent for translation."""
        return len(self.proposals) + len(self.unresolved)

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "locale": self.locale,
            "proposals": [proposal.to_dict() for proposal in self.proposals],
            "unresolved": list(self.unresolved),
            "failures": [failure.to_dict() for failure in self.failures],
            "usage": self.usage.to_dict(),
        }


# ============================================================================
# PIPELINE
# ============================================================================


class BatchTranslator:
    """Generates translation proposals with a CompletionClient.

    Args:
        store: Catalog store (read only)
        client: Model client
        baseline: Returns the current baseline locale
        batch_size: Entries per model request
        prompts: Prompt builder (defaults to a generic one)
        max_workers: Locales translated concurrently
    """

    __slots__ = ("_baseline", "_batch_size", "_client", "_max_workers", "_prompts", "_store")

    def __init__(
        self,
        store: CatalogStore,
        client: CompletionClient,
        *,
        baseline: Callable[[], LocaleCode],
        batch_size: int = DEFAULT_BATCH_SIZE,
        prompts: PromptBuilder | None = None,
        max_workers: int = _DEFAULT_MAX_WORKERS,
    ) -> None:
        if batch_size <= 0:
            msg = "batch_size must be positive"
            raise ValueError(msg)
        self._store = store
        self._client = client
        self._baseline = baseline
        self._batch_size = batch_size
        self._prompts = prompts or PromptBuilder()
        self._max_workers = max_workers

    def _check_target(self, target: LocaleCode, operation: str) -> LocaleCode:
        baseline = self._baseline()
        if target == baseline:
            msg = f"Cannot translate into the baseline locale '{baseline}'"
            raise InvalidArgumentError(msg, ErrorContext(operation, locale=target))
        return baseline

    def _baseline_entries(
        self, namespaces: Collection[Namespace] | None = None
    ) -> list[SourceEntry]:
        grouped = namespace_leaves(self._store.load(self._baseline()))
        if namespaces is not None:
            unknown = sorted(set(namespaces) - grouped.keys())
            if unknown:
                msg = f"Unknown namespace(s): {', '.join(unknown)}"
                raise NotFoundError(
                    msg, ErrorContext("translate", namespace=unknown[0])
                )
        return [
            SourceEntry(namespace, key, text)
            for namespace in sorted(grouped)
            if namespaces is None or namespace in namespaces
            for key, text in sorted(grouped[namespace].items())
            if text
        ]

    # ------------------------------------------------------------------------
    # Core loop
    # ------------------------------------------------------------------------

    def translate_entries(
        self, target: LocaleCode, entries: Iterable[SourceEntry]
    ) -> TranslationResult:
        """Translate entries into target, one request per batch, in order."""
        baseline = self._check_target(target, "translate")
        pending = list(entries)
        proposals: list[TranslationProposal] = []
        unresolved: list[KeyPath] = []
        failures: list[BatchFailure] = []
        usage = TokenUsage()

        for batch_index, start in enumerate(range(0, len(pending), self._batch_size)):
            batch = pending[start : start + self._batch_size]
            paths = tuple(join_path(entry.namespace, entry.key) for entry in batch)
            prompt = self._prompts.build(baseline, target, [entry.text for entry in batch])
            try:
                completion = self._client.complete(prompt.system, prompt.user)
            except ExternalServiceError as e:
                logger.warning(
                    "Translation batch %d for %s failed (%d keys): %s",
                    batch_index, target, len(batch), e,
                )
                failures.append(BatchFailure(target, batch_index, paths, str(e)))
                unresolved.extend(paths)
                continue

            usage += TokenUsage(completion.input_tokens, completion.output_tokens, 1)
            parsed = parse_numbered_list(completion.text, len(batch))
            if parsed.rejected_lines:
                logger.warning(
                    "Dropped %d unparseable line(s) in batch %d for %s",
                    len(parsed.rejected_lines), batch_index, target,
                )
            for index, entry in enumerate(batch):
                value = parsed.values.get(index)
                if value is None:
                    unresolved.append(paths[index])
                    continue
                proposals.append(
                    TranslationProposal(target, entry.namespace, entry.key, entry.text, value)
                )

        logger.info(
            "Translated %d/%d entries into %s (%d failed batch(es), %d tokens)",
            len(proposals), len(pending), target, len(failures), usage.total_tokens,
        )
        return TranslationResult(
            locale=target,
            proposals=tuple(proposals),
            unresolved=tuple(unresolved),
            failures=tuple(failures),
            usage=usage,
        )

    def _run_parallel(
        self, jobs: dict[LocaleCode, Callable[[], TranslationResult]]
    ) -> dict[LocaleCode, TranslationResult]:
        if len(jobs) <= 1:
            return {locale: job() for locale, job in jobs.items()}
        with ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(jobs)), thread_name_prefix="i18nvault-translate"
        ) as pool:
            futures = {locale: pool.submit(job) for locale, job in jobs.items()}
            return {locale: future.result() for locale, future in futures.items()}

    # ------------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------------

    def translate_missing(
        self,
        target: LocaleCode,
        namespaces: Collection[Namespace] | None = None,
    ) -> TranslationResult:
        """Translate baseline keys that target lacks or has empty.

        Raises:
            InvalidArgumentError: If target is the baseline
            NotFoundError: If target or a requested namespace does not exist
        """
        self._check_target(target, "translate_missing")
        tree = self._store.load(target)
        missing = [
            entry
            for entry in self._baseline_entries(namespaces)
            if not get_path(tree, join_path(entry.namespace, entry.key))
        ]
        return self.translate_entries(target, missing)

    def translate_missing_many(
        self,
        targets: Iterable[LocaleCode],
        namespaces: Collection[Namespace] | None = None,
    ) -> dict[LocaleCode, TranslationResult]:
        """translate_missing for several locales, in parallel."""
        jobs = {
            target: (lambda t=target: self.translate_missing(t, namespaces))
            for target in dict.fromkeys(targets)
        }
        return self._run_parallel(jobs)

    def translate_namespace(
        self, namespace: Namespace, targets: Iterable[LocaleCode]
    ) -> dict[LocaleCode, TranslationResult]:
        """Translate every baseline key of namespace for each target, in parallel.

        Current target values are ignored.

        Raises:
            InvalidArgumentError: If a target is the baseline
            NotFoundError: If the namespace or a target does not exist
        """
        ordered = list(dict.fromkeys(targets))
        for target in ordered:
            self._check_target(target, "translate_namespace")
            self._store.read_bytes(target)
        entries = self._baseline_entries([namespace])
        jobs = {
            target: (lambda t=target: self.translate_entries(t, entries)) for target in ordered
        }
        return self._run_parallel(jobs)

    def translate_all(self, target: LocaleCode) -> TranslationResult:
        """Translate every baseline key into target (used to seed a new locale)."""
        return self.translate_entries(target, self._baseline_entries())

    def translate_key(
        self, namespace: Namespace, key: KeyPath, target: LocaleCode
    ) -> TranslationResult:
        """Translate a single baseline key.

        Raises:
            NotFoundError: If the baseline has no such key
            ExternalServiceError: If the model call fails
        """
        self._check_target(target, "translate_key")
        path = join_path(namespace, key)
        text = get_path(self._store.load(self._baseline()), path)
        if not isinstance(text, str) or not text:
            msg = f"Unknown key: '{path}'"
            raise NotFoundError(
                msg, ErrorContext("translate_key", locale=target, namespace=namespace, key=key)
            )
        result = self.translate_entries(target, [SourceEntry(namespace, key, text)])
        if result.failures:
            msg = result.failures[0].error
            raise ExternalServiceError(
                msg,
                ErrorContext("translate_key", locale=target, namespace=namespace, key=key),
                batch_index=0,
            )
        return result
