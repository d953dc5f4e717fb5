"""Translation coverage: what each locale is missing relative to the baseline.

The baseline locale defines the key set. For every other locale a key is
*translated* when it exists as a non-empty string; an absent key and an
empty string both count as missing. Completion is

    translated baseline keys / baseline keys * 100

rounded to two decimals, and 0.0 when the baseline has no keys. Keys a
locale carries that the baseline does not are reported as orphaned.

Read-only: nothing here writes.

Python 3.13+.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from i18nvault.analysis.consumers import build_consumer_map, scan_consumers
from i18nvault.core.paths import count_leaves, namespace_leaves

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from i18nvault.core.types import CatalogTree, KeyPath, LocaleCode, Namespace
    from i18nvault.storage.catalog import CatalogStore

logger = logging.getLogger(__name__)

__all__ = [
    "CoverageAnalyzer",
    "CoverageReport",
    "CoverageSummary",
    "LocaleCoverage",
    "NamespaceCoverage",
    "PageCoverage",
    "build_coverage_report",
    "completion_percent",
]


# ============================================================================
# REPORT TYPES
# ============================================================================


@dataclass(frozen=True, slots=True)
class LocaleCoverage:
    """Coverage of one locale.

    Attributes:
        code: Locale code
        is_baseline: True for the baseline locale
        total_keys: Raw number of string leaves in the locale's catalog
        translated: Baseline keys present with a non-empty value
        missing_count: Baseline keys absent or empty
        completion: translated / baseline keys * 100, two decimals
        missing: {namespace: sorted missing keys}; namespaces with none omitted
        orphaned: Sorted full dot paths present here but not in the baseline
    """

    code: LocaleCode
    is_baseline: bool
    total_keys: int
    translated: int
    missing_count: int
    completion: float
    missing: dict[Namespace, tuple[KeyPath, ...]] = field(default_factory=dict)
    orphaned: tuple[KeyPath, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "code": self.code,
            "isBaseline": self.is_baseline,
            "totalKeys": self.total_keys,
            "translated": self.translated,
            "missingCount": self.missing_count,
            "completion": self.completion,
            "missing": {ns: list(keys) for ns, keys in self.missing.items()},
            "orphaned": list(self.orphaned),
        }


@dataclass(frozen=True, slots=True)
class NamespaceCoverage:
    """Coverage of one baseline namespace across locales.

    Attributes:
        name: Namespace
        key_count: Leaf keys in the baseline namespace
        consumers: Routes that declare a dependency on the namespace
        unused: True when no consumer references the namespace
        missing: {locale: missing key count} for every non-baseline locale
    """

    name: Namespace
    key_count: int
    consumers: tuple[str, ...]
    unused: bool
    missing: dict[LocaleCode, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "name": self.name,
            "keyCount": self.key_count,
            "consumers": list(self.consumers),
            "unused": self.unused,
            "missing": dict(self.missing),
        }


@dataclass(frozen=True, slots=True)
class PageCoverage:
    """One consumer route and the namespaces it needs.

    Attributes:
        route: Consumer identifier
        namespaces: Namespaces referenced by the route
        unknown_namespaces: Referenced namespaces the baseline lacks
    """

    route: str
    namespaces: tuple[Namespace, ...]
    unknown_namespaces: tuple[Namespace, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "route": self.route,
            "namespaces": list(self.namespaces),
            "unknownNamespaces": list(self.unknown_namespaces),
        }


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Aggregate figures over the whole catalog."""

    baseline: LocaleCode
    locale_count: int
    namespace_count: int
    baseline_keys: int
    unused_namespaces: int
    average_completion: float

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "baseline": self.baseline,
            "localeCount": self.locale_count,
            "namespaceCount": self.namespace_count,
            "baselineKeys": self.baseline_keys,
            "unusedNamespaces": self.unused_namespaces,
            "averageCompletion": self.average_completion,
        }


@dataclass(frozen=True, slots=True)
class CoverageReport:
    """Full coverage report: per locale, per namespace, per page, summary."""

    locales: tuple[LocaleCoverage, ...]
    namespaces: tuple[NamespaceCoverage, ...]
    pages: tuple[PageCoverage, ...]
    summary: CoverageSummary

    def locale(self, code: LocaleCode) -> LocaleCoverage | None:
        """Coverage entry for code, or None."""
        return next((entry for entry in self.locales if entry.code == code), None)

    def namespace(self, name: Namespace) -> NamespaceCoverage | None:
        """Coverage entry for a namespace, or None."""
        return next((entry for entry in self.namespaces if entry.name == name), None)

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "locales": [entry.to_dict() for entry in self.locales],
            "namespaces": [entry.to_dict() for entry in self.namespaces],
            "pages": [entry.to_dict() for entry in self.pages],
            "summary": self.summary.to_dict(),
        }


# ============================================================================
# COMPUTATION
# ============================================================================


def completion_percent(translated: int, total: int) -> float:
    """translated / total * 100 rounded to two decimals; 0.0 for an empty total."""
    if total <= 0:
        return 0.0
    return round(translated / total * 100, 2)


def _locale_coverage(
    code: LocaleCode,
    tree: CatalogTree,
    baseline_ns: dict[Namespace, dict[KeyPath, str]],
    baseline_total: int,
    *,
    is_baseline: bool,
) -> LocaleCoverage:
    locale_ns = namespace_leaves(tree)
    missing: dict[Namespace, tuple[KeyPath, ...]] = {}
    translated = 0
    for namespace, keys in baseline_ns.items():
        values = locale_ns.get(namespace, {})
        absent = sorted(key for key in keys if not values.get(key))
        translated += len(keys) - len(absent)
        if absent:
            missing[namespace] = tuple(absent)

    orphaned = sorted(
        f"{namespace}.{key}"
        for namespace, values in locale_ns.items()
        for key in values
        if key not in baseline_ns.get(namespace, {})
    )
    return LocaleCoverage(
        code=code,
        is_baseline=is_baseline,
        total_keys=count_leaves(tree),
        translated=translated,
        missing_count=baseline_total - translated,
        completion=completion_percent(translated, baseline_total),
        missing=missing,
        orphaned=tuple(orphaned),
    )


def build_coverage_report(
    trees: Mapping[LocaleCode, CatalogTree],
    baseline: LocaleCode,
    pages: Mapping[str, Iterable[Namespace]] | None = None,
) -> CoverageReport:
    """Compute coverage of every locale in trees against the baseline tree.

    Args:
        trees: Catalog per locale; must include the baseline
        baseline: Baseline locale code
        pages: {route: namespaces} consumer declarations (optional)

    Raises:
        KeyError: If trees lacks the baseline
    """
    baseline_ns = namespace_leaves(trees[baseline])
    baseline_total = sum(len(keys) for keys in baseline_ns.values())

    locales = tuple(
        _locale_coverage(
            code, trees[code], baseline_ns, baseline_total, is_baseline=code == baseline
        )
        for code in sorted(trees, key=lambda c: (c != baseline, c))
    )

    page_map = {route: list(dict.fromkeys(ns)) for route, ns in (pages or {}).items()}
    consumers = build_consumer_map(page_map)

    namespaces = tuple(
        NamespaceCoverage(
            name=namespace,
            key_count=len(keys),
            consumers=tuple(consumers.get(namespace, ())),
            unused=namespace not in consumers,
            missing={
                entry.code: len(entry.missing.get(namespace, ()))
                for entry in locales
                if not entry.is_baseline
            },
        )
        for namespace, keys in sorted(baseline_ns.items())
    )

    page_entries = tuple(
        PageCoverage(
            route=route,
            namespaces=tuple(names),
            unknown_namespaces=tuple(ns for ns in names if ns not in baseline_ns),
        )
        for route, names in sorted(page_map.items())
    )

    others = [entry.completion for entry in locales if not entry.is_baseline]
    summary = CoverageSummary(
        baseline=baseline,
        locale_count=len(locales),
        namespace_count=len(namespaces),
        baseline_keys=baseline_total,
        unused_namespaces=sum(1 for entry in namespaces if entry.unused),
        average_completion=round(sum(others) / len(others), 2) if others else 100.0,
    )
    return CoverageReport(
        locales=locales, namespaces=namespaces, pages=page_entries, summary=summary
    )


class CoverageAnalyzer:
    """Builds coverage reports from the catalog store.

    Consumers come from an explicit {route: namespaces} mapping when given,
    otherwise from scanning source_root, otherwise there are none and every
    namespace is flagged unused.
    """

    __slots__ = ("_pages", "_source_root", "_store")

    def __init__(
        self,
        store: CatalogStore,
        *,
        pages: Mapping[str, Iterable[Namespace]] | None = None,
        source_root: Path | None = None,
    ) -> None:
        self._store = store
        self._pages = {route: tuple(ns) for route, ns in pages.items()} if pages else None
        self._source_root = source_root

    def consumer_pages(self) -> dict[str, list[Namespace]]:
        """Current {route: namespaces} declarations."""
        if self._pages is not None:
            return {route: list(ns) for route, ns in self._pages.items()}
        if self._source_root is not None:
            return scan_consumers(self._source_root)
        return {}

    def report(self, baseline: LocaleCode) -> CoverageReport:
        """Coverage of every locale on disk against baseline.

        Raises:
            NotFoundError: If the baseline has no catalog
        """
        trees = self._store.load_all()
        if baseline not in trees:
            trees[baseline] = self._store.load(baseline)
        report = build_coverage_report(trees, baseline, self.consumer_pages())
        logger.debug(
            "Coverage: %d locales, %d baseline keys, average %.2f%%",
            report.summary.locale_count,
            report.summary.baseline_keys,
            report.summary.average_completion,
        )
        return report
