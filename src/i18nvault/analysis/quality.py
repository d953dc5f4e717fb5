"""Structural quality checks of translations against the baseline.

Only entries that exist in a locale are inspected; absent keys are a
coverage concern. For each baseline leaf whose counterpart in a
non-baseline locale is a string, the checks below run in order and each
yields at most one issue:

    empty              value is ""                           warning
    missing_variables  baseline placeholders not all kept   error
    icu_syntax         broken plural/select in translation  error
    html_tags          tag multiset differs                  warning
    untranslated       identical multi-word text            warning
    length_anomaly     more than twice the baseline length  info
    whitespace         leading/trailing whitespace          info

An empty value stops further checks for that entry. Results are
deterministic: locales, namespaces and keys are visited in sorted order.

Python 3.13+.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from i18nvault.constants import (
    LENGTH_ANOMALY_MIN_BASELINE,
    LENGTH_ANOMALY_RATIO,
    UNTRANSLATED_MIN_LENGTH,
)
from i18nvault.core.paths import namespace_leaves
from i18nvault.enums import QualityCheck, Severity

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Mapping

    from i18nvault.core.types import CatalogTree, KeyPath, LocaleCode, Namespace
    from i18nvault.storage.catalog import CatalogStore

logger = logging.getLogger(__name__)

__all__ = [
    "QualityIssue",
    "QualityReport",
    "QualityScanner",
    "QualitySummary",
    "check_entry",
    "extract_html_tags",
    "extract_placeholders",
    "scan_catalogs",
]


# ============================================================================
# TOKEN EXTRACTION
# ============================================================================

_ARG_HEAD = re.compile(r"\s*([A-Za-z_][\w.-]*)\s*([,}])")
_ARG_TYPE = re.compile(r"\s*([A-Za-z]+)\s*([,}])")
_ICU_CASE_TYPES = frozenset({"plural", "select", "selectordinal"})
_ICU_MARKER = re.compile(r"\b(?:plural|select|selectordinal)\s*,")
_ICU_OTHER_CASE = re.compile(r"\bother\s*\{")
_HTML_TAG = re.compile(r"<(/?)([A-Za-z][\w-]*)(?:\s[^<>]*)?/?>")


def _skip_group(text: str, pos: int) -> int:
    """Index just past the brace closing the group opened before pos."""
    depth = 1
    while pos < len(text) and depth:
        if text[pos] == "{":
            depth += 1
        elif text[pos] == "}":
            depth -= 1
        pos += 1
    return pos


def _scan_message(text: str, pos: int, names: list[str], *, nested: bool) -> int:
    while pos < len(text):
        char = text[pos]
        if char == "{":
            pos = _scan_argument(text, pos + 1, names)
        elif char == "}" and nested:
            return pos + 1
        else:
            pos += 1
    return pos


def _scan_argument(text: str, pos: int, names: list[str]) -> int:
    head = _ARG_HEAD.match(text, pos)
    if head is None:
        return _skip_group(text, pos)
    names.append(head.group(1))
    pos = head.end()
    if head.group(2) == "}":
        return pos

    arg_type = _ARG_TYPE.match(text, pos)
    if arg_type is None:
        return _skip_group(text, pos)
    pos = arg_type.end()
    if arg_type.group(2) == "}":
        return pos
    if arg_type.group(1) not in _ICU_CASE_TYPES:
        return _skip_group(text, pos)

    # Case list: selector {message} selector {message} ... }
    while pos < len(text):
        char = text[pos]
        if char == "}":
            return pos + 1
        if char == "{":
            pos = _scan_message(text, pos + 1, names, nested=True)
        else:
            pos += 1
    return pos


def extract_placeholders(text: str) -> list[str]:
    """Argument names referenced in text, one per occurrence, sorted.

    Simple ``{name}`` references and ICU argument heads such as
    ``{count, plural, ...}`` both count as ``name``. ICU case bodies are
    searched recursively; ``#`` and literal text are not arguments.

    Example:
        >>> extract_placeholders("{n, plural, one {{who} has # item} other {{who} has # items}}")
        ['n', 'who', 'who']
    """
    names: list[str] = []
    _scan_message(text, 0, names, nested=False)
    return sorted(names)


def extract_html_tags(text: str) -> list[str]:
    """Normalized tags in text, sorted: ``<b class="x">`` becomes ``<b>``.

    Self-closing tags normalize to their opening form.
    """
    tags = [
        f"<{closing}{name.lower()}>" for closing, name in _HTML_TAG.findall(text)
    ]
    return sorted(tags)


def _braces_balanced(text: str) -> bool:
    depth = 0
    for char in text:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


# ============================================================================
# REPORT TYPES
# ============================================================================


@dataclass(frozen=True, slots=True)
class QualityIssue:
    """One finding for one translated entry.

    Attributes:
        locale: Locale the translation belongs to
        namespace: Namespace of the entry
        key: Dot path within the namespace
        check: Check that produced the finding
        severity: error, warning or info
        message: Human-readable description
        baseline: Baseline value
        value: Translated value
    """

    locale: LocaleCode
    namespace: Namespace
    key: KeyPath
    check: QualityCheck
    severity: Severity
    message: str
    baseline: str
    value: str

    @property
    def path(self) -> KeyPath:
        """Full dot path: namespace.key."""
        return f"{self.namespace}.{self.key}"

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "locale": self.locale,
            "namespace": self.namespace,
            "key": self.key,
            "check": str(self.check),
            "severity": str(self.severity),
            "message": self.message,
            "baseline": self.baseline,
            "value": self.value,
        }


@dataclass(frozen=True, slots=True)
class QualitySummary:
    """Issue counts by severity, locale and check."""

    total: int
    by_severity: dict[str, int]
    by_locale: dict[str, int]
    by_check: dict[str, int]

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "total": self.total,
            "bySeverity": dict(self.by_severity),
            "byLocale": dict(self.by_locale),
            "byCheck": dict(self.by_check),
        }


@dataclass(frozen=True, slots=True)
class QualityReport:
    """Flat issue list plus summary counts."""

    issues: tuple[QualityIssue, ...]
    summary: QualitySummary

    @property
    def has_errors(self) -> bool:
        """True if any issue has error severity."""
        return self.summary.by_severity.get(Severity.ERROR, 0) > 0

    def filter(
        self,
        *,
        severity: Severity | None = None,
        check: QualityCheck | None = None,
        locale: LocaleCode | None = None,
    ) -> tuple[QualityIssue, ...]:
        """Issues matching every given criterion."""
        return tuple(
            issue
            for issue in self.issues
            if (severity is None or issue.severity == severity)
            and (check is None or issue.check == check)
            and (locale is None or issue.locale == locale)
        )

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "issues": [issue.to_dict() for issue in self.issues],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_issues(cls, issues: tuple[QualityIssue, ...]) -> QualityReport:
        """Build a report, computing the summary from issues."""
        return cls(
            issues=issues,
            summary=QualitySummary(
                total=len(issues),
                by_severity=dict(Counter(str(issue.severity) for issue in issues)),
                by_locale=dict(Counter(issue.locale for issue in issues)),
                by_check=dict(Counter(str(issue.check) for issue in issues)),
            ),
        )


# ============================================================================
# CHECKS
# ============================================================================


def check_entry(baseline: str, value: str) -> list[tuple[QualityCheck, Severity, str]]:
    """Run every check on one (baseline, translation) pair.

    Returns:
        (check, severity, message) per finding, in check order
    """
    if value == "":
        return [(QualityCheck.EMPTY, Severity.WARNING, "Translation is empty")]

    findings: list[tuple[QualityCheck, Severity, str]] = []

    expected = Counter(extract_placeholders(baseline))
    if expected:
        lost = expected - Counter(extract_placeholders(value))
        if lost:
            names = ", ".join(f"{{{name}}}" for name in sorted(lost.elements()))
            findings.append(
                (QualityCheck.MISSING_VARIABLES, Severity.ERROR, f"Missing placeholder(s): {names}")
            )

    if _ICU_MARKER.search(baseline):
        if not _braces_balanced(value):
            findings.append((QualityCheck.ICU_SYNTAX, Severity.ERROR, "Unbalanced braces"))
        elif not _ICU_OTHER_CASE.search(value):
            findings.append(
                (QualityCheck.ICU_SYNTAX, Severity.ERROR, "Missing 'other' case in ICU message")
            )

    baseline_tags = extract_html_tags(baseline)
    value_tags = extract_html_tags(value)
    if baseline_tags != value_tags:
        findings.append(
            (
                QualityCheck.HTML_TAGS,
                Severity.WARNING,
                f"HTML tags differ: expected {baseline_tags}, found {value_tags}",
            )
        )

    if (
        value == baseline
        and len(baseline) > UNTRANSLATED_MIN_LENGTH
        and any(char.isspace() for char in baseline.strip())
    ):
        findings.append(
            (QualityCheck.UNTRANSLATED, Severity.WARNING, "Identical to the baseline text")
        )

    if (
        len(baseline) > LENGTH_ANOMALY_MIN_BASELINE
        and len(value) > LENGTH_ANOMALY_RATIO * len(baseline)
    ):
        findings.append(
            (
                QualityCheck.LENGTH_ANOMALY,
                Severity.INFO,
                f"Length {len(value)} exceeds {LENGTH_ANOMALY_RATIO}x baseline length {len(baseline)}",
            )
        )

    leading = value[:1].isspace()
    trailing = value[-1:].isspace()
    if leading or trailing:
        where = " and ".join(
            side for side, flagged in (("leading", leading), ("trailing", trailing)) if flagged
        )
        findings.append((QualityCheck.WHITESPACE, Severity.INFO, f"Stray {where} whitespace"))

    return findings


def _iter_issues(
    baseline_ns: dict[Namespace, dict[KeyPath, str]],
    code: LocaleCode,
    tree: CatalogTree,
    namespaces: Collection[Namespace] | None,
) -> Iterator[QualityIssue]:
    locale_ns = namespace_leaves(tree)
    for namespace in sorted(baseline_ns):
        if namespaces is not None and namespace not in namespaces:
            continue
        values = locale_ns.get(namespace, {})
        for key in sorted(baseline_ns[namespace]):
            value = values.get(key)
            if value is None:
                continue
            source = baseline_ns[namespace][key]
            for check, severity, message in check_entry(source, value):
                yield QualityIssue(code, namespace, key, check, severity, message, source, value)


def scan_catalogs(
    trees: Mapping[LocaleCode, CatalogTree],
    baseline: LocaleCode,
    *,
    locales: Collection[LocaleCode] | None = None,
    namespaces: Collection[Namespace] | None = None,
) -> QualityReport:
    """Check every non-baseline locale in trees against the baseline tree.

    Args:
        trees: Catalog per locale; must include the baseline
        baseline: Baseline locale code
        locales: Restrict to these locales (optional)
        namespaces: Restrict to these namespaces (optional)

    Raises:
        KeyError: If trees lacks the baseline
    """
    baseline_ns = namespace_leaves(trees[baseline])
    issues: list[QualityIssue] = []
    for code in sorted(trees):
        if code == baseline or (locales is not None and code not in locales):
            continue
        issues.extend(_iter_issues(baseline_ns, code, trees[code], namespaces))
    return QualityReport.from_issues(tuple(issues))


class QualityScanner:
    """Runs quality checks over the catalogs in a store."""

    __slots__ = ("_store",)

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def scan(
        self,
        baseline: LocaleCode,
        *,
        locales: Collection[LocaleCode] | None = None,
        namespaces: Collection[Namespace] | None = None,
    ) -> QualityReport:
        """Scan the catalogs currently on disk.

        Raises:
            NotFoundError: If the baseline or a requested locale has no catalog
        """
        codes = set(self._store.locales()) | {baseline}
        if locales is not None:
            codes = {baseline, *locales}
        trees = {code: self._store.load(code) for code in sorted(codes)}
        report = scan_catalogs(trees, baseline, locales=locales, namespaces=namespaces)
        logger.debug(
            "Quality scan: %d issue(s) across %d locale(s)", report.summary.total, len(trees) - 1
        )
        return report
