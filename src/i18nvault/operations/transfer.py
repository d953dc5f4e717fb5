"""Import and export of the key matrix (namespace, key) x locale.

Export formats:
    json   {namespace: {key: {locale: value}}}
    csv    Namespace,Key,<LOCALE>... (one row per baseline key)
    xliff  XLIFF 1.2, one <file> per namespace and target locale

Import formats are json and csv in the same shapes. Imported values for
the baseline locale and empty values are ignored, so exporting and then
previewing the import of the same file classifies nothing as added or
updated. A committing import snapshots every locale it will touch, then
writes them in one transaction with one ledger entry.

Python 3.13+.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import xml.etree.ElementTree as ET
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from i18nvault.constants import WILDCARD
from i18nvault.core.paths import (
    get_path,
    is_group,
    is_valid_path,
    join_path,
    leaf_prefix,
    namespace_leaves,
    set_path,
)
from i18nvault.enums import ChangeAction, ChangeSource, ExportFormat, ImportFormat, ImportStatus
from i18nvault.errors import ErrorContext, InvalidArgumentError, NotFoundError
from i18nvault.locale_utils import canonicalize_locale
from i18nvault.storage.changelog import ChangeEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Mapping

    from i18nvault.core.types import CatalogTree, KeyPath, LocaleCode, Namespace
    from i18nvault.storage.catalog import CatalogStore
    from i18nvault.storage.snapshots import SnapshotInfo, SnapshotStore

logger = logging.getLogger(__name__)

__all__ = [
    "XLIFF_NAMESPACE",
    "CatalogTransfer",
    "ExportFilter",
    "ExportResult",
    "ImportCandidate",
    "ImportItem",
    "ImportResult",
    "classify_candidates",
    "parse_import",
]

XLIFF_NAMESPACE = "urn:oasis:names:tc:xliff:document:1.2"

_MEDIA_TYPES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLIFF: "application/x-xliff+xml",
}
_SUFFIXES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "json",
    ExportFormat.CSV: "csv",
    ExportFormat.XLIFF: "xlf",
}


# ============================================================================
# TYPES
# ============================================================================


@dataclass(frozen=True, slots=True)
class ExportFilter:
    """Which part of the matrix to export.

    Attributes:
        namespace: Only this namespace (optional)
        locale: Only this target locale next to the baseline (optional)
        missing_only: Only keys missing or empty in at least one target locale
    """

    namespace: Namespace | None = None
    locale: LocaleCode | None = None
    missing_only: bool = False


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Serialized export.

    Attributes:
        format: Serialization format
        content: UTF-8 bytes
        media_type: MIME type of content
        filename: Suggested download name
        key_count: Number of (namespace, key) rows exported
    """

    format: ExportFormat
    content: bytes
    media_type: str
    filename: str
    key_count: int


@dataclass(frozen=True, slots=True)
class ImportCandidate:
    """One value read from an import file, before classification."""

    namespace: Namespace
    key: KeyPath
    locale: LocaleCode
    value: str


@dataclass(frozen=True, slots=True)
class ImportItem:
    """One imported value classified against current state.

    Attributes:
        namespace: Namespace
        key: Key within the namespace
        locale: Target locale
        value: Imported value
        status: added, updated, unchanged or skipped
        current: Value before import (None when absent)
        reason: Why the item was skipped (skipped items only)
    """

    namespace: Namespace
    key: KeyPath
    locale: LocaleCode
    value: str
    status: ImportStatus
    current: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        data: dict[str, object] = {
            "namespace": self.namespace,
            "key": self.key,
            "locale": self.locale,
            "value": self.value,
            "status": str(self.status),
            "current": self.current,
        }
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Classification of an import and, when committed, what was written.

    Attributes:
        preview: True when nothing was written
        items: Every candidate with its status
        snapshots: Snapshots taken before writing (commit only)
        entry: The import ledger entry (commit with changes only)
    """

    preview: bool
    items: tuple[ImportItem, ...]
    snapshots: tuple[SnapshotInfo, ...] = ()
    entry: ChangeEntry | None = None
    counts: dict[str, int] = field(init=False)

    def __post_init__(self) -> None:
        counts = Counter(str(item.status) for item in self.items)
        object.__setattr__(
            self, "counts", {str(status): counts.get(str(status), 0) for status in ImportStatus}
        )

    def with_status(self, status: ImportStatus) -> tuple[ImportItem, ...]:
        """Items classified as status."""
        return tuple(item for item in self.items if item.status == status)

    @property
    def affected_locales(self) -> tuple[LocaleCode, ...]:
        """Locales with at least one added or updated item."""
        return tuple(
            sorted(
                {
                    item.locale
                    for item in self.items
                    if item.status in (ImportStatus.ADDED, ImportStatus.UPDATED)
                }
            )
        )

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "preview": self.preview,
            "counts": dict(self.counts),
            "items": [item.to_dict() for item in self.items],
            "snapshots": [info.to_dict() for info in self.snapshots],
            "entryId": self.entry.id if self.entry else None,
        }


# ============================================================================
# IMPORT PARSING
# ============================================================================


def _match_locale(column: str, known: Collection[LocaleCode]) -> LocaleCode:
    """Known locale code matching column case-insensitively, else a best guess."""
    lowered = column.strip().lower()
    for code in known:
        if code.lower() == lowered:
            return code
    try:
        return canonicalize_locale(column.strip())
    except ValueError:
        return column.strip()


def _parse_json(text: str, context: ErrorContext) -> list[ImportCandidate]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Import is not valid JSON: {e}"
        raise InvalidArgumentError(msg, context) from e
    if not isinstance(data, dict):
        msg = "JSON import must be an object of {namespace: {key: {locale: value}}}"
        raise InvalidArgumentError(msg, context)

    candidates: list[ImportCandidate] = []
    for namespace, keys in data.items():
        if not isinstance(keys, dict):
            msg = f"Namespace '{namespace}' must map keys to locale values"
            raise InvalidArgumentError(msg, context)
        for key, per_locale in keys.items():
            if not isinstance(per_locale, dict):
                msg = f"Key '{namespace}.{key}' must map locales to values"
                raise InvalidArgumentError(msg, context)
            for locale, value in per_locale.items():
                if value is None:
                    continue
                if not isinstance(value, str):
                    msg = f"Value for '{namespace}.{key}' [{locale}] must be a string"
                    raise InvalidArgumentError(msg, context)
                candidates.append(ImportCandidate(namespace, key, locale, value))
    return candidates


def _parse_csv(text: str, context: ErrorContext) -> list[ImportCandidate]:
    reader = csv.reader(io.StringIO(text.removeprefix("\ufeff")))
    try:
        header = next(reader)
    except StopIteration:
        msg = "CSV import is empty"
        raise InvalidArgumentError(msg, context) from None
    except csv.Error as e:
        msg = f"CSV import is malformed: {e}"
        raise InvalidArgumentError(msg, context) from e

    columns = [column.strip() for column in header]
    lowered = [column.lower() for column in columns]
    if len(columns) < 3 or lowered[0] != "namespace" or lowered[1] != "key":
        msg = "CSV header must start with Namespace,Key followed by locale columns"
        raise InvalidArgumentError(msg, context)
    locale_columns = columns[2:]

    candidates: list[ImportCandidate] = []
    try:
        for line_no, row in enumerate(reader, start=2):
            if not any(cell.strip() for cell in row):
                continue
            if len(row) < 2 or len(row) > len(columns):
                msg = f"CSV line {line_no} has {len(row)} field(s), expected {len(columns)}"
                raise InvalidArgumentError(msg, context)
            namespace, key = row[0].strip(), row[1].strip()
            for column, value in zip(locale_columns, row[2:], strict=False):
                candidates.append(ImportCandidate(namespace, key, column, value))
    except csv.Error as e:
        msg = f"CSV import is malformed: {e}"
        raise InvalidArgumentError(msg, context) from e
    return candidates


def parse_import(
    fmt: ImportFormat | str,
    content: bytes | str,
    *,
    baseline: LocaleCode,
    known_locales: Collection[LocaleCode],
) -> list[ImportCandidate]:
    """Read candidates from an import file.

    Locale columns/keys are matched to known_locales case-insensitively.
    Baseline values and empty values are dropped.

    Raises:
        InvalidArgumentError: If the format is unknown or content is malformed
    """
    context = ErrorContext("import.parse")
    try:
        fmt = ImportFormat(str(fmt).lower())
    except ValueError:
        msg = f"Unsupported import format: '{fmt}' (expected json or csv)"
        raise InvalidArgumentError(msg, context) from None
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"Import is not valid UTF-8: {e}"
            raise InvalidArgumentError(msg, context) from e
    else:
        text = content

    raw = _parse_json(text, context) if fmt is ImportFormat.JSON else _parse_csv(text, context)
    candidates: list[ImportCandidate] = []
    for candidate in raw:
        locale = _match_locale(candidate.locale, known_locales)
        if locale == baseline or candidate.value == "":
            continue
        candidates.append(
            ImportCandidate(candidate.namespace, candidate.key, locale, candidate.value)
        )
    logger.debug("Parsed %d import candidate(s) from %s", len(candidates), fmt)
    return candidates


def _skip_reason(
    candidate: ImportCandidate,
    trees: Mapping[LocaleCode, CatalogTree],
    baseline_tree: CatalogTree,
) -> str | None:
    path = join_path(candidate.namespace, candidate.key)
    if candidate.locale not in trees:
        return f"unknown locale '{candidate.locale}'"
    if not candidate.namespace or "." in candidate.namespace or not is_valid_path(candidate.key):
        return f"invalid key '{path}'"
    if not isinstance(get_path(baseline_tree, path), str):
        return f"'{path}' is not a baseline key"
    if is_group(get_path(trees[candidate.locale], path)):
        return f"'{path}' is a group in '{candidate.locale}'"
    prefix = leaf_prefix(trees[candidate.locale], path)
    if prefix is not None:
        return f"'{path}' runs through the existing value '{prefix}' in '{candidate.locale}'"
    return None


def classify_candidates(
    candidates: Iterable[ImportCandidate],
    trees: Mapping[LocaleCode, CatalogTree],
    baseline_tree: CatalogTree,
) -> list[ImportItem]:
    """Classify candidates against the given trees (one per known locale)."""
    items: list[ImportItem] = []
    for candidate in candidates:
        reason = _skip_reason(candidate, trees, baseline_tree)
        if reason is not None:
            items.append(
                ImportItem(
                    candidate.namespace,
                    candidate.key,
                    candidate.locale,
                    candidate.value,
                    ImportStatus.SKIPPED,
                    reason=reason,
                )
            )
            continue
        current = get_path(trees[candidate.locale], join_path(candidate.namespace, candidate.key))
        if current is None:
            status = ImportStatus.ADDED
        elif current == candidate.value:
            status = ImportStatus.UNCHANGED
        else:
            status = ImportStatus.UPDATED
        items.append(
            ImportItem(
                candidate.namespace,
                candidate.key,
                candidate.locale,
                candidate.value,
                status,
                current if isinstance(current, str) else None,
            )
        )
    return items


# ============================================================================
# PIPELINE
# ============================================================================


class CatalogTransfer:
    """Export and import against a catalog store.

    Args:
        store: Catalog store
        snapshots: Snapshot store used before committing imports
        baseline: Returns the current baseline locale
    """

    __slots__ = ("_baseline", "_snapshots", "_store")

    def __init__(
        self,
        store: CatalogStore,
        snapshots: SnapshotStore,
        *,
        baseline: Callable[[], LocaleCode],
    ) -> None:
        self._store = store
        self._snapshots = snapshots
        self._baseline = baseline

    # ------------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------------

    def _matrix(
        self, export_filter: ExportFilter
    ) -> tuple[LocaleCode, list[LocaleCode], list[tuple[Namespace, KeyPath, dict[LocaleCode, str]]]]:
        baseline = self._baseline()
        context = ErrorContext(
            "export", locale=export_filter.locale, namespace=export_filter.namespace
        )
        locales = self._store.locales()
        if export_filter.locale is not None and export_filter.locale not in locales:
            msg = f"Unknown locale: '{export_filter.locale}'"
            raise NotFoundError(msg, context)

        trees = {code: self._store.load(code) for code in locales}
        if baseline not in trees:
            trees[baseline] = self._store.load(baseline)
        baseline_ns = namespace_leaves(trees[baseline])
        if export_filter.namespace is not None and export_filter.namespace not in baseline_ns:
            msg = f"Unknown namespace: '{export_filter.namespace}'"
            raise NotFoundError(msg, context)

        if export_filter.locale is not None:
            targets = [] if export_filter.locale == baseline else [export_filter.locale]
        else:
            targets = [code for code in sorted(trees) if code != baseline]
        target_ns = {code: namespace_leaves(trees[code]) for code in targets}

        rows: list[tuple[Namespace, KeyPath, dict[LocaleCode, str]]] = []
        for namespace in sorted(baseline_ns):
            if export_filter.namespace is not None and namespace != export_filter.namespace:
                continue
            for key in sorted(baseline_ns[namespace]):
                values = {baseline: baseline_ns[namespace][key]}
                for code in targets:
                    values[code] = target_ns[code].get(namespace, {}).get(key, "")
                if export_filter.missing_only and all(values[code] for code in targets):
                    continue
                rows.append((namespace, key, values))
        return baseline, targets, rows

    def export(
        self, fmt: ExportFormat | str, export_filter: ExportFilter | None = None
    ) -> ExportResult:
        """Serialize the (filtered) key matrix.

        Raises:
            InvalidArgumentError: If the format is unknown, or an XLIFF
                export has no target locale
            NotFoundError: If the filter names an unknown locale or namespace
        """
        export_filter = export_filter or ExportFilter()
        try:
            fmt = ExportFormat(str(fmt).lower())
        except ValueError:
            msg = f"Unsupported export format: '{fmt}' (expected json, csv or xliff)"
            raise InvalidArgumentError(msg, ErrorContext("export")) from None

        baseline, targets, rows = self._matrix(export_filter)
        match fmt:
            case ExportFormat.JSON:
                content = self._to_json(rows)
            case ExportFormat.CSV:
                content = self._to_csv(baseline, targets, rows)
            case _:
                if not targets:
                    msg = "XLIFF export needs at least one non-baseline target locale"
                    raise InvalidArgumentError(
                        msg, ErrorContext("export", locale=export_filter.locale)
                    )
                content = self._to_xliff(baseline, targets, rows)

        name_parts = ["messages", export_filter.namespace, export_filter.locale]
        filename = "-".join(part for part in name_parts if part) + f".{_SUFFIXES[fmt]}"
        logger.info("Exported %d key(s) as %s", len(rows), fmt)
        return ExportResult(fmt, content, _MEDIA_TYPES[fmt], filename, len(rows))

    @staticmethod
    def _to_json(rows: list[tuple[Namespace, KeyPath, dict[LocaleCode, str]]]) -> bytes:
        data: dict[str, dict[str, dict[str, str]]] = {}
        for namespace, key, values in rows:
            data.setdefault(namespace, {})[key] = values
        return (json.dumps(data, ensure_ascii=False, indent=2) + "\n").encode("utf-8")

    @staticmethod
    def _to_csv(
        baseline: LocaleCode,
        targets: list[LocaleCode],
        rows: list[tuple[Namespace, KeyPath, dict[LocaleCode, str]]],
    ) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        columns = [baseline, *targets]
        writer.writerow(["Namespace", "Key", *(code.upper() for code in columns)])
        for namespace, key, values in rows:
            writer.writerow([namespace, key, *(values[code] for code in columns)])
        return buffer.getvalue().encode("utf-8")

    @staticmethod
    def _to_xliff(
        baseline: LocaleCode,
        targets: list[LocaleCode],
        rows: list[tuple[Namespace, KeyPath, dict[LocaleCode, str]]],
    ) -> bytes:
        ET.register_namespace("", XLIFF_NAMESPACE)
        q = f"{{{XLIFF_NAMESPACE}}}"
        root = ET.Element(f"{q}xliff", {"version": "1.2"})
        by_namespace: dict[Namespace, list[tuple[KeyPath, dict[LocaleCode, str]]]] = {}
        for namespace, key, values in rows:
            by_namespace.setdefault(namespace, []).append((key, values))

        for target in targets:
            for namespace, entries in by_namespace.items():
                file_el = ET.SubElement(
                    root,
                    f"{q}file",
                    {
                        "original": namespace,
                        "source-language": baseline,
                        "target-language": target,
                        "datatype": "plaintext",
                    },
                )
                body = ET.SubElement(file_el, f"{q}body")
                for key, values in entries:
                    unit = ET.SubElement(body, f"{q}trans-unit", {"id": key})
                    ET.SubElement(unit, f"{q}source").text = values[baseline]
                    value = values[target]
                    target_el = ET.SubElement(
                        unit, f"{q}target", {"state": "translated" if value else "new"}
                    )
                    target_el.text = value
        ET.indent(root)
        return ET.tostring(root, encoding="utf-8", xml_declaration=True) + b"\n"

    # ------------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------------

    def import_catalog(
        self,
        fmt: ImportFormat | str,
        content: bytes | str,
        *,
        preview: bool = True,
        author: str = "system",
    ) -> ImportResult:
        """Classify an import file and, unless preview, apply it.

        Raises:
            InvalidArgumentError: If the format is unknown or content is malformed
        """
        baseline = self._baseline()
        locales = self._store.locales()
        candidates = parse_import(fmt, content, baseline=baseline, known_locales=locales)
        baseline_tree = self._store.load(baseline)
        targets = [code for code in locales if code != baseline]

        trees = {code: self._store.load(code) for code in targets}
        items = classify_candidates(candidates, trees, baseline_tree)
        planned = ImportResult(preview=True, items=tuple(items))
        if preview or not planned.affected_locales:
            logger.info("Import preview: %s", planned.counts)
            return ImportResult(preview=preview, items=tuple(items))

        affected = planned.affected_locales
        snapshots: list[SnapshotInfo] = []
        with self._store.transaction(affected) as txn:
            for locale in txn.locales:
                snapshots.extend(self._snapshots.create(locale))
            # Reclassify under the locks; a writer may have run since the preview.
            locked = {code: txn.tree(code) for code in txn.locales}
            locked.update({code: trees[code] for code in targets if code not in locked})
            items = classify_candidates(candidates, locked, baseline_tree)
            written = [
                item
                for item in items
                if item.status in (ImportStatus.ADDED, ImportStatus.UPDATED)
                and item.locale in txn.locales
            ]
            for item in written:
                set_path(txn.tree(item.locale), join_path(item.namespace, item.key), item.value)
            result = ImportResult(preview=False, items=tuple(items))
            entry = None
            if written:
                counts = result.counts
                entry = ChangeEntry.create(
                    ChangeAction.IMPORT,
                    locale=affected[0] if len(affected) == 1 else WILDCARD,
                    key=WILDCARD,
                    new_value=(
                        f"{counts[ImportStatus.ADDED]} added, "
                        f"{counts[ImportStatus.UPDATED]} updated, "
                        f"{counts[ImportStatus.SKIPPED]} skipped"
                    ),
                    author=author,
                    source=ChangeSource.IMPORT,
                )
                txn.record(entry)

        logger.info("Import committed to %s: %s", ", ".join(affected), result.counts)
        return ImportResult(
            preview=False, items=result.items, snapshots=tuple(snapshots), entry=entry
        )
