"""Immutable point-in-time copies of locale catalogs.

Snapshots are byte-for-byte copies of a locale file, stored as
``{locale}_{timestamp}.json`` in the versions directory. They are only
ever created or deleted, never modified. Retention is capped per locale;
creating a snapshot prunes the oldest ones beyond the cap.

Atomicity:
    Each snapshot is staged under a hidden temporary name and renamed into
    place, and create+prune run under the exclusive side of a readers-writer
    lock while list() runs under the shared side. A listing therefore never
    observes a half-written snapshot or one that is mid-deletion.

Python 3.13+.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from i18nvault.constants import CATALOG_SUFFIX, MAX_SNAPSHOTS_PER_LOCALE
from i18nvault.core.rwlock import RWLock
from i18nvault.errors import ErrorContext, InvalidArgumentError, NotFoundError
from i18nvault.locale_utils import is_bcp47
from i18nvault.storage.files import (
    atomic_write_bytes,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

if TYPE_CHECKING:
    from i18nvault.core.types import CatalogTree, LocaleCode
    from i18nvault.storage.catalog import CatalogStore

logger = logging.getLogger(__name__)

__all__ = ["SnapshotInfo", "SnapshotStore", "parse_snapshot_name"]


def parse_snapshot_name(filename: str) -> tuple[LocaleCode, datetime] | None:
    """Split "{locale}_{timestamp}.json" into its parts, or None if malformed.

    Example:
        >>> parse_snapshot_name("pt-BR_20261019T133200000000Z.json")[0]
        'pt-BR'
    """
    stem = filename.removesuffix(CATALOG_SUFFIX)
    if stem == filename or "_" not in stem:
        return None
    locale, _, stamp = stem.rpartition("_")
    if not is_bcp47(locale):
        return None
    try:
        created = parse_timestamp(stamp)
    except ValueError:
        return None
    return locale, created


@dataclass(frozen=True, slots=True)
class SnapshotInfo:
    """Metadata of one stored snapshot.

    Attributes:
        filename: "{locale}_{timestamp}.json"; the snapshot's identifier
        locale: Locale the snapshot copies
        created_at: UTC creation time
        size: File size in bytes
    """

    filename: str
    locale: LocaleCode
    created_at: datetime
    size: int

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "filename": self.filename,
            "locale": self.locale,
            "createdAt": self.created_at.isoformat(),
            "size": self.size,
        }


class SnapshotStore:
    """Per-locale snapshot archive with capped retention."""

    __slots__ = ("_catalogs", "_limit", "_lock", "_root")

    def __init__(
        self,
        versions_path: Path,
        catalogs: CatalogStore,
        *,
        limit: int = MAX_SNAPSHOTS_PER_LOCALE,
    ) -> None:
        if limit <= 0:
            msg = "limit must be positive"
            raise ValueError(msg)
        self._root = versions_path
        self._catalogs = catalogs
        self._limit = limit
        self._lock = RWLock()

    @property
    def limit(self) -> int:
        """Snapshots retained per locale."""
        return self._limit

    def _resolve(self, filename: str) -> tuple[Path, LocaleCode]:
        """Validate a snapshot name and return its path and locale.

        Raises:
            InvalidArgumentError: If filename is malformed or escapes the archive
        """
        context = ErrorContext("snapshot.resolve", key=filename)
        if "/" in filename or "\\" in filename or ".." in filename:
            msg = f"Path components not allowed in snapshot name: '{filename}'"
            raise InvalidArgumentError(msg, context)
        parsed = parse_snapshot_name(filename)
        if parsed is None:
            msg = f"Not a snapshot name (expected '{{locale}}_{{timestamp}}.json'): '{filename}'"
            raise InvalidArgumentError(msg, context)
        return self._root / filename, parsed[0]

    def _scan(self, locale: LocaleCode | None) -> list[SnapshotInfo]:
        if not self._root.is_dir():
            return []
        infos: list[SnapshotInfo] = []
        for path in self._root.glob(f"*{CATALOG_SUFFIX}"):
            if path.name.startswith("."):
                continue
            parsed = parse_snapshot_name(path.name)
            if parsed is None:
                continue
            snap_locale, created = parsed
            if locale is not None and snap_locale != locale:
                continue
            infos.append(SnapshotInfo(path.name, snap_locale, created, path.stat().st_size))
        infos.sort(key=lambda info: (info.created_at, info.filename), reverse=True)
        return infos

    def list(self, locale: LocaleCode | None = None) -> tuple[SnapshotInfo, ...]:
        """Snapshot metadata, newest first, optionally for one locale."""
        with self._lock.read():
            return tuple(self._scan(locale))

    def _unique_name(self, locale: LocaleCode, moment: datetime) -> tuple[str, datetime]:
        # Two snapshots in the same microsecond get distinct names.
        while True:
            name = f"{locale}_{format_timestamp(moment)}{CATALOG_SUFFIX}"
            if not (self._root / name).exists():
                return name, moment
            moment += timedelta(microseconds=1)

    def create(self, locale: LocaleCode | None = None) -> tuple[SnapshotInfo, ...]:
        """Copy the current catalog of locale (or of every locale).

        Raises:
            NotFoundError: If locale is given and has no catalog
        """
        targets = (locale,) if locale is not None else self._catalogs.locales()
        created: list[SnapshotInfo] = []
        with self._lock.write():
            moment = utc_now()
            for target in targets:
                data = self._catalogs.read_bytes(target)
                name, stamped = self._unique_name(target, moment)
                path = self._root / name
                atomic_write_bytes(path, data)
                info = SnapshotInfo(name, target, stamped, len(data))
                created.append(info)
                logger.info("Created snapshot %s (%d bytes)", name, len(data))
                self._prune(target)
        return tuple(created)

    def _prune(self, locale: LocaleCode) -> None:
        for stale in self._scan(locale)[self._limit :]:
            (self._root / stale.filename).unlink(missing_ok=True)
            logger.info("Pruned snapshot %s (retention %d)", stale.filename, self._limit)

    def read_bytes(self, filename: str) -> bytes:
        """Raw content of a snapshot.

        Raises:
            InvalidArgumentError: If filename is malformed
            NotFoundError: If no such snapshot exists
        """
        path, locale = self._resolve(filename)
        with self._lock.read():
            try:
                return path.read_bytes()
            except FileNotFoundError as e:
                msg = f"Snapshot not found: '{filename}'"
                raise NotFoundError(
                    msg, ErrorContext("snapshot.load", locale=locale, key=filename)
                ) from e

    def load(self, filename: str) -> tuple[LocaleCode, CatalogTree]:
        """Parse a snapshot.

        Returns:
            (locale, tree)

        Raises:
            InvalidArgumentError: If filename or content is malformed
            NotFoundError: If no such snapshot exists
        """
        _, locale = self._resolve(filename)
        return locale, self._catalogs.parse(self.read_bytes(filename), locale)

    def delete(self, filename: str) -> None:
        """Remove a snapshot.

        Raises:
            InvalidArgumentError: If filename is malformed
            NotFoundError: If no such snapshot exists
        """
        path, locale = self._resolve(filename)
        with self._lock.write():
            if not path.is_file():
                msg = f"Snapshot not found: '{filename}'"
                raise NotFoundError(
                    msg, ErrorContext("snapshot.delete", locale=locale, key=filename)
                )
            path.unlink()
        logger.info("Deleted snapshot %s", filename)
