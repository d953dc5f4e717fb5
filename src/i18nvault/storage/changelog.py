"""Append-only, capped mutation history.

Every committed catalog write is paired with one or more ChangeEntry
records. The ledger is a single JSON array stored newest-first and
truncated to a fixed size, so the oldest history falls off once the cap
is reached.

Undo of an entry lives in i18nvault.operations.history; it needs the
catalog store as well as the ledger.

Python 3.13+.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from i18nvault.constants import MAX_CHANGELOG_ENTRIES, WILDCARD
from i18nvault.core.rwlock import RWLock
from i18nvault.enums import ChangeAction, ChangeSource
from i18nvault.errors import ErrorContext, InvalidArgumentError, NotFoundError
from i18nvault.storage.files import atomic_write_bytes, dump_json, iso_now, read_json

logger = logging.getLogger(__name__)

__all__ = ["ChangeEntry", "ChangelogLedger", "ChangelogPage"]


@dataclass(frozen=True, slots=True)
class ChangeEntry:
    """One recorded mutation.

    Attributes:
        id: Unique entry identifier (hex UUID)
        timestamp: ISO 8601 UTC time of the commit
        action: Kind of mutation
        locale: Affected locale, or "*" when the entry spans locales
        namespace: Affected namespace, or "*"
        key: Affected dot-path key, or "*" for bulk/import/rollback
        old_value: Value before the change (None when absent or not tracked)
        new_value: Value after the change (summary text for bulk operations)
        author: Who made the change
        source: Where the change came from
        locale_values: Per-locale values for entries spanning locales.
            For ADD the values written, for DELETE the values removed.
    """

    id: str
    timestamp: str
    action: ChangeAction
    locale: str
    namespace: str
    key: str
    old_value: str | None
    new_value: str | None
    author: str
    source: ChangeSource
    locale_values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        action: ChangeAction,
        *,
        locale: str = WILDCARD,
        namespace: str = WILDCARD,
        key: str = WILDCARD,
        old_value: str | None = None,
        new_value: str | None = None,
        author: str = "system",
        source: ChangeSource = ChangeSource.MANUAL,
        locale_values: dict[str, str] | None = None,
    ) -> ChangeEntry:
        """Build a new entry with a fresh id and the current timestamp."""
        return cls(
            id=uuid.uuid4().hex,
            timestamp=iso_now(),
            action=action,
            locale=locale,
            namespace=namespace,
            key=key,
            old_value=old_value,
            new_value=new_value,
            author=author,
            source=source,
            locale_values=dict(locale_values or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action": str(self.action),
            "locale": self.locale,
            "namespace": self.namespace,
            "key": self.key,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "author": self.author,
            "source": str(self.source),
            "localeValues": dict(self.locale_values),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeEntry:
        """Rebuild an entry from its to_dict() form.

        Raises:
            KeyError: If a required field is missing
            ValueError: If action or source is not a known value
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action=ChangeAction(data["action"]),
            locale=data.get("locale", WILDCARD),
            namespace=data.get("namespace", WILDCARD),
            key=data.get("key", WILDCARD),
            old_value=data.get("oldValue"),
            new_value=data.get("newValue"),
            author=data.get("author", "system"),
            source=ChangeSource(data.get("source", ChangeSource.MANUAL)),
            locale_values=dict(data.get("localeValues") or {}),
        )


@dataclass(frozen=True, slots=True)
class ChangelogPage:
    """One page of a ledger query plus aggregate counts.

    Counts cover every entry matching the filters, not just this page.
    """

    entries: tuple[ChangeEntry, ...]
    total: int
    offset: int
    limit: int
    counts_by_action: dict[str, int]
    counts_by_source: dict[str, int]
    counts_by_locale: dict[str, int]

    @property
    def has_more(self) -> bool:
        """True if entries exist beyond this page."""
        return self.offset + len(self.entries) < self.total

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "total": self.total,
            "offset": self.offset,
            "limit": self.limit,
            "hasMore": self.has_more,
            "countsByAction": dict(self.counts_by_action),
            "countsBySource": dict(self.counts_by_source),
            "countsByLocale": dict(self.counts_by_locale),
        }


class ChangelogLedger:
    """File-backed ledger, newest entry first, capped at ``limit`` entries.

    Thread-safe: appends are exclusive, queries share a read lock.
    """

    __slots__ = ("_limit", "_lock", "_path")

    def __init__(self, path: Path, *, limit: int = MAX_CHANGELOG_ENTRIES) -> None:
        if limit <= 0:
            msg = "limit must be positive"
            raise ValueError(msg)
        self._path = path
        self._limit = limit
        self._lock = RWLock()

    @property
    def path(self) -> Path:
        """Ledger file location."""
        return self._path

    @property
    def limit(self) -> int:
        """Maximum retained entries."""
        return self._limit

    def _read(self) -> list[ChangeEntry]:
        if not self._path.exists():
            return []
        try:
            raw = read_json(self._path)
        except json.JSONDecodeError as e:
            msg = f"Changelog file is not valid JSON: {self._path}"
            raise InvalidArgumentError(msg, ErrorContext("changelog.read")) from e
        if not isinstance(raw, list):
            msg = f"Changelog file must contain a JSON array: {self._path}"
            raise InvalidArgumentError(msg, ErrorContext("changelog.read"))
        entries: list[ChangeEntry] = []
        for item in raw:
            try:
                entries.append(ChangeEntry.from_dict(item))
            except (KeyError, ValueError, TypeError):
                logger.warning("Skipping malformed changelog record: %r", item)
        return entries

    def append(self, *entries: ChangeEntry) -> None:
        """Record entries, newest first, then truncate to the cap.

        When several entries are passed they are stored so that the last
        argument ends up first (it is the most recent).
        """
        if not entries:
            return
        with self._lock.write():
            existing = self._read()
            combined = list(reversed(entries)) + existing
            dropped = max(0, len(combined) - self._limit)
            combined = combined[: self._limit]
            atomic_write_bytes(self._path, dump_json([e.to_dict() for e in combined]))
        for entry in entries:
            logger.debug(
                "Changelog %s %s %s/%s.%s", entry.id, entry.action,
                entry.locale, entry.namespace, entry.key,
            )
        if dropped:
            logger.debug("Changelog truncated %d oldest entries", dropped)

    def entries(self) -> tuple[ChangeEntry, ...]:
        """All retained entries, newest first."""
        with self._lock.read():
            return tuple(self._read())

    def count(self) -> int:
        """Number of retained entries."""
        return len(self.entries())

    def get(self, entry_id: str) -> ChangeEntry:
        """Look up one entry.

        Raises:
            NotFoundError: If no retained entry has this id
        """
        for entry in self.entries():
            if entry.id == entry_id:
                return entry
        msg = f"Changelog entry not found: {entry_id}"
        raise NotFoundError(msg, ErrorContext("changelog.get", key=entry_id))

    def query(
        self,
        *,
        locale: str | None = None,
        namespace: str | None = None,
        action: ChangeAction | str | None = None,
        source: ChangeSource | str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> ChangelogPage:
        """Filter entries and return one page, newest first.

        A locale or namespace filter also matches wildcard entries that
        span every locale/namespace.

        Raises:
            InvalidArgumentError: If limit is not positive or offset is negative
        """
        if limit <= 0 or offset < 0:
            msg = f"Invalid pagination: limit={limit}, offset={offset}"
            raise InvalidArgumentError(msg, ErrorContext("changelog.query"))

        def _matches(entry: ChangeEntry) -> bool:
            if locale is not None and entry.locale not in (locale, WILDCARD):
                return False
            if namespace is not None and entry.namespace not in (namespace, WILDCARD):
                return False
            if action is not None and entry.action != action:
                return False
            return source is None or entry.source == source

        matched = [entry for entry in self.entries() if _matches(entry)]
        return ChangelogPage(
            entries=tuple(matched[offset : offset + limit]),
            total=len(matched),
            offset=offset,
            limit=limit,
            counts_by_action=dict(Counter(str(e.action) for e in matched)),
            counts_by_source=dict(Counter(str(e.source) for e in matched)),
            counts_by_locale=dict(Counter(e.locale for e in matched)),
        )
