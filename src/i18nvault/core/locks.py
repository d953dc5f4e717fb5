"""Per-locale mutual exclusion for read-modify-write on catalog files.

Each locale file gets its own lock so that edits to different locales
proceed in parallel while two edits of the same locale serialize. Locks
for several locales are always taken in sorted order, which rules out
lock-order deadlocks between multi-locale transactions.

Python 3.13+.
"""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable

__all__ = ["LocaleLockRegistry"]


class LocaleLockRegistry:
    """Lazily created reentrant lock per locale code.

    Reentrant so that a transaction holding "es" can call helpers that
    re-enter "es" on the same thread (undo inside a service call, for
    example) without deadlocking.
    """

    __slots__ = ("_guard", "_locks")

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, locale: str) -> threading.RLock:
        """Return the lock for locale, creating it on first use."""
        with self._guard:
            lock = self._locks.get(locale)
            if lock is None:
                lock = threading.RLock()
                self._locks[locale] = lock
            return lock

    @contextmanager
    def hold(self, locales: Iterable[str]) -> Generator[tuple[str, ...]]:
        """Acquire the locks for locales in sorted order.

        Yields:
            The sorted, de-duplicated locale codes that are now held.
        """
        ordered = tuple(sorted(set(locales)))
        with ExitStack() as stack:
            for locale in ordered:
                stack.enter_context(self.lock_for(locale))
            yield ordered
