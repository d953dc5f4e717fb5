"""Readers-writer lock guarding shared on-disk collections.

Used where many readers (snapshot listing, ledger queries) share a
resource with occasional exclusive writers (snapshot creation + pruning,
ledger append). Guarantees:

- Multiple concurrent readers
- Exclusive writer access
- Writer preference, so a steady stream of list() calls cannot starve create()
- Reentrant reads within one thread
- Optional acquisition timeout (raises TimeoutError)

Read-to-write upgrade, write-to-read downgrade and write reentrancy are
rejected with RuntimeError; each of them would otherwise deadlock.

Python 3.13+.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = ["RWLock"]


class RWLock:
    """Readers-writer lock with writer preference.

    Example:
        >>> lock = RWLock()
        >>> with lock.read():
        ...     pass  # list snapshots
        >>> with lock.write():
        ...     pass  # write snapshot file, prune oldest
    """

    __slots__ = ("_condition", "_readers", "_waiting_writers", "_writer")

    def __init__(self) -> None:
        """Initialize readers-writer lock."""
        self._condition = threading.Condition(threading.Lock())
        # thread id -> reentrant read depth
        self._readers: dict[int, int] = {}
        self._writer: int | None = None
        self._waiting_writers = 0

    @contextmanager
    def read(self, timeout: float | None = None) -> Generator[None]:
        """Hold the lock in shared mode for the duration of the block.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Raises:
            RuntimeError: If the thread holds the write lock.
            TimeoutError: If the lock cannot be acquired within timeout.
            ValueError: If timeout is negative.
        """
        self._acquire_read(timeout)
        try:
            yield
        finally:
            self._release_read()

    @contextmanager
    def write(self, timeout: float | None = None) -> Generator[None]:
        """Hold the lock exclusively for the duration of the block.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Raises:
            RuntimeError: If the thread already holds the read or write lock.
            TimeoutError: If the lock cannot be acquired within timeout.
            ValueError: If timeout is negative.
        """
        self._acquire_write(timeout)
        try:
            yield
        finally:
            self._release_write()

    @property
    def writer_active(self) -> bool:
        """True if any thread currently holds the write lock."""
        with self._condition:
            return self._writer is not None

    @staticmethod
    def _deadline(timeout: float | None) -> float | None:
        if timeout is None:
            return None
        if timeout < 0:
            msg = f"Timeout must be non-negative, got {timeout}"
            raise ValueError(msg)
        return time.monotonic() + timeout

    def _wait(self, deadline: float | None, what: str) -> None:
        if deadline is None:
            self._condition.wait()
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            msg = f"Timed out waiting for {what} lock"
            raise TimeoutError(msg)
        self._condition.wait(timeout=remaining)

    def _acquire_read(self, timeout: float | None) -> None:
        deadline = self._deadline(timeout)
        me = threading.get_ident()
        with self._condition:
            if me in self._readers:
                self._readers[me] += 1
                return
            if self._writer == me:
                msg = "Cannot acquire read lock while holding write lock"
                raise RuntimeError(msg)
            while self._writer is not None or self._waiting_writers > 0:
                self._wait(deadline, "read")
            self._readers[me] = 1

    def _release_read(self) -> None:
        me = threading.get_ident()
        with self._condition:
            depth = self._readers.get(me)
            if depth is None:
                msg = "Thread does not hold read lock"
                raise RuntimeError(msg)
            if depth > 1:
                self._readers[me] = depth - 1
                return
            del self._readers[me]
            if not self._readers:
                self._condition.notify_all()

    def _acquire_write(self, timeout: float | None) -> None:
        deadline = self._deadline(timeout)
        me = threading.get_ident()
        with self._condition:
            if me in self._readers:
                msg = "Cannot upgrade read lock to write lock"
                raise RuntimeError(msg)
            if self._writer == me:
                msg = "Write lock is not reentrant"
                raise RuntimeError(msg)
            self._waiting_writers += 1
            try:
                while self._readers or self._writer is not None:
                    self._wait(deadline, "write")
                self._writer = me
            finally:
                # Readers blocked on waiting writers must re-check after a timeout.
                self._waiting_writers -= 1
                self._condition.notify_all()

    def _release_write(self) -> None:
        with self._condition:
            if self._writer != threading.get_ident():
                msg = "Thread does not hold write lock"
                raise RuntimeError(msg)
            self._writer = None
            self._condition.notify_all()
