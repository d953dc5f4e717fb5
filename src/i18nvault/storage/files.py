"""File primitives shared by every on-disk store.

All persisted state is JSON. Writes go to a dot-prefixed temporary file in
the destination directory and are moved into place with os.replace, so a
reader either sees the previous complete file or the new complete file.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from i18nvault.constants import TIMESTAMP_FORMAT

__all__ = [
    "atomic_write_bytes",
    "content_hash",
    "dump_json",
    "format_timestamp",
    "iso_now",
    "parse_timestamp",
    "read_json",
    "stage_bytes",
    "utc_now",
]


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(UTC)


def iso_now() -> str:
    """Current time as an ISO 8601 string (ledger timestamps)."""
    return utc_now().isoformat()


def format_timestamp(moment: datetime) -> str:
    """Format moment for use inside a file name."""
    return moment.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Inverse of format_timestamp.

    Raises:
        ValueError: If text is not in the file-name timestamp format
    """
    return datetime.strptime(text, TIMESTAMP_FORMAT).replace(tzinfo=UTC)


def dump_json(data: Any) -> bytes:
    """Serialize data deterministically: sorted keys, 2-space indent, trailing newline."""
    text = json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True)
    return (text + "\n").encode("utf-8")


def read_json(path: Path) -> Any:
    """Parse a UTF-8 JSON file.

    Raises:
        FileNotFoundError: If path does not exist
        json.JSONDecodeError: If the content is not valid JSON
    """
    return json.loads(path.read_text(encoding="utf-8"))


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest used as an optimistic-concurrency version token."""
    return hashlib.sha256(data).hexdigest()


def stage_bytes(path: Path, data: bytes) -> Path:
    """Write data to a hidden temporary file next to path and return its name.

    The caller finishes the write with ``os.replace(staged, path)`` or
    discards it with ``staged.unlink()``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    staged = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            staged.unlink()
        raise
    return staged


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Replace path with data in one rename."""
    staged = stage_bytes(path, data)
    try:
        os.replace(staged, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            staged.unlink()
        raise
