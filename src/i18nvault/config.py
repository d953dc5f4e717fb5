"""Configuration for a catalog workspace.

A single frozen dataclass carries every path, limit and translation
setting. Constructing ``CatalogConfig(root=...)`` with no other arguments
produces a usable configuration rooted at that directory.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from i18nvault.constants import (
    ARCHIVE_DIRNAME,
    CHANGELOG_FILENAME,
    DATA_DIRNAME,
    DEFAULT_BATCH_SIZE,
    DEFAULT_LOCALE,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TRANSLATION_MODEL,
    DEFAULT_TRANSLATION_TIMEOUT,
    MAX_BULK_UPDATES,
    MAX_CHANGELOG_ENTRIES,
    MAX_SNAPSHOTS_PER_LOCALE,
    MESSAGES_DIRNAME,
    ROLLBACK_EXAMPLE_LIMIT,
    SETTINGS_FILENAME,
    VERSIONS_DIRNAME,
)
from i18nvault.locale_utils import is_bcp47

__all__ = ["CatalogConfig"]

_ENV_PREFIX = "I18NVAULT_"


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Immutable configuration for a catalog workspace.

    Attributes:
        root: Project root. Relative directories below resolve against it.
        messages_dir: Directory holding one ``{locale}.json`` per locale.
        data_dir: Directory for the ledger, settings and snapshot archive.
        default_locale: Baseline used when no settings file exists yet.
        app_name: Product name used in the translation system instruction.
        changelog_limit: Ledger entries retained (FIFO).
        snapshot_limit: Snapshots retained per locale (FIFO).
        bulk_update_limit: Maximum items per bulk_update call.
        translation_batch_size: Baseline entries per model request.
        translation_timeout: Seconds allowed per model request.
        translation_model: Model identifier passed to the completion client.
        max_tokens: Completion token cap per model request.
        rollback_example_limit: Examples per category in a rollback preview.
        admin_token: Credential required for mutating service calls.
            ``None`` refuses every mutating call.
        source_dir: Application source tree scanned for namespace consumers
            (optional).

    Example:
        >>> config = CatalogConfig(root=Path("/srv/site"))
        >>> config.messages_path
        PosixPath('/srv/site/messages')
    """

    root: Path
    messages_dir: str = MESSAGES_DIRNAME
    data_dir: str = DATA_DIRNAME
    default_locale: str = DEFAULT_LOCALE
    app_name: str = "the application"
    changelog_limit: int = MAX_CHANGELOG_ENTRIES
    snapshot_limit: int = MAX_SNAPSHOTS_PER_LOCALE
    bulk_update_limit: int = MAX_BULK_UPDATES
    translation_batch_size: int = DEFAULT_BATCH_SIZE
    translation_timeout: float = DEFAULT_TRANSLATION_TIMEOUT
    translation_model: str = DEFAULT_TRANSLATION_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    rollback_example_limit: int = ROLLBACK_EXAMPLE_LIMIT
    admin_token: str | None = None
    source_dir: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration values at construction time.

        Raises:
            ValueError: If a limit is not positive or default_locale is not
                a BCP-47 code.
        """
        object.__setattr__(self, "root", Path(self.root))
        for name in (
            "changelog_limit",
            "snapshot_limit",
            "bulk_update_limit",
            "translation_batch_size",
            "max_tokens",
            "rollback_example_limit",
        ):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive"
                raise ValueError(msg)
        if self.translation_timeout <= 0:
            msg = "translation_timeout must be positive"
            raise ValueError(msg)
        if not is_bcp47(self.default_locale):
            msg = f"default_locale must be a BCP-47 code, got {self.default_locale!r}"
            raise ValueError(msg)

    @property
    def messages_path(self) -> Path:
        """Directory of live locale catalogs."""
        return self.root / self.messages_dir

    @property
    def archive_path(self) -> Path:
        """Directory of archived locale catalogs (not enumerated as locales)."""
        return self.messages_path / ARCHIVE_DIRNAME

    @property
    def data_path(self) -> Path:
        """Directory of ledger, settings and snapshots."""
        return self.root / self.data_dir

    @property
    def versions_path(self) -> Path:
        """Directory of snapshot files."""
        return self.data_path / VERSIONS_DIRNAME

    @property
    def changelog_path(self) -> Path:
        """Ledger file."""
        return self.data_path / CHANGELOG_FILENAME

    @property
    def settings_path(self) -> Path:
        """Locale settings file."""
        return self.data_path / SETTINGS_FILENAME

    @property
    def source_path(self) -> Path | None:
        """Application source tree, if configured."""
        return self.root / self.source_dir if self.source_dir else None

    @classmethod
    def from_env(cls, root: Path | str | None = None) -> CatalogConfig:
        """Build a configuration from ``I18NVAULT_*`` environment variables.

        Recognized variables: ROOT, MESSAGES_DIR, DATA_DIR, DEFAULT_LOCALE,
        APP_NAME, ADMIN_TOKEN, SOURCE_DIR, TRANSLATION_MODEL,
        TRANSLATION_TIMEOUT, BATCH_SIZE.

        Args:
            root: Overrides I18NVAULT_ROOT. Falls back to the working directory.

        Raises:
            ValueError: If a numeric variable does not parse
        """
        env = os.environ

        def _get(name: str) -> str | None:
            value = env.get(_ENV_PREFIX + name)
            return value if value else None

        kwargs: dict[str, object] = {}
        for attr, name in (
            ("messages_dir", "MESSAGES_DIR"),
            ("data_dir", "DATA_DIR"),
            ("default_locale", "DEFAULT_LOCALE"),
            ("app_name", "APP_NAME"),
            ("admin_token", "ADMIN_TOKEN"),
            ("source_dir", "SOURCE_DIR"),
            ("translation_model", "TRANSLATION_MODEL"),
        ):
            value = _get(name)
            if value is not None:
                kwargs[attr] = value

        timeout = _get("TRANSLATION_TIMEOUT")
        if timeout is not None:
            kwargs["translation_timeout"] = float(timeout)
        batch_size = _get("BATCH_SIZE")
        if batch_size is not None:
            kwargs["translation_batch_size"] = int(batch_size)

        resolved_root = Path(root) if root is not None else Path(_get("ROOT") or Path.cwd())
        return cls(root=resolved_root, **kwargs)  # type: ignore[arg-type]
