"""i18nvault - management of per-locale JSON message catalogs.

One JSON file per locale holds a tree of namespaces and dot-path keys. The
default locale is the baseline every other locale is measured against.
Every write is atomic, recorded in a capped change ledger, and can be
undone or rolled back from a snapshot.

Public API:
    CatalogService - Facade over every catalog operation
    CatalogConfig - Paths, limits and translation settings for a workspace

Exceptions:
    I18nVaultError - Base exception class
    InvalidArgumentError, NotFoundError, ConflictError, UnsupportedError,
    ExternalServiceError, UnauthorizedError

Submodules:
    i18nvault.storage - Catalog files, ledger, snapshots, locale settings
    i18nvault.analysis - Coverage, quality scan, namespace consumers
    i18nvault.operations - Key edits, import/export, rollback, undo, locale lifecycle
    i18nvault.translation - Batched machine translation proposals
"""

from .config import CatalogConfig
from .errors import (
    ConflictError,
    ErrorContext,
    ExternalServiceError,
    I18nVaultError,
    InvalidArgumentError,
    NotFoundError,
    UnauthorizedError,
    UnsupportedError,
)
from .service import CatalogService

# Version information - Auto-populated from package metadata
from importlib.metadata import PackageNotFoundError  # noqa: E402
from importlib.metadata import version as _get_version  # noqa: E402

try:
    __version__ = _get_version("i18nvault")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "CatalogConfig",
    "CatalogService",
    "ConflictError",
    "ErrorContext",
    "ExternalServiceError",
    "I18nVaultError",
    "InvalidArgumentError",
    "NotFoundError",
    "UnauthorizedError",
    "UnsupportedError",
    "__version__",
]
