"""Exception hierarchy for catalog operations.

Every failure that reaches a caller is one of the classes below, carrying
an ErrorContext that names the offending locale/namespace/key so the
caller can retry narrowly.

Hierarchy:
    I18nVaultError (base)
    ├─ InvalidArgumentError (malformed code/path, missing field, size limit)
    ├─ NotFoundError (unknown locale/namespace/key/snapshot/entry)
    ├─ ConflictError (duplicate key/locale, stale version token)
    ├─ UnsupportedError (no recoverable value, default-locale restrictions)
    ├─ ExternalServiceError (translation model failure or timeout)
    └─ UnauthorizedError (missing or wrong admin credential)

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ConflictError",
    "ErrorContext",
    "ExternalServiceError",
    "I18nVaultError",
    "InvalidArgumentError",
    "NotFoundError",
    "UnauthorizedError",
    "UnsupportedError",
]


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Where an error happened.

    Attributes:
        operation: Operation being performed (add_key, import, rollback, ...)
        locale: Locale code involved (optional)
        namespace: Namespace involved (optional)
        key: Dot-path key or resource name involved (optional)
    """

    operation: str
    locale: str | None = None
    namespace: str | None = None
    key: str | None = None

    def describe(self) -> str:
        """Return a compact "operation locale/namespace.key" description."""
        target = "/".join(part for part in (self.locale, self.namespace) if part)
        if self.key:
            target = f"{target}.{self.key}" if self.namespace else f"{target}/{self.key}"
        return f"{self.operation} {target}".strip()


class I18nVaultError(Exception):
    """Base exception for all catalog errors.

    Attributes:
        context: Structured location of the failure (optional)
    """

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        """Initialize I18nVaultError.

        Args:
            message: Human-readable error description
            context: Structured location of the failure (optional)
        """
        super().__init__(message)
        self.context = context

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.args[0]!r}, context={self.context!r})"


class InvalidArgumentError(I18nVaultError):
    """Malformed input: bad locale code, empty path segment, missing field.

    Also raised for calls that are structurally forbidden, such as editing
    the baseline locale through update_key/bulk_update.
    """


class NotFoundError(I18nVaultError):
    """Referenced locale, namespace, key, snapshot or ledger entry does not exist."""


class ConflictError(I18nVaultError):
    """Target already exists, or the file changed since the caller read it."""


class UnsupportedError(I18nVaultError):
    """Operation is well-formed but cannot be performed on this target.

    Examples:
        - Undo of a ledger entry that carries no recoverable old value
        - Disabling or removing the default locale
    """


class ExternalServiceError(I18nVaultError):
    """Translation model call failed or timed out.

    Inside the batch pipeline this is caught per batch and reported as a
    failed batch; it only propagates from single-call entry points.

    Attributes:
        batch_index: Zero-based batch number within the locale run (optional)
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        batch_index: int | None = None,
    ) -> None:
        """Initialize ExternalServiceError.

        Args:
            message: Human-readable error description
            context: Structured location of the failure (optional)
            batch_index: Zero-based batch number (optional)
        """
        super().__init__(message, context)
        self.batch_index = batch_index


class UnauthorizedError(I18nVaultError):
    """Mutating call made without a valid admin credential."""
