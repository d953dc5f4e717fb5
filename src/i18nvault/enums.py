"""Enumerations for i18nvault type-safe constants.

Uses StrEnum (Python 3.11+) for automatic string conversion.
StrEnum members are strings themselves, so they serialize to JSON and
compare against raw strings read back from disk without boilerplate.

Python 3.13+.
"""

from enum import StrEnum

__all__ = [
    "ChangeAction",
    "ChangeSource",
    "DiffCategory",
    "ExportFormat",
    "ImportFormat",
    "ImportStatus",
    "QualityCheck",
    "SeedStrategy",
    "Severity",
]


class ChangeAction(StrEnum):
    """Kind of mutation recorded in the changelog."""

    ADD = "add"
    """New key added to every locale"""

    UPDATE = "update"
    """Single value changed in one locale"""

    DELETE = "delete"
    """Key removed from every locale that had it"""

    BULK_UPDATE = "bulk_update"
    """Many values changed in one locale in one call"""

    IMPORT = "import"
    """Values applied from an imported JSON/CSV file"""

    ROLLBACK = "rollback"
    """Locale restored from a snapshot, or an undo of an earlier entry"""

    LOCALE_ADD = "locale_add"
    """New locale catalog created"""

    LOCALE_REMOVE = "locale_remove"
    """Locale catalog archived"""

    LOCALE_RESTORE = "locale_restore"
    """Archived locale catalog moved back into service"""


class ChangeSource(StrEnum):
    """Origin of a mutation recorded in the changelog."""

    MANUAL = "manual"
    BULK = "bulk"
    IMPORT = "import"
    ROLLBACK = "rollback"
    UNDO = "undo"
    AI = "ai"
    SYSTEM = "system"


class Severity(StrEnum):
    """Quality issue severity, most severe first."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class QualityCheck(StrEnum):
    """Structural check that produced a quality issue."""

    EMPTY = "empty"
    MISSING_VARIABLES = "missing_variables"
    ICU_SYNTAX = "icu_syntax"
    HTML_TAGS = "html_tags"
    UNTRANSLATED = "untranslated"
    LENGTH_ANOMALY = "length_anomaly"
    WHITESPACE = "whitespace"


class ExportFormat(StrEnum):
    """Serialization formats accepted by export."""

    JSON = "json"
    CSV = "csv"
    XLIFF = "xliff"


class ImportFormat(StrEnum):
    """Serialization formats accepted by import."""

    JSON = "json"
    CSV = "csv"


class ImportStatus(StrEnum):
    """Classification of one imported value against current state."""

    ADDED = "added"
    """Namespace or key missing in the target locale"""

    UPDATED = "updated"
    """Key present with a different value"""

    UNCHANGED = "unchanged"
    """Key present with the identical value"""

    SKIPPED = "skipped"
    """Locale is not a known catalog"""


class DiffCategory(StrEnum):
    """Leaf-key difference between a snapshot and the current catalog."""

    ADDED = "added"
    """In the snapshot only; restored by rollback"""

    REMOVED = "removed"
    """In the current catalog only; discarded by rollback"""

    CHANGED = "changed"
    """In both with different values"""


class SeedStrategy(StrEnum):
    """How a newly added locale is populated."""

    CLONE_EMPTY = "clone-empty"
    AI_SEED = "ai-seed"
    IMPORT_LATER = "import-later"
