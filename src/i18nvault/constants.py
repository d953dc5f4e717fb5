"""Shared constants for i18nvault.

Centralized limits and defaults used across the storage, analysis,
operations and translation packages. Placing them here avoids circular
imports between those packages.

Constants are grouped by domain:
- Retention limits: Bounded history for the ledger and snapshot archive
- Mutation limits: Request size caps
- Quality thresholds: Heuristics for the quality scanner
- Translation: Batching and timeout defaults for the model pipeline
- Layout: On-disk names

Python 3.13+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Retention limits
    "MAX_CHANGELOG_ENTRIES",
    "MAX_SNAPSHOTS_PER_LOCALE",
    # Mutation limits
    "MAX_BULK_UPDATES",
    "ROLLBACK_EXAMPLE_LIMIT",
    "WILDCARD",
    # Quality thresholds
    "UNTRANSLATED_MIN_LENGTH",
    "LENGTH_ANOMALY_RATIO",
    "LENGTH_ANOMALY_MIN_BASELINE",
    # Translation
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_TRANSLATION_TIMEOUT",
    "DEFAULT_TRANSLATION_MODEL",
    "DEFAULT_MAX_TOKENS",
    # Layout
    "DEFAULT_LOCALE",
    "MESSAGES_DIRNAME",
    "DATA_DIRNAME",
    "VERSIONS_DIRNAME",
    "ARCHIVE_DIRNAME",
    "CHANGELOG_FILENAME",
    "SETTINGS_FILENAME",
    "CATALOG_SUFFIX",
    "TIMESTAMP_FORMAT",
]

# ============================================================================
# RETENTION LIMITS
# ============================================================================

# Ledger is a capped FIFO. Oldest entries fall off once the cap is reached.
MAX_CHANGELOG_ENTRIES: int = 500

# Snapshots retained per locale. Creation prunes the oldest beyond this.
MAX_SNAPSHOTS_PER_LOCALE: int = 20

# ============================================================================
# MUTATION LIMITS
# ============================================================================

# Upper bound on items accepted by a single bulk_update call.
MAX_BULK_UPDATES: int = 200

# Examples returned per diff category by a rollback preview.
ROLLBACK_EXAMPLE_LIMIT: int = 50

# Namespace/key/locale marker for ledger entries that span many keys.
WILDCARD: str = "*"

# ============================================================================
# QUALITY THRESHOLDS
# ============================================================================

# Identical-to-baseline values shorter than this are not flagged
# (brand names, "OK", "Email").
UNTRANSLATED_MIN_LENGTH: int = 5

# A translation longer than RATIO x baseline is flagged when the baseline
# itself is longer than MIN_BASELINE characters.
LENGTH_ANOMALY_RATIO: int = 2
LENGTH_ANOMALY_MIN_BASELINE: int = 10

# ============================================================================
# TRANSLATION
# ============================================================================

# Baseline entries sent per model request.
DEFAULT_BATCH_SIZE: int = 25

# Seconds to wait for a single model request.
DEFAULT_TRANSLATION_TIMEOUT: float = 60.0

DEFAULT_TRANSLATION_MODEL: str = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS: int = 4096

# ============================================================================
# LAYOUT
# ============================================================================

DEFAULT_LOCALE: str = "en"
MESSAGES_DIRNAME: str = "messages"
DATA_DIRNAME: str = ".i18nvault"
VERSIONS_DIRNAME: str = "versions"
ARCHIVE_DIRNAME: str = ".archived"
CHANGELOG_FILENAME: str = "changelog.json"
SETTINGS_FILENAME: str = "settings.json"
CATALOG_SUFFIX: str = ".json"

# UTC, no underscores: "{locale}_{timestamp}" splits on the last underscore.
TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%S%fZ"
