"""Hypothesis strategies for i18nvault property-based testing.

Usage:
    from tests.strategies import catalog_trees, key_paths
"""

from .catalogs import (
    LOCALE_POOL,
    catalog_trees,
    key_paths,
    leaf_values,
    locale_codes,
    placeholder_messages,
    segments,
)

__all__ = [
    "LOCALE_POOL",
    "catalog_trees",
    "key_paths",
    "leaf_values",
    "locale_codes",
    "placeholder_messages",
    "segments",
]
