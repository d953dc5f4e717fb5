"""Type aliases for the catalog domain.

Provides semantic type aliases used throughout the package and by user
code when annotating call sites.

Python 3.13+. Zero external dependencies.
"""

__all__ = [
    "CatalogNode",
    "CatalogTree",
    "KeyPath",
    "LocaleCode",
    "Namespace",
]

type LocaleCode = str
"""BCP-47 locale code (e.g., 'en', 'es', 'pt-BR')."""

type Namespace = str
"""Top-level group of keys for one UI surface (e.g., 'BookingPage')."""

type KeyPath = str
"""Dot-separated path to a leaf (e.g., 'hero.title')."""

type CatalogNode = str | CatalogTree
"""Either a leaf string or a nested group."""

type CatalogTree = dict[str, CatalogNode]
"""Nested mapping whose leaves are always strings."""
