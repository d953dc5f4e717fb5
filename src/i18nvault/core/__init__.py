"""Core utilities shared by storage, analysis and operations layers.

This package has no dependency on the rest of i18nvault, which keeps the
dependency graph one-directional:

    core <- storage <- analysis / operations / translation <- service

Exports:
    Path codec: get_path, set_path, delete_path, iter_leaves, enumerate_leaves
    Type aliases: CatalogTree, CatalogNode, LocaleCode, Namespace, KeyPath
    Concurrency: RWLock, LocaleLockRegistry

Python 3.13+.
"""

from .locks import LocaleLockRegistry
from .paths import (
    count_leaves,
    delete_path,
    enumerate_leaves,
    get_path,
    is_group,
    is_valid_path,
    iter_leaves,
    join_path,
    leaf_prefix,
    leaf_map,
    mirror_tree,
    namespace_leaves,
    set_path,
    split_path,
)
from .rwlock import RWLock
from .types import CatalogNode, CatalogTree, KeyPath, LocaleCode, Namespace

__all__ = [
    "CatalogNode",
    "CatalogTree",
    "KeyPath",
    "LocaleCode",
    "LocaleLockRegistry",
    "Namespace",
    "RWLock",
    "count_leaves",
    "delete_path",
    "enumerate_leaves",
    "get_path",
    "is_group",
    "is_valid_path",
    "iter_leaves",
    "join_path",
    "leaf_prefix",
    "leaf_map",
    "mirror_tree",
    "namespace_leaves",
    "set_path",
    "split_path",
]
