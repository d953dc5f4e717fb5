"""Dot-path codec over nested catalog trees.

This module is the only code that walks a CatalogTree. Everything else
addresses entries by dot path ("Namespace.group.key") and goes through
these functions.

Malformed paths (empty string or an empty segment such as "a..b") never
raise: get_path returns None and set_path/delete_path do nothing.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Iterator

from i18nvault.core.types import CatalogNode, CatalogTree, KeyPath

__all__ = [
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

_SEPARATOR = "."


def split_path(path: KeyPath) -> tuple[str, ...] | None:
    """Split a dot path into segments, or None if any segment is empty.

    Example:
        >>> split_path("a.b.c")
        ('a', 'b', 'c')
        >>> split_path("a..c") is None
        True
    """
    if not path:
        return None
    segments = tuple(path.split(_SEPARATOR))
    if any(not segment for segment in segments):
        return None
    return segments


def is_valid_path(path: KeyPath) -> bool:
    """Check that path is non-empty and has no empty segments."""
    return split_path(path) is not None


def join_path(*parts: str) -> KeyPath:
    """Join non-empty parts with the path separator."""
    return _SEPARATOR.join(part for part in parts if part)


def get_path(tree: CatalogTree, path: KeyPath) -> CatalogNode | None:
    """Return the node at path (leaf string or group), or None if absent."""
    segments = split_path(path)
    if segments is None:
        return None
    node: CatalogNode = tree
    for segment in segments:
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return node


def is_group(node: CatalogNode | None) -> bool:
    """Check whether node is an intermediate grouping node."""
    return isinstance(node, dict)


def leaf_prefix(tree: CatalogTree, path: KeyPath) -> KeyPath | None:
    """Shortest proper prefix of path that holds a leaf string, if any.

    set_path(tree, path, ...) would replace that leaf with a group.

    Example:
        >>> leaf_prefix({"Nav": {"home": "Home"}}, "Nav.home.sub")
        'Nav.home'
    """
    segments = split_path(path)
    if segments is None:
        return None
    node: CatalogNode = tree
    for depth, segment in enumerate(segments[:-1], start=1):
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
        if isinstance(node, str):
            return _SEPARATOR.join(segments[:depth])
    return None


def set_path(tree: CatalogTree, path: KeyPath, value: str) -> None:
    """Set the leaf at path, creating intermediate groups as needed.

    A leaf string standing where a group is needed is replaced by a group.
    Mutates tree in place.
    """
    segments = split_path(path)
    if segments is None:
        return
    node = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child
    node[segments[-1]] = value


def delete_path(tree: CatalogTree, path: KeyPath) -> bool:
    """Remove the node at path and prune groups left empty by the removal.

    The top-level group (the namespace) is never pruned, so deleting the
    last key of a namespace leaves an empty namespace behind.

    Returns:
        True if something was removed
    """
    segments = split_path(path)
    if segments is None:
        return False
    trail: list[tuple[CatalogTree, str]] = []
    node: CatalogNode = tree
    for segment in segments:
        if not isinstance(node, dict) or segment not in node:
            return False
        trail.append((node, segment))
        node = node[segment]

    parent, segment = trail.pop()
    del parent[segment]
    # Walk back up, dropping groups this removal emptied (never depth 1).
    while len(trail) > 1:
        parent, segment = trail.pop()
        child = parent[segment]
        if isinstance(child, dict) and not child:
            del parent[segment]
        else:
            break
    return True


def iter_leaves(tree: CatalogTree, prefix: KeyPath = "") -> Iterator[tuple[KeyPath, str]]:
    """Yield (path, value) for every string leaf, depth-first in key order.

    Non-string, non-dict values (numbers, lists, null) are not leaves and
    are skipped.
    """
    for key, node in tree.items():
        path = f"{prefix}{_SEPARATOR}{key}" if prefix else key
        if isinstance(node, dict):
            yield from iter_leaves(node, path)
        elif isinstance(node, str):
            yield path, node


def enumerate_leaves(tree: CatalogTree) -> list[tuple[KeyPath, str]]:
    """Return every (path, value) leaf pair as a list."""
    return list(iter_leaves(tree))


def leaf_map(tree: CatalogTree, prefix: KeyPath = "") -> dict[KeyPath, str]:
    """Return a flat {path: value} mapping of every leaf."""
    return dict(iter_leaves(tree, prefix))


def count_leaves(tree: CatalogTree) -> int:
    """Number of string leaves in tree."""
    return sum(1 for _ in iter_leaves(tree))


def mirror_tree(tree: CatalogTree, fill: str = "") -> CatalogTree:
    """Copy the group structure of tree with every leaf replaced by fill."""
    mirrored: CatalogTree = {}
    for key, node in tree.items():
        if isinstance(node, dict):
            mirrored[key] = mirror_tree(node, fill)
        elif isinstance(node, str):
            mirrored[key] = fill
    return mirrored


def namespace_leaves(tree: CatalogTree) -> dict[str, dict[KeyPath, str]]:
    """Group leaves by top-level namespace: {namespace: {key: value}}.

    Keys are dot paths relative to the namespace. Top-level string values
    do not belong to a namespace and are left out.

    Example:
        >>> namespace_leaves({"Nav": {"home": "Home", "menu": {"open": "Open"}}})
        {'Nav': {'home': 'Home', 'menu.open': 'Open'}}
    """
    return {
        namespace: leaf_map(node)
        for namespace, node in tree.items()
        if isinstance(node, dict)
    }
