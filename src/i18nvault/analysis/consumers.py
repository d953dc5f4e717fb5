"""Discover which UI routes consume which namespaces.

A consumer declares a static dependency on a namespace through one of:

    useTranslations('Ns')
    getTranslations('Ns')
    getTranslations({ locale, namespace: 'Ns' })

Routes are derived from the file's position under an ``app/`` directory:
route groups ``(marketing)`` and the ``[locale]`` segment are dropped, as
is the file name itself. Files outside ``app/`` (shared components) are
reported under their path relative to the source root, without suffix.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from i18nvault.core.types import Namespace

logger = logging.getLogger(__name__)

__all__ = [
    "SOURCE_SUFFIXES",
    "build_consumer_map",
    "find_namespaces",
    "route_for",
    "scan_consumers",
]

SOURCE_SUFFIXES: frozenset[str] = frozenset({".ts", ".tsx", ".js", ".jsx"})
"""File suffixes scanned for translation hooks."""

_SKIP_DIRS: frozenset[str] = frozenset({"node_modules", ".next", "dist", "build", ".git"})

_HOOK_CALL = re.compile(r"""\b(?:useTranslations|getTranslations)\(\s*(['"`])([\w.-]+)\1""")
_NAMESPACE_OPTION = re.compile(
    r"""\bgetTranslations\(\s*\{[^}]*?\bnamespace\s*:\s*(['"`])([\w.-]+)\1""",
    re.DOTALL,
)


def find_namespaces(source: str) -> list[Namespace]:
    """Namespaces referenced by translation hooks in source text.

    Nested references ("Nav.links") are reported by their top-level
    namespace. Order of first appearance is preserved.

    Example:
        >>> find_namespaces("const t = useTranslations('Greeting');")
        ['Greeting']
    """
    found: list[Namespace] = []
    for pattern in (_HOOK_CALL, _NAMESPACE_OPTION):
        for match in pattern.finditer(source):
            namespace = match.group(2).split(".", 1)[0]
            if namespace and namespace not in found:
                found.append(namespace)
    return found


def route_for(relative: Path) -> str:
    """Route identifier for a source file path relative to the scan root.

    Example:
        >>> route_for(Path("app/[locale]/(shop)/cart/page.tsx"))
        '/cart'
        >>> route_for(Path("components/Header.tsx"))
        'components/Header'
    """
    parts = relative.parts
    if "app" not in parts:
        return relative.with_suffix("").as_posix()
    segments = [
        part
        for part in parts[parts.index("app") + 1 : -1]
        if not (part.startswith("(") and part.endswith(")")) and part != "[locale]"
    ]
    return "/" + "/".join(segments)


def scan_consumers(source_root: Path) -> dict[str, list[Namespace]]:
    """Map each consumer route under source_root to the namespaces it uses.

    Several files can resolve to the same route (page plus layout); their
    namespaces are merged.
    """
    if not source_root.is_dir():
        logger.warning("Consumer source directory does not exist: %s", source_root)
        return {}

    pages: dict[str, list[Namespace]] = {}
    for path in sorted(source_root.rglob("*")):
        if path.suffix not in SOURCE_SUFFIXES or not path.is_file():
            continue
        relative = path.relative_to(source_root)
        if _SKIP_DIRS.intersection(relative.parts):
            continue
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable source file %s: %s", relative, e)
            continue
        namespaces = find_namespaces(text)
        if not namespaces:
            continue
        merged = pages.setdefault(route_for(relative), [])
        merged.extend(ns for ns in namespaces if ns not in merged)
        logger.debug("Consumer %s uses %s", relative, namespaces)
    return pages


def build_consumer_map(
    pages: Mapping[str, Iterable[Namespace]],
) -> dict[Namespace, list[str]]:
    """Invert {route: namespaces} into {namespace: sorted routes}."""
    consumers: dict[Namespace, set[str]] = {}
    for route, namespaces in pages.items():
        for namespace in namespaces:
            consumers.setdefault(namespace, set()).add(route)
    return {namespace: sorted(routes) for namespace, routes in consumers.items()}
