"""Locale utilities: BCP-47 shape validation, canonical casing, Babel lookups.

Catalog files are named by BCP-47 code (``pt-BR.json``), while Babel wants
POSIX form (``pt_BR``). All conversion between the two happens here.

Python 3.13+.
"""

from __future__ import annotations

import functools
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from babel import Locale

__all__ = [
    "canonicalize_locale",
    "get_babel_locale",
    "is_bcp47",
    "is_catalog_locale",
    "language_name",
    "locale_display_name",
    "normalize_locale",
]

# language[-script][-region][-variant...]
# language: 2-3 letters (ISO 639) or 5-8 (registered)
# script:   4 letters (ISO 15924)
# region:   2 letters (ISO 3166) or 3 digits (UN M.49)
# variant:  5-8 alphanumerics, or digit + 3 alphanumerics
_BCP47_PATTERN = re.compile(
    r"""
    ^(?P<language>[A-Za-z]{2,3}|[A-Za-z]{5,8})
    (?:-(?P<script>[A-Za-z]{4}))?
    (?:-(?P<region>[A-Za-z]{2}|[0-9]{3}))?
    (?P<variants>(?:-(?:[A-Za-z0-9]{5,8}|[0-9][A-Za-z0-9]{3}))*)$
    """,
    re.VERBOSE,
)


def is_bcp47(code: str) -> bool:
    """Check whether code has the shape of a BCP-47 language tag.

    Only the shape is checked; ``xx-YY`` passes even though no such
    language exists. Underscore (POSIX) separators are rejected because
    locale codes double as file names.

    Example:
        >>> is_bcp47("pt-BR")
        True
        >>> is_bcp47("zh-Hant-TW")
        True
        >>> is_bcp47("en_US")
        False
    """
    return bool(code) and _BCP47_PATTERN.match(code) is not None


@functools.cache
def _cldr_languages() -> frozenset[str]:
    return frozenset(code.lower() for code in get_babel_locale("en").languages)


def is_catalog_locale(code: str) -> bool:
    """Check whether a file stem names a locale catalog.

    The code must be BCP-47 shaped, and its language subtag must be either
    two letters or a language CLDR knows, so ``manifest`` and ``settings``
    do not pass while ``xx`` and ``fil`` do.

    Example:
        >>> is_catalog_locale("pt-BR")
        True
        >>> is_catalog_locale("settings")
        False
    """
    match = _BCP47_PATTERN.match(code) if code else None
    if match is None:
        return False
    language = match.group("language").lower()
    return len(language) == 2 or language in _cldr_languages()


def canonicalize_locale(code: str) -> str:
    """Return code with BCP-47 conventional casing.

    Language lowercase, script titlecase, region uppercase.

    Raises:
        ValueError: If code is not BCP-47 shaped

    Example:
        >>> canonicalize_locale("PT-br")
        'pt-BR'
        >>> canonicalize_locale("zh-hant-tw")
        'zh-Hant-TW'
    """
    match = _BCP47_PATTERN.match(code) if code else None
    if match is None:
        msg = f"Not a BCP-47 locale code: {code!r}"
        raise ValueError(msg)
    parts = [match.group("language").lower()]
    if match.group("script"):
        parts.append(match.group("script").title())
    if match.group("region"):
        parts.append(match.group("region").upper())
    variants = match.group("variants")
    if variants:
        parts.extend(v.lower() for v in variants.strip("-").split("-"))
    return "-".join(parts)


def normalize_locale(locale_code: str) -> str:
    """Convert BCP-47 locale code to POSIX format for Babel.

    Example:
        >>> normalize_locale("en-US")
        'en_US'
    """
    return locale_code.replace("-", "_")


@functools.lru_cache(maxsize=128)
def get_babel_locale(locale_code: str) -> Locale:
    """Get a Babel Locale object with caching.

    Args:
        locale_code: Locale code (BCP-47 or POSIX format accepted)

    Raises:
        babel.core.UnknownLocaleError: If locale is not recognized
        ValueError: If locale format is invalid
    """
    # Lazy import: Babel loads CLDR data at import time; defer until needed
    from babel import Locale  # noqa: PLC0415

    return Locale.parse(normalize_locale(locale_code))


def locale_display_name(locale_code: str, display_locale: str = "en") -> str:
    """Human-readable name of a locale, falling back to the code itself.

    Example:
        >>> locale_display_name("pt-BR")
        'Portuguese (Brazil)'
        >>> locale_display_name("xx")
        'xx'
    """
    from babel import UnknownLocaleError  # noqa: PLC0415

    try:
        name = get_babel_locale(locale_code).get_display_name(display_locale)
    except (UnknownLocaleError, ValueError):
        return locale_code
    return name or locale_code


def language_name(locale_code: str) -> str:
    """English name of the language part only ("Spanish" for "es-MX")."""
    from babel import UnknownLocaleError  # noqa: PLC0415

    try:
        name = get_babel_locale(locale_code).get_language_name("en")
    except (UnknownLocaleError, ValueError):
        return locale_code
    return name or locale_code
