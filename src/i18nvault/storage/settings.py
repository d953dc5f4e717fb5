"""Persisted locale settings: labels, enabled flags, default locale.

Invariants maintained on every save:
- exactly one default locale
- the default locale is enabled

Python 3.13+.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from i18nvault.errors import ErrorContext, InvalidArgumentError, NotFoundError
from i18nvault.locale_utils import locale_display_name
from i18nvault.storage.files import atomic_write_bytes, dump_json, read_json

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from i18nvault.core.types import LocaleCode

logger = logging.getLogger(__name__)

__all__ = ["LocaleInfo", "LocaleSettings", "SettingsStore"]


@dataclass(frozen=True, slots=True)
class LocaleInfo:
    """One supported language.

    Attributes:
        code: BCP-47 code, also the catalog file stem
        label: Human-readable name shown to editors
        enabled: Whether the locale is served to end users
        is_default: Whether this is the baseline locale
    """

    code: LocaleCode
    label: str
    enabled: bool
    is_default: bool = False

    def to_dict(self) -> dict[str, object]:
        """JSON-ready representation."""
        return {
            "code": self.code,
            "label": self.label,
            "enabled": self.enabled,
            "isDefault": self.is_default,
        }


@dataclass(frozen=True, slots=True)
class LocaleSettings:
    """Immutable snapshot of all locale settings."""

    default_locale: LocaleCode
    locales: tuple[LocaleInfo, ...]

    def get(self, code: LocaleCode) -> LocaleInfo | None:
        """Settings for code, or None if not registered."""
        for info in self.locales:
            if info.code == code:
                return info
        return None

    @property
    def enabled_codes(self) -> tuple[LocaleCode, ...]:
        """Codes of enabled locales."""
        return tuple(info.code for info in self.locales if info.enabled)


class SettingsStore:
    """File-backed locale settings, reconciled against the catalog files.

    Locales that have a catalog file but no settings record are registered
    on read with a Babel-derived label and enabled=True; records whose
    catalog file is gone are dropped. So the settings file can be absent or
    stale and still describe reality.
    """

    __slots__ = ("_fallback_default", "_lock", "_path")

    def __init__(self, path: Path, *, fallback_default: LocaleCode) -> None:
        self._path = path
        self._fallback_default = fallback_default
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock serializing read-modify-write of the settings file."""
        return self._lock

    def _read_raw(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            raw = read_json(self._path)
        except json.JSONDecodeError as e:
            msg = f"Settings file is not valid JSON: {self._path}"
            raise InvalidArgumentError(msg, ErrorContext("settings.read")) from e
        if not isinstance(raw, dict):
            msg = f"Settings file must contain a JSON object: {self._path}"
            raise InvalidArgumentError(msg, ErrorContext("settings.read"))
        return raw

    def load(self, present: Iterable[LocaleCode]) -> LocaleSettings:
        """Read settings and reconcile them with the locales present on disk."""
        present_codes = tuple(present)
        with self._lock:
            raw = self._read_raw()
        records = raw.get("locales")
        records = records if isinstance(records, dict) else {}

        infos: list[LocaleInfo] = []
        for code in present_codes:
            record = records.get(code)
            record = record if isinstance(record, dict) else {}
            label = record.get("label")
            enabled = record.get("enabled", True)
            infos.append(
                LocaleInfo(
                    code=code,
                    label=label if isinstance(label, str) and label else locale_display_name(code),
                    enabled=bool(enabled),
                )
            )

        default = raw.get("defaultLocale")
        if not isinstance(default, str) or default not in present_codes:
            default = self._fallback_default
        if default not in present_codes and present_codes:
            logger.warning(
                "Default locale '%s' has no catalog; using '%s'", default, present_codes[0]
            )
            default = present_codes[0]

        infos = [
            replace(info, is_default=True, enabled=True) if info.code == default else info
            for info in infos
        ]
        return LocaleSettings(default_locale=default, locales=tuple(infos))

    def save(self, settings: LocaleSettings) -> None:
        """Persist settings after checking the default-locale invariants.

        Raises:
            InvalidArgumentError: If the default locale is unregistered,
                disabled, or more than one locale claims to be default
        """
        context = ErrorContext("settings.save", locale=settings.default_locale)
        defaults = [info for info in settings.locales if info.is_default]
        if len(defaults) != 1 or defaults[0].code != settings.default_locale:
            msg = f"Exactly one default locale required, got {[d.code for d in defaults]}"
            raise InvalidArgumentError(msg, context)
        if not defaults[0].enabled:
            msg = f"Default locale '{settings.default_locale}' must be enabled"
            raise InvalidArgumentError(msg, context)

        payload = {
            "defaultLocale": settings.default_locale,
            "locales": {
                info.code: {"label": info.label, "enabled": info.enabled}
                for info in settings.locales
            },
        }
        with self._lock:
            atomic_write_bytes(self._path, dump_json(payload))
        logger.debug("Saved locale settings (default=%s)", settings.default_locale)

    def update(
        self,
        present: Iterable[LocaleCode],
        code: LocaleCode,
        *,
        label: str | None = None,
        enabled: bool | None = None,
        make_default: bool = False,
    ) -> LocaleSettings:
        """Change one locale's settings and persist.

        Raises:
            NotFoundError: If code is not among the present locales
        """
        with self._lock:
            current = self.load(present)
            target = current.get(code)
            if target is None:
                msg = f"Unknown locale: '{code}'"
                raise NotFoundError(msg, ErrorContext("settings.update", locale=code))

            default = code if make_default else current.default_locale
            infos: list[LocaleInfo] = []
            for info in current.locales:
                if info.code == code:
                    info = replace(
                        info,
                        label=label if label else info.label,
                        enabled=info.enabled if enabled is None else enabled,
                    )
                is_default = info.code == default
                infos.append(
                    replace(info, is_default=is_default, enabled=info.enabled or is_default)
                )
            updated = LocaleSettings(default_locale=default, locales=tuple(infos))
            self.save(updated)
            return updated
