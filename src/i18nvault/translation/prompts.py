"""Prompt construction for the translation model.

Two instructions frame every request: a system instruction describing
the catalog (UI strings of one product, placeholders and markup to keep)
and a per-language style instruction (register, regional variant). The
user message is a numbered list of baseline strings.

Python 3.13+.
"""

from __future__ import annotations

from dataclasses import dataclass

from i18nvault.locale_utils import language_name, locale_display_name
from i18nvault.translation.parsing import format_numbered_list

__all__ = ["DEFAULT_STYLE", "LOCALE_STYLES", "PromptBuilder", "TranslationPrompt", "style_for"]

DEFAULT_STYLE = "Use a neutral, friendly register suitable for a consumer web application."

# Keyed by full code first, then by language subtag.
LOCALE_STYLES: dict[str, str] = {
    "es": "Use informal 'tú' and neutral international Spanish; avoid regional slang.",
    "es-MX": "Use informal 'tú' and Mexican Spanish vocabulary.",
    "es-ES": "Use informal 'tú' and Castilian Spanish vocabulary ('coche', 'vosotros').",
    "fr": "Use formal 'vous' and standard French typography (space before : ; ! ?).",
    "fr-CA": "Use formal 'vous' and Canadian French vocabulary.",
    "de": "Use formal 'Sie' and keep compound nouns natural.",
    "it": "Use informal 'tu' with a polite, friendly tone.",
    "pt": "Use European Portuguese conventions.",
    "pt-BR": "Use Brazilian Portuguese with 'você'.",
    "nl": "Use informal 'je'/'jij'.",
    "ja": "Use polite desu/masu form (teineigo).",
    "ko": "Use polite haeyo-che speech level.",
    "zh": "Use Simplified Chinese characters and mainland conventions.",
    "zh-TW": "Use Traditional Chinese characters and Taiwanese conventions.",
    "zh-Hant": "Use Traditional Chinese characters.",
    "ar": "Use Modern Standard Arabic.",
    "ru": "Use formal 'Вы' in direct address.",
}


def style_for(locale: str) -> str:
    """Style instruction for locale: exact code, else language subtag, else neutral.

    Example:
        >>> style_for("es-AR") == LOCALE_STYLES["es"]
        True
    """
    if locale in LOCALE_STYLES:
        return LOCALE_STYLES[locale]
    return LOCALE_STYLES.get(locale.split("-", 1)[0], DEFAULT_STYLE)


@dataclass(frozen=True, slots=True)
class TranslationPrompt:
    """One model request: system instruction plus user message."""

    system: str
    user: str


class PromptBuilder:
    """Builds the system and user prompts for one batch."""

    __slots__ = ("_app_name",)

    def __init__(self, app_name: str = "the application") -> None:
        self._app_name = app_name

    def system_instruction(self, source: str, target: str) -> str:
        """Catalog identity, target language and style rules."""
        source_name = language_name(source)
        target_name = locale_display_name(target)
        return "\n".join(
            [
                f"You are a professional translator localizing the user interface of "
                f"{self._app_name}.",
                f"Translate each numbered {source_name} string into {target_name} ({target}).",
                style_for(target),
                "Rules:",
                "- Keep every {placeholder} and ICU argument name exactly as written; "
                "translate only the text inside plural/select cases.",
                "- Keep HTML tags, '#' signs and the literal sequence \\n unchanged.",
                "- Keep brand and product names untranslated.",
                "- Reply with exactly one line per input, formatted '<number>. <translation>', "
                "in the same order, with no commentary.",
            ]
        )

    def build(self, source: str, target: str, texts: list[str]) -> TranslationPrompt:
        """Prompt for translating texts from source to target."""
        return TranslationPrompt(
            system=self.system_instruction(source, target),
            user=format_numbered_list(texts),
        )
