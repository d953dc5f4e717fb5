"""Tests for prompt construction."""

from __future__ import annotations

from i18nvault.translation.prompts import (
    DEFAULT_STYLE,
    LOCALE_STYLES,
    PromptBuilder,
    style_for,
)


class TestStyleFor:
    """Per-language style lookup."""

    def test_exact_code(self) -> None:
        """A regional entry wins over its language."""
        assert style_for("pt-BR") == LOCALE_STYLES["pt-BR"]

    def test_language_fallback(self) -> None:
        """An unlisted region falls back to its language."""
        assert style_for("es-AR") == LOCALE_STYLES["es"]

    def test_neutral_default(self) -> None:
        """Unknown languages get the neutral register."""
        assert style_for("fi") == DEFAULT_STYLE


class TestPromptBuilder:
    """System and user messages."""

    def test_system_instruction(self) -> None:
        """Names the product, both languages and the style rule."""
        system = PromptBuilder("Acme Fleet").system_instruction("en", "fr-CA")
        assert "Acme Fleet" in system
        assert "English" in system
        assert "French (Canada) (fr-CA)" in system
        assert LOCALE_STYLES["fr-CA"] in system
        assert "{placeholder}" in system

    def test_build(self) -> None:
        """The user message is the numbered list of texts."""
        prompt = PromptBuilder().build("en", "es", ["Home", "Open menu"])
        assert prompt.user == "1. Home\n2. Open menu"
        assert "the application" in prompt.system
