"""Tests for numbered-list formatting and lenient parsing."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from i18nvault.translation.parsing import format_numbered_list, parse_numbered_list


class TestFormat:
    """Rendering prompts."""

    def test_numbering_starts_at_one(self) -> None:
        """One line per item."""
        assert format_numbered_list(["Hello", "Bye"]) == "1. Hello\n2. Bye"

    def test_newlines_escaped(self) -> None:
        """Multi-line items stay on one line."""
        assert format_numbered_list(["a\nb"]) == "1. a\\nb"


class TestParse:
    """Recovering model answers."""

    def test_clean_response(self) -> None:
        """Every line recovered, nothing rejected."""
        result = parse_numbered_list("1. Hola\n2. Adiós", 2)
        assert result.values == {0: "Hola", 1: "Adiós"}
        assert result.complete
        assert result.rejected_lines == ()

    def test_preamble_and_out_of_range(self) -> None:
        """Chatter and numbers beyond the batch are rejected, gaps reported missing."""
        result = parse_numbered_list("Sure!\n1. Hola\n3. Adios", 2)
        assert result.values == {0: "Hola"}
        assert result.missing == (1,)
        assert result.rejected_lines == ("Sure!", "3. Adios")

    def test_first_occurrence_wins(self) -> None:
        """A repeated number keeps the first value."""
        result = parse_numbered_list("1. uno\n1. otra", 1)
        assert result.values == {0: "uno"}
        assert result.rejected_lines == ("1. otra",)

    @pytest.mark.parametrize("line", ["1) Hola", "  1 .  Hola  ", "1.Hola"])
    def test_separator_variants(self, line: str) -> None:
        """Parenthesis and spacing variants are accepted."""
        assert parse_numbered_list(line, 1).values == {0: "Hola"}

    def test_escaped_newline_restored(self) -> None:
        """\\n sequences become real newlines again."""
        assert parse_numbered_list("1. a\\nb", 1).values == {0: "a\nb"}

    def test_empty_value_rejected(self) -> None:
        """A bare number is not a translation."""
        result = parse_numbered_list("1.", 1)
        assert result.missing == (0,)

    @pytest.mark.parametrize("text", ["", "```\n```", "no numbers at all"])
    def test_garbage_never_raises(self, text: str) -> None:
        """Unusable responses leave everything missing."""
        result = parse_numbered_list(text, 3)
        assert result.missing == (0, 1, 2)

    @given(
        items=st.lists(
            st.text(alphabet=st.characters(exclude_categories=("Cs", "Cc", "Zl", "Zp")), min_size=1)
            .map(str.strip)
            .filter(lambda item: item and "\\" not in item),
            max_size=20,
        )
    )
    def test_format_then_parse(self, items: list[str]) -> None:
        """Parsing a formatted list returns the items in order."""
        result = parse_numbered_list(format_numbered_list(items), len(items))
        assert [result.values[i] for i in range(len(items))] == items
        assert result.complete
