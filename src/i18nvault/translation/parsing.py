"""Lenient parsing of numbered-list model responses.

The model is asked to answer with one ``<n>. <text>`` line per input.
Anything else it produces (preamble, blank lines, code fences, a number
outside 1..expected_count, a repeated number) is not fatal: the line is
reported as rejected and the corresponding input, if any, as missing.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["NumberedList", "format_numbered_list", "parse_numbered_list"]

_NUMBERED_LINE = re.compile(r"^\s*(\d{1,6})\s*[.)]\s*(.*?)\s*$")


@dataclass(frozen=True, slots=True)
class NumberedList:
    """Parsed response.

    Attributes:
        values: {zero-based index: text} for every recovered line
        rejected_lines: Non-blank lines that did not yield a value
        missing: Zero-based indices with no recovered value, ascending
    """

    values: dict[int, str]
    rejected_lines: tuple[str, ...]
    missing: tuple[int, ...]

    @property
    def complete(self) -> bool:
        """True when every expected index was recovered."""
        return not self.missing


def format_numbered_list(items: list[str]) -> str:
    """Render items as ``1. first`` lines; newlines inside items are escaped.

    Example:
        >>> print(format_numbered_list(["Hello", "Bye"]))
        1. Hello
        2. Bye
    """
    escaped = [item.replace("\n", "\\n") for item in items]
    return "\n".join(f"{number}. {item}" for number, item in enumerate(escaped, start=1))


def parse_numbered_list(text: str, expected_count: int) -> NumberedList:
    """Recover ``<n>. <text>`` lines for n in 1..expected_count.

    Never raises. The first occurrence of a number wins. Escaped ``\\n``
    sequences are turned back into newlines.

    Example:
        >>> result = parse_numbered_list("Sure!\\n1. Hola\\n3. Adios", 2)
        >>> result.values, result.missing, result.rejected_lines
        ({0: 'Hola'}, (1,), ('Sure!', '3. Adios'))
    """
    values: dict[int, str] = {}
    rejected: list[str] = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        match = _NUMBERED_LINE.match(line)
        if match is None:
            rejected.append(line.strip())
            continue
        index = int(match.group(1)) - 1
        value = match.group(2).replace("\\n", "\n")
        if not 0 <= index < expected_count or index in values or not value:
            rejected.append(line.strip())
            continue
        values[index] = value
    missing = tuple(index for index in range(max(expected_count, 0)) if index not in values)
    return NumberedList(values=values, rejected_lines=tuple(rejected), missing=missing)
