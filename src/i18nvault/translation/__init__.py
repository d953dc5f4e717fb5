"""Batch translation pipeline: prompts, model client, response parsing.

Proposals produced here are never written directly; commit them with
CatalogEditor.apply_translations.

Python 3.13+.
"""

from .client import AnthropicCompletionClient, Completion, CompletionClient
from .parsing import NumberedList, format_numbered_list, parse_numbered_list
from .pipeline import (
    BatchFailure,
    BatchTranslator,
    SourceEntry,
    TokenUsage,
    TranslationProposal,
    TranslationResult,
)
from .prompts import DEFAULT_STYLE, LOCALE_STYLES, PromptBuilder, TranslationPrompt, style_for

__all__ = [
    "DEFAULT_STYLE",
    "LOCALE_STYLES",
    "AnthropicCompletionClient",
    "BatchFailure",
    "BatchTranslator",
    "Completion",
    "CompletionClient",
    "NumberedList",
    "PromptBuilder",
    "SourceEntry",
    "TokenUsage",
    "TranslationPrompt",
    "TranslationProposal",
    "TranslationResult",
    "format_numbered_list",
    "parse_numbered_list",
    "style_for",
]
