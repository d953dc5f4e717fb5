"""Text-completion clients for the translation model.

The pipeline talks to a CompletionClient; AnthropicCompletionClient is
the concrete implementation. Every SDK failure (timeout, transport,
API status) surfaces as ExternalServiceError.

Python 3.13+.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from i18nvault.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TRANSLATION_MODEL,
    DEFAULT_TRANSLATION_TIMEOUT,
)
from i18nvault.errors import ErrorContext, ExternalServiceError, InvalidArgumentError

if TYPE_CHECKING:
    import anthropic

logger = logging.getLogger(__name__)

__all__ = ["AnthropicCompletionClient", "Completion", "CompletionClient"]


@dataclass(frozen=True, slots=True)
class Completion:
    """Model output plus token accounting."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0


@runtime_checkable
class CompletionClient(Protocol):
    """Anything that turns a system + user prompt into text."""

    def complete(self, system: str, user: str) -> Completion:
        """Run one request.

        Raises:
            ExternalServiceError: If the call fails or times out
        """
        ...


class AnthropicCompletionClient:
    """CompletionClient backed by the Anthropic Messages API.

    The SDK client is created lazily on first use and shared across
    threads. Retries are disabled; a failed call is reported, never
    silently repeated.

    Args:
        api_key: API key; defaults to ANTHROPIC_API_KEY
        model: Model identifier
        max_tokens: Completion token cap per request
        timeout: Seconds allowed per request
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = DEFAULT_TRANSLATION_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TRANSLATION_TIMEOUT,
    ) -> None:
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client: anthropic.Anthropic | None = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> anthropic.Anthropic:
        """Lazy initialization of the SDK client."""
        with self._client_lock:
            if self._client is None:
                if not self._api_key:
                    msg = (
                        "Anthropic API key required. Set ANTHROPIC_API_KEY or pass api_key."
                    )
                    raise InvalidArgumentError(msg, ErrorContext("translation.client"))
                # Lazy import: the SDK is only needed once a translation runs
                import anthropic  # noqa: PLC0415

                self._client = anthropic.Anthropic(
                    api_key=self._api_key, timeout=self.timeout, max_retries=0
                )
            return self._client

    def complete(self, system: str, user: str) -> Completion:
        """Send one Messages API request.

        Raises:
            ExternalServiceError: On timeout or any API failure
            InvalidArgumentError: If no API key is configured
        """
        import anthropic  # noqa: PLC0415

        client = self._get_client()
        context = ErrorContext("translation.complete")
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.APITimeoutError as e:
            msg = f"Translation model timed out after {self.timeout:.0f}s"
            raise ExternalServiceError(msg, context) from e
        except anthropic.APIError as e:
            msg = f"Translation model call failed: {e}"
            raise ExternalServiceError(msg, context) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        usage = response.usage
        logger.debug(
            "Model %s: %d input / %d output tokens",
            self.model, usage.input_tokens, usage.output_tokens,
        )
        return Completion(
            text=text, input_tokens=usage.input_tokens, output_tokens=usage.output_tokens
        )
