"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`
through the Claude Messages API.

Differences from the OpenAI adapter:
    - System prompt is a separate parameter, not a message in the list
    - Response content is a list of blocks, so text blocks are filtered
      and joined
"""

from __future__ import annotations

import anthropic
import structlog

from docqa.config.settings import Settings
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.utils.concurrency import with_timeout
from docqa.utils.errors import LLMError, ServiceTimeoutError

logger = structlog.get_logger(logger_name=__name__)


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API.

    The model comes from ``ANTHROPIC_MODEL`` (default
    ``claude-sonnet-4-20250514``).  Every call is bounded by
    ``request_timeout_seconds``.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.anthropic_api_key
        self._timeout = settings.request_timeout_seconds
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        self._model = settings.anthropic_model or "claude-sonnet-4-20250514"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        """Generate a text completion via the Anthropic Messages API."""
        try:
            response = await with_timeout(
                self._client.messages.create(
                    model=self._model,
                    max_tokens=max_tokens,
                    system=system_prompt,
                    messages=[{"role": "user", "content": user_prompt}],
                    temperature=temperature,
                ),
                self._timeout,
                operation="llm_complete",
                provider_name=self.get_provider_name(),
            )
        except anthropic.APITimeoutError as exc:
            raise ServiceTimeoutError(
                message="Anthropic request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    def is_available(self) -> bool:
        """Return ``True`` if an Anthropic API key is configured."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return "anthropic"
