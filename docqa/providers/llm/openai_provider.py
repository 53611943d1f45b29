"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When ``OPENAI_BASE_URL`` is configured (e.g. TogetherAI, Groq, Fireworks)
the client points at that URL instead of the default OpenAI endpoint, so
one adapter covers every host that speaks the chat-completions protocol.
"""

from __future__ import annotations

import openai
import structlog

from docqa.config.settings import Settings
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.utils.concurrency import with_timeout
from docqa.utils.errors import LLMError, ServiceTimeoutError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat-completions API.

    Uses ``gpt-4o-mini`` unless ``OPENAI_TEXT_MODEL`` names another model.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._timeout = settings.request_timeout_seconds

        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        # The SDK refuses to build a client without a key.
        self._client = openai.AsyncOpenAI(**client_kwargs) if self._api_key else None
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        """Generate a text completion via the chat-completions endpoint."""
        if self._client is None:
            raise LLMError(
                message=f"{self._provider_label} API key is not configured",
                provider_name=self._provider_label,
            )
        try:
            response = await with_timeout(
                self._client.chat.completions.create(
                    model=self._text_model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                self._timeout,
                operation="llm_complete",
                provider_name=self._provider_label,
            )
        except openai.APITimeoutError as exc:
            raise ServiceTimeoutError(
                message=f"{self._provider_label} request timed out",
                provider_name=self._provider_label,
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self._provider_label,
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self._provider_label,
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return self._provider_label
