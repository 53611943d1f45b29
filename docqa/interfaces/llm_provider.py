"""Abstract base class for LLM service providers.

Defines the contract for the language model that writes answers from
retrieved context.  Implementations wrap the Anthropic Messages API or any
OpenAI-compatible chat-completions endpoint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: AnthropicLLMProvider, OpenAILLMProvider
# Located in: docqa/providers/llm/
class ILLMProvider(ABC):
    """Contract for single-turn text completion."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the context and question.
        temperature:
            Sampling temperature (0.0 = deterministic).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        docqa.utils.errors.LLMError
            If the API call fails or returns an invalid response.
        docqa.utils.errors.ServiceTimeoutError
            If the call exceeds the configured time budget.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider.

        Example return values: ``"anthropic"``, ``"openai"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present (no network call)."""
