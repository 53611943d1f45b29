"""LLM provider adapters.

Two concrete implementations of ILLMProvider (docqa/interfaces/llm_provider.py):
    - AnthropicLLMProvider -- Claude via the Messages API (preferred)
    - OpenAILLMProvider    -- gpt-4o-mini or any OpenAI-compatible host

docqa.main picks the first provider with a configured key.
"""

from docqa.providers.llm.anthropic_provider import AnthropicLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
