"""OpenAI (or OpenAI-compatible host) embedding provider.

``OPENAI_BASE_URL`` points the client at another host that serves the
embeddings protocol (TogetherAI, Fireworks); ``OPENAI_EMBEDDING_MODEL``
picks the model there.
"""

from __future__ import annotations

import openai

from docqa.config.settings import Settings
from docqa.providers.embedding.openai_compatible import OpenAICompatibleEmbeddingProvider

_DEFAULT_MODEL = "text-embedding-3-small"
_BATCH_LIMIT = 2048

# Vector sizes of the models docqa is commonly pointed at; others assume 768.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
}


class OpenAIEmbeddingProvider(OpenAICompatibleEmbeddingProvider):
    """Embeds with ``text-embedding-3-small`` unless configured otherwise."""

    def __init__(self, settings: Settings) -> None:
        client_kwargs: dict = {"api_key": settings.openai_api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        model = settings.openai_embedding_model or _DEFAULT_MODEL

        super().__init__(
            client=openai.AsyncOpenAI(**client_kwargs),
            model=model,
            dimension=_MODEL_DIMENSIONS.get(model, 768),
            batch_size=_BATCH_LIMIT,
            timeout=settings.request_timeout_seconds,
        )
        self._has_key = bool(settings.openai_api_key)
        self._label = "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"

    def get_provider_name(self) -> str:
        return self._label

    def is_available(self) -> bool:
        """An API key is configured (not verified)."""
        return self._has_key
