"""Local ``nomic-embed-text`` embeddings served by Ollama.

Ollama exposes the OpenAI embeddings protocol under ``/v1``; no API key is
needed.  Availability is probed on Ollama's own ``/api/tags`` endpoint.
"""

from __future__ import annotations

import httpx
import openai

from docqa.config.settings import Settings
from docqa.providers.embedding.openai_compatible import OpenAICompatibleEmbeddingProvider

_PROBE_TIMEOUT_SECONDS = 3.0


class NomicEmbeddingProvider(OpenAICompatibleEmbeddingProvider):
    """768-dimension embeddings from a local Ollama server."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        super().__init__(
            # Ollama ignores the key but the client insists on one.
            client=openai.AsyncOpenAI(base_url=f"{self._base_url}/v1", api_key="ollama"),
            model="nomic-embed-text",
            dimension=768,
            batch_size=512,
            timeout=settings.request_timeout_seconds,
        )

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=_PROBE_TIMEOUT_SECONDS)
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
        return response.status_code == 200
