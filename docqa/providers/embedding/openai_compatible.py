"""Shared machinery for embedders that speak the OpenAI embeddings protocol.

Both the hosted OpenAI API and Ollama's ``/v1`` endpoint accept
``embeddings.create(input=[...], model=...)``.  Subclasses only choose the
client, the model, the batch size and how availability is probed.
"""

from __future__ import annotations

import openai
import structlog

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.utils.concurrency import with_timeout
from docqa.utils.errors import ServiceTimeoutError, StoreError

logger = structlog.get_logger(logger_name=__name__)


class OpenAICompatibleEmbeddingProvider(IEmbeddingProvider):
    """Batched, time-bounded embedding over an ``openai.AsyncOpenAI`` client.

    Parameters
    ----------
    client:
        Configured async client (API key and base URL already set).
    model:
        Embedding model name sent with every request.
    dimension:
        Vector size the model produces.
    batch_size:
        Maximum texts per request.
    timeout:
        Seconds allowed per request; ``0`` disables the bound.
    """

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        model: str,
        dimension: int,
        batch_size: int,
        timeout: float,
    ) -> None:
        self._client = client
        self._model = model
        self._dimension = dimension
        self._batch_size = batch_size
        self._timeout = timeout

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per text, in input order."""
        if not texts:
            return []

        provider = self.get_provider_name()
        vectors: list[list[float]] = []
        try:
            for start in range(0, len(texts), self._batch_size):
                batch = texts[start : start + self._batch_size]
                response = await with_timeout(
                    self._client.embeddings.create(input=batch, model=self._model),
                    self._timeout,
                    operation="embed",
                    provider_name=provider,
                )
                # ``index`` is authoritative; some hosts reorder items.
                ordered = sorted(response.data, key=lambda item: item.index)
                vectors.extend(item.embedding for item in ordered)
                logger.debug(
                    "embedding_batch",
                    provider=provider,
                    model=self._model,
                    batch_size=len(batch),
                )
        except openai.APITimeoutError as exc:
            raise ServiceTimeoutError(
                message=f"{provider} request timed out",
                provider_name=provider,
            ) from exc
        except openai.APIError as exc:
            raise StoreError(
                message=f"{provider} API error: {exc}",
                provider_name=provider,
            ) from exc

        if len(vectors) != len(texts):
            raise StoreError(
                message=f"Embedding service returned {len(vectors)} vectors for {len(texts)} texts",
                provider_name=provider,
            )
        logger.info("embedding_complete", provider=provider, count=len(vectors))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return self._dimension
