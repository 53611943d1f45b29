"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into embedding vectors.
Implementations wrap an OpenAI-compatible embeddings endpoint or Nomic
``nomic-embed-text`` served locally by Ollama.  Call-sites only see this
interface, so the backend can be swapped from configuration alone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider  -- OpenAI-compatible /embeddings (requires API key)
#   NomicEmbeddingProvider   -- nomic-embed-text via Ollama (local)
# Located in: docqa/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the vector store.

    Embeddings are consumed by
    :class:`~docqa.interfaces.vector_store_provider.IVectorStoreProvider`
    both when chunks are written and when a question is searched.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Exactly one vector per input text, in input order.

        Raises
        ------
        docqa.utils.errors.StoreError
            If the embedding service fails or returns the wrong number of
            vectors.
        docqa.utils.errors.ServiceTimeoutError
            If the call exceeds the configured time budget.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Embed one string (e.g. a question); convenience over :meth:`embed`."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the vectors this provider produces."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"openai-embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
