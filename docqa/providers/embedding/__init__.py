"""Embedding provider adapters."""

from docqa.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from docqa.providers.embedding.openai_compatible import OpenAICompatibleEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["NomicEmbeddingProvider", "OpenAICompatibleEmbeddingProvider", "OpenAIEmbeddingProvider"]
