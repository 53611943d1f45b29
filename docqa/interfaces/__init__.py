"""Abstract interfaces for docqa's external service providers."""

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = ["IEmbeddingProvider", "ILLMProvider", "IVectorStoreProvider"]
