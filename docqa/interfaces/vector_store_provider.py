"""Abstract base class for vector-store service providers.

Defines the contract for storing, querying and rebuilding the collection of
embedded document chunks.  The concrete adapter owns its embedding provider,
so callers hand over plain chunks and plain question text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docqa.models.rag import DocumentChunk, RetrievedChunk


# Concrete implementation: ChromaDBProvider (docqa/providers/vector_store/)
# Remote server when CHROMA_URL is set, otherwise persisted under
# CHROMADB_PERSIST_DIR.
class IVectorStoreProvider(ABC):
    """Contract for the vector store backing retrieval.

    All methods that touch the store are async.  Implementations serialise
    the mutating methods (:meth:`add_chunks`, :meth:`replace_source`,
    :meth:`rebuild_collection`) so concurrent uploads and reindexes cannot
    interleave; :meth:`query` runs unlocked.
    """

    @abstractmethod
    async def ensure_collection_exists(self) -> None:
        """Create the collection if it is absent.  Idempotent."""

    @abstractmethod
    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        """Embed and upsert *chunks*, keyed by ``chunk_id``.

        Parameters
        ----------
        chunks:
            The chunks to store.  An empty list is a no-op that touches
            neither the store nor the embedding service.

        Returns
        -------
        int
            The number of chunks written.

        Raises
        ------
        docqa.utils.errors.StoreError
            If embedding or the write fails.
        """

    @abstractmethod
    async def query(self, query_text: str, top_k: int = 3) -> list[RetrievedChunk]:
        """Return up to *top_k* chunks nearest to *query_text*, closest first.

        A missing or empty collection yields ``[]`` without embedding the
        query.
        """

    @abstractmethod
    async def rebuild_collection(self, chunks: list[DocumentChunk]) -> int:
        """Replace the whole collection with exactly *chunks*.

        Drops the collection (falling back to deleting every item when the
        drop fails for any reason other than absence), waits until the drop
        is visible, recreates it and adds *chunks*.  Not atomic, but running
        it again always converges to the same contents.

        Returns
        -------
        int
            The number of chunks written.
        """

    @abstractmethod
    async def replace_source(self, source: str, chunks: list[DocumentChunk]) -> int:
        """Swap every stored chunk of *source* for *chunks* in one locked write.

        No other mutation can run between the delete and the upsert, so two
        uploads of the same file name never leave a mix of both versions.
        An empty *chunks* list just deletes the source.

        Returns
        -------
        int
            The number of chunks written.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored chunks (``0`` when the collection is missing)."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backing store answers."""
