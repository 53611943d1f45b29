"""Vector store provider implementations.

ChromaDB is the sole implementation.  :func:`build_chroma_client` picks a
remote ``HttpClient`` when CHROMA_URL is set and a local ``PersistentClient``
under CHROMADB_PERSIST_DIR otherwise.
"""

from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider, build_chroma_client

__all__ = ["ChromaDBProvider", "build_chroma_client"]
