"""ChromaDB vector store provider adapter.

Wraps a ``chromadb`` client to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  The client is either a
``HttpClient`` talking to a ChromaDB server (``CHROMA_URL``) or a local
``PersistentClient`` (``CHROMADB_PERSIST_DIR``); see
:func:`build_chroma_client`.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any

# Must be set before chromadb is imported; some versions read it at import.
os.environ.setdefault("ANONYMIZED_TELEMETRY", "False")

import chromadb
import httpx
import structlog
from chromadb.config import Settings as ChromaSettings

from docqa.config.settings import Settings
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.rag import DocumentChunk, RetrievedChunk
from docqa.utils.errors import DocQAError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_UPSERT_BATCH_SIZE = 500


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Keeps ChromaDB from loading its default embedding model.

    docqa always hands pre-computed vectors to the collection, so this is
    never called.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docqa uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


def build_chroma_client(settings: Settings) -> Any:
    """Create the ChromaDB client selected by *settings*.

    ``CHROMA_URL`` (e.g. ``http://localhost:8000``) selects a remote server;
    otherwise the collection is persisted under ``chromadb_persist_dir``.
    """
    chroma_settings = ChromaSettings(anonymized_telemetry=False)
    if settings.chroma_url:
        url = httpx.URL(settings.chroma_url)
        ssl = url.scheme == "https"
        port = url.port or (443 if ssl else 8000)
        logger.info("chromadb_http_client", host=url.host, port=port, ssl=ssl)
        return chromadb.HttpClient(
            host=url.host,
            port=port,
            ssl=ssl,
            settings=chroma_settings,
        )

    Path(settings.chromadb_persist_dir).mkdir(parents=True, exist_ok=True)
    logger.info("chromadb_persistent_client", path=settings.chromadb_persist_dir)
    return chromadb.PersistentClient(
        path=settings.chromadb_persist_dir,
        settings=chroma_settings,
    )


def _is_missing_collection_error(exc: Exception) -> bool:
    """Return ``True`` if *exc* reports that the collection does not exist.

    ChromaDB has signalled this with ``ValueError``,
    ``InvalidCollectionException`` and ``NotFoundError`` across releases, so
    the class name and message are both checked.
    """
    if type(exc).__name__ in {"NotFoundError", "InvalidCollectionException"}:
        return True
    message = str(exc).lower()
    return "does not exist" in message or "not found" in message


def _is_already_exists_error(exc: Exception) -> bool:
    return "already exists" in str(exc).lower()


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by a single ChromaDB collection.

    An :class:`IEmbeddingProvider` is injected at init time; chunk texts are
    embedded in :meth:`add_chunks` and questions in :meth:`query`.

    One instance is shared per process.  Its ``asyncio.Lock`` serialises
    every mutation, so an upload can never land between the drop and the
    recreate of a rebuild.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        client: Any,
        collection_name: str = "document_collection",
        delete_poll_interval: float = 0.25,
        delete_poll_attempts: int = 20,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._client = client
        self._collection_name = collection_name
        self._delete_poll_interval = delete_poll_interval
        self._delete_poll_attempts = max(1, delete_poll_attempts)
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_collection_exists(self) -> None:
        """Create the collection if absent.

        An existing collection recorded with a different embedding
        dimension is kept, with a warning: queries against it fail until
        a reindex rebuilds it with the current embedder.
        """
        try:
            if self._collection_listed():
                logger.info("chromadb_collection_exists", collection=self._collection_name)
                self._check_dimension()
                return
            self._create_collection()
        except DocQAError:
            raise
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB ensure_collection_exists failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        """Embed and upsert *chunks*; an empty list returns 0 untouched."""
        if not chunks:
            return 0
        async with self._lock:
            return await self._add_unlocked(chunks)

    async def query(self, query_text: str, top_k: int = 3) -> list[RetrievedChunk]:
        """Return the *top_k* chunks nearest to *query_text*, closest first.

        The collection size is checked before embedding, so a missing or
        empty collection costs no embedding call.
        """
        if top_k <= 0:
            return []
        try:
            collection = self._get_collection()
            if collection is None:
                logger.info("chromadb_query_no_collection", collection=self._collection_name)
                return []
            available = collection.count()
            if available == 0:
                return []

            query_embedding = await self._embedding_provider.embed_single(query_text)
            results = collection.query(
                query_embeddings=[query_embedding],
                n_results=min(top_k, available),
                include=["documents", "metadatas", "distances"],
            )
        except DocQAError:
            raise
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = (results.get("ids") or [[]])[0]
        documents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0] or [{}] * len(ids)
        distances = (results.get("distances") or [[]])[0] or [0.0] * len(ids)

        try:
            retrieved = [
                RetrievedChunk(
                    chunk=self._metadata_to_chunk(chunk_id, meta or {}, text or ""),
                    similarity_score=max(0.0, min(1.0, 1.0 - float(distance))),
                )
                for chunk_id, text, meta, distance in zip(
                    ids, documents, metadatas, distances, strict=True
                )
            ]
        except (TypeError, ValueError) as exc:  # pydantic ValidationError is a ValueError
            raise StoreError(
                message=f"ChromaDB returned a malformed chunk: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        retrieved.sort(key=lambda rc: rc.similarity_score, reverse=True)

        logger.info(
            "chromadb_query",
            query_length=len(query_text),
            results_count=len(retrieved),
            top_score=retrieved[0].similarity_score if retrieved else 0.0,
        )
        return retrieved

    async def rebuild_collection(self, chunks: list[DocumentChunk]) -> int:
        """Drop, recreate and refill the collection with exactly *chunks*."""
        async with self._lock:
            try:
                if self._drop_collection():
                    await self._wait_until_dropped()
                self._create_collection()
            except DocQAError:
                raise
            except Exception as exc:
                raise StoreError(
                    message=f"ChromaDB rebuild failed: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            stored = await self._add_unlocked(chunks) if chunks else 0
            logger.info(
                "chromadb_collection_rebuilt",
                collection=self._collection_name,
                chunk_count=stored,
            )
            return stored

    async def replace_source(self, source: str, chunks: list[DocumentChunk]) -> int:
        """Swap the chunks of *source* for *chunks*.

        Embedding happens first, outside the lock; the delete and the upsert
        then run back to back under it, so a failed embedding leaves the old
        chunks in place.
        """
        embeddings = await self._embed(chunks) if chunks else []
        async with self._lock:
            deleted = self._delete_source_unlocked(source)
            stored = self._upsert(chunks, embeddings) if chunks else 0
            logger.info(
                "chromadb_replace_source",
                source=source,
                deleted_count=deleted,
                chunk_count=stored,
            )
            return stored

    async def count(self) -> int:
        try:
            collection = self._get_collection()
            return collection.count() if collection is not None else 0
        except DocQAError:
            raise
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB server or local store answers."""
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers (callers hold the lock where it matters)
    # ------------------------------------------------------------------

    async def _add_unlocked(self, chunks: list[DocumentChunk]) -> int:
        embeddings = await self._embed(chunks)
        return self._upsert(chunks, embeddings)

    async def _embed(self, chunks: list[DocumentChunk]) -> list[list[float]]:
        embeddings = await self._embedding_provider.embed([c.text for c in chunks])
        if len(embeddings) != len(chunks):
            raise StoreError(
                message=(
                    f"Embedding service returned {len(embeddings)} vectors "
                    f"for {len(chunks)} chunks"
                ),
                provider_name=self._embedding_provider.get_provider_name(),
            )
        return embeddings

    def _upsert(self, chunks: list[DocumentChunk], embeddings: list[list[float]]) -> int:
        try:
            collection = self._get_or_create_collection()
            for start in range(0, len(chunks), _UPSERT_BATCH_SIZE):
                batch = chunks[start : start + _UPSERT_BATCH_SIZE]
                collection.upsert(
                    ids=[c.chunk_id for c in batch],
                    embeddings=embeddings[start : start + _UPSERT_BATCH_SIZE],
                    documents=[c.text for c in batch],
                    metadatas=[self._chunk_to_metadata(c) for c in batch],
                )
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB add_chunks failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_add_chunks", count=len(chunks))
        return len(chunks)

    def _delete_source_unlocked(self, source: str) -> int:
        try:
            collection = self._get_collection()
            if collection is None:
                return 0
            existing = collection.get(where={"source": source}, include=[])
            ids = existing.get("ids") or []
            if ids:
                collection.delete(ids=ids)
        except DocQAError:
            raise
        except Exception as exc:
            raise StoreError(
                message=f"ChromaDB delete of source chunks failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return len(ids)

    def _collection_metadata(self) -> dict[str, str | int]:
        return {
            "hnsw:space": "cosine",
            "embedding_dimension": self._embedding_provider.get_dimension(),
        }

    def _check_dimension(self) -> None:
        collection = self._get_collection()
        recorded = (collection.metadata or {}).get("embedding_dimension") if collection else None
        expected = self._embedding_provider.get_dimension()
        if recorded is not None and recorded != expected:
            logger.warning(
                "chromadb_dimension_mismatch",
                collection=self._collection_name,
                recorded=recorded,
                expected=expected,
            )

    def _collection_listed(self) -> bool:
        # list_collections returns names on newer releases, objects on older.
        names = {getattr(c, "name", c) for c in self._client.list_collections()}
        return self._collection_name in names

    def _get_collection(self) -> Any | None:
        """Return the collection handle, or ``None`` if it does not exist."""
        try:
            return self._client.get_collection(
                name=self._collection_name,
                embedding_function=_NoopEmbeddingFunction(),
            )
        except Exception as exc:
            if _is_missing_collection_error(exc):
                return None
            if isinstance(exc, ValueError):
                # Persisted with a different embedding function; ours is
                # never called, so open it with whatever was stored.
                return self._client.get_collection(name=self._collection_name)
            raise

    def _get_or_create_collection(self) -> Any:
        try:
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata=self._collection_metadata(),
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            return self._client.get_or_create_collection(
                name=self._collection_name,
                metadata=self._collection_metadata(),
            )

    def _create_collection(self) -> None:
        try:
            self._client.create_collection(
                name=self._collection_name,
                metadata=self._collection_metadata(),
                embedding_function=_NoopEmbeddingFunction(),
            )
            logger.info("chromadb_collection_created", collection=self._collection_name)
        except Exception as exc:
            if not _is_already_exists_error(exc):
                raise
            logger.info("chromadb_collection_exists", collection=self._collection_name)

    def _drop_collection(self) -> bool:
        """Drop the collection.

        Returns ``True`` when the collection is gone (dropped or never
        there) and ``False`` when the drop failed and the items were
        deleted one by one instead.
        """
        try:
            self._client.delete_collection(name=self._collection_name)
            logger.info("chromadb_collection_dropped", collection=self._collection_name)
            return True
        except Exception as exc:
            if _is_missing_collection_error(exc):
                logger.info("chromadb_collection_already_absent", collection=self._collection_name)
                return True
            logger.warning(
                "chromadb_drop_failed_clearing_items",
                collection=self._collection_name,
                error=str(exc),
            )

        collection = self._get_collection()
        if collection is not None:
            ids = collection.get(include=[]).get("ids") or []
            for start in range(0, len(ids), _UPSERT_BATCH_SIZE):
                collection.delete(ids=ids[start : start + _UPSERT_BATCH_SIZE])
            logger.info("chromadb_collection_cleared", deleted_count=len(ids))
        return False

    async def _wait_until_dropped(self) -> None:
        for attempt in range(1, self._delete_poll_attempts + 1):
            if not self._collection_listed():
                return
            logger.debug("chromadb_waiting_for_drop", attempt=attempt)
            await asyncio.sleep(self._delete_poll_interval)
        raise StoreError(
            message=(
                f"Collection '{self._collection_name}' still listed after "
                f"{self._delete_poll_attempts} checks"
            ),
            provider_name=self.get_provider_name(),
        )

    @staticmethod
    def _chunk_to_metadata(chunk: DocumentChunk) -> dict[str, str | int]:
        """Convert a DocumentChunk to a ChromaDB-compatible metadata dict.

        ChromaDB rejects ``None`` values, so optional fields are left out
        when unset.
        """
        meta: dict[str, str | int] = {
            "source": chunk.source,
            "chunk_index": chunk.chunk_index,
            "uploaded_at": chunk.uploaded_at.isoformat(),
        }
        if chunk.page_number is not None:
            meta["page"] = chunk.page_number
        if chunk.mime_type is not None:
            meta["mime_type"] = chunk.mime_type
        return meta

    @staticmethod
    def _metadata_to_chunk(chunk_id: str, meta: dict[str, Any], text: str) -> DocumentChunk:
        """Reverse :meth:`_chunk_to_metadata`."""
        return DocumentChunk(
            chunk_id=chunk_id,
            text=text,
            source=meta.get("source", ""),
            chunk_index=int(meta.get("chunk_index", 0)),
            page_number=meta.get("page"),
            uploaded_at=meta.get("uploaded_at"),
            mime_type=meta.get("mime_type"),
        )
