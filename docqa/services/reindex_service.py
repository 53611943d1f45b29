"""Rebuilds the vector collection from every document on disk."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from docqa.models.rag import DocumentChunk, ReindexResult
from docqa.utils.errors import DocQAError, ReindexError

if TYPE_CHECKING:
    from docqa.interfaces.vector_store_provider import IVectorStoreProvider
    from docqa.services.ingestion.chunker import TextChunker
    from docqa.services.ingestion.document_store import DocumentStore
    from docqa.services.ingestion.source_processors.extractor import DocumentExtractor

logger = structlog.get_logger(logger_name=__name__)

EMPTY_STORE_MESSAGE = "No documents found in storage. Please upload some documents first."


class ReindexService:
    """Re-extracts and re-chunks every stored file, then rebuilds the collection.

    A file that fails to extract or chunk is logged and skipped; only a
    failure of the rebuild itself aborts the run.
    """

    def __init__(
        self,
        extractor: DocumentExtractor,
        chunker: TextChunker,
        vector_store: IVectorStoreProvider,
        document_store: DocumentStore,
    ) -> None:
        self._extractor = extractor
        self._chunker = chunker
        self._vector_store = vector_store
        self._document_store = document_store

    async def reindex_all(self) -> ReindexResult:
        start = time.monotonic()
        files = self._document_store.list_documents()
        logger.info("reindex_started", files=len(files), documents_dir=str(self._document_store.root))

        all_chunks: list[DocumentChunk] = []
        for path in files:
            try:
                pages = await asyncio.to_thread(self._extractor.extract, path)
                # The file's mtime is the time it was uploaded.
                uploaded_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                chunks = self._chunker.split(
                    pages,
                    path.name,
                    uploaded_at,
                    self._extractor.media_type_for(path),
                )
            except Exception as exc:  # noqa: BLE001 -- one bad file must not stop the rebuild
                logger.warning("reindex_file_skipped", file=path.name, error=str(exc))
                continue
            logger.info("reindex_file_processed", file=path.name, pages=len(pages), chunks=len(chunks))
            all_chunks.extend(chunks)

        # Rebuild even when nothing survived so stale entries are cleared.
        try:
            stored = await self._vector_store.rebuild_collection(all_chunks)
        except DocQAError as exc:
            logger.error("reindex_failed", error=str(exc))
            raise ReindexError(
                message=f"Reindexing failed: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc
        except Exception as exc:
            logger.exception("reindex_failed")
            raise ReindexError(message=f"Reindexing failed: {exc}") from exc

        if not all_chunks:
            logger.info("reindex_complete", documents=0, chunks=0)
            return ReindexResult(document_count=0, chunk_count=0, message=EMPTY_STORE_MESSAGE)

        document_count = len({chunk.source for chunk in all_chunks})
        logger.info(
            "reindex_complete",
            documents=document_count,
            chunks=stored,
            duration_s=round(time.monotonic() - start, 3),
        )
        return ReindexResult(
            document_count=document_count,
            chunk_count=len(all_chunks),
            message=(
                f"Successfully reindexed {document_count} documents "
                f"with {len(all_chunks)} total chunks."
            ),
        )
