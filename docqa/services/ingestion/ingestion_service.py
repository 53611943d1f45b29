"""Orchestrator for single-document ingestion.

Pipeline stages: **extract -> stamp -> chunk -> write**.

:class:`IngestionService` coordinates the extractor, the chunker and the
vector store without any of them knowing about each other.  All
collaborators are injected through the constructor.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from docqa.models.rag import IngestionResult
from docqa.utils.errors import DocQAError, IngestionError

if TYPE_CHECKING:
    from docqa.interfaces.vector_store_provider import IVectorStoreProvider
    from docqa.services.ingestion.chunker import TextChunker
    from docqa.services.ingestion.document_store import DocumentStore
    from docqa.services.ingestion.source_processors.extractor import DocumentExtractor

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Ingests one document at a time into the vector store.

    Parameters
    ----------
    extractor:
        Reads page text from supported files.
    chunker:
        Splits page text into overlapping chunks.
    vector_store:
        Embeds and stores chunks.
    document_store:
        Directory that uploads are saved into before ingestion.
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

    async def ingest(self, file_path: str | Path, mime_type: str | None = None) -> IngestionResult:
        """Extract, chunk and store *file_path*.

        The document's previous chunks (same file name) are swapped for the
        new ones in a single ``replace_source`` call.
        All chunks share one UTC upload timestamp.

        Raises
        ------
        IngestionError
            Wrapping the first failure of any stage.
        """
        path = Path(file_path)
        source = path.name
        start = time.monotonic()
        logger.info("ingestion_started", source=source)

        try:
            # PyMuPDF is synchronous; keep it off the event loop.
            pages = await asyncio.to_thread(self._extractor.extract, path)
            media_type = mime_type or self._extractor.media_type_for(path)
            uploaded_at = datetime.now(timezone.utc)
            chunks = self._chunker.split(pages, source, uploaded_at, media_type)

            stored = await self._vector_store.replace_source(source, chunks)
        except IngestionError:
            raise
        except DocQAError as exc:
            logger.error("ingestion_failed", source=source, error=str(exc))
            raise IngestionError(
                message=f"Failed to ingest '{source}': {exc.message}",
                provider_name=exc.provider_name,
            ) from exc
        except Exception as exc:
            logger.exception("ingestion_failed", source=source)
            raise IngestionError(message=f"Failed to ingest '{source}': {exc}") from exc

        logger.info(
            "ingestion_complete",
            source=source,
            pages=len(pages),
            chunks=stored,
            duration_s=round(time.monotonic() - start, 3),
        )
        return IngestionResult(file_name=source, page_count=len(pages), chunk_count=stored)

    async def ingest_upload(
        self,
        file_name: str,
        content: bytes,
        mime_type: str | None = None,
    ) -> IngestionResult:
        """Save an uploaded file into the document store, then ingest it."""
        if not self._extractor.is_supported(file_name):
            raise IngestionError(
                message=f"Unsupported file type: {file_name!r}. Upload a .pdf, .txt or .md file."
            )
        saved = self._document_store.save(file_name, content)
        return await self.ingest(saved, mime_type=mime_type)
