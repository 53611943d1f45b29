"""Document ingestion pipeline for docqa.

Pipeline stages:

1. **Extract** (source_processors/) -- format-specific readers turn a file
   into page-level text.
2. **Chunk** (chunker.py / TextChunker) -- pages are split into overlapping
   character windows that end on paragraph, sentence or word breaks.
3. **Write** (via IVectorStoreProvider) -- the store embeds the chunks and
   replaces the document's previous entries.

:class:`IngestionService` runs the stages for one file;
:class:`DocumentStore` keeps the uploaded originals on disk.
"""

from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.document_store import DocumentStore
from docqa.services.ingestion.ingestion_service import IngestionService

__all__ = ["DocumentStore", "IngestionService", "TextChunker"]
