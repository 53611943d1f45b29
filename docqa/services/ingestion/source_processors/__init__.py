"""Source processors for the docqa ingestion pipeline.

Each processor turns one file format into page-level
:class:`~docqa.models.rag.PageText` objects for the TextChunker.

- **PDFProcessor**      -- PDF files via PyMuPDF page extraction
- **TextFileProcessor** -- ``.txt`` and ``.md`` files as a single page

:class:`DocumentExtractor` picks the processor from the file suffix.
"""

from docqa.services.ingestion.source_processors.extractor import (
    MEDIA_TYPES,
    DocumentExtractor,
)
from docqa.services.ingestion.source_processors.pdf_processor import PDFProcessor
from docqa.services.ingestion.source_processors.text_processor import TextFileProcessor

__all__ = ["MEDIA_TYPES", "DocumentExtractor", "PDFProcessor", "TextFileProcessor"]
