"""Suffix-based dispatch to the format-specific source processors."""

from __future__ import annotations

from pathlib import Path

import structlog

from docqa.models.rag import PageText
from docqa.services.ingestion.source_processors.pdf_processor import PDFProcessor
from docqa.services.ingestion.source_processors.text_processor import TextFileProcessor
from docqa.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

# Suffix -> declared media type of every format docqa can ingest.
MEDIA_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
}


class DocumentExtractor:
    """Turns a file on disk into a list of :class:`PageText`.

    Read-only: the file is never modified.
    """

    def __init__(self) -> None:
        text_processor = TextFileProcessor()
        self._processors = {
            ".pdf": PDFProcessor(),
            ".txt": text_processor,
            ".md": text_processor,
        }

    @staticmethod
    def is_supported(path: str | Path) -> bool:
        return Path(path).suffix.lower() in MEDIA_TYPES

    @staticmethod
    def media_type_for(path: str | Path) -> str | None:
        """Return the media type for *path*'s suffix, or ``None`` if unsupported."""
        return MEDIA_TYPES.get(Path(path).suffix.lower())

    def extract(self, file_path: str | Path) -> list[PageText]:
        """Extract the pages of *file_path*.

        Raises
        ------
        ExtractionError
            If the file is missing, unreadable or not a supported format.
        """
        path = Path(file_path)
        suffix = path.suffix.lower()
        processor = self._processors.get(suffix)
        if processor is None:
            raise ExtractionError(
                message=(
                    f"Unsupported file type '{suffix or path.name}'. "
                    f"Supported: {', '.join(sorted(MEDIA_TYPES))}"
                ),
            )
        if not path.is_file():
            raise ExtractionError(message=f"File not found: {path}")

        return processor.extract(str(path))
