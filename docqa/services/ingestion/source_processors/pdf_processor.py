"""Source processor for PDF files.

Reads PDFs with PyMuPDF (fitz) and returns one
:class:`~docqa.models.rag.PageText` per page, numbered from 1 in source
order.  Pages without a text layer are kept (with empty text) so the
numbering of later pages stays true to the file.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docqa.models.rag import PageText
from docqa.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class PDFProcessor:
    """Extracts page text from PDF files."""

    def extract(self, file_path: str) -> list[PageText]:
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            logger.error("pdf_open_failed", file_path=file_path, error=str(exc))
            raise ExtractionError(
                message=f"Could not open PDF '{file_path}': {exc}",
                provider_name="pymupdf",
            ) from exc

        pages: list[PageText] = []
        try:
            for page_index in range(len(doc)):
                text = doc[page_index].get_text("text").strip()
                pages.append(PageText(text=text, page_number=page_index + 1))
        except Exception as exc:
            raise ExtractionError(
                message=f"Could not read PDF '{file_path}': {exc}",
                provider_name="pymupdf",
            ) from exc
        finally:
            doc.close()

        if not any(page.text for page in pages):
            logger.warning("pdf_no_text_extracted", file_path=file_path, pages=len(pages))
        else:
            logger.info("pdf_processed", file_path=file_path, pages=len(pages))
        return pages
