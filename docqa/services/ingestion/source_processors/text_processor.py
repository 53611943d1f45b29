"""Source processor for plain-text and Markdown files (single page)."""

from __future__ import annotations

from pathlib import Path

import structlog

from docqa.models.rag import PageText
from docqa.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class TextFileProcessor:
    """Reads a UTF-8 text file as one page.

    Undecodable bytes are replaced rather than rejected, so a stray Latin-1
    character does not fail a whole upload.
    """

    def extract(self, file_path: str) -> list[PageText]:
        try:
            text = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExtractionError(
                message=f"Could not read '{file_path}': {exc}",
                provider_name="text",
            ) from exc

        logger.info("text_file_processed", file_path=file_path, chars=len(text))
        return [PageText(text=text, page_number=1)]
