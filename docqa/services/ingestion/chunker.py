"""Character-window chunking with natural break points and exact overlap.

Splits extracted pages into :class:`~docqa.models.rag.DocumentChunk`
objects of at most ``chunk_size`` characters.

Pages are joined with a blank line into one document text.  Each window is
cut at the best break it contains, in this order of preference:

1. the latest paragraph break (``\\n\\n``),
2. the latest sentence end, ignoring periods after abbreviations such as
   "Dr." or "etc.",
3. the latest space,
4. a hard cut at ``chunk_size``.

A break only counts if it lies past the first ``overlap`` characters of the
window.  The next window starts ``overlap`` characters before the cut, so
consecutive chunks share exactly ``overlap`` characters.
"""

from __future__ import annotations

import bisect
import re
import uuid
from datetime import datetime

import structlog

from docqa.models.rag import DocumentChunk, PageText

logger = structlog.get_logger(logger_name=__name__)

_PAGE_SEPARATOR = "\n\n"

# Common abbreviations that should NOT end a sentence.
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Prof",
        "Jr",
        "Sr",
        "St",
        "Ave",
        "Vol",
        "No",
        "vs",
        "etc",
        "approx",
        "dept",
        "est",
        "govt",
        "inc",
        "ltd",
        "e.g",
        "i.e",
    }
)

_ABBREVIATION_RE = re.compile(
    r"\b(" + "|".join(re.escape(a) for a in sorted(_ABBREVIATIONS, key=len, reverse=True)) + r")\."
)
_SENTENCE_END_RE = re.compile(r"[.!?]\s")


class TextChunker:
    """Splits page text into overlapping, deterministic chunks.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 1000).
    overlap:
        Characters shared by consecutive chunks (default 200).

    Raises
    ------
    ValueError
        If either size is out of range or ``overlap >= chunk_size``.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ValueError(
                f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split(
        self,
        pages: list[PageText],
        source: str,
        uploaded_at: datetime,
        mime_type: str | None = None,
    ) -> list[DocumentChunk]:
        """Chunk *pages* and stamp every chunk with the document metadata.

        ``chunk_id`` is derived from ``(source, chunk_index)``, so the same
        file chunked twice produces the same ids and upserts overwrite.

        Returns
        -------
        list[DocumentChunk]
            Chunks in document order.  Whitespace-only input returns ``[]``.
        """
        text, page_starts = self._join_pages(pages)
        if not text.strip():
            return []

        chunks: list[DocumentChunk] = []
        for index, (start, end) in enumerate(self._windows(text)):
            page_slot = bisect.bisect_right(page_starts, start) - 1
            chunks.append(
                DocumentChunk(
                    chunk_id=self.chunk_id(source, index),
                    text=text[start:end],
                    source=source,
                    chunk_index=index,
                    page_number=pages[page_slot].page_number,
                    uploaded_at=uploaded_at,
                    mime_type=mime_type,
                )
            )

        logger.debug(
            "chunking_complete",
            source=source,
            pages=len(pages),
            num_chunks=len(chunks),
            chars=len(text),
        )
        return chunks

    def split_text(self, text: str) -> list[str]:
        """Chunk a bare string (no metadata)."""
        if not text.strip():
            return []
        return [text[start:end] for start, end in self._windows(text)]

    @staticmethod
    def chunk_id(source: str, chunk_index: int) -> str:
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"docqa:{source}#{chunk_index}"))

    # ------------------------------------------------------------------
    # Windowing
    # ------------------------------------------------------------------

    @staticmethod
    def _join_pages(pages: list[PageText]) -> tuple[str, list[int]]:
        """Join page texts; return the text and each page's start offset."""
        starts: list[int] = []
        offset = 0
        for page in pages:
            starts.append(offset)
            offset += len(page.text) + len(_PAGE_SEPARATOR)
        return _PAGE_SEPARATOR.join(page.text for page in pages), starts

    def _windows(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of every chunk in *text*."""
        # Mask abbreviation periods once; '\x00' keeps offsets aligned.
        masked = _ABBREVIATION_RE.sub(lambda m: m.group(1) + "\x00", text)

        spans: list[tuple[int, int]] = []
        start = 0
        length = len(text)
        while True:
            end = start + self._chunk_size
            if end >= length:
                spans.append((start, length))
                return spans
            cut = self._find_break(text, masked, start, end)
            spans.append((start, cut))
            start = cut - self._overlap

    def _find_break(self, text: str, masked: str, start: int, end: int) -> int:
        """Pick the cut for the window ``text[start:end]``.

        Every candidate returned lies strictly past ``start + overlap``.
        """
        floor = start + self._overlap

        para = text.rfind("\n\n", floor, end)
        if para != -1:
            return para + 2

        last_sentence = None
        for match in _SENTENCE_END_RE.finditer(masked, floor, end):
            last_sentence = match
        if last_sentence is not None:
            return last_sentence.end()

        space = text.rfind(" ", floor, end)
        if space != -1:
            return space + 1

        return end
