"""Unit tests for TextChunker -- windowing, break points, overlap and metadata."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docqa.models.rag import PageText
from docqa.services.ingestion.chunker import TextChunker

_UPLOADED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _long_text(paragraphs: int = 12) -> str:
    sentences = [
        f"Paragraph {p} sentence {s} talks about item {p * 10 + s}."
        for p in range(paragraphs)
        for s in range(6)
    ]
    parts = [" ".join(sentences[i : i + 6]) for i in range(0, len(sentences), 6)]
    return "\n\n".join(parts)


class TestValidation:
    def test_overlap_must_be_smaller_than_chunk_size(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=100, overlap=100)

    def test_chunk_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=0, overlap=0)

    def test_overlap_must_not_be_negative(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=100, overlap=-1)

    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.chunk_size == 1000
        assert chunker.overlap == 200


class TestWindowing:
    def test_whitespace_only_input_gives_no_chunks(self) -> None:
        chunker = TextChunker(chunk_size=100, overlap=10)
        assert chunker.split([PageText(text="  \n\n \t", page_number=1)], "a.txt", _UPLOADED) == []
        assert chunker.split([], "a.txt", _UPLOADED) == []

    def test_short_text_is_one_chunk(self) -> None:
        chunker = TextChunker(chunk_size=100, overlap=10)
        chunks = chunker.split([PageText(text="The sky is blue.", page_number=1)], "a.txt", _UPLOADED)
        assert [c.text for c in chunks] == ["The sky is blue."]

    def test_chunks_never_exceed_chunk_size(self) -> None:
        chunker = TextChunker(chunk_size=200, overlap=50)
        for chunk in chunker.split_text(_long_text()):
            assert len(chunk) <= 200

    def test_consecutive_chunks_share_exactly_overlap_characters(self) -> None:
        chunker = TextChunker(chunk_size=200, overlap=50)
        chunks = chunker.split_text(_long_text())
        assert len(chunks) > 3
        for previous, current in zip(chunks, chunks[1:]):
            assert previous[-50:] == current[:50]

    def test_chunks_reassemble_to_original_text(self) -> None:
        text = _long_text()
        chunker = TextChunker(chunk_size=180, overlap=40)
        chunks = chunker.split_text(text)
        rebuilt = chunks[0] + "".join(chunk[40:] for chunk in chunks[1:])
        assert rebuilt == text

    def test_deterministic(self) -> None:
        chunker = TextChunker(chunk_size=150, overlap=30)
        pages = [PageText(text=_long_text(4), page_number=1), PageText(text=_long_text(3), page_number=2)]
        first = chunker.split(pages, "doc.pdf", _UPLOADED, "application/pdf")
        second = chunker.split(pages, "doc.pdf", _UPLOADED, "application/pdf")
        assert first == second


class TestBreakPoints:
    def test_prefers_paragraph_break(self) -> None:
        text = "A" * 50 + "\n\n" + "B" * 100
        chunks = TextChunker(chunk_size=100, overlap=10).split_text(text)
        assert chunks[0] == "A" * 50 + "\n\n"

    def test_sentence_break_ignores_abbreviations(self) -> None:
        text = "First part ends here. Then Dr. Smith met Mr. Jones and kept talking about things"
        chunks = TextChunker(chunk_size=60, overlap=5).split_text(text)
        assert chunks[0] == "First part ends here. "

    def test_falls_back_to_word_break(self) -> None:
        text = " ".join(f"word{i}" for i in range(100))
        chunks = TextChunker(chunk_size=60, overlap=10).split_text(text)
        for chunk in chunks[:-1]:
            assert chunk.endswith(" ")

    def test_hard_cut_without_any_break(self) -> None:
        chunks = TextChunker(chunk_size=100, overlap=20).split_text("x" * 250)
        assert [len(c) for c in chunks] == [100, 100, 90]

    def test_break_inside_overlap_region_is_ignored(self) -> None:
        # The only space sits within the first `overlap` characters, so it
        # cannot be used and the window is hard-cut.
        text = "ab " + "c" * 200
        chunks = TextChunker(chunk_size=100, overlap=20).split_text(text)
        assert len(chunks[0]) == 100


class TestMetadata:
    def test_page_number_is_the_page_at_chunk_start(self) -> None:
        pages = [PageText(text="a" * 150, page_number=1), PageText(text="b" * 150, page_number=2)]
        chunks = TextChunker(chunk_size=100, overlap=0).split(pages, "doc.pdf", _UPLOADED)
        assert [c.page_number for c in chunks] == [1, 1, 2, 2]

    def test_chunks_are_stamped_with_document_metadata(self) -> None:
        pages = [PageText(text=_long_text(3), page_number=1)]
        chunks = TextChunker(chunk_size=150, overlap=30).split(pages, "notes.md", _UPLOADED, "text/markdown")
        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        assert {c.source for c in chunks} == {"notes.md"}
        assert {c.uploaded_at for c in chunks} == {_UPLOADED}
        assert {c.mime_type for c in chunks} == {"text/markdown"}

    def test_chunk_ids_are_stable_and_unique(self) -> None:
        pages = [PageText(text=_long_text(3), page_number=1)]
        chunker = TextChunker(chunk_size=150, overlap=30)
        chunks = chunker.split(pages, "notes.md", _UPLOADED)
        ids = [c.chunk_id for c in chunks]
        assert len(set(ids)) == len(ids)
        assert ids[0] == TextChunker.chunk_id("notes.md", 0)
        assert TextChunker.chunk_id("other.md", 0) != ids[0]
