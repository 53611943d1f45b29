"""Shared pytest fixtures for the docqa test suite."""

from __future__ import annotations

import re
import zlib
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import chromadb
import pytest
from chromadb.config import Settings as ChromaSettings

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.models.rag import DocumentChunk
from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider

_DIMENSION = 64
_WORD_RE = re.compile(r"[a-z0-9]+")


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic bag-of-words embedder.

    Each lower-cased word is hashed into one of 64 buckets; a constant bias
    bucket keeps every vector non-zero.  Texts sharing words land close
    together under cosine distance.
    """

    def __init__(self) -> None:
        self.embed_calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.embed_calls.append(list(texts))
        return [self._vector(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return _DIMENSION

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True

    @staticmethod
    def _vector(text: str) -> list[float]:
        vector = [0.0] * _DIMENSION
        vector[0] = 0.1
        for word in _WORD_RE.findall(text.lower()):
            vector[1 + zlib.crc32(word.encode()) % (_DIMENSION - 1)] += 1.0
        return vector


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_chunk(
    text: str = "The sky is blue.",
    source: str = "facts.txt",
    chunk_index: int = 0,
    page_number: int | None = 1,
    mime_type: str | None = "text/plain",
    uploaded_at: datetime | None = None,
) -> DocumentChunk:
    return DocumentChunk(
        chunk_id=f"{source}-{chunk_index}",
        text=text,
        source=source,
        chunk_index=chunk_index,
        page_number=page_number,
        uploaded_at=uploaded_at or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        mime_type=mime_type,
    )


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def mock_llm() -> MagicMock:
    """LLM that always answers 'The sky is blue.'."""
    mock = MagicMock(spec=ILLMProvider)
    mock.complete = AsyncMock(return_value="The sky is blue.")
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    return mock


@pytest.fixture
def chroma_client(tmp_path: Path):
    """A real on-disk ChromaDB client, isolated per test."""
    return chromadb.PersistentClient(
        path=str(tmp_path / "chroma"),
        settings=ChromaSettings(anonymized_telemetry=False),
    )


@pytest.fixture
def vector_store(fake_embedder: FakeEmbeddingProvider, chroma_client) -> ChromaDBProvider:
    return ChromaDBProvider(
        embedding_provider=fake_embedder,
        client=chroma_client,
        collection_name="test_documents",
        delete_poll_interval=0.01,
        delete_poll_attempts=5,
    )


@pytest.fixture
def documents_dir(tmp_path: Path) -> Path:
    return tmp_path / "documents"
