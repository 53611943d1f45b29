"""Pydantic data models shared across docqa."""

from docqa.models.rag import (
    AnswerResult,
    DocumentChunk,
    IngestionResult,
    PageText,
    ReindexResult,
    RetrievedChunk,
    SourceCitation,
    SourceMetadata,
)

__all__ = [
    "AnswerResult",
    "DocumentChunk",
    "IngestionResult",
    "PageText",
    "ReindexResult",
    "RetrievedChunk",
    "SourceCitation",
    "SourceMetadata",
]
