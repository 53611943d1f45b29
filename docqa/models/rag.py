"""RAG pipeline data models for docqa.

Defines Pydantic v2 models for extracted pages, document chunks, retrieval
results, answers, and the summaries returned by ingestion and reindexing.
All models are frozen.

Data flow:

    file --extract--> PageText[] --chunk--> DocumentChunk[]
         --embed+store--> ChromaDB collection
    question --query--> RetrievedChunk[] --prompt+LLM--> AnswerResult
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PageText(BaseModel):
    """Text of one page of a source document, as produced by an extractor."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Extracted page text (may be empty).")
    page_number: int = Field(ge=1, description="1-based page number within the source.")


# ---------------------------------------------------------------------------
# DocumentChunk -- the unit of embedding and retrieval.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A bounded text segment from a source document, ready for embedding.

    Created by :class:`~docqa.services.ingestion.chunker.TextChunker`; the
    ``chunk_id`` is derived from ``(source, chunk_index)`` so re-chunking the
    same file yields the same ids.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Stable identifier used as the vector-store key.")
    text: str = Field(description="The chunk's textual content.")
    source: str = Field(description="File name of the originating document.")
    chunk_index: int = Field(default=0, ge=0, description="Position of this chunk in its document.")
    page_number: int | None = Field(
        default=None,
        ge=1,
        description="Page on which this chunk starts, when the source is paginated.",
    )
    uploaded_at: datetime = Field(description="UTC time the document was ingested.")
    mime_type: str | None = Field(default=None, description="Declared media type of the source.")


class RetrievedChunk(BaseModel):
    """A document chunk returned from a vector-store query with its score."""

    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk = Field(description="The retrieved document chunk.")
    similarity_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Cosine similarity between the query and this chunk.",
    )


# ---------------------------------------------------------------------------
# Answer models -- what the chat action hands back to the caller.
# ---------------------------------------------------------------------------
class SourceMetadata(BaseModel):
    """Citation metadata of one retrieved passage."""

    model_config = ConfigDict(frozen=True)

    source: str
    page: int | None = None
    uploaded_at: str | None = None
    mime_type: str | None = None


class SourceCitation(BaseModel):
    """A truncated preview of a retrieved passage plus its metadata."""

    model_config = ConfigDict(frozen=True)

    content: str
    metadata: SourceMetadata


class AnswerResult(BaseModel):
    """A generated answer and the passages it was grounded on."""

    model_config = ConfigDict(frozen=True)

    answer: str
    sources: list[SourceCitation] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Pipeline summaries
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of a single document ingestion run."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    page_count: int = Field(default=0, ge=0)
    chunk_count: int = Field(default=0, ge=0)


class ReindexResult(BaseModel):
    """Summary of a full collection rebuild."""

    model_config = ConfigDict(frozen=True)

    document_count: int = Field(default=0, ge=0)
    chunk_count: int = Field(default=0, ge=0)
    message: str = ""
