"""Pydantic request/response schemas for the docqa API.

Every action answers with a tagged body: ``success: true`` plus the
action's payload, or the shared :class:`ActionFailure` shape
``{"success": false, "error": ..., "error_type": ...}``.  The ``*Response``
aliases combine both variants so the OpenAPI docs show the full contract.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field

from docqa.models.rag import SourceCitation


class ActionFailure(BaseModel):
    """Failure body shared by every action."""

    success: Literal[False] = False
    error: str = Field(description="Human-readable error message.")
    error_type: str = Field(description="Exception class name, e.g. 'QueryError'.")


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


class UploadMetadata(BaseModel):
    file_name: str
    page_count: int
    chunk_count: int


class UploadSuccess(BaseModel):
    success: Literal[True] = True
    metadata: UploadMetadata


# ---------------------------------------------------------------------------
# Reindex
# ---------------------------------------------------------------------------


class ReindexMetadata(BaseModel):
    document_count: int
    chunk_count: int
    message: str


class ReindexSuccess(BaseModel):
    success: Literal[True] = True
    metadata: ReindexMetadata


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """A question about the uploaded documents.

    Blank questions are accepted here and rejected by the QA service, so
    they get the same failure body as every other action error.
    """

    query: str = Field(default="", max_length=4000)


class ChatSuccess(BaseModel):
    success: Literal[True] = True
    answer: str
    sources: list[SourceCitation] = Field(default_factory=list)


UploadResponse = Union[UploadSuccess, ActionFailure]
ReindexResponse = Union[ReindexSuccess, ActionFailure]
ChatResponse = Union[ChatSuccess, ActionFailure]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
