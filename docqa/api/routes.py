"""FastAPI API routes for docqa.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; the instances are built once
in :func:`docqa.main._build_all`.

Endpoint                     Method  Description
---------------------------  ------  ----------------------------------------
/api/v1/documents/upload     POST    Save + ingest one document
/api/v1/documents/reindex    POST    Rebuild the collection from disk
/api/v1/chat                 POST    Answer a question from the documents
/api/v1/health               GET     Health check + provider status

Errors raised by the services are turned into the failure body by
:class:`~docqa.api.middleware.ErrorHandlingMiddleware`.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request, UploadFile

from docqa import __version__
from docqa.api.schemas import (
    ActionFailure,
    ChatRequest,
    ChatResponse,
    ChatSuccess,
    HealthResponse,
    ReindexMetadata,
    ReindexResponse,
    ReindexSuccess,
    UploadMetadata,
    UploadResponse,
    UploadSuccess,
)
from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion.source_processors.extractor import MEDIA_TYPES
from docqa.services.qa_service import QAService
from docqa.services.reindex_service import ReindexService
from docqa.utils.errors import IngestionError
from docqa.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_MAX_FILE_SIZE = 50 * 1024 * 1024
_UPLOAD_CHUNK_SIZE = 64 * 1024

_FAILURE_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ActionFailure} for code in (400, 422, 500, 504)
}


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve services from app.state
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_reindex_service(request: Request) -> ReindexService:
    return request.app.state.reindex_service


def _get_qa_service(request: Request) -> QAService:
    return request.app.state.qa_service


IngestionServiceDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
ReindexServiceDep = Annotated[ReindexService, Depends(_get_reindex_service)]
QAServiceDep = Annotated[QAService, Depends(_get_qa_service)]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    response_model=UploadResponse,
    responses=_FAILURE_RESPONSES,
    summary="Upload and ingest a document",
)
async def upload_document(file: UploadFile, ingestion: IngestionServiceDep) -> UploadResponse:
    """Save the uploaded file to the document directory, then ingest it."""
    # Stream in 64 KB pieces so oversized uploads are rejected early.
    parts: list[bytes] = []
    total_size = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        total_size += len(part)
        if total_size > _MAX_FILE_SIZE:
            raise IngestionError(
                message=f"File too large: maximum is {_MAX_FILE_SIZE // (1024 * 1024)} MB"
            )
        parts.append(part)

    declared = file.content_type if file.content_type in MEDIA_TYPES.values() else None
    result = await ingestion.ingest_upload(file.filename or "", b"".join(parts), mime_type=declared)
    return UploadSuccess(metadata=UploadMetadata(**result.model_dump()))


@router.post(
    "/documents/reindex",
    response_model=ReindexResponse,
    responses=_FAILURE_RESPONSES,
    summary="Rebuild the collection from every stored document",
)
async def reindex_documents(reindex: ReindexServiceDep) -> ReindexResponse:
    result = await reindex.reindex_all()
    return ReindexSuccess(metadata=ReindexMetadata(**result.model_dump()))


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses=_FAILURE_RESPONSES,
    summary="Answer a question from the uploaded documents",
)
async def chat(body: ChatRequest, qa: QAServiceDep) -> ChatResponse:
    result = await qa.answer(body.query)
    return ChatSuccess(answer=result.answer, sources=result.sources)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))

    vector_store: IVectorStoreProvider | None = getattr(request.app.state, "vector_store", None)
    store_ok = False
    if vector_store is not None:
        try:
            providers["chunks"] = await vector_store.count()
            store_ok = True
        except Exception as exc:  # noqa: BLE001 -- health must answer even when the store is down
            _logger.warning("health_store_unreachable", error=str(exc))
            providers["chunks"] = 0
    providers["vector_store"] = store_ok

    status = "healthy" if store_ok and providers.get("llm") else "degraded"
    return HealthResponse(status=status, version=__version__, providers=providers)
