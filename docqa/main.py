"""docqa FastAPI application entry point.

Wires together providers, services and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.  :func:`build_services` is also used by the CLI, which
runs the same services outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from docqa import __version__
from docqa.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from docqa.api.routes import router as api_router
from docqa.config.loader import load_config
from docqa.config.settings import Settings
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docqa.providers.llm.anthropic_provider import AnthropicLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider
from docqa.providers.vector_store.chromadb_provider import ChromaDBProvider, build_chroma_client
from docqa.services.ingestion.chunker import TextChunker
from docqa.services.ingestion.document_store import DocumentStore
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion.source_processors.extractor import DocumentExtractor
from docqa.services.qa_service import QAService
from docqa.services.reindex_service import ReindexService
from docqa.utils.errors import ConfigurationError
from docqa.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


_LLM_PROVIDERS: dict[str, type[ILLMProvider]] = {
    "anthropic": AnthropicLLMProvider,
    "openai": OpenAILLMProvider,
}


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first LLM provider with a configured API key.

    Priority order: Anthropic -> OpenAI.
    """
    available = app_settings.get_available_llm_providers()
    if not available:
        raise ConfigurationError(
            message="No LLM provider configured: set ANTHROPIC_API_KEY or OPENAI_API_KEY",
        )
    return _LLM_PROVIDERS[available[0]](settings=app_settings)


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the first available embedding provider.

    Priority: OpenAI/OpenAI-compatible (if API key set) -> Nomic/Ollama
    (if reachable).
    """
    if app_settings.openai_api_key:
        provider: IEmbeddingProvider = OpenAIEmbeddingProvider(settings=app_settings)
        if provider.is_available():
            return provider

    provider = NomicEmbeddingProvider(settings=app_settings)
    if provider.is_available():
        return provider

    raise ConfigurationError(
        message=(
            "No embedding provider available: set OPENAI_API_KEY or run Ollama "
            f"with nomic-embed-text at {app_settings.ollama_base_url}"
        ),
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_services(
    app_settings: Settings,
    config: dict[str, Any],
    *,
    llm: ILLMProvider | None = None,
    embedding_provider: IEmbeddingProvider | None = None,
    chroma_client: Any | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance.

    The keyword arguments replace the configured backends (tests pass fakes
    here).  Returns a flat dict of named components.
    """
    rag_cfg = config.get("rag", {})
    store_cfg = config.get("vector_store", {})

    llm = llm or _build_llm_provider(app_settings)
    embedding_provider = embedding_provider or _build_embedding_provider(app_settings)

    vector_store = ChromaDBProvider(
        embedding_provider=embedding_provider,
        client=chroma_client if chroma_client is not None else build_chroma_client(app_settings),
        collection_name=store_cfg.get("collection", app_settings.chromadb_collection),
        delete_poll_interval=float(store_cfg.get("delete_poll_interval", 0.25)),
        delete_poll_attempts=int(store_cfg.get("delete_poll_attempts", 20)),
    )

    extractor = DocumentExtractor()
    chunker = TextChunker(
        chunk_size=int(rag_cfg.get("chunk_size", 1000)),
        overlap=int(rag_cfg.get("chunk_overlap", 200)),
    )
    document_store = DocumentStore(app_settings.documents_dir)

    ingestion_service = IngestionService(
        extractor=extractor,
        chunker=chunker,
        vector_store=vector_store,
        document_store=document_store,
    )
    reindex_service = ReindexService(
        extractor=extractor,
        chunker=chunker,
        vector_store=vector_store,
        document_store=document_store,
    )
    qa_service = QAService(
        llm=llm,
        vector_store=vector_store,
        top_k=int(rag_cfg.get("top_k", 3)),
        preview_chars=int(rag_cfg.get("preview_chars", 150)),
        max_tokens=int(config.get("llm", {}).get("max_tokens", 1024)),
    )

    return {
        "llm": llm,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "document_store": document_store,
        "ingestion_service": ingestion_service,
        "reindex_service": reindex_service,
        "qa_service": qa_service,
        "provider_registry": {
            "llm": llm.get_provider_name(),
            "embedding": embedding_provider.get_provider_name(),
        },
    }


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Build the application's components from settings and config.yaml."""
    return build_services(app_settings, load_config(settings=app_settings))


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise providers and services on startup."""
    app_settings: Settings = application.state.settings
    components = _build_all(app_settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    components["document_store"].ensure_dir()
    await components["vector_store"].ensure_collection_exists()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=app_settings.app_env,
        llm=components["provider_registry"]["llm"],
        embedding=components["provider_registry"]["embedding"],
        embedding_dimension=components["embedding_provider"].get_dimension(),
        collection=app_settings.chromadb_collection,
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    application = FastAPI(
        title="docqa API",
        version=__version__,
        description=(
            "Upload PDF, text or Markdown documents and ask questions that are "
            "answered only from their contents, with cited passages."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)
    register_exception_handlers(application)

    application.include_router(api_router)
    return application


app = create_app()


def main() -> None:
    """Run the API server with uvicorn."""
    app_settings: Settings = app.state.settings
    uvicorn.run(
        "docqa.main:app",
        host=app_settings.app_host,
        port=app_settings.app_port,
        reload=(app_settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()
