"""Integration tests for the HTTP API contract.

The app is built with :func:`docqa.main.create_app` and its state is filled
with mocked services, so every response shape and status code can be
checked without any backend.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from docqa import __version__
from docqa.config.settings import Settings
from docqa.main import create_app
from docqa.models.rag import (
    AnswerResult,
    IngestionResult,
    ReindexResult,
    SourceCitation,
    SourceMetadata,
)
from docqa.services.qa_service import QAService
from docqa.utils.errors import (
    IngestionError,
    QueryError,
    ReindexError,
    ServiceTimeoutError,
)


@pytest.fixture
def services() -> dict:
    ingestion = MagicMock()
    ingestion.ingest_upload = AsyncMock(
        return_value=IngestionResult(file_name="facts.txt", page_count=1, chunk_count=1)
    )
    reindex = MagicMock()
    reindex.reindex_all = AsyncMock(
        return_value=ReindexResult(
            document_count=1,
            chunk_count=4,
            message="Successfully reindexed 1 documents with 4 total chunks.",
        )
    )
    qa = MagicMock()
    qa.answer = AsyncMock(
        return_value=AnswerResult(
            answer="The sky is blue.",
            sources=[
                SourceCitation(
                    content="The sky is blue.",
                    metadata=SourceMetadata(
                        source="facts.txt",
                        page=1,
                        uploaded_at="2024-05-01T12:00:00+00:00",
                        mime_type="text/plain",
                    ),
                )
            ],
        )
    )
    vector_store = MagicMock()
    vector_store.count = AsyncMock(return_value=4)
    return {
        "ingestion_service": ingestion,
        "reindex_service": reindex,
        "qa_service": qa,
        "vector_store": vector_store,
        "provider_registry": {"llm": "anthropic", "embedding": "openai_embedding"},
    }


@pytest.fixture
def client(services: dict) -> TestClient:
    app = create_app(Settings(_env_file=None))
    for key, value in services.items():
        setattr(app.state, key, value)
    # No context manager: the lifespan (which builds real providers) is skipped.
    return TestClient(app)


class TestUpload:
    def test_success(self, client: TestClient, services: dict) -> None:
        response = client.post(
            "/api/v1/documents/upload",
            files={"file": ("facts.txt", b"The sky is blue.", "text/plain")},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "metadata": {"file_name": "facts.txt", "page_count": 1, "chunk_count": 1},
        }
        services["ingestion_service"].ingest_upload.assert_awaited_once_with(
            "facts.txt", b"The sky is blue.", mime_type="text/plain"
        )

    def test_unknown_content_type_is_not_forwarded(self, client: TestClient, services: dict) -> None:
        client.post(
            "/api/v1/documents/upload",
            files={"file": ("notes.md", b"# hi", "application/octet-stream")},
        )
        assert services["ingestion_service"].ingest_upload.await_args.kwargs["mime_type"] is None

    def test_ingestion_error(self, client: TestClient, services: dict) -> None:
        services["ingestion_service"].ingest_upload.side_effect = IngestionError(
            "Unsupported file type: 'a.exe'. Upload a .pdf, .txt or .md file."
        )

        response = client.post(
            "/api/v1/documents/upload",
            files={"file": ("a.exe", b"MZ", "application/octet-stream")},
        )

        assert response.status_code == 422
        assert response.json() == {
            "success": False,
            "error": "Unsupported file type: 'a.exe'. Upload a .pdf, .txt or .md file.",
            "error_type": "IngestionError",
        }

    def test_missing_file_field(self, client: TestClient) -> None:
        response = client.post("/api/v1/documents/upload")
        assert response.status_code == 422
        assert response.json()["success"] is False
        assert response.json()["error_type"] == "RequestValidationError"


class TestReindex:
    def test_success(self, client: TestClient) -> None:
        response = client.post("/api/v1/documents/reindex")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "metadata": {
                "document_count": 1,
                "chunk_count": 4,
                "message": "Successfully reindexed 1 documents with 4 total chunks.",
            },
        }

    def test_failure(self, client: TestClient, services: dict) -> None:
        services["reindex_service"].reindex_all.side_effect = ReindexError("Reindexing failed: disk full")

        response = client.post("/api/v1/documents/reindex")

        assert response.status_code == 500
        assert response.json()["error"] == "Reindexing failed: disk full"
        assert response.json()["error_type"] == "ReindexError"


class TestChat:
    def test_success(self, client: TestClient, services: dict) -> None:
        response = client.post("/api/v1/chat", json={"query": "What colour is the sky?"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["answer"] == "The sky is blue."
        assert body["sources"][0]["content"] == "The sky is blue."
        assert body["sources"][0]["metadata"]["source"] == "facts.txt"
        assert body["sources"][0]["metadata"]["page"] == 1
        services["qa_service"].answer.assert_awaited_once_with("What colour is the sky?")

    @pytest.mark.parametrize("payload", [{}, {"query": ""}, {"query": "   "}])
    def test_empty_query(self, client: TestClient, services: dict, mock_llm, payload: dict) -> None:
        store = MagicMock()
        store.query = AsyncMock(return_value=[])
        services_qa = QAService(llm=mock_llm, vector_store=store)
        client.app.state.qa_service = services_qa

        response = client.post("/api/v1/chat", json=payload)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "No query provided",
            "error_type": "QueryError",
        }
        mock_llm.complete.assert_not_awaited()

    def test_timeout(self, client: TestClient, services: dict) -> None:
        services["qa_service"].answer.side_effect = ServiceTimeoutError(
            "llm_complete timed out after 60s", provider_name="anthropic"
        )

        response = client.post("/api/v1/chat", json={"query": "q"})

        assert response.status_code == 504
        assert response.json()["error_type"] == "ServiceTimeoutError"

    def test_unexpected_error(self, client: TestClient, services: dict) -> None:
        services["qa_service"].answer.side_effect = KeyError("internal")

        response = client.post("/api/v1/chat", json={"query": "q"})

        assert response.status_code == 500
        assert response.json()["error"] == "An unexpected error occurred"

    def test_query_error_from_service(self, client: TestClient, services: dict) -> None:
        services["qa_service"].answer.side_effect = QueryError()
        assert client.post("/api/v1/chat", json={"query": "x"}).status_code == 400


class TestHealth:
    def test_healthy(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == __version__
        assert body["providers"]["chunks"] == 4
        assert body["providers"]["vector_store"] is True
        assert body["providers"]["llm"] == "anthropic"

    def test_degraded_when_store_down(self, client: TestClient, services: dict) -> None:
        services["vector_store"].count.side_effect = RuntimeError("connection refused")

        body = client.get("/api/v1/health").json()

        assert body["status"] == "degraded"
        assert body["providers"]["vector_store"] is False
