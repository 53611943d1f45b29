"""Unit tests for QAService -- retrieval short-circuit, prompt and citations."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.rag import RetrievedChunk
from docqa.services.qa_service import (
    INSUFFICIENT_CONTEXT_ANSWER,
    NO_CONTEXT_ANSWER,
    SYSTEM_PROMPT,
    QAService,
)
from docqa.utils.errors import LLMError, QueryError

from tests.conftest import make_chunk


def _store(results: list[RetrievedChunk]) -> MagicMock:
    store = MagicMock(spec=IVectorStoreProvider)
    store.query = AsyncMock(return_value=results)
    return store


def _retrieved(text: str, score: float = 0.9, **kwargs) -> RetrievedChunk:
    return RetrievedChunk(chunk=make_chunk(text, **kwargs), similarity_score=score)


class TestAnswer:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("question", ["", "   ", "\n\t"])
    async def test_empty_question_is_rejected(self, mock_llm, question: str) -> None:
        store = _store([])

        with pytest.raises(QueryError, match="No query provided"):
            await QAService(llm=mock_llm, vector_store=store).answer(question)

        store.query.assert_not_awaited()
        mock_llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_context_skips_llm(self, mock_llm) -> None:
        result = await QAService(llm=mock_llm, vector_store=_store([])).answer("Who won?")

        assert result.answer == NO_CONTEXT_ANSWER
        assert result.sources == []
        mock_llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_configured_top_k(self, mock_llm) -> None:
        store = _store([])
        await QAService(llm=mock_llm, vector_store=store, top_k=7).answer("q?")
        store.query.assert_awaited_once_with("q?", top_k=7)

    @pytest.mark.asyncio
    async def test_single_deterministic_llm_call(self, mock_llm) -> None:
        store = _store([_retrieved("The sky is blue.", source="facts.txt")])

        result = await QAService(llm=mock_llm, vector_store=store, max_tokens=256).answer(
            "What color is the sky?"
        )

        assert result.answer == "The sky is blue."
        mock_llm.complete.assert_awaited_once()
        kwargs = mock_llm.complete.await_args.kwargs
        assert kwargs["system_prompt"] == SYSTEM_PROMPT
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 256
        assert "The sky is blue." in kwargs["user_prompt"]
        assert "What color is the sky?" in kwargs["user_prompt"]

    @pytest.mark.asyncio
    async def test_citations_follow_ranking_with_metadata(self, mock_llm) -> None:
        store = _store(
            [
                _retrieved("First passage.", 0.9, source="a.pdf", page_number=3, mime_type="application/pdf"),
                _retrieved("Second passage.", 0.5, source="b.txt"),
            ]
        )

        result = await QAService(llm=mock_llm, vector_store=store).answer("q?")

        assert [s.metadata.source for s in result.sources] == ["a.pdf", "b.txt"]
        first = result.sources[0].metadata
        assert first.page == 3
        assert first.mime_type == "application/pdf"
        assert first.uploaded_at == "2024-05-01T12:00:00+00:00"

    @pytest.mark.asyncio
    async def test_preview_truncation(self, mock_llm) -> None:
        long_text = "x" * 200
        store = _store([_retrieved(long_text), _retrieved("short text", source="b.txt")])

        result = await QAService(llm=mock_llm, vector_store=store, preview_chars=150).answer("q?")

        assert result.sources[0].content == "x" * 150 + "..."
        assert result.sources[1].content == "short text"

    @pytest.mark.asyncio
    async def test_preview_of_exact_length_has_no_ellipsis(self, mock_llm) -> None:
        store = _store([_retrieved("y" * 150)])
        result = await QAService(llm=mock_llm, vector_store=store, preview_chars=150).answer("q?")
        assert result.sources[0].content == "y" * 150

    @pytest.mark.asyncio
    async def test_llm_error_propagates(self, mock_llm) -> None:
        mock_llm.complete.side_effect = LLMError("rate limited", provider_name="anthropic")
        store = _store([_retrieved("The sky is blue.")])

        with pytest.raises(LLMError):
            await QAService(llm=mock_llm, vector_store=store).answer("q?")


class TestBuildPrompt:
    def test_context_joined_in_ranked_order(self) -> None:
        prompt = QAService.build_prompt(
            "Why?",
            [_retrieved("Passage one."), _retrieved("Passage two.", source="b.txt")],
        )

        assert "Context information from documents:\nPassage one.\n\nPassage two.\n" in prompt
        assert "User Question: Why?" in prompt
        assert f'respond with "{INSUFFICIENT_CONTEXT_ANSWER}"' in prompt
        assert prompt.rstrip().endswith("Answer:")
