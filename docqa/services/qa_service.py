"""Retrieval-augmented question answering over the uploaded documents.

Data flow for one question:

  1. RETRIEVE -- query the vector store for the ``top_k`` closest chunks.
  2. SHORT-CIRCUIT -- nothing retrieved means a fixed "I don't know"
     answer; the LLM is not called.
  3. PROMPT -- join the chunk texts (ranked order, blank line between) into
     a context block and render the grounding prompt.
  4. GENERATE -- one LLM call at temperature 0.
  5. CITE -- return a short preview and the metadata of every chunk used.
"""

from __future__ import annotations

import structlog

from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.vector_store_provider import IVectorStoreProvider
from docqa.models.rag import AnswerResult, RetrievedChunk, SourceCitation, SourceMetadata
from docqa.utils.errors import QueryError
from docqa.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

NO_CONTEXT_ANSWER = "I don't know about that. The information isn't in my documents."
INSUFFICIENT_CONTEXT_ANSWER = "I don't have information about that in my documents."

SYSTEM_PROMPT = (
    "You are a helpful assistant that only provides information from the given documents."
)

USER_PROMPT_TEMPLATE = """Context information from documents:
{context}

User Question: {question}

If the information to answer the question isn't contained in the context, \
respond with "{insufficient}"

Answer:"""


class QAService:
    """Answers questions from the stored document chunks.

    Parameters
    ----------
    llm:
        LLM provider used to write the answer.
    vector_store:
        Store queried for supporting passages.
    top_k:
        Passages retrieved per question.
    preview_chars:
        Characters of each passage returned as its citation preview.
    max_tokens:
        Response budget passed to the LLM.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        vector_store: IVectorStoreProvider,
        top_k: int = 3,
        preview_chars: int = 150,
        max_tokens: int = 1024,
    ) -> None:
        self._llm = llm
        self._vector_store = vector_store
        self._top_k = top_k
        self._preview_chars = preview_chars
        self._max_tokens = max_tokens

    async def answer(self, question: str) -> AnswerResult:
        """Answer *question* from the stored documents.

        Raises
        ------
        QueryError
            If *question* is empty or whitespace.
        """
        if not question or not question.strip():
            raise QueryError("No query provided")

        retrieved = await self._vector_store.query(question, top_k=self._top_k)
        if not retrieved:
            logger.info("qa_no_context", question_length=len(question))
            return AnswerResult(answer=NO_CONTEXT_ANSWER, sources=[])

        user_prompt = self.build_prompt(question, retrieved)
        answer = await self._llm.complete(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
            temperature=0.0,
            max_tokens=self._max_tokens,
        )

        logger.info(
            "qa_answered",
            provider=self._llm.get_provider_name(),
            sources=len(retrieved),
            top_score=retrieved[0].similarity_score,
            answer_length=len(answer),
        )
        return AnswerResult(
            answer=answer,
            sources=[self._to_citation(rc) for rc in retrieved],
        )

    @staticmethod
    def build_prompt(question: str, retrieved: list[RetrievedChunk]) -> str:
        context = "\n\n".join(rc.chunk.text for rc in retrieved)
        return USER_PROMPT_TEMPLATE.format(
            context=context,
            question=question,
            insufficient=INSUFFICIENT_CONTEXT_ANSWER,
        )

    def _to_citation(self, retrieved: RetrievedChunk) -> SourceCitation:
        chunk = retrieved.chunk
        preview = chunk.text[: self._preview_chars]
        if len(chunk.text) > self._preview_chars:
            preview += "..."
        return SourceCitation(
            content=preview,
            metadata=SourceMetadata(
                source=chunk.source or "unknown",
                page=chunk.page_number,
                uploaded_at=chunk.uploaded_at.isoformat(),
                mime_type=chunk.mime_type,
            ),
        )
