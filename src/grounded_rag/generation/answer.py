"""Grounded question answering on top of the retriever."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from grounded_rag.errors import GenerationError
from grounded_rag.generation.prompts import build_answer_prompt
from grounded_rag.retrieval.models import NO_CONTENT_MESSAGE, SourceRef

if TYPE_CHECKING:
    from grounded_rag.retrieval.retriever import Retriever

logger = logging.getLogger(__name__)


class Answer(BaseModel):
    """Generated answer together with the sources it was grounded in."""

    answer: str
    sources: list[SourceRef] = Field(default_factory=list)
    retrieved_chunks: int = 0


class AnswerGenerator:
    """Wraps a LangChain chat model behind ``generate(prompt) -> text``.

    Parameters
    ----------
    llm:
        Any LangChain runnable whose ``invoke`` returns a message (or string).
    """

    def __init__(self, llm: Any) -> None:
        self._llm = llm

    def generate(self, prompt: str) -> str:
        try:
            response = self._llm.invoke(prompt)
        except Exception as exc:
            raise GenerationError(f"Answer generation failed: {exc}") from exc
        text = getattr(response, "content", response)
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Answer generation returned no text")
        return text


def answer_question(
    retriever: Retriever,
    generator: AnswerGenerator,
    question: str,
    *,
    top_k: int | None = None,
) -> Answer:
    """Retrieve context for *question* and generate a grounded answer.

    When nothing is retrieved, a fixed "no content" answer is returned and
    the generator is not called.
    """
    result = retriever.retrieve(question, top_k)
    if not result.has_content:
        return Answer(answer=NO_CONTENT_MESSAGE)

    prompt = build_answer_prompt(result.context, question.strip())
    answer = generator.generate(prompt)
    logger.info("Answered from %d chunk(s) across %d source(s)", result.match_count, len(result.sources))
    return Answer(answer=answer, sources=result.sources, retrieved_chunks=result.match_count)
