"""Question-time retrieval and context assembly.

Usage::

    from grounded_rag.retrieval.retriever import Retriever

    retriever = Retriever(embedder, store, top_k=4)
    result = retriever.retrieve("How many vacation days do I get?")
    if result.has_content:
        print(result.context)
        print([s.short_ref() for s in result.sources])

The query path keeps no mutable state, so one :class:`Retriever` can serve
concurrent requests.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import TYPE_CHECKING

from grounded_rag.errors import ConfigurationError, RetrievalError, ValidationError
from grounded_rag.retrieval.models import QueryMatch, RetrievalResult, SourceRef

if TYPE_CHECKING:
    from grounded_rag.config import Settings
    from grounded_rag.ingestion.embedder import EmbeddingClient
    from grounded_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

CONTEXT_DIVIDER = "\n\n---\n\n"


class Retriever:
    """Embeds a question, queries the store and assembles grounded context.

    Parameters
    ----------
    embedder:
        Client producing vectors of the same dimension used at ingestion.
    store:
        Vector store holding the ingested chunks.
    top_k:
        Default number of matches to request.
    max_question_length:
        Longest accepted question, in characters, after trimming.
    timeout:
        Default deadline in seconds for embedding + query; ``None`` waits
        indefinitely.
    dimension:
        Index dimension; when given it must equal ``embedder.dimension``.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        *,
        top_k: int = 4,
        max_question_length: int = 2000,
        timeout: float | None = None,
        dimension: int | None = None,
    ) -> None:
        if dimension is not None and embedder.dimension != dimension:
            raise ConfigurationError(
                f"Embedding dimension {embedder.dimension} does not match index dimension {dimension}"
            )
        self._embedder = embedder
        self._store = store
        self.top_k = top_k
        self.max_question_length = max_question_length
        self.timeout = timeout

    # -- public API -----------------------------------------------------------

    def validate(self, question: str) -> str:
        """Return the trimmed question or raise :class:`ValidationError`."""
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("A valid question string is required")
        trimmed = question.strip()
        if len(trimmed) > self.max_question_length:
            raise ValidationError(
                f"Question is too long (max {self.max_question_length} characters)"
            )
        return trimmed

    def retrieve(
        self,
        question: str,
        top_k: int | None = None,
        *,
        timeout: float | None = None,
    ) -> RetrievalResult:
        """Retrieve context for *question*.

        Raises
        ------
        ValidationError
            The question is empty or too long.
        RetrievalError
            Embedding + query did not finish within the deadline.
        EmbeddingError, StoreError
            An external call failed.
        """
        trimmed = self.validate(question)
        k = self.top_k if top_k is None else top_k
        if k <= 0:
            raise ValidationError(f"top_k must be > 0, got {k}")

        deadline = timeout if timeout is not None else self.timeout
        matches = self._search(trimmed, k) if deadline is None else self._search_within(trimmed, k, deadline)

        if not matches:
            logger.info("Retrieval: no matches for %r", trimmed[:50])
            return RetrievalResult.empty()

        logger.info("Retrieval: %d matches for %r", len(matches), trimmed[:50])
        return RetrievalResult(
            context=self.build_context(matches),
            sources=self.unique_sources(matches),
            match_count=len(matches),
        )

    # -- internals ------------------------------------------------------------

    def _search(self, question: str, k: int) -> list[QueryMatch]:
        vector = self._embedder.embed(question)
        matches = self._store.query(vector, k)
        return sorted(matches, key=lambda m: m.score, reverse=True)

    def _search_within(self, question: str, k: int, deadline: float) -> list[QueryMatch]:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="retrieve")
        future = executor.submit(self._search, question, k)
        try:
            return future.result(timeout=deadline)
        except FuturesTimeoutError as exc:
            future.cancel()
            raise RetrievalError(f"Retrieval timed out after {deadline:.1f}s") from exc
        finally:
            executor.shutdown(wait=False)

    @staticmethod
    def build_context(matches: list[QueryMatch]) -> str:
        return CONTEXT_DIVIDER.join(m.text for m in matches if m.text)

    @staticmethod
    def unique_sources(matches: list[QueryMatch]) -> list[SourceRef]:
        """One entry per filename, keeping the highest-scoring occurrence."""
        seen: set[str] = set()
        sources: list[SourceRef] = []
        for match in matches:
            if match.source in seen:
                continue
            seen.add(match.source)
            sources.append(SourceRef.from_match(match))
        return sources


def get_retriever(config: Settings) -> Retriever:
    """Build a :class:`Retriever` from settings."""
    from grounded_rag.ingestion.embedder import get_embedding_client
    from grounded_rag.retrieval import get_vector_store

    config.require_retrieval_credentials()
    return Retriever(
        get_embedding_client(config),
        get_vector_store(config),
        top_k=config.retrieval_top_k,
        max_question_length=config.max_question_length,
        timeout=config.retrieval_timeout_seconds,
        dimension=config.embedding_dimension,
    )
