"""Exception taxonomy shared by ingestion, retrieval and serving.

Per-unit failures (one document, one request) are raised as one of the
subclasses below and caught at the boundary that owns the unit: the
ingestion orchestrator for documents, the caller of
:meth:`~grounded_rag.retrieval.retriever.Retriever.retrieve` for questions.
"""

from __future__ import annotations


class RAGError(Exception):
    """Base class for every error raised by ``grounded_rag``."""


class ConfigurationError(RAGError):
    """Required credentials or endpoints are missing."""


class NotFoundError(RAGError):
    """A named document does not exist in the document source."""


class ExtractionError(RAGError):
    """Text could not be extracted from a document's raw bytes."""


class EmbeddingError(RAGError):
    """The embedding provider failed or returned a degenerate vector.

    Parameters
    ----------
    message:
        Human-readable description.
    item_index:
        Position of the failing input inside a batch, when known.
    """

    def __init__(self, message: str, *, item_index: int | None = None) -> None:
        if item_index is not None:
            message = f"item {item_index}: {message}"
        super().__init__(message)
        self.item_index = item_index


class StoreError(RAGError):
    """The vector store rejected an upsert, query or delete."""


class PersistenceError(RAGError):
    """The ingestion ledger could not be written."""


class ValidationError(RAGError):
    """Caller-supplied input (e.g. a question) is invalid. Never retried."""


class RetrievalError(RAGError):
    """Retrieval could not complete, e.g. it exceeded its deadline."""


class GenerationError(RAGError):
    """The answer generator failed."""
