"""
Retrieval — vector search and context assembly.

This module wraps the vector store behind a clean interface so that
ingestion and question answering never need to know which DB is backing
retrieval.

Public surface
--------------
- :class:`Retriever` — question → context + deduplicated sources.
- :class:`VectorStoreBase` — abstract backend (subclass for Pinecone, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`InMemoryVectorStore` — process-local backend.
- :class:`QueryMatch`, :class:`RetrievalResult`, :class:`SourceRef` — data models.
- :func:`get_vector_store` — backend factory driven by settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from grounded_rag.errors import ConfigurationError
from grounded_rag.retrieval.base import VectorStoreBase
from grounded_rag.retrieval.memory_store import InMemoryVectorStore
from grounded_rag.retrieval.models import QueryMatch, RetrievalResult, SourceRef
from grounded_rag.retrieval.retriever import Retriever, get_retriever

if TYPE_CHECKING:
    from grounded_rag.config import Settings

__all__ = [
    "ChromaVectorStore",
    "InMemoryVectorStore",
    "QueryMatch",
    "RetrievalResult",
    "Retriever",
    "SourceRef",
    "VectorStoreBase",
    "get_retriever",
    "get_vector_store",
]

_memory_store: InMemoryVectorStore | None = None


def get_vector_store(config: Settings) -> VectorStoreBase:
    """Return the backend selected by ``config.vector_store_backend``.

    The ``memory`` backend is a process-wide singleton so that ingestion and
    retrieval in the same process share it.
    """
    global _memory_store

    if config.vector_store_backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryVectorStore()
        return _memory_store
    if config.vector_store_backend == "chroma":
        from grounded_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(
            config.chroma_collection,
            host=config.chroma_host,
            port=config.chroma_port,
        )
    raise ConfigurationError(f"Unsupported vector_store_backend={config.vector_store_backend!r}")


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from grounded_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
