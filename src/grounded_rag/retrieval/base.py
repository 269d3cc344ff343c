"""Abstract base class for vector-store backends.

Adding a new backend (Pinecone, Weaviate, Qdrant …) only requires
subclassing :class:`VectorStoreBase` and implementing the abstract
methods.  The ingestion and retrieval code is backend-agnostic.

Contract relied upon by the pipeline: ``upsert`` inserts or overwrites by
ID, ``query`` returns the top-*k* matches by cosine similarity ranked
descending, and every failure surfaces as :class:`~grounded_rag.errors.StoreError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from grounded_rag.ingestion.models import VectorRecord
    from grounded_rag.retrieval.models import QueryMatch


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, records: list[VectorRecord]) -> None:
        """Insert or overwrite *records* by ID."""
        ...

    @abstractmethod
    def query(self, vector: list[float], top_k: int) -> list[QueryMatch]:
        """Return the *top_k* most similar records, highest score first."""
        ...

    @abstractmethod
    def delete(self, ids: list[str]) -> None:
        """Delete records by ID; unknown IDs are ignored."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of records currently stored."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
