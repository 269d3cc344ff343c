"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import chromadb

from grounded_rag.config import settings
from grounded_rag.errors import StoreError
from grounded_rag.retrieval.base import VectorStoreBase
from grounded_rag.retrieval.models import QueryMatch

if TYPE_CHECKING:
    from grounded_rag.ingestion.models import VectorRecord

logger = logging.getLogger(__name__)


def _flatten_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool; text goes in ``documents``."""
    return {
        k: v
        for k, v in metadata.items()
        if k != "text" and isinstance(v, (str, int, float, bool))
    }


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using cosine distance.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client (tests inject a mock).
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any | None = None,
    ) -> None:
        super().__init__(collection_name)
        try:
            self._client = client or chromadb.HttpClient(host=host, port=port)
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as exc:
            raise StoreError(f"Cannot open Chroma collection {collection_name!r}: {exc}") from exc

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, records: list[VectorRecord]) -> None:
        if not records:
            return
        try:
            self._collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.values for r in records],
                documents=[r.text for r in records],
                metadatas=[_flatten_metadata(r.metadata) for r in records],
            )
        except Exception as exc:
            raise StoreError(f"Chroma upsert of {len(records)} records failed: {exc}") from exc

    def query(self, vector: list[float], top_k: int) -> list[QueryMatch]:
        try:
            results = self._collection.query(
                query_embeddings=[vector],
                n_results=top_k,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StoreError(f"Chroma query failed: {exc}") from exc

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        matches: list[QueryMatch] = []
        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            # Cosine space: distance = 1 - cosine similarity.
            matches.append(
                QueryMatch(
                    id=doc_id,
                    score=1.0 - dist,
                    metadata={**(meta or {}), "text": content or ""},
                )
            )
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        try:
            self._collection.delete(ids=ids)
        except Exception as exc:
            raise StoreError(f"Chroma delete failed: {exc}") from exc

    def count(self) -> int:
        try:
            return self._collection.count()
        except Exception as exc:
            raise StoreError(f"Chroma count failed: {exc}") from exc

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
