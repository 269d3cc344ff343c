"""In-process vector store with exact cosine ranking.

Useful for local runs without a Chroma server and as a deterministic
backend in tests.  Not persisted.
"""

from __future__ import annotations

import math
import threading
from typing import TYPE_CHECKING

from grounded_rag.retrieval.base import VectorStoreBase
from grounded_rag.retrieval.models import QueryMatch

if TYPE_CHECKING:
    from grounded_rag.ingestion.models import VectorRecord


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store keyed by vector ID."""

    def __init__(self, collection_name: str = "memory") -> None:
        super().__init__(collection_name)
        self._records: dict[str, VectorRecord] = {}
        self._lock = threading.Lock()
        self.upsert_calls = 0

    def upsert(self, records: list[VectorRecord]) -> None:
        with self._lock:
            for record in records:
                self._records[record.id] = record
            self.upsert_calls += 1

    def query(self, vector: list[float], top_k: int) -> list[QueryMatch]:
        with self._lock:
            records = list(self._records.values())
        matches = [
            QueryMatch(id=r.id, score=cosine(vector, r.values), metadata=dict(r.metadata))
            for r in records
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    def delete(self, ids: list[str]) -> None:
        with self._lock:
            for record_id in ids:
                self._records.pop(record_id, None)

    def count(self) -> int:
        return len(self._records)

    def ids(self) -> list[str]:
        return sorted(self._records)
