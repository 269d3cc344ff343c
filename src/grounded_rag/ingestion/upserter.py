"""Deterministic vector records and batched upserts.

Vector IDs are a pure function of ``(filename, chunk_index)``, so
re-ingesting a document with the same chunking overwrites its vectors
instead of duplicating them.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from grounded_rag.ingestion.models import Chunk, VectorRecord
from grounded_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")

DEFAULT_BATCH_SIZE = 20


def sanitize_id(filename: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_-]`` with ``_``."""
    return _UNSAFE_ID_CHARS.sub("_", filename)


def vector_id(filename: str, chunk_index: int) -> str:
    return f"{sanitize_id(filename)}-chunk-{chunk_index}"


class VectorUpserter:
    """Builds :class:`VectorRecord` objects and writes them in bounded batches.

    Parameters
    ----------
    store:
        Target vector store.
    batch_size:
        Maximum records per ``upsert`` call.
    """

    def __init__(self, store: VectorStoreBase, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")
        self._store = store
        self.batch_size = batch_size

    def build_records(
        self,
        filename: str,
        chunks: list[Chunk],
        embeddings: list[list[float]],
        ingested_at: datetime,
    ) -> list[VectorRecord]:
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"chunks ({len(chunks)}) and embeddings ({len(embeddings)}) must have the same length"
            )
        total = len(chunks)
        stamp = ingested_at.isoformat()
        return [
            VectorRecord(
                id=vector_id(filename, chunk.index),
                values=embedding,
                metadata={
                    "text": chunk.text,
                    "source": filename,
                    "chunk_index": chunk.index,
                    "total_chunks": total,
                    "ingested_at": stamp,
                },
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

    def upsert(
        self,
        filename: str,
        chunks: list[Chunk],
        embeddings: list[list[float]],
        ingested_at: datetime,
    ) -> int:
        """Write one document's records; a failed batch raises ``StoreError``.

        Returns the number of records upserted.
        """
        records = self.build_records(filename, chunks, embeddings, ingested_at)
        upserted = 0
        for start in range(0, len(records), self.batch_size):
            batch = records[start : start + self.batch_size]
            self._store.upsert(batch)
            upserted += len(batch)
            logger.debug("  %s: upserted %d / %d", filename, upserted, len(records))
        return upserted

    def prune(self, filename: str, new_count: int, previous_count: int) -> int:
        """Delete IDs for chunk indices in ``[new_count, previous_count)``.

        Used when a re-ingested document produced fewer chunks than before.
        Returns the number of IDs deleted.
        """
        stale = [vector_id(filename, index) for index in range(new_count, previous_count)]
        if stale:
            self._store.delete(stale)
            logger.info("Pruned %d stale chunk(s) of %s", len(stale), filename)
        return len(stale)
