"""Unit tests for deterministic IDs and batched upserts."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from grounded_rag.errors import StoreError
from grounded_rag.ingestion.models import Chunk
from grounded_rag.ingestion.upserter import VectorUpserter, sanitize_id, vector_id
from grounded_rag.retrieval.memory_store import InMemoryVectorStore

STAMP = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _chunks(filename: str, n: int) -> tuple[list[Chunk], list[list[float]]]:
    chunks = [Chunk(source=filename, index=i, text=f"chunk {i}") for i in range(n)]
    vectors = [[1.0, float(i)] for i in range(n)]
    return chunks, vectors


class TestIds:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("policy.pdf", "policy_pdf"),
            ("Annual Report 2026.pdf", "Annual_Report_2026_pdf"),
            ("ok-name_1", "ok-name_1"),
            ("résumé.pdf", "r_sum__pdf"),
        ],
    )
    def test_sanitize(self, filename: str, expected: str) -> None:
        assert sanitize_id(filename) == expected

    def test_vector_id_is_deterministic(self) -> None:
        assert vector_id("policy.pdf", 7) == "policy_pdf-chunk-7"
        assert vector_id("policy.pdf", 7) == vector_id("policy.pdf", 7)


class TestVectorUpserter:
    def test_record_metadata(self) -> None:
        chunks, vectors = _chunks("policy.pdf", 2)
        records = VectorUpserter(InMemoryVectorStore()).build_records("policy.pdf", chunks, vectors, STAMP)

        assert [r.id for r in records] == ["policy_pdf-chunk-0", "policy_pdf-chunk-1"]
        assert records[1].metadata == {
            "text": "chunk 1",
            "source": "policy.pdf",
            "chunk_index": 1,
            "total_chunks": 2,
            "ingested_at": "2026-10-18T12:00:00+00:00",
        }

    def test_length_mismatch(self) -> None:
        chunks, vectors = _chunks("policy.pdf", 3)
        with pytest.raises(ValueError, match="same length"):
            VectorUpserter(InMemoryVectorStore()).build_records("policy.pdf", chunks, vectors[:2], STAMP)

    def test_batches_of_twenty(self) -> None:
        store = MagicMock()
        chunks, vectors = _chunks("big.pdf", 45)

        assert VectorUpserter(store).upsert("big.pdf", chunks, vectors, STAMP) == 45
        assert [len(call.args[0]) for call in store.upsert.call_args_list] == [20, 20, 5]

    def test_reupsert_overwrites(self) -> None:
        store = InMemoryVectorStore()
        upserter = VectorUpserter(store)
        chunks, vectors = _chunks("policy.pdf", 3)
        upserter.upsert("policy.pdf", chunks, vectors, STAMP)
        upserter.upsert("policy.pdf", chunks, vectors, STAMP)
        assert store.count() == 3

    def test_store_failure_propagates(self) -> None:
        store = MagicMock()
        store.upsert.side_effect = StoreError("rejected")
        chunks, vectors = _chunks("policy.pdf", 1)
        with pytest.raises(StoreError):
            VectorUpserter(store).upsert("policy.pdf", chunks, vectors, STAMP)

    def test_prune_removes_trailing_ids(self) -> None:
        store = InMemoryVectorStore()
        upserter = VectorUpserter(store)
        chunks, vectors = _chunks("policy.pdf", 5)
        upserter.upsert("policy.pdf", chunks, vectors, STAMP)

        assert upserter.prune("policy.pdf", 2, 5) == 3
        assert store.ids() == ["policy_pdf-chunk-0", "policy_pdf-chunk-1"]

    def test_prune_noop(self) -> None:
        store = MagicMock()
        assert VectorUpserter(store).prune("policy.pdf", 3, 3) == 0
        store.delete.assert_not_called()

    def test_batch_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            VectorUpserter(InMemoryVectorStore(), batch_size=0)
