"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import re
import threading
import zlib
from pathlib import Path

import pytest

from grounded_rag.errors import NotFoundError
from grounded_rag.ingestion.embedder import EmbeddingClient
from grounded_rag.ingestion.ledger import IngestionLedger
from grounded_rag.ingestion.loader import CompositeExtractor, DocumentSource
from grounded_rag.ingestion.models import SourceDocument
from grounded_rag.ingestion.orchestrator import IngestionOrchestrator
from grounded_rag.ingestion.upserter import VectorUpserter
from grounded_rag.retrieval.memory_store import InMemoryVectorStore

FAKE_DIMENSION = 16


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class FakeEmbedder(EmbeddingClient):
    """Bag-of-words hashing embedder; deterministic across processes.

    Texts containing any of *poison* words get an empty vector back, which
    the base class turns into an ``EmbeddingError``.
    """

    def __init__(self, dimension: int = FAKE_DIMENSION, poison: tuple[str, ...] = ()) -> None:
        super().__init__(dimension)
        self.poison = poison
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def _embed_one(self, text: str) -> list[float]:
        with self._lock:
            self.calls.append(text)
        if any(word in text for word in self.poison):
            return []
        vector = [0.0] * self.dimension
        vector[0] = 0.1
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[zlib.crc32(word.encode()) % self.dimension] += 1.0
        return vector


class FakeSource(DocumentSource):
    """In-memory document source: ``name -> (bytes, mtime)``."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files: dict[str, tuple[bytes, float]] = {}
        for name, data in (files or {}).items():
            self.put(name, data)

    def put(self, name: str, data: bytes | str, mtime: float = 1_700_000_000.0) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.files[name] = (data, mtime)

    def list(self) -> list[SourceDocument]:
        return [
            SourceDocument(name=name, size=len(data), mtime=mtime)
            for name, (data, mtime) in sorted(self.files.items())
        ]

    def read(self, name: str) -> bytes:
        if name not in self.files:
            raise NotFoundError(f"Document not found: {name}")
        return self.files[name][0]


def sentences(count: int, start: int = 0) -> str:
    """*count* sentences of exactly 100 characters, each ending in ``". "``."""
    return "".join(f"Sentence {i:02d} " + "x" * 86 + ". " for i in range(start, start + count))


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture()
def ledger(tmp_path: Path) -> IngestionLedger:
    return IngestionLedger(tmp_path / "state" / ".ingested.json")


@pytest.fixture()
def orchestrator(
    source: FakeSource,
    embedder: FakeEmbedder,
    store: InMemoryVectorStore,
    ledger: IngestionLedger,
) -> IngestionOrchestrator:
    return IngestionOrchestrator(
        source,
        CompositeExtractor(),
        embedder,
        VectorUpserter(store),
        ledger,
        chunk_size=150,
        chunk_overlap=0,
    )
