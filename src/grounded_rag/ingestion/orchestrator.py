"""Change-aware ingestion of a document source into the vector store.

One run walks every document through::

    SCAN -> CHECK -> [SKIP | EXTRACT -> SEGMENT -> EMBED+UPSERT -> RECORD] -> DONE

A failure inside one document is logged with the document's name and the
run moves on; the ledger entry for that document is left untouched, so the
next run retries it.  Runs are single-flight: a trigger that arrives while
a run is in progress is ignored.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from grounded_rag.errors import (
    EmbeddingError,
    ExtractionError,
    NotFoundError,
    PersistenceError,
    StoreError,
)
from grounded_rag.ingestion.chunker import chunk_document
from grounded_rag.ingestion.models import DocumentOutcome, IngestionReport, LedgerRecord

if TYPE_CHECKING:
    from grounded_rag.config import Settings
    from grounded_rag.ingestion.embedder import EmbeddingClient
    from grounded_rag.ingestion.ledger import IngestionLedger
    from grounded_rag.ingestion.loader import CompositeExtractor, DocumentSource
    from grounded_rag.ingestion.models import SourceDocument
    from grounded_rag.ingestion.upserter import VectorUpserter

logger = logging.getLogger(__name__)

# Failures that abort one document but never the run.
DOCUMENT_ERRORS = (
    ExtractionError,
    EmbeddingError,
    StoreError,
    NotFoundError,
    OSError,
    ValueError,
)


@dataclass
class _DocumentResult:
    outcome: DocumentOutcome
    record: LedgerRecord | None = None


class IngestionOrchestrator:
    """Drives segmentation, embedding and upsert for every changed document.

    Parameters
    ----------
    source:
        Enumerates documents and serves their bytes.
    extractor:
        Turns bytes into text, dispatching on filename.
    embedder:
        Strict embedding client.
    upserter:
        Writes vector records in batches.
    ledger:
        Persisted manifest of ingested documents.
    chunk_size / chunk_overlap:
        Segmentation parameters.
    max_workers:
        Documents processed concurrently.  ``1`` keeps external calls
        strictly sequential.
    prune_stale_chunks:
        When a re-ingested document yields fewer chunks than recorded in the
        ledger, delete the trailing vector IDs.  Off by default: stale
        vectors are otherwise left in the store.
    """

    def __init__(
        self,
        source: DocumentSource,
        extractor: CompositeExtractor,
        embedder: EmbeddingClient,
        upserter: VectorUpserter,
        ledger: IngestionLedger,
        *,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        max_workers: int = 1,
        prune_stale_chunks: bool = False,
    ) -> None:
        if chunk_overlap >= chunk_size:
            raise ValueError(f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})")
        if max_workers <= 0:
            raise ValueError(f"max_workers must be > 0, got {max_workers}")
        self._source = source
        self._extractor = extractor
        self._embedder = embedder
        self._upserter = upserter
        self.ledger = ledger
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_workers = max_workers
        self.prune_stale_chunks = prune_stale_chunks
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    # -- public API -----------------------------------------------------------

    def run(self, ledger_records: dict[str, LedgerRecord] | None = None) -> IngestionReport:
        """Ingest every new or changed document.

        Parameters
        ----------
        ledger_records:
            Current ledger mapping.  Loaded from :attr:`ledger` when omitted.

        Returns
        -------
        IngestionReport
            Per-document outcomes and the ledger mapping after the run.
            ``already_running`` is set when another run held the guard.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("Ingestion already running; ignoring trigger")
            return IngestionReport(already_running=True)
        try:
            return self._run(ledger_records)
        finally:
            self._run_lock.release()

    # -- internals ------------------------------------------------------------

    def _run(self, ledger_records: dict[str, LedgerRecord] | None) -> IngestionReport:
        records = dict(ledger_records) if ledger_records is not None else self.ledger.load()
        report = IngestionReport(ledger=records)

        # SCAN
        documents = self._source.list()
        if not documents:
            logger.info("No documents found, nothing to ingest.")
            return report

        # CHECK
        to_ingest: list[SourceDocument] = []
        for doc in documents:
            if self.ledger.is_unchanged(records, doc.name, doc.size, doc.mtime):
                logger.debug("Skip unchanged: %s", doc.name)
                report.outcomes.append(DocumentOutcome(filename=doc.name, status="skipped", reason="unchanged"))
            else:
                to_ingest.append(doc)

        if not to_ingest:
            names = ", ".join(d.name for d in documents)
            logger.info("All documents already ingested (%s). Skipping.", names)
            return report

        logger.info("Ingesting %d document(s)...", len(to_ingest))

        if self.max_workers == 1:
            for doc in to_ingest:
                self._record(report, self._ingest_one(doc, records.get(doc.name)))
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ingest") as pool:
                futures = [pool.submit(self._ingest_one, doc, records.get(doc.name)) for doc in to_ingest]
                # Ledger updates stay on this thread.
                for future in futures:
                    self._record(report, future.result())

        logger.info("Ingestion complete. %s", report.summary())
        return report

    def _record(self, report: IngestionReport, result: _DocumentResult) -> None:
        """RECORD: persist the ledger after each fully ingested document."""
        report.outcomes.append(result.outcome)
        if result.record is None:
            return
        report.ledger[result.record.filename] = result.record
        try:
            self.ledger.save(report.ledger)
        except PersistenceError as exc:
            logger.error("✗ Could not persist ledger after %s: %s", result.record.filename, exc)
            report.persistence_errors.append(str(exc))

    def _ingest_one(self, doc: SourceDocument, previous: LedgerRecord | None) -> _DocumentResult:
        name = doc.name
        logger.info("▶ Processing: %s", name)
        try:
            # EXTRACT
            data = self._source.read(name)
            extracted = self._extractor.extract(data, filename=name)
            if not extracted.text.strip():
                logger.warning("  Skipping %s: no extractable text.", name)
                return _DocumentResult(DocumentOutcome(filename=name, status="skipped", reason="no extractable text"))

            # SEGMENT
            chunks = chunk_document(
                name,
                extracted.text,
                chunk_size=self.chunk_size,
                chunk_overlap=self.chunk_overlap,
            )
            if not chunks:
                logger.warning("  Skipping %s: zero chunks after splitting.", name)
                return _DocumentResult(DocumentOutcome(filename=name, status="skipped", reason="zero chunks"))

            # EMBED+UPSERT
            ingested_at = datetime.now(timezone.utc)
            embeddings = self._embedder.embed_many([c.text for c in chunks])
            upserted = self._upserter.upsert(name, chunks, embeddings, ingested_at)

            if self.prune_stale_chunks and previous is not None and previous.chunk_count > upserted:
                self._upserter.prune(name, upserted, previous.chunk_count)
        except DOCUMENT_ERRORS as exc:
            logger.error("✗ Failed to ingest %s: %s", name, exc)
            return _DocumentResult(DocumentOutcome(filename=name, status="failed", reason=str(exc)))
        except Exception as exc:
            logger.exception("✗ Unexpected error ingesting %s", name)
            reason = f"{type(exc).__name__}: {exc}"
            return _DocumentResult(DocumentOutcome(filename=name, status="failed", reason=reason))

        logger.info("✓ %s: %d chunks across %d page(s)", name, upserted, extracted.page_count)
        record = LedgerRecord(
            filename=name,
            size=doc.size,
            last_modified=doc.mtime,
            ingested_at=ingested_at,
            chunk_count=upserted,
            page_count=extracted.page_count,
        )
        return _DocumentResult(
            DocumentOutcome(filename=name, status="ingested", chunk_count=upserted),
            record,
        )


def build_orchestrator(config: Settings) -> IngestionOrchestrator:
    """Wire concrete collaborators from *config*.

    Raises :class:`~grounded_rag.errors.ConfigurationError` when credentials
    or endpoints are missing.
    """
    from grounded_rag.ingestion.embedder import get_embedding_client
    from grounded_rag.ingestion.ledger import IngestionLedger
    from grounded_rag.ingestion.loader import CompositeExtractor, DirectorySource
    from grounded_rag.ingestion.upserter import VectorUpserter
    from grounded_rag.retrieval import get_vector_store

    config.require_ingestion_credentials()
    return IngestionOrchestrator(
        DirectorySource(config.documents_dir, config.document_extensions),
        CompositeExtractor(),
        get_embedding_client(config),
        VectorUpserter(get_vector_store(config), batch_size=config.upsert_batch_size),
        IngestionLedger(config.resolved_ledger_path),
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
        max_workers=config.ingest_max_workers,
        prune_stale_chunks=config.prune_stale_chunks,
    )
