"""Merge documents on disk with the ledger into an ingestion status view."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from grounded_rag.ingestion.models import LedgerRecord

if TYPE_CHECKING:
    from grounded_rag.ingestion.ledger import IngestionLedger
    from grounded_rag.ingestion.loader import DocumentSource


class FileStatus(BaseModel):
    filename: str
    status: Literal["ingested", "pending"]
    record: LedgerRecord | None = None


class StatusReport(BaseModel):
    total_on_disk: int
    total_ingested: int
    files: list[FileStatus] = Field(default_factory=list)


def build_status(source: DocumentSource, ledger: IngestionLedger) -> StatusReport:
    """Mark each document in *source* as ``ingested`` or ``pending``.

    A document counts as ingested when the ledger has a record for it, even
    if it changed since; the next ingestion run will pick up the change.
    """
    records = {record.filename: record for record in ledger.records()}
    files = [
        FileStatus(filename=doc.name, status="ingested", record=records[doc.name])
        if doc.name in records
        else FileStatus(filename=doc.name, status="pending")
        for doc in source.list()
    ]
    return StatusReport(total_on_disk=len(files), total_ingested=len(records), files=files)
