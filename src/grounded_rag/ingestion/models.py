"""Domain models for the ingestion pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SourceDocument(BaseModel):
    """A document discovered on a scan.

    Attributes
    ----------
    name:
        Stable identifier within the document source (the filename).
    size:
        Size in bytes at scan time.
    mtime:
        Last-modified timestamp (seconds since the epoch) at scan time.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    size: int
    mtime: float


class ExtractedText(BaseModel):
    """Plain text pulled out of a document's raw bytes."""

    text: str
    page_count: int = 1


class Chunk(BaseModel):
    """A contiguous slice of a document's text, the unit of embedding."""

    model_config = ConfigDict(frozen=True)

    source: str
    index: int = Field(ge=0)
    text: str


class LedgerRecord(BaseModel):
    """What the ledger remembers about one successfully ingested document.

    The persisted shape uses camelCase keys (``lastModified``,
    ``ingestedAt``, ``chunkCount``, ``pageCount``) and omits ``filename``,
    which is the key of the surrounding mapping.
    """

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    size: int
    last_modified: float = Field(alias="lastModified")
    ingested_at: datetime = Field(alias="ingestedAt")
    chunk_count: int = Field(alias="chunkCount")
    page_count: int = Field(alias="pageCount")

    def to_persisted(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"filename"})

    @classmethod
    def from_persisted(cls, filename: str, data: dict[str, Any]) -> LedgerRecord:
        return cls.model_validate({**data, "filename": filename})


class VectorRecord(BaseModel):
    """The persisted unit in the vector store."""

    id: str
    values: list[float]
    metadata: dict[str, Any]

    @property
    def text(self) -> str:
        return self.metadata.get("text", "")


DocumentStatus = Literal["ingested", "skipped", "failed"]


class DocumentOutcome(BaseModel):
    """Result of one document's pass through the orchestrator."""

    filename: str
    status: DocumentStatus
    reason: str = ""
    chunk_count: int = 0


class IngestionReport(BaseModel):
    """Summary of one ingestion run.

    ``ledger`` is the mapping as it stands at the end of the run, so callers
    can chain runs without re-reading the persisted file.
    """

    already_running: bool = False
    outcomes: list[DocumentOutcome] = Field(default_factory=list)
    ledger: dict[str, LedgerRecord] = Field(default_factory=dict)
    persistence_errors: list[str] = Field(default_factory=list)

    def _count(self, status: DocumentStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def ingested(self) -> int:
        return self._count("ingested")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    def summary(self) -> str:
        if self.already_running:
            return "Ingestion already in progress; trigger ignored."
        return (
            f"Ingested {self.ingested}, skipped {self.skipped}, "
            f"failed {self.failed} of {len(self.outcomes)} documents"
        )
