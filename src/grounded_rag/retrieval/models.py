"""Domain models for retrieval results and source tracking."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

NO_CONTENT_MESSAGE = (
    "No relevant content was found in the indexed documents. "
    "Please add a document first."
)


class QueryMatch(BaseModel):
    """One similarity-query hit: stored metadata plus its score."""

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.metadata.get("text") or ""

    @property
    def source(self) -> str:
        return self.metadata.get("source") or "unknown"


class SourceRef(BaseModel):
    """Provenance record linking a retrieved chunk back to its document.

    Attributes
    ----------
    source:
        Filename of the document.
    chunk_index:
        Ordinal position of the chunk within the document.
    ingested_at:
        ISO-8601 timestamp of the ingestion that produced the chunk.
    score:
        Similarity score of the match this reference was taken from.
    """

    source: str
    chunk_index: int | None = None
    ingested_at: str | None = None
    score: float | None = None

    @classmethod
    def from_match(cls, match: QueryMatch) -> SourceRef:
        meta = match.metadata
        return cls(
            source=match.source,
            chunk_index=meta.get("chunk_index"),
            ingested_at=meta.get("ingested_at"),
            score=match.score,
        )

    def short_ref(self) -> str:
        """Return a compact ``[source§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.source}§{chunk}]"


class RetrievalResult(BaseModel):
    """Context assembled for the answer generator.

    A result with ``match_count == 0`` is the explicit "no content" answer,
    not an error.
    """

    context: str = ""
    sources: list[SourceRef] = Field(default_factory=list)
    match_count: int = 0

    @property
    def has_content(self) -> bool:
        return self.match_count > 0

    @classmethod
    def empty(cls) -> RetrievalResult:
        return cls()
