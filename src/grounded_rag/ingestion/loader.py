"""Document sources and text extraction.

A :class:`DocumentSource` enumerates candidate documents and hands out
their raw bytes; a :class:`TextExtractor` turns those bytes into plain text.
Both are narrow so that the orchestrator can be driven by fakes in tests.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pypdf import PdfReader

from grounded_rag.errors import ExtractionError, NotFoundError
from grounded_rag.ingestion.models import ExtractedText, SourceDocument

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Document sources
# ---------------------------------------------------------------------------


class DocumentSource(ABC):
    """Where documents come from."""

    @abstractmethod
    def list(self) -> list[SourceDocument]:
        """Return every candidate document with its current size and mtime."""
        ...

    @abstractmethod
    def read(self, name: str) -> bytes:
        """Return the raw bytes of *name*; raises ``NotFoundError`` or ``OSError``."""
        ...


class DirectorySource(DocumentSource):
    """Flat directory of files filtered by extension.

    Parameters
    ----------
    path:
        Directory holding the documents.  Created if missing.
    extensions:
        Lower-case suffixes to include, e.g. ``[".pdf"]``.
    """

    def __init__(self, path: str | Path, extensions: list[str] | None = None) -> None:
        self.path = Path(path)
        self.extensions = {e.lower() for e in (extensions or [".pdf"])}

    def list(self) -> list[SourceDocument]:
        if not self.path.exists():
            self.path.mkdir(parents=True, exist_ok=True)
            logger.info("Created %s/ directory. Add documents there and re-run ingestion.", self.path)
            return []

        documents: list[SourceDocument] = []
        for fpath in sorted(self.path.iterdir()):
            if not fpath.is_file() or fpath.suffix.lower() not in self.extensions:
                continue
            stat = fpath.stat()
            documents.append(SourceDocument(name=fpath.name, size=stat.st_size, mtime=stat.st_mtime))
        return documents

    def read(self, name: str) -> bytes:
        fpath = self.path / name
        if not fpath.is_file():
            raise NotFoundError(f"Document not found: {fpath}")
        return fpath.read_bytes()


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------


class TextExtractor(ABC):
    """Turns raw document bytes into text."""

    @abstractmethod
    def extract(self, data: bytes) -> ExtractedText:
        """Raises :class:`ExtractionError` on malformed input."""
        ...


class PdfTextExtractor(TextExtractor):
    """PDF extraction via ``pypdf``; pages are joined with blank lines."""

    def extract(self, data: bytes) -> ExtractedText:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:
            raise ExtractionError(f"Malformed PDF: {exc}") from exc
        return ExtractedText(text="\n\n".join(pages), page_count=len(pages))


class PlainTextExtractor(TextExtractor):
    """UTF-8 text and Markdown files; reported as a single page."""

    def extract(self, data: bytes) -> ExtractedText:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError(f"Not valid UTF-8 text: {exc}") from exc
        return ExtractedText(text=text, page_count=1)


class CompositeExtractor:
    """Dispatches to an extractor based on the filename suffix."""

    def __init__(self, extractors: dict[str, TextExtractor] | None = None) -> None:
        plain = PlainTextExtractor()
        self._extractors = extractors or {
            ".pdf": PdfTextExtractor(),
            ".txt": plain,
            ".md": plain,
        }

    def extract(self, data: bytes, *, filename: str) -> ExtractedText:
        suffix = Path(filename).suffix.lower()
        extractor = self._extractors.get(suffix)
        if extractor is None:
            raise ExtractionError(f"No extractor registered for {suffix!r} ({filename})")
        return extractor.extract(data)
