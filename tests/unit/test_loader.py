"""Unit tests for document sources, extraction and status reporting."""

from __future__ import annotations

import io
import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
from pypdf import PdfWriter

from grounded_rag.errors import ExtractionError, NotFoundError
from grounded_rag.ingestion.ledger import IngestionLedger
from grounded_rag.ingestion.loader import CompositeExtractor, DirectorySource, PdfTextExtractor, PlainTextExtractor
from grounded_rag.ingestion.models import LedgerRecord
from grounded_rag.ingestion.status import build_status


def _blank_pdf(pages: int) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


# ── DirectorySource ─────────────────────────────────────────────────────


class TestDirectorySource:
    def test_missing_directory_is_created(self, tmp_path: Path) -> None:
        docs = tmp_path / "pdfs"
        assert DirectorySource(docs).list() == []
        assert docs.is_dir()

    def test_lists_matching_files_sorted(self, tmp_path: Path) -> None:
        (tmp_path / "b.pdf").write_bytes(b"%PDF-b")
        (tmp_path / "A.PDF").write_bytes(b"%PDF-a")
        (tmp_path / "notes.txt").write_text("ignored")
        (tmp_path / ".ingested.json").write_text("{}")
        (tmp_path / "sub.pdf").mkdir()

        docs = DirectorySource(tmp_path, [".pdf"]).list()

        assert [d.name for d in docs] == ["A.PDF", "b.pdf"]
        assert docs[1].size == 6

    def test_mtime_is_reported(self, tmp_path: Path) -> None:
        path = tmp_path / "a.pdf"
        path.write_bytes(b"x")
        os.utime(path, (1_700_000_000, 1_700_000_000))
        assert DirectorySource(tmp_path).list()[0].mtime == 1_700_000_000

    def test_read(self, tmp_path: Path) -> None:
        (tmp_path / "a.pdf").write_bytes(b"payload")
        source = DirectorySource(tmp_path)
        assert source.read("a.pdf") == b"payload"
        with pytest.raises(NotFoundError):
            source.read("gone.pdf")


# ── Extraction ──────────────────────────────────────────────────────────


class TestExtractors:
    def test_pdf_page_count(self) -> None:
        extracted = PdfTextExtractor().extract(_blank_pdf(3))
        assert extracted.page_count == 3
        assert not extracted.text.strip()

    def test_malformed_pdf(self) -> None:
        with pytest.raises(ExtractionError, match="Malformed PDF"):
            PdfTextExtractor().extract(b"definitely not a pdf")

    def test_plain_text(self) -> None:
        assert PlainTextExtractor().extract("héllo".encode()).text == "héllo"
        with pytest.raises(ExtractionError):
            PlainTextExtractor().extract(b"\xff\xfe\xfa")

    def test_composite_dispatch(self) -> None:
        extractor = CompositeExtractor()
        assert extractor.extract(b"# Title", filename="notes.md").text == "# Title"
        with pytest.raises(ExtractionError, match="No extractor"):
            extractor.extract(b"", filename="image.png")


# ── Status ──────────────────────────────────────────────────────────────


def test_status_marks_ingested_and_pending(tmp_path: Path) -> None:
    (tmp_path / "done.pdf").write_bytes(b"x")
    (tmp_path / "new.pdf").write_bytes(b"y")
    ledger = IngestionLedger(tmp_path / ".ingested.json")
    ledger.save(
        {
            "done.pdf": LedgerRecord(
                filename="done.pdf",
                size=1,
                last_modified=1.0,
                ingested_at=datetime(2026, 10, 18, tzinfo=timezone.utc),
                chunk_count=4,
                page_count=1,
            )
        }
    )

    report = build_status(DirectorySource(tmp_path), ledger)

    assert report.total_on_disk == 2
    assert report.total_ingested == 1
    by_name = {f.filename: f for f in report.files}
    assert by_name["done.pdf"].status == "ingested"
    assert by_name["done.pdf"].record.chunk_count == 4
    assert by_name["new.pdf"].status == "pending"
    assert by_name["new.pdf"].record is None
