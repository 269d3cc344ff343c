"""Persisted manifest of which documents have been ingested.

The ledger file is a JSON object keyed by filename::

    {
      "policy.pdf": {
        "size": 48213,
        "lastModified": 1760781234.512,
        "ingestedAt": "2026-10-18T09:12:44.120331Z",
        "chunkCount": 12,
        "pageCount": 3
      }
    }

Writes go to a temporary file in the same directory which then replaces the
ledger with :func:`os.replace`, so readers never observe a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from grounded_rag.errors import PersistenceError
from grounded_rag.ingestion.models import LedgerRecord

logger = logging.getLogger(__name__)


class IngestionLedger:
    """File-backed ledger of ingested documents.

    Parameters
    ----------
    path:
        Location of the JSON ledger file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, LedgerRecord]:
        """Return the persisted records; missing or corrupt state yields ``{}``."""
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("ledger root must be a JSON object")
            return {
                filename: LedgerRecord.from_persisted(filename, data)
                for filename, data in raw.items()
            }
        except (OSError, ValueError, TypeError, PydanticValidationError) as exc:
            logger.warning("Ledger %s is unreadable, starting fresh: %s", self.path, exc)
            return {}

    def save(self, records: dict[str, LedgerRecord]) -> None:
        """Atomically replace the persisted ledger with *records*."""
        payload = {filename: record.to_persisted() for filename, record in sorted(records.items())}
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                json.dump(payload, fh, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Failed to write ledger {self.path}: {exc}") from exc

    def reset(self) -> None:
        """Delete the persisted ledger so every document is re-ingested."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Failed to delete ledger {self.path}: {exc}") from exc

    def records(self) -> list[LedgerRecord]:
        """Return every ingested document's record (for status reporting)."""
        return list(self.load().values())

    @staticmethod
    def is_unchanged(
        records: dict[str, LedgerRecord],
        filename: str,
        size: int,
        mtime: float,
    ) -> bool:
        """``True`` iff *filename* was ingested with exactly this size and mtime.

        Size and modification time are a coarse change signal: an edit that
        keeps both identical is not detected.
        """
        record = records.get(filename)
        if record is None:
            return False
        return record.size == size and record.last_modified == mtime
