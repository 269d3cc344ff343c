"""Unit tests for settings validation and the command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from grounded_rag import cli
from grounded_rag.config import Settings
from grounded_rag.errors import ConfigurationError


# ── Settings ────────────────────────────────────────────────────────────


class TestSettings:
    def test_default_ledger_lives_in_documents_dir(self) -> None:
        config = Settings(_env_file=None, documents_dir="docs", ledger_path="")
        assert config.resolved_ledger_path == Path("docs") / ".ingested.json"

    def test_explicit_ledger_path(self) -> None:
        config = Settings(_env_file=None, ledger_path="/var/lib/rag/ledger.json")
        assert config.resolved_ledger_path == Path("/var/lib/rag/ledger.json")

    def test_missing_credentials_are_listed(self) -> None:
        config = Settings(_env_file=None, google_api_key="", chroma_host="", vector_store_backend="chroma")
        with pytest.raises(ConfigurationError) as excinfo:
            config.require_ingestion_credentials()
        assert "GOOGLE_API_KEY" in str(excinfo.value)
        assert "CHROMA_HOST" in str(excinfo.value)

    def test_memory_backend_needs_only_embedding_key(self) -> None:
        Settings(_env_file=None, google_api_key="k", vector_store_backend="memory").require_retrieval_credentials()

    def test_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "500")
        monkeypatch.setenv("DOCUMENT_EXTENSIONS", '[".pdf", ".md"]')
        config = Settings(_env_file=None)
        assert config.chunk_size == 500
        assert config.document_extensions == [".pdf", ".md"]


# ── CLI ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    docs = tmp_path / "docs"
    docs.mkdir()
    monkeypatch.setattr(cli.settings, "documents_dir", str(docs))
    monkeypatch.setattr(cli.settings, "ledger_path", "")
    monkeypatch.setattr(cli.settings, "document_extensions", [".txt"])
    monkeypatch.setattr(cli.settings, "google_api_key", "")
    return docs


class TestCli:
    def test_status(self, isolated_settings: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (isolated_settings / "a.txt").write_text("hello")

        assert cli.main(["status"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["total_on_disk"] == 1
        assert report["files"][0]["status"] == "pending"

    def test_reset(self, isolated_settings: Path) -> None:
        ledger = isolated_settings / ".ingested.json"
        ledger.write_text("{}")
        assert cli.main(["reset"]) == 0
        assert not ledger.exists()

    def test_ingest_without_credentials(self, isolated_settings: Path) -> None:
        assert cli.main(["ingest"]) == 3

    def test_ask_rejects_blank_question(
        self,
        isolated_settings: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(cli.settings, "google_api_key", "k")
        monkeypatch.setattr(cli.settings, "vector_store_backend", "memory")

        assert cli.main(["ask", "   ", "--context-only"]) == 2
        assert "valid question" in capsys.readouterr().err

    def test_library_error_exits_nonzero(self, isolated_settings: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ledger_dir = isolated_settings / "ledger-is-a-directory"
        ledger_dir.mkdir()
        monkeypatch.setattr(cli.settings, "ledger_path", str(ledger_dir))

        assert cli.main(["reset"]) == 1
        assert ledger_dir.is_dir()
