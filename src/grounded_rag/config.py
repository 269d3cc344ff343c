"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from grounded_rag.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding (Gemini REST)
    google_api_key: str = Field(default="", description="API key for the Gemini embedding endpoint")
    embedding_model: str = "gemini-embedding-001"
    embedding_dimension: int = Field(
        default=1024,
        description="Output dimensionality; must match the vector index dimension.",
    )
    embedding_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    embedding_timeout_seconds: float = 30.0

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description="Base URL for an OpenAI-compatible endpoint. Leave empty to use OpenAI cloud.",
    )
    llm_temperature: float = 0.7

    # Vector store
    vector_store_backend: str = Field(default="chroma", description="'chroma' or 'memory'")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "grounded_rag"

    # Documents & ingestion
    documents_dir: str = "pdfs"
    document_extensions: list[str] = Field(default_factory=lambda: [".pdf"])
    ledger_path: str = Field(default="", description="Defaults to <documents_dir>/.ingested.json")
    chunk_size: int = 1000
    chunk_overlap: int = 200
    upsert_batch_size: int = 20
    ingest_max_workers: int = 1
    prune_stale_chunks: bool = False
    ingest_on_startup: bool = True

    # Retrieval
    retrieval_top_k: int = 4
    max_question_length: int = 2000
    retrieval_timeout_seconds: float = 30.0

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def resolved_ledger_path(self) -> Path:
        if self.ledger_path:
            return Path(self.ledger_path)
        return Path(self.documents_dir) / ".ingested.json"

    def require_ingestion_credentials(self) -> None:
        """Raise :class:`ConfigurationError` unless ingestion can reach its collaborators."""
        missing = self._missing_store_settings()
        if not self.google_api_key:
            missing.insert(0, "GOOGLE_API_KEY")
        if missing:
            raise ConfigurationError(f"Ingestion is not configured; missing: {', '.join(missing)}")

    def require_retrieval_credentials(self) -> None:
        """Same check as ingestion; both paths embed and talk to the store."""
        missing = self._missing_store_settings()
        if not self.google_api_key:
            missing.insert(0, "GOOGLE_API_KEY")
        if missing:
            raise ConfigurationError(f"Retrieval is not configured; missing: {', '.join(missing)}")

    def _missing_store_settings(self) -> list[str]:
        if self.vector_store_backend == "memory":
            return []
        if self.vector_store_backend != "chroma":
            raise ConfigurationError(f"Unsupported vector_store_backend={self.vector_store_backend!r}")
        missing: list[str] = []
        if not self.chroma_host:
            missing.append("CHROMA_HOST")
        if not self.chroma_collection:
            missing.append("CHROMA_COLLECTION")
        return missing


# Singleton: import `settings` wherever needed.
settings = Settings()
