"""Embedding client with strict error semantics.

Every call is classified explicitly as success or failure. A provider that
answers "OK" with an empty or all-zero vector is treated as a failure: such
a vector would be stored without complaint and silently break similarity
search for that chunk.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import TYPE_CHECKING, Any

import requests
from langchain_core.embeddings import Embeddings

from grounded_rag.errors import ConfigurationError, EmbeddingError

if TYPE_CHECKING:
    from grounded_rag.config import Settings

logger = logging.getLogger(__name__)


class EmbeddingClient(Embeddings):
    """Fixed-dimension embedding client.

    Subclasses implement :meth:`_embed_one`; validation of the returned
    vector lives here so that every backend gets the same guarantees.

    Parameters
    ----------
    dimension:
        Length every returned vector must have.
    """

    def __init__(self, dimension: int) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be > 0, got {dimension}")
        self.dimension = dimension

    @abstractmethod
    def _embed_one(self, text: str) -> list[float]:
        """Call the provider for a single text and return its raw vector."""
        ...

    def embed(self, text: str) -> list[float]:
        """Embed *text*, raising :class:`EmbeddingError` on any degenerate result."""
        vector = self._embed_one(text)
        if not vector:
            raise EmbeddingError(f"empty vector returned for {text[:60]!r}")
        if len(vector) != self.dimension:
            raise EmbeddingError(
                f"expected a {self.dimension}-dimensional vector, got {len(vector)}"
            )
        try:
            values = [float(v) for v in vector]
        except (TypeError, ValueError) as exc:
            raise EmbeddingError(f"non-numeric vector component returned for {text[:60]!r}: {exc}") from exc
        if not any(values):
            raise EmbeddingError(f"all-zero vector returned for {text[:60]!r}")
        return values

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* one at a time; the first failure aborts the batch."""
        vectors: list[list[float]] = []
        for index, text in enumerate(texts):
            try:
                vectors.append(self.embed(text))
            except EmbeddingError as exc:
                raise EmbeddingError(str(exc), item_index=index) from exc
        return vectors

    # -- LangChain Embeddings interface ---------------------------------------

    def embed_query(self, text: str) -> list[float]:
        return self.embed(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return self.embed_many(texts)


class GeminiEmbeddingClient(EmbeddingClient):
    """Calls the Gemini ``embedContent`` REST endpoint directly.

    Parameters
    ----------
    api_key:
        Gemini API key.
    model:
        Embedding model name, e.g. ``"gemini-embedding-001"``.
    dimension:
        Requested ``outputDimensionality``; must match the vector index.
    base_url:
        API root, without trailing slash.
    timeout:
        Per-request timeout in seconds.
    session:
        Optional :class:`requests.Session` (tests inject a mock).
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-embedding-001",
        dimension: int = 1024,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(dimension)
        self._api_key = api_key
        self.model = model
        self._url = f"{base_url.rstrip('/')}/models/{model}:embedContent"
        self._timeout = timeout
        self._session = session or requests.Session()

    def _embed_one(self, text: str) -> list[float]:
        body = {
            "content": {"parts": [{"text": text}], "role": "user"},
            "outputDimensionality": self.dimension,
        }
        try:
            resp = self._session.post(
                self._url,
                json=body,
                headers={"x-goog-api-key": self._api_key},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise EmbeddingError(f"Gemini embedContent request failed: {exc}") from exc

        try:
            data: Any = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        error = data.get("error")
        if not resp.ok or error:
            message = error.get("message", "unknown error") if isinstance(error, dict) else "unknown error"
            raise EmbeddingError(f"Gemini embedContent failed ({resp.status_code}): {message}")

        embedding = data.get("embedding") or {}
        values = embedding.get("values") if isinstance(embedding, dict) else None
        if not isinstance(values, list):
            return []
        return values


def get_embedding_client(config: Settings) -> GeminiEmbeddingClient:
    """Return the configured embedding client."""
    if not config.google_api_key:
        raise ConfigurationError("GOOGLE_API_KEY is not configured")
    logger.debug("Using %s (dim=%d)", config.embedding_model, config.embedding_dimension)
    return GeminiEmbeddingClient(
        config.google_api_key,
        model=config.embedding_model,
        dimension=config.embedding_dimension,
        base_url=config.embedding_base_url,
        timeout=config.embedding_timeout_seconds,
    )
