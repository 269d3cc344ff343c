"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` (vLLM, Ollama,
   a Gemini OpenAI-compatibility URL, …); ``ChatOpenAI`` works unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_openai import ChatOpenAI

from grounded_rag.errors import ConfigurationError

if TYPE_CHECKING:
    from grounded_rag.config import Settings

logger = logging.getLogger(__name__)


def get_llm(config: Settings) -> ChatOpenAI:
    """Return the configured chat model.

    When ``config.llm_base_url`` is set the client is pointed at that
    endpoint; a dummy API key (``"EMPTY"``) is used if none is configured
    because self-hosted runtimes do not require authentication.
    """
    kwargs: dict = {
        "model": config.llm_model_name,
        "temperature": config.llm_temperature,
    }

    if config.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", config.llm_base_url)
        kwargs["base_url"] = config.llm_base_url
        # LangChain requires a non-empty value.
        kwargs["api_key"] = config.openai_api_key or "EMPTY"
    else:
        if not config.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        kwargs["api_key"] = config.openai_api_key

    return ChatOpenAI(**kwargs)
