"""Local embeddings with ``nomic-embed-text`` served by Ollama.

The default embedder when no OpenAI key is configured: free, offline and
768-dimensional.
"""

from __future__ import annotations

import httpx
import openai

from lifeos_memory.config.settings import Settings
from lifeos_memory.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

NOMIC_MODEL = "nomic-embed-text"
NOMIC_DIMENSION = 768


class NomicEmbeddingProvider(OpenAIEmbeddingProvider):
    """Talks to Ollama's OpenAI-compatible ``/v1`` endpoint."""

    batch_limit = 512

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        super().__init__(settings)
        self._api_key = ""
        self._model = NOMIC_MODEL
        self._dimension = NOMIC_DIMENSION
        self._provider_label = "nomic_embedding"

    def _make_client(self, settings: Settings) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # ignored by Ollama, required by the SDK
            timeout=openai.Timeout(settings.embedding_timeout_seconds, connect=5.0),
        )

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama server answers on ``/api/tags``."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
        return response.status_code == 200
