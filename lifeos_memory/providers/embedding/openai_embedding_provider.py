"""OpenAI embeddings adapter.

Also the base for any server speaking the OpenAI ``/v1/embeddings``
protocol (a gateway via ``OPENAI_BASE_URL``, or Ollama, see
:mod:`~lifeos_memory.providers.embedding.nomic_embedding_provider`).
"""

from __future__ import annotations

import openai
import structlog

from lifeos_memory.config.settings import Settings
from lifeos_memory.interfaces.embedding_provider import IEmbeddingProvider
from lifeos_memory.utils.errors import EmbeddingError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embeds memory chunks and queries with an OpenAI embedding model.

    Every response is checked for vector count and width, so a misbehaving
    endpoint raises :class:`EmbeddingError` instead of writing a vector the
    store would later reject.
    """

    batch_limit = 2048

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._model = settings.openai_embedding_model or DEFAULT_EMBEDDING_MODEL
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )
        self._client = self._make_client(settings)

    def _make_client(self, settings: Settings) -> openai.AsyncOpenAI:
        kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.embedding_timeout_seconds, connect=5.0),
        }
        if settings.openai_base_url:
            kwargs["base_url"] = settings.openai_base_url
        return openai.AsyncOpenAI(**kwargs)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in order, splitting into ``batch_limit`` sized calls."""
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_limit):
            vectors.extend(await self._embed_batch(texts[start : start + self.batch_limit]))

        if len(vectors) != len(texts):
            raise EmbeddingError(
                message=f"Expected {len(texts)} embeddings, got {len(vectors)}",
                provider_name=self.get_provider_name(),
            )
        bad_width = next((len(v) for v in vectors if len(v) != self._dimension), None)
        if bad_width is not None:
            raise EmbeddingError(
                message=(
                    f"{self._model} returned a {bad_width}-dimensional vector, "
                    f"expected {self._dimension}"
                ),
                provider_name=self.get_provider_name(),
            )
        return vectors

    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        try:
            response = await self._client.embeddings.create(input=batch, model=self._model)
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self.get_provider_name()} rate limited: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"{self.get_provider_name()} embedding request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        usage = getattr(response, "usage", None)
        logger.debug(
            "embedding_batch_done",
            provider=self.get_provider_name(),
            model=self._model,
            batch_size=len(batch),
            tokens=usage.total_tokens if usage else None,
        )
        return [item.embedding for item in response.data]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)
