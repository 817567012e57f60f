"""Utility modules for the LifeOS memory engine.

- **errors** -- Domain exception hierarchy rooted at MemoryEngineError;
  callers catch the precise subclass (ValidationError, ExternalServiceError,
  StorageError, ConfigurationError) that matches their propagation rule.
- **concurrency** -- semaphore-throttled ``asyncio.gather`` with per-call
  timeouts, used for embedding fan-out.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **llm_json** -- tolerant JSON-object extraction from LLM responses.
- **similarity** -- numpy cosine similarity and the shared match-ranking rule.
"""

from lifeos_memory.utils.concurrency import split_results, throttled_gather
from lifeos_memory.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    ExternalServiceError,
    LLMError,
    MemoryEngineError,
    QueueError,
    RateLimitError,
    StorageError,
    ValidationError,
)
from lifeos_memory.utils.llm_json import coerce_string_list, extract_json_object
from lifeos_memory.utils.logging import configure_logging, get_logger
from lifeos_memory.utils.similarity import cosine_similarities, rank_matches, ranking_key

__all__ = [
    "ConfigurationError",
    "EmbeddingError",
    "ExternalServiceError",
    "LLMError",
    "MemoryEngineError",
    "QueueError",
    "RateLimitError",
    "StorageError",
    "ValidationError",
    "coerce_string_list",
    "cosine_similarities",
    "configure_logging",
    "extract_json_object",
    "get_logger",
    "rank_matches",
    "ranking_key",
    "split_results",
    "throttled_gather",
]
