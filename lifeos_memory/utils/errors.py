"""Custom exception hierarchy for the LifeOS memory engine.

All application exceptions inherit from :class:`MemoryEngineError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "sqlite", "chromadb") caused the failure.

The hierarchy follows the stages of ingestion and retrieval:

    MemoryEngineError  (base -- catch-all for any memory engine error)
    +-- ValidationError          (empty content, unknown enum value, missing field)
    +-- ExternalServiceError     (classification / embedding call failed)
    |   +-- LLMError             (any LLM API call failure)
    |   +-- EmbeddingError       (any embedding API call failure)
    |   +-- RateLimitError       (provider rate-limit exceeded)
    +-- StorageError             (insert or query against the memory store failed)
    +-- ConfigurationError       (startup / wiring problem, e.g. dimension mismatch)
    +-- QueueError               (ingestion queue misuse, e.g. enqueue after stop)

Propagation rules live with the callers: a ValidationError aborts an
ingestion run before any remote call, an ExternalServiceError during
categorization triggers the deterministic fallback, an ExternalServiceError
during embedding only drops the affected chunk, and a StorageError only
aborts the affected insert or query.  ConfigurationError is always fatal.
"""


class MemoryEngineError(Exception):
    """Base exception for all memory engine errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class ValidationError(MemoryEngineError):
    """Raised for empty/whitespace content or a missing/invalid required field.

    Always raised before any remote call is made.  Never retried.
    """

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ExternalServiceError(MemoryEngineError):
    """Raised when a remote classification or embedding call fails.

    Covers network failures, authentication problems, rate limits and
    malformed responses.
    """

    def __init__(
        self,
        message: str = "External service call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(ExternalServiceError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(ExternalServiceError):
    """Raised when an embedding API call fails or returns malformed vectors."""

    def __init__(
        self,
        message: str = "Embedding API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(ExternalServiceError):
    """Raised when an API rate limit is exceeded.

    The ingestion queue treats this like any other external failure and
    retries the job with exponential backoff.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class StorageError(MemoryEngineError):
    """Raised when a memory-store insert or query fails."""

    def __init__(
        self,
        message: str = "Memory store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(MemoryEngineError):
    """Raised when configuration is invalid or missing at startup.

    An embedding dimension that does not match the store's configured
    dimension is reported with this error: it is a wiring problem, not a
    per-call one.
    """

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QueueError(MemoryEngineError):
    """Raised when the ingestion queue is used outside its lifecycle."""

    def __init__(
        self,
        message: str = "Ingestion queue error",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
