"""LifeOS memory engine FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes :func:`build_components` so the CLI assembles exactly the same
providers as the deployed app (critical for embedding-dimension
compatibility with an existing memory store).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from lifeos_memory import __version__
from lifeos_memory.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from lifeos_memory.api.routes import router as api_router
from lifeos_memory.config.loader import load_config
from lifeos_memory.config.settings import Settings
from lifeos_memory.interfaces.embedding_provider import IEmbeddingProvider
from lifeos_memory.interfaces.llm_provider import ILLMProvider
from lifeos_memory.interfaces.memory_store_provider import IMemoryStoreProvider
from lifeos_memory.pipeline.ingestion_queue import IngestionQueue
from lifeos_memory.services.ingestion.categorizer import DEFAULT_FALLBACK_SUMMARY_CHARS, LLMCategorizer
from lifeos_memory.services.ingestion.chunker import TextChunker
from lifeos_memory.services.ingestion.ingestion_service import MemoryIngestionService
from lifeos_memory.services.retrieval_service import DEFAULT_HISTORY_MARKERS, RetrievalService
from lifeos_memory.services.tag_suggester import LLMTagSuggester
from lifeos_memory.utils.errors import ConfigurationError
from lifeos_memory.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first available LLM provider based on configured API keys.

    Priority order: Anthropic -> OpenAI -> Ollama (always available).
    """
    if app_settings.anthropic_api_key:
        from lifeos_memory.providers.llm.anthropic_provider import AnthropicLLMProvider

        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        from lifeos_memory.providers.llm.openai_provider import OpenAILLMProvider

        return OpenAILLMProvider(settings=app_settings)

    from lifeos_memory.providers.llm.ollama_provider import OllamaLLMProvider

    return OllamaLLMProvider(settings=app_settings)


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the embedding provider.

    Priority: OpenAI/OpenAI-compatible (if API key set) -> Nomic/Ollama.
    Memories are only comparable within one model, so there is no runtime
    fallback between the two.
    """
    if app_settings.openai_api_key:
        from lifeos_memory.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        return OpenAIEmbeddingProvider(settings=app_settings)

    from lifeos_memory.providers.embedding.nomic_embedding_provider import (
        NomicEmbeddingProvider,
    )

    return NomicEmbeddingProvider(settings=app_settings)


def _resolve_dimension(app_settings: Settings, embedding_provider: IEmbeddingProvider) -> int:
    """Return the store dimension, failing when it contradicts the provider."""
    provider_dim = embedding_provider.get_dimension()
    configured = app_settings.embedding_dimension
    if configured and configured != provider_dim:
        raise ConfigurationError(
            message=(
                f"EMBEDDING_DIMENSION={configured} but embedding provider "
                f"'{embedding_provider.get_provider_name()}' produces {provider_dim}-dim vectors"
            ),
            provider_name=embedding_provider.get_provider_name(),
        )
    return configured or provider_dim


def _build_memory_store(app_settings: Settings, dimension: int) -> IMemoryStoreProvider:
    """Construct the configured memory store backend (``sqlite`` or ``chromadb``)."""
    backend = app_settings.memory_store_backend.strip().lower()
    if backend == "sqlite":
        from lifeos_memory.providers.memory_store.sqlite_memory_store import SQLiteMemoryStore

        return SQLiteMemoryStore(dimension=dimension, db_path=app_settings.memory_db_path)
    if backend == "chromadb":
        from lifeos_memory.providers.memory_store.chromadb_memory_store import (
            ChromaDBMemoryStore,
        )

        return ChromaDBMemoryStore(
            dimension=dimension,
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
        )
    raise ConfigurationError(
        message=f"Unknown MEMORY_STORE_BACKEND: {app_settings.memory_store_backend!r}",
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components to be stored on ``app.state``.
    Nothing here performs I/O; stores are initialised in the lifespan.
    """
    app_config = app_config or {}
    retrieval_config = app_config.get("retrieval", {})
    history_config = retrieval_config.get("history", {})
    ingestion_config = app_config.get("ingestion", {})

    llm = _build_llm_provider(app_settings)
    embedding_provider = _build_embedding_provider(app_settings)
    dimension = _resolve_dimension(app_settings, embedding_provider)
    memory_store = _build_memory_store(app_settings, dimension)

    categorizer = LLMCategorizer(
        llm_provider=llm,
        max_input_chars=app_settings.categorizer_max_input_chars,
        fallback_summary_chars=ingestion_config.get(
            "summary_fallback_chars", DEFAULT_FALLBACK_SUMMARY_CHARS
        ),
    )
    ingestion_service = MemoryIngestionService(
        categorizer=categorizer,
        embedding_provider=embedding_provider,
        memory_store=memory_store,
        chunker=TextChunker(max_chunk_length=app_settings.max_chunk_length),
        max_chunk_length=app_settings.max_chunk_length,
        embedding_max_concurrency=app_settings.embedding_max_concurrency,
        embedding_timeout_seconds=app_settings.embedding_timeout_seconds,
    )
    ingestion_queue = IngestionQueue(
        ingestion_service=ingestion_service,
        workers=app_settings.ingestion_workers,
        max_attempts=app_settings.ingestion_max_attempts,
        retry_base_delay=app_settings.ingestion_retry_base_delay,
        job_retention=app_settings.ingestion_job_retention,
    )
    retrieval_service = RetrievalService(
        embedding_provider=embedding_provider,
        memory_store=memory_store,
        top_k=app_settings.retrieval_top_k,
        threshold=app_settings.retrieval_threshold,
        history_per_category_k=history_config.get("per_category_k", 5),
        history_limit=app_settings.retrieval_history_limit,
        history_threshold=app_settings.retrieval_history_threshold,
        history_markers=retrieval_config.get("history_markers") or DEFAULT_HISTORY_MARKERS,
    )
    tag_suggester = LLMTagSuggester(llm_provider=llm)

    provider_registry = {
        "llm": llm.is_available(),
        "llm_provider": llm.get_provider_name(),
        "embedding": embedding_provider.get_provider_name(),
        "store": memory_store.get_provider_name(),
    }

    return {
        "settings": app_settings,
        "primary_llm": llm,
        "embedding_provider": embedding_provider,
        "memory_store": memory_store,
        "categorizer": categorizer,
        "ingestion_service": ingestion_service,
        "ingestion_queue": ingestion_queue,
        "retrieval_service": retrieval_service,
        "tag_suggester": tag_suggester,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise the store and start the ingestion workers; stop them on shutdown."""
    components = build_components(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["memory_store"].initialize()
    components["ingestion_queue"].start()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        llm=components["provider_registry"]["llm_provider"],
        embedding=components["provider_registry"]["embedding"],
        store=components["provider_registry"]["store"],
        dimension=components["memory_store"].get_dimension(),
    )

    yield

    await components["ingestion_queue"].stop(drain=False)
    _logger.info("app_shutdown", message="Ingestion workers stopped")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="LifeOS Memory API",
        version=__version__,
        description=(
            "Ingest notes, recording transcripts and chat turns as categorized, "
            "embedded memories, and recall the most relevant ones per owner."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "lifeos_memory.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
