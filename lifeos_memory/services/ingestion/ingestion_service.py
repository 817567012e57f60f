"""Orchestrator for memory ingestion.

Pipeline stages: **extract -> categorize -> plan chunks -> embed -> store**.

:class:`MemoryIngestionService` coordinates the categorizer, chunker,
embedding provider and memory store without any of them knowing about
each other.  For every document it stores:

    1. a summary chunk (the categorizer's summary),
    2. an entity/insight chunk when the categorizer found any,
    3. the content itself, whole when short, otherwise sentence-chunked.

Every chunk carries the document's single category.  Embeddings are
fanned out concurrently; a failed or timed-out embedding drops only that
chunk.  All dependencies are injected via constructor, so providers can
be swapped (e.g. OpenAI -> Ollama) without changing this class.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from lifeos_memory.models.classification import Classification
from lifeos_memory.models.document import SourceDocument
from lifeos_memory.models.ingestion import IngestionResult
from lifeos_memory.models.memory import NewMemory, SourceType
from lifeos_memory.services.ingestion.chunker import TextChunker
from lifeos_memory.services.ingestion.content_extractor import document_text
from lifeos_memory.utils.concurrency import split_results, throttled_gather
from lifeos_memory.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    StorageError,
    ValidationError,
)

if TYPE_CHECKING:
    from lifeos_memory.interfaces.categorizer import ICategorizer
    from lifeos_memory.interfaces.embedding_provider import IEmbeddingProvider
    from lifeos_memory.interfaces.memory_store_provider import IMemoryStoreProvider

logger = structlog.get_logger(logger_name=__name__)


def entity_chunk_text(source_type: SourceType, items: list[str], summary: str) -> str:
    """Render the entity/insight chunk for *source_type*."""
    if source_type is SourceType.RECORDING:
        return f"Key insights: {'. '.join(items)}. {summary}"
    if source_type is SourceType.CHAT:
        return f"Conversation about: {', '.join(items)}. {summary}"
    return f"Note about: {', '.join(items)}. {summary}"


class MemoryIngestionService:
    """Turns one source document into stored, embedded memory chunks.

    Parameters
    ----------
    categorizer:
        Produces summary, entities/insights and category; never raises.
    embedding_provider:
        Embeds every chunk.
    memory_store:
        Persists the chunks.
    chunker:
        Splits long content; a default :class:`TextChunker` is built when
        omitted.
    max_chunk_length:
        Content up to this length is stored as a single chunk.
    embedding_max_concurrency:
        Upper bound on in-flight embedding calls per document.
    embedding_timeout_seconds:
        Per-chunk embedding timeout; a timed-out chunk is dropped.
    """

    def __init__(
        self,
        categorizer: ICategorizer,
        embedding_provider: IEmbeddingProvider,
        memory_store: IMemoryStoreProvider,
        chunker: TextChunker | None = None,
        max_chunk_length: int = 1000,
        embedding_max_concurrency: int = 5,
        embedding_timeout_seconds: float | None = 20.0,
    ) -> None:
        self._categorizer = categorizer
        self._embedding_provider = embedding_provider
        self._memory_store = memory_store
        self._chunker = chunker or TextChunker(max_chunk_length=max_chunk_length)
        self._max_chunk_length = max_chunk_length
        self._embedding_max_concurrency = max(1, embedding_max_concurrency)
        self._embedding_timeout_seconds = embedding_timeout_seconds
        self._background_tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, document: SourceDocument) -> IngestionResult:
        """Run the full pipeline for one document.

        Raises
        ------
        ValidationError
            If the owner is blank or the document has no text.  Raised
            before any remote call.
        ConfigurationError
            If embeddings do not match the store's dimension.
        EmbeddingError
            If every chunk failed to embed, so nothing was stored.
        StorageError
            If every chunk failed to store.
        """
        start = time.monotonic()
        if not document.owner_id or not document.owner_id.strip():
            raise ValidationError(message="Document owner_id is required")

        text = document_text(document)
        if not text.strip():
            raise ValidationError(
                message=f"{document.source_type.value} document has no text content",
            )

        classification = await self._categorizer.categorize(text, document.source_type)
        planned = self._plan_chunks(text, classification, document.source_type)

        rows, embed_failures = await self._embed_chunks(document, classification, planned)
        ids, store_failures = await self._store_rows(rows)

        elapsed = time.monotonic() - start
        result = IngestionResult(
            owner_id=document.owner_id,
            source_type=document.source_type,
            document_id=document.document_id,
            category=classification.category,
            summary=classification.summary,
            used_fallback=classification.is_fallback,
            chunks_attempted=len(planned),
            chunks_stored=len(ids),
            chunks_failed=embed_failures + store_failures,
            chunk_ids=ids,
            ingestion_time=round(elapsed, 3),
        )

        if planned and not ids:
            logger.error(
                "ingestion_stored_nothing",
                owner_id=document.owner_id,
                document_id=document.document_id,
                embed_failures=embed_failures,
                store_failures=store_failures,
            )
            if store_failures:
                raise StorageError(message="No memory chunks could be stored")
            raise EmbeddingError(message="No memory chunks could be embedded")

        logger.info(
            "document_ingested",
            owner_id=document.owner_id,
            source_type=document.source_type.value,
            document_id=document.document_id,
            category=result.category.value,
            fallback=result.used_fallback,
            chunks_stored=result.chunks_stored,
            chunks_failed=result.chunks_failed,
            time_s=result.ingestion_time,
        )
        return result

    def ingest_in_background(self, document: SourceDocument) -> asyncio.Task:
        """Schedule :meth:`ingest` as a detached task.

        Failures are logged and not re-raised; callers that need retries or
        status should use :class:`~lifeos_memory.pipeline.ingestion_queue.IngestionQueue`.
        """
        task = asyncio.create_task(self._ingest_logged(document))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _ingest_logged(self, document: SourceDocument) -> IngestionResult | None:
        try:
            return await self.ingest(document)
        except Exception as exc:  # noqa: BLE001
            log = logger.error if isinstance(exc, ConfigurationError) else logger.warning
            log(
                "background_ingestion_failed",
                owner_id=document.owner_id,
                document_id=document.document_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None

    def _plan_chunks(
        self,
        text: str,
        classification: Classification,
        source_type: SourceType,
    ) -> list[tuple[str, int, str]]:
        """Return ``(kind, index, content)`` for every chunk to store."""
        planned: list[tuple[str, int, str]] = []
        if classification.summary.strip():
            planned.append(("summary", 0, classification.summary))
        if classification.entities_or_insights:
            planned.append(
                (
                    "entity",
                    0,
                    entity_chunk_text(
                        source_type,
                        classification.entities_or_insights,
                        classification.summary,
                    ),
                )
            )

        if self._chunker.needs_chunking(text, self._max_chunk_length):
            content_chunks = self._chunker.chunk(text, self._max_chunk_length)
        else:
            content_chunks = [text]
        content_chunks = [c for c in content_chunks if c.strip()]
        planned.extend(("content", idx, chunk) for idx, chunk in enumerate(content_chunks))
        return planned

    async def _embed_chunks(
        self,
        document: SourceDocument,
        classification: Classification,
        planned: list[tuple[str, int, str]],
    ) -> tuple[list[NewMemory], int]:
        semaphore = asyncio.Semaphore(self._embedding_max_concurrency)
        results = await throttled_gather(
            [self._embedding_provider.embed_single(content) for _, _, content in planned],
            semaphore=semaphore,
            timeout=self._embedding_timeout_seconds,
        )
        successes, failures = split_results(results)

        for idx, exc in failures.items():
            if isinstance(exc, ConfigurationError) or not isinstance(exc, Exception):
                raise exc
            kind, chunk_index, _ = planned[idx]
            logger.warning(
                "chunk_embedding_failed",
                owner_id=document.owner_id,
                kind=kind,
                chunk_index=chunk_index,
                error_type=type(exc).__name__,
                error=str(exc),
            )

        rows = [
            NewMemory(
                owner_id=document.owner_id,
                content=planned[idx][2],
                category=classification.category,
                source_type=document.source_type,
                embedding=successes[idx],
                idempotency_key=self._idempotency_key(document, planned[idx][0], planned[idx][1]),
            )
            for idx in sorted(successes)
        ]
        return rows, len(failures)

    async def _store_rows(self, rows: list[NewMemory]) -> tuple[list[str], int]:
        """Write *rows* in one batch, falling back to per-row inserts."""
        if not rows:
            return [], 0
        try:
            return await self._memory_store.insert_batch(rows), 0
        except StorageError as exc:
            logger.warning("memory_batch_insert_failed", rows=len(rows), error=str(exc))

        ids: list[str] = []
        failed = 0
        for row in rows:
            try:
                ids.append(
                    await self._memory_store.insert(
                        owner_id=row.owner_id,
                        content=row.content,
                        category=row.category,
                        source_type=row.source_type,
                        embedding=row.embedding,
                        idempotency_key=row.idempotency_key,
                    )
                )
            except StorageError as exc:
                failed += 1
                logger.warning("memory_insert_failed", owner_id=row.owner_id, error=str(exc))
        return ids, failed

    @staticmethod
    def _idempotency_key(document: SourceDocument, kind: str, index: int) -> str | None:
        if not document.document_id:
            return None
        return (
            f"{document.owner_id}:{document.source_type.value}:"
            f"{document.document_id}:{kind}:{index}"
        )
