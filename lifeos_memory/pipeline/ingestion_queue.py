"""Managed worker queue for background memory ingestion.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# IngestionQueue replaces fire-and-forget ingestion with:
#   - A fixed pool of asyncio worker tasks pulling job ids from a queue
#   - At-least-once delivery: transient failures (remote service, store)
#     are retried with exponential backoff up to ``max_attempts``
#   - Permanent failures (validation, configuration) fail immediately
#   - An idempotency key per enqueue, so the same document is not
#     ingested twice while a job for it is queued, running or done
#
# Each job is identified by a UUID and tracked in an in-memory dict.
# Finished jobs drop their document and only the newest ``job_retention``
# of them are kept; an evicted job's key can be enqueued again, and the
# store's per-chunk idempotency keys still stop duplicate rows for
# documents with an id.
# External consumers only ever see frozen IngestionJob snapshots.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import hashlib
from collections import deque
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from lifeos_memory.models.document import SourceDocument
from lifeos_memory.models.ingestion import IngestionJob, IngestionResult, JobStatus
from lifeos_memory.services.ingestion.content_extractor import document_text
from lifeos_memory.utils.errors import (
    ConfigurationError,
    ExternalServiceError,
    QueueError,
    StorageError,
    ValidationError,
)

if TYPE_CHECKING:
    from lifeos_memory.services.ingestion.ingestion_service import MemoryIngestionService

logger = structlog.get_logger(logger_name=__name__)

_RETRYABLE_ERRORS = (ExternalServiceError, StorageError)
_PERMANENT_ERRORS = (ValidationError, ConfigurationError)


def default_idempotency_key(document: SourceDocument) -> str:
    """Return ``owner:source_type:document_id``, or a content hash without an id."""
    prefix = f"{document.owner_id}:{document.source_type.value}"
    if document.document_id:
        return f"{prefix}:{document.document_id}"
    digest = hashlib.sha256(document_text(document).encode("utf-8")).hexdigest()
    return f"{prefix}:sha256:{digest}"


class _JobState:
    """Internal mutable state for a single ingestion job.

    Not exposed outside IngestionQueue; consumers get :class:`IngestionJob`
    snapshots from :meth:`to_job`.
    """

    def __init__(self, job_id: str, idempotency_key: str, document: SourceDocument) -> None:
        self.job_id = job_id
        self.idempotency_key = idempotency_key
        self.document: SourceDocument | None = document
        self.owner_id = document.owner_id
        self.source_type = document.source_type
        self.document_id = document.document_id
        self.status = JobStatus.QUEUED
        self.attempts = 0
        self.error: str | None = None
        self.result: IngestionResult | None = None
        self.created_at = datetime.now(timezone.utc)
        self.updated_at = self.created_at
        self.done = asyncio.Event()

    def transition(self, status: JobStatus, error: str | None = None) -> None:
        self.status = status
        self.error = error
        self.updated_at = datetime.now(timezone.utc)
        if status in (JobStatus.SUCCEEDED, JobStatus.FAILED):
            self.document = None
            self.done.set()

    def to_job(self) -> IngestionJob:
        return IngestionJob(
            job_id=self.job_id,
            idempotency_key=self.idempotency_key,
            owner_id=self.owner_id,
            source_type=self.source_type,
            document_id=self.document_id,
            status=self.status,
            attempts=self.attempts,
            error=self.error,
            result=self.result,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class IngestionQueue:
    """Asyncio worker pool that runs :meth:`MemoryIngestionService.ingest`.

    Parameters
    ----------
    ingestion_service:
        The shared ingestion service.
    workers:
        Number of concurrent worker tasks.
    max_attempts:
        Total attempts per job, including the first.
    retry_base_delay:
        Delay before the first retry, in seconds; doubles on every retry.
    max_retry_delay:
        Upper bound on a single backoff delay.
    job_retention:
        How many finished jobs stay queryable; older ones are evicted.
    """

    def __init__(
        self,
        ingestion_service: MemoryIngestionService,
        workers: int = 2,
        max_attempts: int = 3,
        retry_base_delay: float = 1.0,
        max_retry_delay: float = 30.0,
        job_retention: int = 1000,
    ) -> None:
        self._ingestion_service = ingestion_service
        self._worker_count = max(1, workers)
        self._max_attempts = max(1, max_attempts)
        self._retry_base_delay = max(0.0, retry_base_delay)
        self._max_retry_delay = max_retry_delay
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._jobs: dict[str, _JobState] = {}
        self._jobs_by_key: dict[str, str] = {}
        self._job_retention = max(1, job_retention)
        self._finished: deque[str] = deque()
        self._workers: list[asyncio.Task[None]] = []
        self._stopped = False

    # ─── Lifecycle ─────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Spawn the worker tasks.  Must be called from a running event loop."""
        if self._stopped:
            raise QueueError(message="Ingestion queue cannot be restarted after stop()")
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(idx), name=f"ingestion-worker-{idx}")
            for idx in range(self._worker_count)
        ]
        logger.info("ingestion_queue_started", workers=self._worker_count)

    async def stop(self, drain: bool = True) -> None:
        """Stop accepting jobs, optionally wait for queued ones, cancel workers."""
        self._stopped = True
        if drain and self._workers:
            await self._queue.join()
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("ingestion_queue_stopped", drained=drain, jobs=len(self._jobs))

    async def join(self) -> None:
        """Wait until every queued job has finished (succeeded or failed)."""
        await self._queue.join()

    # ─── Jobs ──────────────────────────────────────────────────────────

    def enqueue(
        self,
        document: SourceDocument,
        idempotency_key: str | None = None,
    ) -> IngestionJob:
        """Queue *document* for ingestion and return the job snapshot.

        If a job with the same idempotency key is queued, running or has
        succeeded, that job is returned and nothing new is queued.  A failed
        job's key may be enqueued again.
        """
        if self._stopped:
            raise QueueError(message="Ingestion queue is stopped")

        key = idempotency_key or default_idempotency_key(document)
        existing_id = self._jobs_by_key.get(key)
        if existing_id is not None:
            existing = self._jobs[existing_id]
            if existing.status is not JobStatus.FAILED:
                logger.info(
                    "ingestion_job_deduplicated",
                    job_id=existing.job_id,
                    idempotency_key=key,
                    status=existing.status.value,
                )
                return existing.to_job()

        state = _JobState(job_id=str(uuid4()), idempotency_key=key, document=document)
        self._jobs[state.job_id] = state
        self._jobs_by_key[key] = state.job_id
        self._queue.put_nowait(state.job_id)
        logger.info(
            "ingestion_job_queued",
            job_id=state.job_id,
            owner_id=document.owner_id,
            source_type=document.source_type.value,
            document_id=document.document_id,
        )
        return state.to_job()

    def get_job(self, job_id: str) -> IngestionJob | None:
        state = self._jobs.get(job_id)
        return state.to_job() if state else None

    async def wait_for(self, job_id: str, timeout: float | None = None) -> IngestionJob:
        """Wait until *job_id* reaches a terminal status and return it."""
        state = self._jobs.get(job_id)
        if state is None:
            raise QueueError(message=f"Unknown ingestion job: {job_id}")
        await asyncio.wait_for(state.done.wait(), timeout=timeout)
        return state.to_job()

    # ─── Workers ───────────────────────────────────────────────────────

    async def _worker(self, worker_id: int) -> None:
        while True:
            job_id = await self._queue.get()
            state = self._jobs[job_id]
            try:
                await self._run_job(state, worker_id)
                self._retire(state)
            finally:
                self._queue.task_done()

    async def _run_job(self, state: _JobState, worker_id: int) -> None:
        while True:
            state.attempts += 1
            state.transition(JobStatus.RUNNING)
            try:
                state.result = await self._ingestion_service.ingest(state.document)
            except _PERMANENT_ERRORS as exc:
                state.transition(JobStatus.FAILED, error=str(exc))
                logger.warning(
                    "ingestion_job_failed",
                    job_id=state.job_id,
                    attempts=state.attempts,
                    retryable=False,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                return
            except _RETRYABLE_ERRORS as exc:
                if state.attempts >= self._max_attempts:
                    state.transition(JobStatus.FAILED, error=str(exc))
                    logger.warning(
                        "ingestion_job_failed",
                        job_id=state.job_id,
                        attempts=state.attempts,
                        retryable=True,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    return
                delay = self._backoff_delay(state.attempts)
                state.transition(JobStatus.QUEUED, error=str(exc))
                logger.info(
                    "ingestion_job_retry_scheduled",
                    job_id=state.job_id,
                    attempt=state.attempts,
                    delay_s=delay,
                    error=str(exc),
                )
                await asyncio.sleep(delay)
                continue
            except Exception as exc:  # noqa: BLE001
                state.transition(JobStatus.FAILED, error=str(exc))
                logger.error(
                    "ingestion_job_crashed",
                    job_id=state.job_id,
                    worker=worker_id,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                return

            state.transition(JobStatus.SUCCEEDED)
            logger.info(
                "ingestion_job_succeeded",
                job_id=state.job_id,
                attempts=state.attempts,
                chunks_stored=state.result.chunks_stored,
            )
            return

    def _retire(self, state: _JobState) -> None:
        """Record a finished job and evict the oldest beyond ``job_retention``."""
        self._finished.append(state.job_id)
        while len(self._finished) > self._job_retention:
            evicted_id = self._finished.popleft()
            evicted = self._jobs.pop(evicted_id, None)
            if evicted is not None and self._jobs_by_key.get(evicted.idempotency_key) == evicted_id:
                del self._jobs_by_key[evicted.idempotency_key]
            logger.debug("ingestion_job_evicted", job_id=evicted_id)

    def _backoff_delay(self, attempt: int) -> float:
        return min(self._max_retry_delay, self._retry_base_delay * (2 ** (attempt - 1)))
