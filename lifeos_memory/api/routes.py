"""FastAPI route definitions for the memory engine API.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.  Ownership is passed in the
request (authentication is handled in front of this service).

Endpoint                              Method  Description
─────────────────────────────────────────────────────────────────────
/api/v1/memories/ingest               POST    Queue a document for ingestion (202)
/api/v1/memories/jobs/{job_id}        GET     Poll an ingestion job
/api/v1/memories/search               POST    Semantic search (one or all categories)
/api/v1/memories                      GET     Owner's memories, newest first
/api/v1/memories/stats                GET     Per-category / per-source counts
/api/v1/tags/suggest                  POST    Suggest tags for content
/api/v1/health                        GET     Health check + provider status
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from lifeos_memory import __version__
from lifeos_memory.api.schemas import (
    ErrorResponse,
    HealthResponse,
    IngestAcceptedResponse,
    IngestRequest,
    MemoryListResponse,
    SearchRequest,
    SearchResponse,
    TagSuggestRequest,
    TagSuggestResponse,
)
from lifeos_memory.interfaces.memory_store_provider import IMemoryStoreProvider
from lifeos_memory.interfaces.tag_suggester import ITagSuggester
from lifeos_memory.models.document import SourceDocument, parse_document_tree
from lifeos_memory.models.ingestion import IngestionJob
from lifeos_memory.models.memory import MemoryCategory, MemoryStats
from lifeos_memory.pipeline.ingestion_queue import IngestionQueue
from lifeos_memory.services.retrieval_service import RetrievalService, format_memory_context

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_queue(request: Request) -> IngestionQueue:
    return request.app.state.ingestion_queue


def _get_retrieval(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


def _get_store(request: Request) -> IMemoryStoreProvider:
    return request.app.state.memory_store


def _get_tag_suggester(request: Request) -> ITagSuggester:
    return request.app.state.tag_suggester


QueueDep = Annotated[IngestionQueue, Depends(_get_queue)]
RetrievalDep = Annotated[RetrievalService, Depends(_get_retrieval)]
StoreDep = Annotated[IMemoryStoreProvider, Depends(_get_store)]
TagSuggesterDep = Annotated[ITagSuggester, Depends(_get_tag_suggester)]


# ---------------------------------------------------------------------------
# Memory endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/memories/ingest",
    response_model=IngestAcceptedResponse,
    status_code=202,
    summary="Queue a note, transcript or chat turn for memory ingestion",
)
async def ingest_memory(payload: IngestRequest, queue: QueueDep) -> IngestAcceptedResponse:
    """Accept a document and queue it; ingestion errors never surface here."""
    document = SourceDocument(
        owner_id=payload.owner_id,
        source_type=payload.source_type,
        document_id=payload.document_id,
        title=payload.title,
        body=parse_document_tree(payload.body) if payload.body is not None else None,
        text=payload.text,
    )
    job = queue.enqueue(document, idempotency_key=payload.idempotency_key)
    return IngestAcceptedResponse(
        job_id=job.job_id,
        status=job.status.value,
        idempotency_key=job.idempotency_key,
    )


@router.get(
    "/memories/jobs/{job_id}",
    response_model=IngestionJob,
    responses={404: {"model": ErrorResponse}},
    summary="Get the status of an ingestion job",
)
async def get_ingestion_job(job_id: str, queue: QueueDep) -> IngestionJob:
    job = queue.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Unknown ingestion job: {job_id}")
    return job


@router.post(
    "/memories/search",
    response_model=SearchResponse,
    summary="Semantic search over an owner's memories",
)
async def search_memories(payload: SearchRequest, retrieval: RetrievalDep) -> SearchResponse:
    if payload.category is None:
        matches = await retrieval.retrieve_across_categories(
            owner_id=payload.owner_id,
            query=payload.query,
            limit=payload.top_k,
            threshold=payload.threshold,
        )
        scope = "all categories"
    else:
        matches = await retrieval.retrieve(
            owner_id=payload.owner_id,
            category=payload.category,
            query=payload.query,
            top_k=payload.top_k,
            threshold=payload.threshold,
        )
        scope = payload.category.value

    return SearchResponse(
        owner_id=payload.owner_id,
        query=payload.query,
        scope=scope,
        matches=matches,
        context=format_memory_context(matches, scope),
    )


@router.get(
    "/memories",
    response_model=MemoryListResponse,
    summary="List an owner's memories, newest first",
)
async def list_memories(
    store: StoreDep,
    owner_id: str = Query(..., min_length=1),
    category: MemoryCategory | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
) -> MemoryListResponse:
    memories = await store.list_memories(owner_id, category=category, limit=limit)
    return MemoryListResponse(owner_id=owner_id, total=len(memories), memories=memories)


@router.get(
    "/memories/stats",
    response_model=MemoryStats,
    summary="Per-category and per-source-type memory counts",
)
async def memory_stats(store: StoreDep, owner_id: str = Query(..., min_length=1)) -> MemoryStats:
    return await store.get_stats(owner_id)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@router.post(
    "/tags/suggest",
    response_model=TagSuggestResponse,
    summary="Suggest 3-5 tags for a note, recording or task",
)
async def suggest_tags(payload: TagSuggestRequest, suggester: TagSuggesterDep) -> TagSuggestResponse:
    suggestions = await suggester.suggest(
        payload.content,
        payload.resource_type,
        payload.existing_tag_names,
    )
    return TagSuggestResponse(suggestions=suggestions)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    store = getattr(request.app.state, "memory_store", None)
    queue = getattr(request.app.state, "ingestion_queue", None)
    if store is not None:
        providers["store_dimension"] = store.get_dimension()
        providers["store_available"] = store.is_available()
    if queue is not None:
        providers["queue_running"] = queue.is_running

    critical_ok = bool(providers.get("embedding")) and bool(providers.get("store_available"))
    if critical_ok and providers.get("llm"):
        status = "healthy"
    elif critical_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=__version__, providers=providers)


