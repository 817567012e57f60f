"""Pydantic request/response schemas for the memory engine API.

Request schemas end with "Request", response schemas with "Response".
Domain models (``IngestionJob``, ``MemoryMatch``, ``MemoryChunk``,
``TagSuggestion``) are returned as-is where they already are the public
shape.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from lifeos_memory.models.classification import TagSuggestion
from lifeos_memory.models.memory import (
    MemoryCategory,
    MemoryChunk,
    MemoryMatch,
    ResourceType,
    SourceType,
)


class IngestRequest(BaseModel):
    """A note, recording transcript or chat turn to ingest.

    ``body`` is the raw rich-text editor tree (``{type, text?, content?}``);
    ``text`` is plain text.  At least one should carry content.
    """

    owner_id: str = Field(..., min_length=1)
    source_type: SourceType
    document_id: str | None = None
    title: str | None = None
    body: Any | None = None
    text: str | None = None
    idempotency_key: str | None = Field(
        default=None,
        description="Overrides the default owner:source_type:document_id key.",
    )


class IngestAcceptedResponse(BaseModel):
    """Returned with 202 once the document is queued."""

    job_id: str
    status: str
    idempotency_key: str


class SearchRequest(BaseModel):
    """Semantic search over one owner's memories.

    Omit ``category`` to search every category and merge the results.
    """

    owner_id: str = Field(..., min_length=1)
    query: str = Field(..., min_length=1, max_length=2000)
    category: MemoryCategory | None = None
    top_k: int = Field(default=5, ge=1, le=50)
    threshold: float | None = Field(default=None, ge=-1.0)


class SearchResponse(BaseModel):
    owner_id: str
    query: str
    scope: str
    matches: list[MemoryMatch]
    context: str = Field(description="Matches rendered as an agent context block.")


class MemoryListResponse(BaseModel):
    owner_id: str
    total: int
    memories: list[MemoryChunk]


class TagSuggestRequest(BaseModel):
    content: str = Field(..., min_length=1)
    resource_type: ResourceType
    existing_tag_names: list[str] = Field(default_factory=list)


class TagSuggestResponse(BaseModel):
    suggestions: list[TagSuggestion]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
