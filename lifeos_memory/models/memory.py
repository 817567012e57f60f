"""Memory data models: the stored, embedded, categorized unit of recall.

Defines the two closed taxonomies shared by documents, chunks and
classification output (:class:`MemoryCategory`, :class:`SourceType`), the
immutable :class:`MemoryChunk` row, the :class:`NewMemory` insert payload
and the :class:`MemoryMatch` query result.  All models use frozen config:
a chunk is created once and never mutated.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MemoryCategory(str, Enum):
    """Fixed four-value category taxonomy applied to every chunk."""

    FINANCE = "finance"
    WORK = "work"
    HEALTH = "health"
    GENERAL = "general"


class SourceType(str, Enum):
    """Provenance of a chunk.  A weak back-reference, never ownership."""

    CHAT = "chat"
    NOTE = "note"
    RECORDING = "recording"


class ResourceType(str, Enum):
    """Kinds of resource the tag suggester can be asked about."""

    NOTE = "note"
    RECORDING = "recording"
    TASK = "task"


def _coerce_enum(enum_cls: type[Enum], value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return None


def coerce_category(value: Any) -> MemoryCategory | None:
    """Return *value* as a :class:`MemoryCategory`, or ``None`` if it is not one.

    Accepts enum members and case-insensitive strings; surrounding
    whitespace is ignored.
    """
    return _coerce_enum(MemoryCategory, value)


def coerce_source_type(value: Any) -> SourceType | None:
    """Return *value* as a :class:`SourceType`, or ``None`` if it is not one."""
    return _coerce_enum(SourceType, value)


def coerce_resource_type(value: Any) -> ResourceType | None:
    """Return *value* as a :class:`ResourceType`, or ``None`` if it is not one."""
    return _coerce_enum(ResourceType, value)


class MemoryChunk(BaseModel):
    """One stored, embedded, categorized unit of retrievable text."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Opaque unique identifier assigned at creation.")
    owner_id: str = Field(description="Account the chunk belongs to; scopes every read and write.")
    content: str = Field(description="Chunk text, softly bounded by the chunking policy.")
    category: MemoryCategory
    source_type: SourceType
    embedding: list[float] = Field(default_factory=list)
    created_at: datetime = Field(description="Creation timestamp; ranking tie-break only.")
    idempotency_key: str | None = Field(
        default=None,
        description="Content-derived key; a second insert with the same key is ignored.",
    )


class NewMemory(BaseModel):
    """An insert payload for :meth:`IMemoryStoreProvider.insert_batch`."""

    model_config = ConfigDict(frozen=True)

    owner_id: str
    content: str
    category: MemoryCategory
    source_type: SourceType
    embedding: list[float]
    idempotency_key: str | None = None


class MemoryMatch(BaseModel):
    """A chunk returned by a similarity query, with its cosine similarity."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    category: MemoryCategory
    source_type: SourceType
    created_at: datetime
    similarity: float = Field(ge=-1.0, le=1.0)


class MemoryStats(BaseModel):
    """Per-owner aggregate counts over the memory store."""

    model_config = ConfigDict(frozen=True)

    owner_id: str
    total_chunks: int = Field(default=0, ge=0)
    chunks_by_category: dict[str, int] = Field(default_factory=dict)
    chunks_by_source_type: dict[str, int] = Field(default_factory=dict)
