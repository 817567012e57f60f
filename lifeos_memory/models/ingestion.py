"""Ingestion run and queue job models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lifeos_memory.models.memory import MemoryCategory, SourceType


class IngestionResult(BaseModel):
    """Summary of a single document ingestion run.

    Partial ingestion is a normal outcome: ``chunks_failed`` counts chunks
    whose embedding or insert failed while their siblings were stored.
    """

    model_config = ConfigDict(frozen=True)

    owner_id: str
    source_type: SourceType
    document_id: str | None = None
    category: MemoryCategory
    summary: str
    used_fallback: bool = False
    chunks_attempted: int = Field(default=0, ge=0)
    chunks_stored: int = Field(default=0, ge=0)
    chunks_failed: int = Field(default=0, ge=0)
    chunk_ids: list[str] = Field(default_factory=list)
    ingestion_time: float = Field(default=0.0, ge=0.0)


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class IngestionJob(BaseModel):
    """Immutable snapshot of an ingestion queue job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    idempotency_key: str
    owner_id: str
    source_type: SourceType
    document_id: str | None = None
    status: JobStatus = JobStatus.QUEUED
    attempts: int = Field(default=0, ge=0)
    error: str | None = None
    result: IngestionResult | None = None
    created_at: datetime
    updated_at: datetime
