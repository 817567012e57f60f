"""Background execution of the ingestion pipeline."""

from lifeos_memory.pipeline.ingestion_queue import IngestionQueue, default_idempotency_key

__all__ = ["IngestionQueue", "default_idempotency_key"]
