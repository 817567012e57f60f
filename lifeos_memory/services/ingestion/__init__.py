"""Memory ingestion pipeline: extraction, chunking, categorization, orchestration."""

from lifeos_memory.services.ingestion.categorizer import LLMCategorizer, fallback_classification
from lifeos_memory.services.ingestion.chunker import TextChunker
from lifeos_memory.services.ingestion.content_extractor import (
    build_document_text,
    document_text,
    extract_text,
)
from lifeos_memory.services.ingestion.ingestion_service import MemoryIngestionService

__all__ = [
    "LLMCategorizer",
    "MemoryIngestionService",
    "TextChunker",
    "build_document_text",
    "document_text",
    "extract_text",
    "fallback_classification",
]
