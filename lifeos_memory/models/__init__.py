"""Memory engine domain models: re-exports all public model classes.

The models are organized by concern:
    - memory.py         : taxonomies, stored chunks, query matches, stats
    - document.py       : source documents and the tagged document tree
    - classification.py : categorizer output and tag suggestions
    - ingestion.py      : ingestion results and queue job snapshots
"""

from __future__ import annotations

from lifeos_memory.models.classification import TAG_COLOR_PALETTE, Classification, TagSuggestion
from lifeos_memory.models.document import (
    ContainerNode,
    DocumentNode,
    SourceDocument,
    TextNode,
    parse_document_tree,
)
from lifeos_memory.models.ingestion import IngestionJob, IngestionResult, JobStatus
from lifeos_memory.models.memory import (
    MemoryCategory,
    MemoryChunk,
    MemoryMatch,
    MemoryStats,
    NewMemory,
    ResourceType,
    SourceType,
    coerce_category,
    coerce_resource_type,
    coerce_source_type,
)

__all__ = [
    "TAG_COLOR_PALETTE",
    "Classification",
    "ContainerNode",
    "DocumentNode",
    "IngestionJob",
    "IngestionResult",
    "JobStatus",
    "MemoryCategory",
    "MemoryChunk",
    "MemoryMatch",
    "MemoryStats",
    "NewMemory",
    "ResourceType",
    "SourceDocument",
    "SourceType",
    "TagSuggestion",
    "TextNode",
    "coerce_category",
    "coerce_resource_type",
    "coerce_source_type",
    "parse_document_tree",
]
