"""Row validation shared by every memory-store backend."""

from __future__ import annotations

from typing import Any

from lifeos_memory.models.memory import (
    MemoryCategory,
    SourceType,
    coerce_category,
    coerce_source_type,
)
from lifeos_memory.utils.errors import ConfigurationError, ValidationError


def validate_owner(owner_id: str, provider_name: str) -> str:
    if not isinstance(owner_id, str) or not owner_id.strip():
        raise ValidationError(message="owner_id must be a non-empty string", provider_name=provider_name)
    return owner_id


def validate_category(category: Any, provider_name: str) -> MemoryCategory:
    coerced = coerce_category(category)
    if coerced is None:
        raise ValidationError(
            message=f"Unknown memory category: {category!r}",
            provider_name=provider_name,
        )
    return coerced


def validate_source_type(source_type: Any, provider_name: str) -> SourceType:
    coerced = coerce_source_type(source_type)
    if coerced is None:
        raise ValidationError(
            message=f"Unknown source type: {source_type!r}",
            provider_name=provider_name,
        )
    return coerced


def validate_embedding(embedding: list[float], dimension: int, provider_name: str) -> None:
    """Raise :class:`ConfigurationError` when *embedding* has the wrong length.

    A wrong-length vector means the embedding provider and the store were
    wired with different models, which no retry can fix.
    """
    if len(embedding) != dimension:
        raise ConfigurationError(
            message=(
                f"Embedding dimension mismatch: store expects {dimension}, "
                f"got {len(embedding)}"
            ),
            provider_name=provider_name,
        )


def validate_row(
    owner_id: str,
    content: str,
    category: Any,
    source_type: Any,
    embedding: list[float],
    dimension: int,
    provider_name: str,
) -> tuple[MemoryCategory, SourceType]:
    """Validate one insert row; return its coerced category and source type."""
    validate_owner(owner_id, provider_name)
    if not isinstance(content, str) or not content.strip():
        raise ValidationError(message="Memory content must be non-empty", provider_name=provider_name)
    coerced_category = validate_category(category, provider_name)
    coerced_source = validate_source_type(source_type, provider_name)
    validate_embedding(embedding, dimension, provider_name)
    return coerced_category, coerced_source
