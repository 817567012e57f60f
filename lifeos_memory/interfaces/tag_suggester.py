"""Pluggable tag-suggester contract (sibling of the categorizer)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from lifeos_memory.models.classification import TagSuggestion
from lifeos_memory.models.memory import ResourceType


# Concrete implementation: LLMTagSuggester (lifeos_memory/services/tag_suggester.py)
class ITagSuggester(ABC):
    """Proposes free-form tags (not the fixed category taxonomy)."""

    @abstractmethod
    async def suggest(
        self,
        content: str,
        resource_type: ResourceType,
        existing_tag_names: list[str] | None = None,
    ) -> list[TagSuggestion]:
        """Return 3–5 suggestions, or an empty list on any failure."""
