"""Pluggable categorizer contract.

Orchestration code depends on this interface rather than on a live model,
so ingestion can be exercised against a deterministic stub.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lifeos_memory.models.classification import Classification
from lifeos_memory.models.memory import SourceType


# Concrete implementation: LLMCategorizer (lifeos_memory/services/ingestion/categorizer.py)
class ICategorizer(ABC):
    """Classifies content into the fixed taxonomy and summarizes it."""

    @abstractmethod
    async def categorize(
        self,
        content: str,
        source_type: SourceType = SourceType.NOTE,
    ) -> Classification:
        """Return summary, key entities/insights and category for *content*.

        Implementations must never raise: any failure degrades to the
        deterministic fallback (category ``general``, summary = the first
        500 characters of *content*).
        """
