"""Abstract base class for memory-store providers.

Defines the contract for persisting memory chunks and answering
nearest-neighbour queries scoped to an owner and a category.  Rows are
append-only from this contract's perspective: there is no update and no
delete-by-content operation.

**Ranking rule** shared by every implementation of :meth:`query_similar`:

1. keep rows whose ``owner_id`` and ``category`` match;
2. similarity = cosine similarity between the query and row embeddings;
3. keep rows with ``similarity >= threshold``;
4. sort by similarity descending, ties by ``created_at`` descending (most
   recent first);
5. truncate to ``top_k``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lifeos_memory.models.memory import (
    MemoryCategory,
    MemoryChunk,
    MemoryMatch,
    MemoryStats,
    NewMemory,
    SourceType,
)


# Concrete implementations: SQLiteMemoryStore, ChromaDBMemoryStore
# Located in: lifeos_memory/providers/memory_store/
class IMemoryStoreProvider(ABC):
    """Contract for the memory store used by ingestion and retrieval."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/collections if they do not exist yet."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the embedding dimension every stored vector must have."""

    @abstractmethod
    async def insert(
        self,
        owner_id: str,
        content: str,
        category: MemoryCategory | str,
        source_type: SourceType | str,
        embedding: list[float],
        idempotency_key: str | None = None,
    ) -> str:
        """Persist one chunk and return its id.

        When *idempotency_key* matches an existing row, that row's id is
        returned and nothing is written.

        Raises
        ------
        lifeos_memory.utils.errors.ValidationError
            If the owner is blank or the category/source type is outside the
            fixed taxonomy.
        lifeos_memory.utils.errors.ConfigurationError
            If the embedding length differs from :meth:`get_dimension`.
        lifeos_memory.utils.errors.StorageError
            If the backend write fails.
        """

    @abstractmethod
    async def insert_batch(self, rows: list[NewMemory]) -> list[str]:
        """Persist many chunks in one batched write.

        Returns ids 1:1 and in the same order as *rows*.  Raises the same
        errors as :meth:`insert`; a failed batch writes nothing.
        """

    @abstractmethod
    async def query_similar(
        self,
        owner_id: str,
        category: MemoryCategory | str,
        query_embedding: list[float],
        top_k: int = 5,
        threshold: float = 0.5,
    ) -> list[MemoryMatch]:
        """Return the owner's chunks in *category* ranked by cosine similarity.

        See the module docstring for the ranking rule.

        Raises
        ------
        lifeos_memory.utils.errors.StorageError
            If the backend read fails.
        """

    @abstractmethod
    async def list_memories(
        self,
        owner_id: str,
        category: MemoryCategory | str | None = None,
        limit: int = 100,
    ) -> list[MemoryChunk]:
        """Return the owner's chunks, newest first."""

    @abstractmethod
    async def get_stats(self, owner_id: str) -> MemoryStats:
        """Return per-category and per-source-type chunk counts for an owner."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is configured and reachable."""
