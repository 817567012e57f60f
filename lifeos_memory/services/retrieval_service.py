"""Semantic recall over stored memories.

:class:`RetrievalService` embeds a free-text query and asks the memory
store for the owner's most similar chunks.  Two shapes of recall exist:

* **single category** -- what a category expert (finance, work, ...) uses
  for ordinary questions;
* **across categories** -- used when the user asks about past
  conversations or "what did I ...", with a lower threshold so recall is
  more inclusive.

:meth:`recall_context` picks between them from the wording of the message
and renders the result as the context block handed to an agent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import structlog

from lifeos_memory.models.memory import MemoryCategory, MemoryMatch
from lifeos_memory.utils.errors import StorageError, ValidationError
from lifeos_memory.utils.similarity import ranking_key

if TYPE_CHECKING:
    from lifeos_memory.interfaces.embedding_provider import IEmbeddingProvider
    from lifeos_memory.interfaces.memory_store_provider import IMemoryStoreProvider

logger = structlog.get_logger(logger_name=__name__)

NO_MEMORIES_MESSAGE = "No relevant memories found in the database."

DEFAULT_HISTORY_MARKERS: tuple[str, ...] = (
    "past",
    "previous",
    "history",
    "conversation",
    "chat",
    "memory",
    "memories",
    "remember",
    "what did we",
    "what did i",
    "like what",
    "specifically",
)


def format_memory_context(matches: list[MemoryMatch], scope_label: str) -> str:
    """Render *matches* as the numbered context block given to an agent."""
    if not matches:
        return NO_MEMORIES_MESSAGE
    blocks = [
        f"[Memory {idx}]\n"
        f"Source: {match.source_type.value} ({match.category.value})\n"
        f"Content: {match.content}\n"
        f"Relevance: {match.similarity * 100:.1f}%"
        for idx, match in enumerate(matches, start=1)
    ]
    context = "\n\n".join(blocks)
    return f"Relevant memories from your {scope_label} history:\n\n{context}"


class RetrievalService:
    """Embeds queries and returns ranked memory matches.

    Parameters
    ----------
    embedding_provider:
        Must be the same model the memories were embedded with.
    memory_store:
        Source of ranked matches.
    top_k, threshold:
        Defaults for single-category retrieval.
    history_per_category_k, history_limit, history_threshold:
        Defaults for cross-category retrieval.
    history_markers:
        Lower-case phrases that turn a message into a cross-category recall.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        memory_store: IMemoryStoreProvider,
        top_k: int = 5,
        threshold: float = 0.5,
        history_per_category_k: int = 5,
        history_limit: int = 10,
        history_threshold: float = 0.3,
        history_markers: Iterable[str] = DEFAULT_HISTORY_MARKERS,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._memory_store = memory_store
        self._top_k = top_k
        self._threshold = threshold
        self._history_per_category_k = history_per_category_k
        self._history_limit = history_limit
        self._history_threshold = history_threshold
        self._history_markers = tuple(m.lower() for m in history_markers if m)

    async def retrieve(
        self,
        owner_id: str,
        category: MemoryCategory | str,
        query: str,
        top_k: int | None = None,
        threshold: float | None = None,
    ) -> list[MemoryMatch]:
        """Return the owner's chunks in *category* most similar to *query*.

        The store's ranking is returned unmodified.  A store failure is
        logged and yields ``[]``; embedding failures propagate.

        Raises
        ------
        ValidationError
            If *query* is blank.
        """
        self._require_query(query)
        query_embedding = await self._embedding_provider.embed_single(query)
        try:
            return await self._memory_store.query_similar(
                owner_id=owner_id,
                category=category,
                query_embedding=query_embedding,
                top_k=self._top_k if top_k is None else top_k,
                threshold=self._threshold if threshold is None else threshold,
            )
        except StorageError as exc:
            logger.warning(
                "memory_retrieval_failed",
                owner_id=owner_id,
                category=str(category),
                error=str(exc),
            )
            return []

    async def retrieve_across_categories(
        self,
        owner_id: str,
        query: str,
        per_category_k: int | None = None,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> list[MemoryMatch]:
        """Query every category with one embedding and merge the results.

        Results are ordered by similarity (newest first on ties) and
        truncated to *limit*.  A failing category is logged and skipped.
        """
        self._require_query(query)
        per_category_k = self._history_per_category_k if per_category_k is None else per_category_k
        limit = self._history_limit if limit is None else limit
        threshold = self._history_threshold if threshold is None else threshold

        query_embedding = await self._embedding_provider.embed_single(query)
        merged: list[MemoryMatch] = []
        for category in MemoryCategory:
            try:
                found = await self._memory_store.query_similar(
                    owner_id=owner_id,
                    category=category,
                    query_embedding=query_embedding,
                    top_k=per_category_k,
                    threshold=threshold,
                )
            except StorageError as exc:
                logger.warning(
                    "category_retrieval_failed",
                    owner_id=owner_id,
                    category=category.value,
                    error=str(exc),
                )
                continue
            logger.debug("category_memories_found", category=category.value, count=len(found))
            merged.extend(found)

        merged.sort(key=ranking_key)
        return merged[: max(0, limit)]

    def is_history_query(self, message: str) -> bool:
        """Return ``True`` when *message* asks about past conversations."""
        lowered = message.lower()
        return any(marker in lowered for marker in self._history_markers)

    async def recall_context(
        self,
        owner_id: str,
        category: MemoryCategory | str,
        message: str,
    ) -> str:
        """Return the formatted memory context an agent should see for *message*."""
        if self.is_history_query(message):
            matches = await self.retrieve_across_categories(owner_id, message)
            scope_label = "all categories"
        else:
            matches = await self.retrieve(owner_id, category, message)
            scope_label = category.value if isinstance(category, MemoryCategory) else str(category)

        logger.info(
            "memory_context_built",
            owner_id=owner_id,
            scope=scope_label,
            matches=len(matches),
            top_similarity=matches[0].similarity if matches else 0.0,
        )
        return format_memory_context(matches, scope_label)

    @staticmethod
    def _require_query(query: str) -> None:
        if not query or not query.strip():
            raise ValidationError(message="Search query must be non-empty")
