"""Unit tests for ChromaDBMemoryStore.

Uses an in-process ``chromadb.EphemeralClient`` with a unique collection
per test, plus MagicMock clients for failure mapping.
"""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import chromadb
import pytest

from conftest import hash_to_vector
from lifeos_memory.models.memory import MemoryCategory, NewMemory, SourceType
from lifeos_memory.providers.memory_store.chromadb_memory_store import ChromaDBMemoryStore
from lifeos_memory.utils.errors import ConfigurationError, StorageError, ValidationError


async def _make_store(dimension: int = 2, collection_name: str | None = None) -> ChromaDBMemoryStore:
    store = ChromaDBMemoryStore(
        dimension=dimension,
        collection_name=collection_name or f"test_{uuid.uuid4().hex}",
        client=chromadb.EphemeralClient(),
    )
    await store.initialize()
    return store


def _row(content: str, embedding: list[float], **kwargs) -> NewMemory:
    return NewMemory(
        owner_id=kwargs.get("owner_id", "u1"),
        content=content,
        category=kwargs.get("category", MemoryCategory.FINANCE),
        source_type=kwargs.get("source_type", SourceType.NOTE),
        embedding=embedding,
        idempotency_key=kwargs.get("idempotency_key"),
    )


class TestChromaDBMemoryStore:
    @pytest.mark.asyncio
    async def test_closest_match_first(self) -> None:
        store = await _make_store()
        id_a, _ = await store.insert_batch([_row("A", [1.0, 0.0]), _row("B", [0.0, 1.0])])

        matches = await store.query_similar("u1", MemoryCategory.FINANCE, [0.9, 0.1], top_k=1, threshold=0.0)

        assert [m.id for m in matches] == [id_a]
        assert matches[0].similarity == pytest.approx(0.9 / (0.82**0.5), abs=1e-4)

    @pytest.mark.asyncio
    async def test_scoped_to_owner_and_category(self) -> None:
        store = await _make_store()
        await store.insert_batch(
            [
                _row("mine", [1.0, 0.0]),
                _row("theirs", [1.0, 0.0], owner_id="u2"),
                _row("work", [1.0, 0.0], category=MemoryCategory.WORK),
            ]
        )
        matches = await store.query_similar("u1", "finance", [1.0, 0.0], top_k=10, threshold=0.0)
        assert [m.content for m in matches] == ["mine"]

    @pytest.mark.asyncio
    async def test_threshold_above_one_returns_empty(self) -> None:
        store = await _make_store()
        await store.insert("u1", "A", "finance", "note", [1.0, 0.0])
        assert await store.query_similar("u1", "finance", [1.0, 0.0], top_k=5, threshold=1.5) == []

    @pytest.mark.asyncio
    async def test_identical_vectors_newest_first(self) -> None:
        store = await _make_store()
        await store.insert("u1", "old", "finance", "note", [1.0, 0.0])
        await store.insert("u1", "new", "finance", "note", [1.0, 0.0])

        matches = await store.query_similar("u1", "finance", [1.0, 0.0], top_k=5, threshold=0.0)

        assert [m.content for m in matches] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_idempotency_key_deduplicates(self) -> None:
        store = await _make_store()
        first = await store.insert("u1", "text", "work", "chat", [1.0, 0.0], idempotency_key="k1")
        second = await store.insert("u1", "text", "work", "chat", [1.0, 0.0], idempotency_key="k1")
        ids = await store.insert_batch(
            [_row("x", [0.0, 1.0], idempotency_key="k2"), _row("x", [0.0, 1.0], idempotency_key="k2")]
        )

        assert first == second
        assert ids[0] == ids[1]
        assert (await store.get_stats("u1")).total_chunks == 2

    @pytest.mark.asyncio
    async def test_list_and_stats(self) -> None:
        store = await _make_store()
        await store.insert("u1", "one", "finance", "note", [1.0, 0.0])
        await store.insert("u1", "two", "health", "recording", [0.0, 1.0])
        await store.insert("u2", "other", "health", "note", [0.0, 1.0])

        listed = await store.list_memories("u1")
        assert [m.content for m in listed] == ["two", "one"]
        assert [m.content for m in await store.list_memories("u1", category="health")] == ["two"]

        stats = await store.get_stats("u1")
        assert stats.total_chunks == 2
        assert stats.chunks_by_category == {"finance": 1, "health": 1}
        assert stats.chunks_by_source_type == {"note": 1, "recording": 1}

    @pytest.mark.asyncio
    async def test_dimension_mismatch_on_insert(self) -> None:
        store = await _make_store(dimension=4)
        with pytest.raises(ConfigurationError):
            await store.insert("u1", "text", "finance", "note", [1.0, 0.0])

    @pytest.mark.asyncio
    async def test_dimension_mismatch_on_query(self) -> None:
        store = await _make_store(dimension=4)
        await store.insert("u1", "text", "finance", "note", [1.0, 0.0, 0.0, 0.0])
        with pytest.raises(ConfigurationError):
            await store.query_similar("u1", "finance", [1.0, 0.0], top_k=1, threshold=0.0)

    @pytest.mark.asyncio
    async def test_reopening_with_other_dimension_fails(self) -> None:
        client = chromadb.EphemeralClient()
        name = f"test_{uuid.uuid4().hex}"
        first = ChromaDBMemoryStore(dimension=16, collection_name=name, client=client)
        await first.initialize()
        await first.insert("u1", "text", "general", "note", hash_to_vector("text"))

        second = ChromaDBMemoryStore(dimension=8, collection_name=name, client=client)
        with pytest.raises(ConfigurationError):
            await second.initialize()

    @pytest.mark.asyncio
    async def test_validation_errors(self) -> None:
        store = await _make_store()
        with pytest.raises(ValidationError):
            await store.insert("", "text", "finance", "note", [1.0, 0.0])
        with pytest.raises(ValidationError):
            await store.query_similar("u1", "travel", [1.0, 0.0])

    @pytest.mark.asyncio
    async def test_use_before_initialize(self) -> None:
        store = ChromaDBMemoryStore(dimension=2, client=MagicMock())
        assert store.is_available() is False
        with pytest.raises(StorageError):
            await store.query_similar("u1", "finance", [1.0, 0.0])

    @pytest.mark.asyncio
    async def test_client_errors_become_storage_errors(self) -> None:
        collection = MagicMock()
        collection.count.return_value = 0
        collection.add.side_effect = RuntimeError("disk full")
        client = MagicMock()
        client.get_or_create_collection.return_value = collection

        store = ChromaDBMemoryStore(dimension=2, client=client)
        await store.initialize()

        with pytest.raises(StorageError):
            await store.insert("u1", "text", "finance", "note", [1.0, 0.0])
