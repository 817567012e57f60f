"""End-to-end tests: queue -> categorize -> chunk -> embed -> store -> recall.

Uses the real LLMCategorizer (with a scripted LLM), the real chunker,
queue and retrieval service, against both store backends.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path

import chromadb
import pytest

from conftest import EMBEDDING_DIM, MockEmbeddingProvider, hash_to_vector
from lifeos_memory.models.document import SourceDocument
from lifeos_memory.models.ingestion import JobStatus
from lifeos_memory.models.memory import MemoryCategory, SourceType
from lifeos_memory.pipeline.ingestion_queue import IngestionQueue
from lifeos_memory.providers.memory_store.chromadb_memory_store import ChromaDBMemoryStore
from lifeos_memory.providers.memory_store.sqlite_memory_store import SQLiteMemoryStore
from lifeos_memory.services.ingestion.categorizer import LLMCategorizer
from lifeos_memory.services.ingestion.ingestion_service import MemoryIngestionService
from lifeos_memory.services.retrieval_service import RetrievalService

_DOCUMENTS = {
    "Paid rent $1200 on the 1st. Renewed car insurance for $800/year.": ("finance", ["rent", "insurance"]),
    "Sprint review moved to Thursday. Need to prepare the demo.": ("work", ["sprint review", "demo"]),
    "Ran 5k this morning. Knee felt fine afterwards.": ("health", []),
}


def _scripted_llm(mock_llm_provider):
    async def _complete(system_prompt, user_prompt, temperature=0.3, max_tokens=1000, json_mode=False):
        category, items = _DOCUMENTS.get(user_prompt, ("general", []))
        return json.dumps(
            {"summary": f"Summary: {user_prompt[:30]}", "entities_or_insights": items, "category": category}
        )

    mock_llm_provider.complete.side_effect = _complete
    return mock_llm_provider


@pytest.fixture(params=["sqlite", "chromadb"])
async def store(request, tmp_path: Path):
    if request.param == "sqlite":
        memory_store = SQLiteMemoryStore(dimension=EMBEDDING_DIM, db_path=tmp_path / "e2e.db")
    else:
        memory_store = ChromaDBMemoryStore(
            dimension=EMBEDDING_DIM,
            collection_name=f"e2e_{uuid.uuid4().hex}",
            client=chromadb.EphemeralClient(),
        )
    await memory_store.initialize()
    return memory_store


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_ingest_then_recall(self, store, mock_llm_provider) -> None:
        embedding = MockEmbeddingProvider()
        service = MemoryIngestionService(LLMCategorizer(_scripted_llm(mock_llm_provider)), embedding, store)
        queue = IngestionQueue(service, workers=2, retry_base_delay=0.0)
        queue.start()

        jobs = [
            queue.enqueue(SourceDocument(owner_id="u1", source_type=SourceType.NOTE, text=text, document_id=f"n{i}"))
            for i, text in enumerate(_DOCUMENTS)
        ]
        finished = [await queue.wait_for(job.job_id, timeout=5) for job in jobs]
        await queue.stop()

        assert all(job.status is JobStatus.SUCCEEDED for job in finished)
        stats = await store.get_stats("u1")
        # finance and work: summary + entity + content; health: summary + content.
        assert stats.chunks_by_category == {"finance": 3, "work": 3, "health": 2}

        retrieval = RetrievalService(embedding, store)
        rent_text = next(iter(_DOCUMENTS))
        finance = await retrieval.retrieve("u1", MemoryCategory.FINANCE, rent_text)
        assert finance[0].content == rent_text
        assert all(m.category is MemoryCategory.FINANCE for m in finance)

        work_only = await retrieval.retrieve("u1", MemoryCategory.WORK, rent_text, threshold=0.99)
        assert work_only == []

        history_query = "what did i say about rent?"
        history_retrieval = RetrievalService(
            MockEmbeddingProvider(overrides={history_query: hash_to_vector(rent_text)}), store
        )
        context = await history_retrieval.recall_context("u1", MemoryCategory.WORK, history_query)
        assert context.startswith("Relevant memories from your all categories history:")
        assert rent_text in context

    @pytest.mark.asyncio
    async def test_reingesting_same_document_is_idempotent(self, store, mock_llm_provider) -> None:
        embedding = MockEmbeddingProvider()
        service = MemoryIngestionService(LLMCategorizer(_scripted_llm(mock_llm_provider)), embedding, store)
        document = SourceDocument(
            owner_id="u1",
            source_type=SourceType.RECORDING,
            document_id="rec-1",
            text="Sprint review moved to Thursday. Need to prepare the demo.",
        )

        first = await service.ingest(document)
        second = await service.ingest(document)

        assert first.chunk_ids == second.chunk_ids
        assert (await store.get_stats("u1")).total_chunks == 3

    @pytest.mark.asyncio
    async def test_history_recall_with_no_memories(self, store) -> None:
        retrieval = RetrievalService(MockEmbeddingProvider(), store)
        context = await retrieval.recall_context("nobody", MemoryCategory.GENERAL, "remember anything?")
        assert context == "No relevant memories found in the database."
