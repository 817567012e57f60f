"""ChromaDB memory store adapter.

Wraps ``chromadb.PersistentClient`` to implement
:class:`IMemoryStoreProvider`.  The collection uses cosine distance, rows
are filtered by owner and category with a ``where`` clause, and similarity
is reported as ``1 - distance`` before the shared ranking rule is applied.
Fully local and Python-native; no external service required.
"""

from __future__ import annotations

import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any

# Disable ChromaDB telemetry before importing chromadb.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from lifeos_memory.interfaces.memory_store_provider import IMemoryStoreProvider
from lifeos_memory.models.memory import (
    MemoryCategory,
    MemoryChunk,
    MemoryMatch,
    MemoryStats,
    NewMemory,
    SourceType,
)
from lifeos_memory.providers.memory_store.validation import (
    validate_category,
    validate_owner,
    validate_embedding,
    validate_row,
)
from lifeos_memory.utils.errors import ConfigurationError, StorageError
from lifeos_memory.utils.similarity import rank_matches

logger = structlog.get_logger(logger_name=__name__)

# Extra candidates fetched beyond top_k so created_at tie-breaks see every tie.
_OVERFETCH_FACTOR = 4


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    Every vector is computed by the injected embedding provider and passed
    in explicitly, so ChromaDB's built-in embedding is never invoked.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Memory embeddings are pre-computed; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBMemoryStore(IMemoryStoreProvider):
    """Memory store backed by a persistent ChromaDB collection.

    Parameters
    ----------
    dimension:
        Length every stored embedding must have.
    persist_directory:
        On-disk location of the ChromaDB database.
    collection_name:
        Collection holding every owner's chunks.
    client:
        Optional pre-built ChromaDB client (tests pass an ``EphemeralClient``).
    """

    def __init__(
        self,
        dimension: int,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "lifeos_memories",
        client: Any | None = None,
    ) -> None:
        self._dimension = dimension
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = client
        self._collection: Any | None = None

    async def initialize(self) -> None:
        """Open (or create) the collection and check stored vector dimensions."""
        try:
            if self._client is None:
                self._client = chromadb.PersistentClient(
                    path=self._persist_directory,
                    settings=chromadb.config.Settings(anonymized_telemetry=False),
                )
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except Exception as exc:
            raise StorageError(
                message=f"Failed to open ChromaDB collection: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        self._validate_stored_dimension()
        logger.info(
            "chromadb_memory_store_initialized",
            collection=self._collection_name,
            dimension=self._dimension,
        )

    def _validate_stored_dimension(self) -> None:
        """Fail fast when the collection already holds vectors of another size."""
        collection = self._require_collection()
        if collection.count() == 0:
            return
        sample = collection.peek(limit=1)
        embeddings = sample.get("embeddings") if sample else None
        if embeddings is None or len(embeddings) == 0:
            return
        stored_dim = len(embeddings[0])
        if stored_dim != self._dimension:
            raise ConfigurationError(
                message=(
                    f"Embedding dimension mismatch: collection holds {stored_dim}-dim "
                    f"vectors but the store is configured for {self._dimension}"
                ),
                provider_name=self.get_provider_name(),
            )

    def _require_collection(self) -> Any:
        if self._collection is None:
            raise StorageError(
                message="ChromaDB memory store used before initialize()",
                provider_name=self.get_provider_name(),
            )
        return self._collection

    def get_dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(
        self,
        owner_id: str,
        content: str,
        category: MemoryCategory | str,
        source_type: SourceType | str,
        embedding: list[float],
        idempotency_key: str | None = None,
    ) -> str:
        row = NewMemory.model_construct(
            owner_id=owner_id,
            content=content,
            category=category,
            source_type=source_type,
            embedding=embedding,
            idempotency_key=idempotency_key,
        )
        ids = await self.insert_batch([row])
        return ids[0]

    async def insert_batch(self, rows: list[NewMemory]) -> list[str]:
        """Add *rows* with one ``collection.add`` call.

        Rows whose idempotency key already exists (in the collection or
        earlier in the same batch) resolve to the existing id.
        """
        if not rows:
            return []

        validated = [
            validate_row(
                row.owner_id,
                row.content,
                row.category,
                row.source_type,
                row.embedding,
                self._dimension,
                self.get_provider_name(),
            )
            for row in rows
        ]
        collection = self._require_collection()

        try:
            keys = [row.idempotency_key for row in rows if row.idempotency_key]
            existing: dict[str, str] = {}
            if keys:
                found = collection.get(
                    where={"idempotency_key": {"$in": keys}},
                    include=["metadatas"],
                )
                for chunk_id, meta in zip(found["ids"], found["metadatas"] or []):
                    existing[meta["idempotency_key"]] = chunk_id

            ids: list[str] = []
            new_ids: list[str] = []
            documents: list[str] = []
            embeddings: list[list[float]] = []
            metadatas: list[dict[str, Any]] = []
            base_seq = time.time_ns()
            for offset, (row, (category, source_type)) in enumerate(zip(rows, validated)):
                key = row.idempotency_key
                if key and key in existing:
                    ids.append(existing[key])
                    continue
                chunk_id = uuid.uuid4().hex
                meta: dict[str, Any] = {
                    "owner_id": row.owner_id,
                    "category": category.value,
                    "source_type": source_type.value,
                    "created_at": datetime.now(timezone.utc).isoformat(timespec="microseconds"),
                    "seq": base_seq + offset,
                }
                if key:
                    meta["idempotency_key"] = key
                    existing[key] = chunk_id
                ids.append(chunk_id)
                new_ids.append(chunk_id)
                documents.append(row.content)
                embeddings.append(list(row.embedding))
                metadatas.append(meta)

            if new_ids:
                collection.add(
                    ids=new_ids,
                    embeddings=embeddings,
                    documents=documents,
                    metadatas=metadatas,
                )
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_memories_inserted",
            count=len(new_ids),
            deduplicated=len(ids) - len(new_ids),
        )
        return ids

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def query_similar(
        self,
        owner_id: str,
        category: MemoryCategory | str,
        query_embedding: list[float],
        top_k: int = 5,
        threshold: float = 0.5,
    ) -> list[MemoryMatch]:
        validate_owner(owner_id, self.get_provider_name())
        coerced = validate_category(category, self.get_provider_name())
        validate_embedding(query_embedding, self._dimension, self.get_provider_name())
        if top_k <= 0:
            return []
        collection = self._require_collection()

        try:
            total = collection.count()
            if total == 0:
                return []
            results = collection.query(
                query_embeddings=[query_embedding],
                n_results=min(total, top_k * _OVERFETCH_FACTOR),
                where={"$and": [{"owner_id": owner_id}, {"category": coerced.value}]},
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []

        candidates = []
        for chunk_id, document, meta, distance in zip(
            results["ids"][0],
            results["documents"][0],
            results["metadatas"][0],
            results["distances"][0],
        ):
            similarity = max(-1.0, min(1.0, 1.0 - float(distance)))
            candidates.append(
                (
                    MemoryMatch(
                        id=chunk_id,
                        content=document or "",
                        category=MemoryCategory(meta["category"]),
                        source_type=SourceType(meta["source_type"]),
                        created_at=datetime.fromisoformat(meta["created_at"]),
                        similarity=similarity,
                    ),
                    int(meta.get("seq", 0)),
                )
            )

        matches = rank_matches(candidates, top_k=top_k, threshold=threshold)
        logger.debug(
            "chromadb_memory_query",
            owner_id=owner_id,
            category=coerced.value,
            raw_results=len(candidates),
            results=len(matches),
        )
        return matches

    async def list_memories(
        self,
        owner_id: str,
        category: MemoryCategory | str | None = None,
        limit: int = 100,
    ) -> list[MemoryChunk]:
        validate_owner(owner_id, self.get_provider_name())
        where: dict[str, Any] = {"owner_id": owner_id}
        if category is not None:
            coerced = validate_category(category, self.get_provider_name())
            where = {"$and": [{"owner_id": owner_id}, {"category": coerced.value}]}
        rows = self._get_all(where, include=["documents", "metadatas"])

        chunks = [
            (
                MemoryChunk(
                    id=chunk_id,
                    owner_id=meta["owner_id"],
                    content=document or "",
                    category=MemoryCategory(meta["category"]),
                    source_type=SourceType(meta["source_type"]),
                    created_at=datetime.fromisoformat(meta["created_at"]),
                    idempotency_key=meta.get("idempotency_key"),
                ),
                int(meta.get("seq", 0)),
            )
            for chunk_id, document, meta in rows
        ]
        chunks.sort(key=lambda pair: (pair[0].created_at, pair[1]), reverse=True)
        return [chunk for chunk, _ in chunks[: max(0, limit)]]

    async def get_stats(self, owner_id: str) -> MemoryStats:
        validate_owner(owner_id, self.get_provider_name())
        rows = self._get_all({"owner_id": owner_id}, include=["metadatas"])
        by_category: dict[str, int] = {}
        by_source: dict[str, int] = {}
        for _, _, meta in rows:
            by_category[meta["category"]] = by_category.get(meta["category"], 0) + 1
            by_source[meta["source_type"]] = by_source.get(meta["source_type"], 0) + 1
        return MemoryStats(
            owner_id=owner_id,
            total_chunks=len(rows),
            chunks_by_category=by_category,
            chunks_by_source_type=by_source,
        )

    def _get_all(
        self,
        where: dict[str, Any],
        include: list[str],
    ) -> list[tuple[str, str | None, dict[str, Any]]]:
        """Page through ``collection.get`` to stay under SQLite's bind-parameter limit."""
        page_size = 5000
        collection = self._require_collection()
        out: list[tuple[str, str | None, dict[str, Any]]] = []
        offset = 0
        try:
            while True:
                page = collection.get(where=where, include=include, limit=page_size, offset=offset)
                ids = page["ids"] or []
                if not ids:
                    break
                documents = page.get("documents") or [None] * len(ids)
                metadatas = page.get("metadatas") or [{}] * len(ids)
                out.extend(zip(ids, documents, metadatas))
                if len(ids) < page_size:
                    break
                offset += page_size
        except Exception as exc:
            raise StorageError(
                message=f"ChromaDB read failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return out

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        return self._collection is not None
