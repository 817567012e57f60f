"""SQLite-backed memory store.

Persists memory chunks to a local SQLite database (``data/memories.db`` by
default) using ``aiosqlite`` for async I/O.  Embeddings are stored as
float64 BLOBs and similarity is computed exactly with numpy over the
owner's rows in the requested category, so results are deterministic and
need no index build.

The ``seq`` AUTOINCREMENT column records insertion order and is the final
tie-break after similarity and ``created_at``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import numpy as np
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
from lifeos_memory.utils.errors import StorageError
from lifeos_memory.utils.similarity import cosine_similarities, rank_matches

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/memories.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS memories (
    seq              INTEGER PRIMARY KEY AUTOINCREMENT,
    id               TEXT    NOT NULL UNIQUE,
    owner_id         TEXT    NOT NULL,
    content          TEXT    NOT NULL,
    category         TEXT    NOT NULL,
    source_type      TEXT    NOT NULL,
    embedding        BLOB    NOT NULL,
    created_at       TEXT    NOT NULL,
    idempotency_key  TEXT    UNIQUE
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_memories_owner_category ON memories(owner_id, category);",
    "CREATE INDEX IF NOT EXISTS idx_memories_owner_created ON memories(owner_id, created_at);",
]

_INSERT_SQL = """\
INSERT INTO memories (id, owner_id, content, category, source_type, embedding, created_at, idempotency_key)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(idempotency_key) DO NOTHING;
"""

_SELECT_BY_KEY_SQL = "SELECT id FROM memories WHERE idempotency_key = ?;"

_SELECT_CANDIDATES_SQL = """\
SELECT seq, id, content, category, source_type, embedding, created_at
FROM memories
WHERE owner_id = ? AND category = ?;
"""


def _encode_embedding(embedding: list[float]) -> bytes:
    return np.asarray(embedding, dtype=np.float64).tobytes()


def _decode_embedding(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype=np.float64)


class SQLiteMemoryStore(IMemoryStoreProvider):
    """SQLite-backed memory persistence with exact cosine search.

    Parameters
    ----------
    dimension:
        Length every stored embedding must have.  Must match the embedding
        provider's :meth:`get_dimension`; ``main.py`` checks this at startup.
    db_path:
        Location of the SQLite database file.  Parent directories are
        created on :meth:`initialize`.
    """

    def __init__(self, dimension: int, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._dimension = dimension
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the memories table and indices if they don't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise StorageError(
                message=f"Failed to initialize memory database: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("memory_db_initialized", path=str(self._db_path), dimension=self._dimension)

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
        """Insert all *rows* in a single transaction.

        Validation runs for every row before the database is touched, so a
        bad row rejects the whole batch without a partial write.
        """
        if not rows:
            return []

        prepared: list[tuple[str, str, str, str, str, bytes, str, str | None]] = []
        for row in rows:
            category, source_type = validate_row(
                row.owner_id,
                row.content,
                row.category,
                row.source_type,
                row.embedding,
                self._dimension,
                self.get_provider_name(),
            )
            prepared.append(
                (
                    uuid.uuid4().hex,
                    row.owner_id,
                    row.content,
                    category.value,
                    source_type.value,
                    _encode_embedding(row.embedding),
                    datetime.now(timezone.utc).isoformat(timespec="microseconds"),
                    row.idempotency_key,
                )
            )

        ids: list[str] = []
        deduplicated = 0
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for params in prepared:
                    cursor = await db.execute(_INSERT_SQL, params)
                    key = params[-1]
                    if cursor.rowcount == 0 and key is not None:
                        existing = await db.execute(_SELECT_BY_KEY_SQL, (key,))
                        found = await existing.fetchone()
                        ids.append(found[0])
                        deduplicated += 1
                    else:
                        ids.append(params[0])
                await db.commit()
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Memory insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "memories_inserted",
            count=len(ids),
            deduplicated=deduplicated,
            owner_id=prepared[0][1],
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

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_CANDIDATES_SQL, (owner_id, coerced.value))
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Memory query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not rows:
            return []

        matrix = np.vstack([_decode_embedding(r["embedding"]) for r in rows])
        sims = cosine_similarities(query_embedding, matrix)

        candidates = [
            (
                MemoryMatch(
                    id=r["id"],
                    content=r["content"],
                    category=MemoryCategory(r["category"]),
                    source_type=SourceType(r["source_type"]),
                    created_at=datetime.fromisoformat(r["created_at"]),
                    similarity=float(sim),
                ),
                r["seq"],
            )
            for r, sim in zip(rows, sims)
        ]
        matches = rank_matches(candidates, top_k=top_k, threshold=threshold)
        logger.debug(
            "memory_query",
            owner_id=owner_id,
            category=coerced.value,
            candidates=len(rows),
            results=len(matches),
            top_score=matches[0].similarity if matches else 0.0,
        )
        return matches

    async def list_memories(
        self,
        owner_id: str,
        category: MemoryCategory | str | None = None,
        limit: int = 100,
    ) -> list[MemoryChunk]:
        """Return the owner's chunks, newest first (embeddings omitted)."""
        validate_owner(owner_id, self.get_provider_name())
        sql = (
            "SELECT seq, id, owner_id, content, category, source_type, created_at, idempotency_key "
            "FROM memories WHERE owner_id = ?"
        )
        params: list = [owner_id]
        if category is not None:
            sql += " AND category = ?"
            params.append(validate_category(category, self.get_provider_name()).value)
        sql += " ORDER BY created_at DESC, seq DESC LIMIT ?"
        params.append(max(0, limit))

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Memory listing failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return [
            MemoryChunk(
                id=r["id"],
                owner_id=r["owner_id"],
                content=r["content"],
                category=MemoryCategory(r["category"]),
                source_type=SourceType(r["source_type"]),
                created_at=datetime.fromisoformat(r["created_at"]),
                idempotency_key=r["idempotency_key"],
            )
            for r in rows
        ]

    async def get_stats(self, owner_id: str) -> MemoryStats:
        validate_owner(owner_id, self.get_provider_name())
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "SELECT category, COUNT(*) FROM memories WHERE owner_id = ? GROUP BY category",
                    (owner_id,),
                )
                by_category = {row[0]: row[1] for row in await cursor.fetchall()}
                cursor = await db.execute(
                    "SELECT source_type, COUNT(*) FROM memories WHERE owner_id = ? GROUP BY source_type",
                    (owner_id,),
                )
                by_source = {row[0]: row[1] for row in await cursor.fetchall()}
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Memory stats failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return MemoryStats(
            owner_id=owner_id,
            total_chunks=sum(by_category.values()),
            chunks_by_category=by_category,
            chunks_by_source_type=by_source,
        )

    def get_provider_name(self) -> str:
        return "sqlite"

    def is_available(self) -> bool:
        return self._db_path.parent.exists()
