"""Memory store adapters (SQLite with exact numpy cosine, ChromaDB)."""

from lifeos_memory.providers.memory_store.chromadb_memory_store import ChromaDBMemoryStore
from lifeos_memory.providers.memory_store.sqlite_memory_store import SQLiteMemoryStore

__all__ = ["ChromaDBMemoryStore", "SQLiteMemoryStore"]
