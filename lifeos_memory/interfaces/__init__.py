"""Public interface definitions for every external collaborator.

Remote services (LLM, embeddings) and the memory store are reached only
through the abstract base classes defined here.  Concrete adapters live in
``lifeos_memory/providers/`` and are wired in ``lifeos_memory/main.py``;
tests inject deterministic fakes instead.

CONCRETE PROVIDER MAP:
    Interface              →  Concrete implementations
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider           →  AnthropicLLMProvider, OpenAILLMProvider,
                              OllamaLLMProvider
    IEmbeddingProvider     →  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IMemoryStoreProvider   →  SQLiteMemoryStore, ChromaDBMemoryStore
    ICategorizer           →  LLMCategorizer
    ITagSuggester          →  LLMTagSuggester
"""

from lifeos_memory.interfaces.categorizer import ICategorizer
from lifeos_memory.interfaces.embedding_provider import IEmbeddingProvider
from lifeos_memory.interfaces.llm_provider import ILLMProvider
from lifeos_memory.interfaces.memory_store_provider import IMemoryStoreProvider
from lifeos_memory.interfaces.tag_suggester import ITagSuggester

__all__ = [
    "ICategorizer",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IMemoryStoreProvider",
    "ITagSuggester",
]
