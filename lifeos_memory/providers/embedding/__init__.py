"""Embedding provider adapters."""

from lifeos_memory.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from lifeos_memory.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["NomicEmbeddingProvider", "OpenAIEmbeddingProvider"]
