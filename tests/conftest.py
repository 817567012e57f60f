"""Shared pytest fixtures for the LifeOS memory engine test suite."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from lifeos_memory.interfaces.categorizer import ICategorizer
from lifeos_memory.interfaces.embedding_provider import IEmbeddingProvider
from lifeos_memory.interfaces.llm_provider import ILLMProvider
from lifeos_memory.models.classification import Classification
from lifeos_memory.models.memory import MemoryCategory, SourceType
from lifeos_memory.providers.memory_store.sqlite_memory_store import SQLiteMemoryStore

EMBEDDING_DIM = 16


def hash_to_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic fixed-length unit vector by hashing *text*.

    Same text always produces the same vector; different texts produce
    (almost surely) different directions.
    """
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim:
        raw += hashlib.sha256(raw).digest()
    values = [(b - 127.5) / 127.5 for b in raw[:dim]]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests.

    ``fail_on`` makes :meth:`embed_single` raise for texts containing any of
    the given substrings.  ``overrides`` maps exact texts to fixed vectors.
    """

    def __init__(
        self,
        dimension: int = EMBEDDING_DIM,
        fail_on: tuple[str, ...] = (),
        overrides: dict[str, list[float]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._dimension = dimension
        self._fail_on = fail_on
        self._overrides = overrides or {}
        self._error = error
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if any(marker in text for marker in self._fail_on):
            from lifeos_memory.utils.errors import EmbeddingError

            raise self._error or EmbeddingError(message="mock embedding failure", provider_name="mock")
        if text in self._overrides:
            return list(self._overrides[text])
        return hash_to_vector(text, self._dimension)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class StubCategorizer(ICategorizer):
    """Categorizer returning a fixed classification and recording calls."""

    def __init__(self, classification: Classification | None = None) -> None:
        self.classification = classification or Classification(
            summary="A short summary.",
            entities_or_insights=[],
            category=MemoryCategory.GENERAL,
        )
        self.calls: list[tuple[str, SourceType]] = []

    async def categorize(
        self,
        content: str,
        source_type: SourceType = SourceType.NOTE,
    ) -> Classification:
        self.calls.append((content, source_type))
        return self.classification


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Return a minimal configuration dict as produced by ``load_config``."""
    return {
        "app": {"name": "lifeos-memory", "version": "0.1.0"},
        "retrieval": {
            "history": {"per_category_k": 3},
            "history_markers": ["remember", "previous"],
        },
    }


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider whose ``complete`` returns a configurable string.

    Override with ``mock_llm_provider.complete.return_value = "..."`` or
    ``mock_llm_provider.complete.side_effect = ...`` in individual tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value='{"result": "ok"}')
    return mock


@pytest.fixture
def embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def stub_categorizer() -> StubCategorizer:
    return StubCategorizer()


@pytest.fixture
async def sqlite_store(tmp_path: Path) -> SQLiteMemoryStore:
    """An initialised SQLite memory store in a temporary directory."""
    store = SQLiteMemoryStore(dimension=EMBEDDING_DIM, db_path=tmp_path / "memories.db")
    await store.initialize()
    return store
