"""Unit tests for cosine similarity and the shared ranking rule."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from lifeos_memory.models.memory import MemoryCategory, MemoryMatch, SourceType
from lifeos_memory.utils.similarity import cosine_similarities, rank_matches, ranking_key

_T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _match(match_id: str, similarity: float, created_at: datetime = _T0) -> MemoryMatch:
    return MemoryMatch(
        id=match_id,
        content=match_id,
        category=MemoryCategory.GENERAL,
        source_type=SourceType.NOTE,
        created_at=created_at,
        similarity=similarity,
    )


class TestCosineSimilarities:
    def test_basic_values(self) -> None:
        matrix = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]])
        sims = cosine_similarities([1.0, 0.0], matrix)
        assert sims.tolist() == pytest.approx([1.0, 0.0, -1.0])

    def test_scale_invariant(self) -> None:
        matrix = np.array([[3.0, 4.0]])
        assert cosine_similarities([6.0, 8.0], matrix)[0] == pytest.approx(1.0)

    def test_zero_vectors_give_zero(self) -> None:
        matrix = np.array([[0.0, 0.0], [1.0, 1.0]])
        assert cosine_similarities([1.0, 0.0], matrix)[0] == 0.0
        assert cosine_similarities([0.0, 0.0], matrix).tolist() == [0.0, 0.0]

    def test_empty_matrix(self) -> None:
        assert cosine_similarities([1.0], np.zeros((0, 1))).size == 0

    def test_results_clipped(self) -> None:
        matrix = np.array([[1e-3, 1e-3]])
        sims = cosine_similarities([1e-3, 1e-3], matrix)
        assert -1.0 <= sims[0] <= 1.0


class TestRankMatches:
    def test_orders_by_similarity(self) -> None:
        ranked = rank_matches([(_match("a", 0.2), 1), (_match("b", 0.9), 2), (_match("c", 0.5), 3)], 10, 0.0)
        assert [m.id for m in ranked] == ["b", "c", "a"]

    def test_ties_broken_by_newest_created_at(self) -> None:
        older = _match("older", 0.7, _T0)
        newer = _match("newer", 0.7, _T0 + timedelta(seconds=1))
        assert [m.id for m in rank_matches([(older, 1), (newer, 2)], 10, 0.0)] == ["newer", "older"]

    def test_full_ties_broken_by_insertion_order(self) -> None:
        first = _match("first", 0.7)
        second = _match("second", 0.7)
        assert [m.id for m in rank_matches([(first, 1), (second, 2)], 10, 0.0)] == ["second", "first"]

    def test_threshold_inclusive(self) -> None:
        ranked = rank_matches([(_match("a", 0.5), 1), (_match("b", 0.49), 2)], 10, 0.5)
        assert [m.id for m in ranked] == ["a"]

    def test_threshold_above_one_returns_nothing(self) -> None:
        assert rank_matches([(_match("a", 1.0), 1)], 10, 1.01) == []

    def test_top_k_truncates(self) -> None:
        candidates = [(_match(str(i), i / 10), i) for i in range(10)]
        ranked = rank_matches(candidates, 3, -1.0)
        assert [m.id for m in ranked] == ["9", "8", "7"]

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_non_positive_top_k(self, top_k: int) -> None:
        assert rank_matches([(_match("a", 0.9), 1)], top_k, 0.0) == []

    def test_ranking_key_shape(self) -> None:
        key = ranking_key(_match("a", 0.25), seq=7)
        assert key == (-0.25, -_T0.timestamp(), -7)
