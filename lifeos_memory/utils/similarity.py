"""Cosine similarity and the shared match-ranking rule.

Both memory-store backends and the cross-category retrieval merge order
matches the same way:

    similarity desc → created_at desc → insertion sequence desc

so a query against SQLite and the same query against ChromaDB return the
same rows in the same order.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from lifeos_memory.models.memory import MemoryMatch


def cosine_similarities(query: list[float], matrix: np.ndarray) -> np.ndarray:
    """Return the cosine similarity of *query* against every row of *matrix*.

    Formula: cos(θ) = (a · b) / (||a|| * ||b||).  Zero vectors have no
    direction, so their similarity is 0.  Results are clipped to [-1, 1] to
    absorb floating-point overshoot on (anti-)parallel vectors.
    """
    if matrix.size == 0:
        return np.zeros(0, dtype=np.float64)

    q = np.asarray(query, dtype=np.float64)
    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(matrix, axis=1)
    if q_norm == 0:
        return np.zeros(matrix.shape[0], dtype=np.float64)

    denominators = row_norms * q_norm
    dots = matrix @ q
    sims = np.divide(dots, denominators, out=np.zeros_like(dots), where=denominators != 0)
    return np.clip(sims, -1.0, 1.0)


def ranking_key(match: MemoryMatch, seq: int = 0) -> tuple[float, float, int]:
    """Sort key implementing similarity desc, created_at desc, sequence desc."""
    return (-match.similarity, -match.created_at.timestamp(), -seq)


def rank_matches(
    candidates: Iterable[tuple[MemoryMatch, int]],
    top_k: int,
    threshold: float,
) -> list[MemoryMatch]:
    """Filter by *threshold*, order by :func:`ranking_key`, truncate to *top_k*.

    Parameters
    ----------
    candidates:
        ``(match, seq)`` pairs where ``seq`` increases with insertion order.
    top_k:
        Maximum number of matches to return; ``<= 0`` yields ``[]``.
    threshold:
        Minimum similarity (inclusive).  Any value above 1 yields ``[]``.
    """
    if top_k <= 0:
        return []
    kept = [(match, seq) for match, seq in candidates if match.similarity >= threshold]
    kept.sort(key=lambda pair: ranking_key(pair[0], pair[1]))
    return [match for match, _ in kept[:top_k]]
