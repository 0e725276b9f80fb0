"""Cosine similarity and the ranking contract shared by every index."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from src.grounding.chunk import Chunk, ScoredChunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 when the lengths differ or either vector has zero magnitude.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def rank_hits(
    candidates: Iterable[tuple[Chunk, float]],
    top_k: int,
    threshold: float,
) -> list[ScoredChunk]:
    """Filter, order and truncate scored chunks.

    Keeps ``score >= threshold``, sorts by descending score with ties going
    to the lower chunk id (then the earlier position), and assigns 1-based
    ranks to the first ``top_k``.
    """
    if top_k < 1:
        return []
    kept = [
        (position, chunk, score)
        for position, (chunk, score) in enumerate(candidates)
        if score >= threshold
    ]
    kept.sort(key=lambda item: (-item[2], item[1].id, item[0]))
    return [
        ScoredChunk(chunk=chunk, score=score, rank=rank)
        for rank, (_, chunk, score) in enumerate(kept[:top_k], start=1)
    ]
