"""Pluggable index strategies behind a single search contract.

Every index is rebuilt from the store's chunk snapshot and answers
``query(vector, top_k, threshold)`` with ranked ``ScoredChunk``s ordered by
descending score, ties broken by ascending chunk id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from typing import Callable, Sequence

import numpy as np

from src.grounding.chunk import Chunk, ScoredChunk
from src.grounding.config import GroundingConfig, IndexBackend
from src.retrieval.similarity import rank_hits


class VectorIndex(ABC):
    """Base class for all index strategies."""

    @abstractmethod
    def rebuild(self, chunks: Sequence[Chunk]) -> None:
        """Replace the indexed contents with ``chunks``."""
        ...

    @abstractmethod
    def query(
        self, vector: Sequence[float], top_k: int, threshold: float
    ) -> list[ScoredChunk]:
        """Return up to ``top_k`` chunks scoring at least ``threshold``."""
        ...

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of chunks that can be returned by ``query``."""
        ...


Candidates = list[tuple[Chunk, float]]


def fetch_past_ties(
    fetch: Callable[[int], Candidates], top_k: int, size: int
) -> Candidates:
    """Fetch best-first candidates until none tied with the ``top_k``-th is left out.

    ``fetch(limit)`` returns at most ``limit`` candidates ordered by descending
    score. The first round asks for one more than ``top_k``. The limit then
    doubles until the last candidate scores strictly below the ``top_k``-th
    one, fewer than ``limit`` come back, or ``size`` is reached.
    """
    limit = min(top_k + 1, size)
    while True:
        candidates = fetch(limit)
        if len(candidates) < limit or limit >= size:
            return candidates
        if candidates[-1][1] < candidates[top_k - 1][1]:
            return candidates
        limit = min(limit * 2, size)


def dominant_dimension(chunks: Sequence[Chunk]) -> int:
    """Most common embedding length among embedded chunks (0 if none)."""
    counts = Counter(c.dimensions for c in chunks if c.is_embedded)
    if not counts:
        return 0
    return max(counts.items(), key=lambda item: (item[1], -item[0]))[0]


class BruteForceIndex(VectorIndex):
    """Exact cosine scan over every chunk.

    Chunks are grouped by embedding length into one matrix per length, so a
    store with mixed dimensions still answers. Chunks whose length differs
    from the query's (including unembedded ones) score 0.
    """

    def __init__(self) -> None:
        self._chunks: tuple[Chunk, ...] = ()
        self._groups: dict[int, tuple[np.ndarray, np.ndarray, np.ndarray]] = {}

    @property
    def size(self) -> int:
        return len(self._chunks)

    def rebuild(self, chunks: Sequence[Chunk]) -> None:
        self._chunks = tuple(chunks)
        positions_by_dim: dict[int, list[int]] = {}
        for position, chunk in enumerate(self._chunks):
            if chunk.is_embedded:
                positions_by_dim.setdefault(chunk.dimensions, []).append(position)

        groups: dict[int, tuple[np.ndarray, np.ndarray, np.ndarray]] = {}
        for dims, positions in positions_by_dim.items():
            matrix = np.asarray(
                [self._chunks[p].embedding for p in positions], dtype=np.float64
            )
            groups[dims] = (
                np.asarray(positions, dtype=np.intp),
                matrix,
                np.linalg.norm(matrix, axis=1),
            )
        self._groups = groups

    def query(
        self, vector: Sequence[float], top_k: int, threshold: float
    ) -> list[ScoredChunk]:
        query = np.asarray(vector, dtype=np.float64)
        query_norm = float(np.linalg.norm(query)) if query.size else 0.0
        scores = np.zeros(len(self._chunks), dtype=np.float64)

        group = self._groups.get(query.size)
        if group is not None and query_norm > 0.0:
            positions, matrix, norms = group
            denominators = norms * query_norm
            with np.errstate(divide="ignore", invalid="ignore"):
                group_scores = np.where(
                    denominators > 0.0, (matrix @ query) / denominators, 0.0
                )
            scores[positions] = group_scores

        return rank_hits(zip(self._chunks, scores.tolist()), top_k, threshold)


def create_index(config: GroundingConfig) -> VectorIndex:
    """Factory for the configured index strategy."""
    if config.index_backend == IndexBackend.CHROMA:
        from src.retrieval.chroma_index import ChromaIndex

        return ChromaIndex(config)
    if config.index_backend == IndexBackend.QDRANT:
        from src.retrieval.qdrant_index import QdrantIndex

        return QdrantIndex(config)
    return BruteForceIndex()
