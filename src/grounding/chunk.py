"""Chunk models flowing from chunking through embedding to search."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence

import numpy as np


def as_embedding(vector: Sequence[float]) -> tuple[float, ...]:
    """Coerce a vector to float32 precision, the precision the store file keeps."""
    return tuple(np.asarray(vector, dtype=np.float32).tolist())


@dataclass(frozen=True, slots=True)
class Chunk:
    """A window of normalized source text and its embedding.

    An empty ``embedding`` means the chunk has not been embedded (yet).
    """

    id: int
    content: str
    embedding: tuple[float, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError(f"Chunk id must be non-negative, got {self.id}")
        if not self.content.strip():
            raise ValueError("Chunk content cannot be empty")

    @property
    def is_embedded(self) -> bool:
        return len(self.embedding) > 0

    @property
    def dimensions(self) -> int:
        return len(self.embedding)

    def with_embedding(self, vector: Sequence[float]) -> Chunk:
        """Return a copy carrying ``vector`` at float32 precision."""
        return replace(self, embedding=as_embedding(vector))


@dataclass(frozen=True, slots=True)
class ScoredChunk:
    """A chunk returned from search with its similarity score and rank."""

    chunk: Chunk
    score: float
    rank: int = 0

    @property
    def content(self) -> str:
        return self.chunk.content
