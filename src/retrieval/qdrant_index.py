"""Index strategy over a Qdrant collection.

Supports in-memory mode (tests, single process) and remote Qdrant
instances. Point ids are store positions, so hits map straight back to
chunks without a payload round-trip.
"""

from __future__ import annotations

import logging
from typing import Sequence

from src.grounding.chunk import Chunk, ScoredChunk
from src.grounding.config import GroundingConfig
from src.retrieval.backends import Candidates, VectorIndex, dominant_dimension, fetch_past_ties
from src.retrieval.similarity import rank_hits

logger = logging.getLogger(__name__)


class QdrantIndex(VectorIndex):
    """Qdrant-backed index with cosine distance.

    Args:
        config: Grounding configuration. ``qdrant_location`` selects
            ``:memory:`` or a server URL; ``chroma_collection`` names the
            collection.
        timeout: Request timeout in seconds for Qdrant API calls.
    """

    def __init__(self, config: GroundingConfig, timeout: float = 30.0) -> None:
        try:
            from qdrant_client import QdrantClient
        except ImportError as exc:
            raise ImportError(
                "qdrant-client is required for QdrantIndex. "
                "Install it with: pip install 'grounding-retrieval[qdrant]'"
            ) from exc

        self._config = config
        self._collection_name = config.chroma_collection

        if config.qdrant_location == ":memory:":
            self._client = QdrantClient(location=":memory:")
        else:
            self._client = QdrantClient(url=config.qdrant_location, timeout=timeout)

        self._chunks: tuple[Chunk, ...] = ()
        self._dimensions = 0
        self._size = 0

    @property
    def size(self) -> int:
        return self._size

    def rebuild(self, chunks: Sequence[Chunk]) -> None:
        from qdrant_client.models import Distance, PointStruct, VectorParams

        self._chunks = tuple(chunks)
        self._dimensions = dominant_dimension(self._chunks)
        self._size = 0

        if self._client.collection_exists(self._collection_name):
            self._client.delete_collection(self._collection_name)
        if self._dimensions == 0:
            return

        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=VectorParams(size=self._dimensions, distance=Distance.COSINE),
        )

        points = [
            PointStruct(id=position, vector=list(chunk.embedding), payload={"chunk_id": chunk.id})
            for position, chunk in enumerate(self._chunks)
            if chunk.is_embedded and chunk.dimensions == self._dimensions
        ]
        if len(points) < len(self._chunks):
            logger.warning(
                "Qdrant index skipped %d chunks without a %d-dim embedding",
                len(self._chunks) - len(points), self._dimensions,
            )
        if points:
            self._client.upsert(collection_name=self._collection_name, points=points, wait=True)
        self._size = len(points)

    def query(
        self, vector: Sequence[float], top_k: int, threshold: float
    ) -> list[ScoredChunk]:
        if top_k < 1 or self._size == 0 or len(vector) != self._dimensions:
            return []

        def fetch(limit: int) -> Candidates:
            response = self._client.query_points(
                collection_name=self._collection_name,
                query=list(vector),
                limit=limit,
                score_threshold=threshold,
                with_payload=False,
            )
            return [
                (self._chunks[int(point.id)], float(point.score)) for point in response.points
            ]

        return rank_hits(fetch_past_ties(fetch, top_k, self._size), top_k, threshold)
