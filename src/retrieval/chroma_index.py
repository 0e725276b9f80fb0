"""Index strategy over an in-process ChromaDB collection.

Chroma stores one vector length per collection, so only chunks with the
dominant embedding length are indexed; others can never be returned.

The collection is a derived view of the chunk store and is rebuilt from it,
so nothing is persisted here. In-process Chroma clients share one system,
which is why every index gets its own collection name.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

import chromadb
from chromadb.config import Settings

from src.grounding.chunk import Chunk, ScoredChunk
from src.grounding.config import GroundingConfig
from src.retrieval.backends import Candidates, VectorIndex, dominant_dimension, fetch_past_ties
from src.retrieval.similarity import rank_hits

logger = logging.getLogger(__name__)

_ADD_BATCH = 1000


class ChromaIndex(VectorIndex):
    """ChromaDB-backed approximate index with cosine distance."""

    def __init__(
        self,
        config: GroundingConfig,
        client: Optional[chromadb.ClientAPI] = None,
    ) -> None:
        self._client = client or chromadb.Client(Settings(anonymized_telemetry=False))
        self._collection_name = f"{config.chroma_collection}_{uuid.uuid4().hex[:8]}"
        self._collection = self._reset_collection()
        self._chunks: tuple[Chunk, ...] = ()
        self._dimensions = 0

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _reset_collection(self):  # type: ignore[no-untyped-def]
        existing = {
            c if isinstance(c, str) else c.name for c in self._client.list_collections()
        }
        if self._collection_name in existing:
            self._client.delete_collection(self._collection_name)
        return self._client.get_or_create_collection(
            name=self._collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    @property
    def size(self) -> int:
        return self._collection.count()

    def rebuild(self, chunks: Sequence[Chunk]) -> None:
        self._collection = self._reset_collection()
        self._chunks = tuple(chunks)
        self._dimensions = dominant_dimension(self._chunks)

        positions = [
            p for p, c in enumerate(self._chunks)
            if c.is_embedded and c.dimensions == self._dimensions
        ]
        skipped = len(self._chunks) - len(positions)
        if skipped:
            logger.warning(
                "Chroma index skipped %d chunks without a %d-dim embedding",
                skipped, self._dimensions,
            )

        for offset in range(0, len(positions), _ADD_BATCH):
            batch = positions[offset : offset + _ADD_BATCH]
            self._collection.add(
                ids=[str(p) for p in batch],
                embeddings=[list(self._chunks[p].embedding) for p in batch],  # type: ignore[arg-type]
                documents=[self._chunks[p].content for p in batch],
                metadatas=[{"chunk_id": self._chunks[p].id} for p in batch],
            )

    def query(
        self, vector: Sequence[float], top_k: int, threshold: float
    ) -> list[ScoredChunk]:
        count = self._collection.count()
        if top_k < 1 or count == 0 or len(vector) != self._dimensions:
            return []

        def fetch(limit: int) -> Candidates:
            results = self._collection.query(
                query_embeddings=[list(vector)],
                n_results=limit,
                include=["distances"],
            )
            ids = results["ids"][0] if results["ids"] else []
            distances = results["distances"][0] if results["distances"] else []  # type: ignore[index]
            # Cosine distance is 1 - similarity
            return [
                (self._chunks[int(point_id)], 1.0 - float(distance))
                for point_id, distance in zip(ids, distances)
            ]

        return rank_hits(fetch_past_ties(fetch, top_k, count), top_k, threshold)
