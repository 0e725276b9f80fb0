"""Grounding service: the context object shared by ingestion and search.

One service owns one store, one embedding provider, one ingestion pipeline
and one search. Callers create it explicitly and pass it where it is needed.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from src.grounding.chunk import ScoredChunk
from src.grounding.config import GroundingConfig
from src.grounding.embeddings import EmbeddingProvider, create_embedding_provider
from src.grounding.errors import PersistenceAbsent
from src.grounding.ingestion import IngestionPipeline, IngestionReport, ProgressCallback
from src.grounding.result import Result
from src.retrieval.backends import VectorIndex
from src.retrieval.search import SemanticSearch
from src.retrieval.store import ChunkStore


class GroundingService:
    """Rebuild, load and query an embedded corpus.

    Usage:
        service = GroundingService(GroundingConfig(mode=RunMode.MOCK))
        service.rebuild("text")
        passages = service.search("How do I reset the device?")
    """

    def __init__(
        self,
        config: Optional[GroundingConfig] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        index: Optional[VectorIndex] = None,
    ) -> None:
        self._config = config or GroundingConfig()
        self._embeddings = embedding_provider or create_embedding_provider(self._config)
        self._store = ChunkStore()
        self._search = SemanticSearch(self._store, self._embeddings, self._config, index=index)

    @property
    def config(self) -> GroundingConfig:
        return self._config

    @property
    def store(self) -> ChunkStore:
        return self._store

    @property
    def store_path(self) -> Path:
        return self._search.store_path

    @property
    def chunk_count(self) -> int:
        return len(self._store)

    def rebuild(
        self,
        corpus_dir: str | Path | None = None,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> IngestionReport:
        """Run chunking, embedding and saving end to end."""
        pipeline = IngestionPipeline(
            self._store, self._embeddings, self._config, on_progress=on_progress
        )
        return pipeline.run(corpus_dir, self._search.store_path, cancel_event)

    def load(self) -> Result[int, PersistenceAbsent]:
        """Load the store file, replacing the in-memory contents."""
        return self._store.load(self._search.store_path)

    def search(
        self,
        query: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[str]:
        return self._search.search(query, top_k=top_k, threshold=threshold)

    def search_scored(
        self,
        query: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[ScoredChunk]:
        return self._search.search_scored(query, top_k=top_k, threshold=threshold)
