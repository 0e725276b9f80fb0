"""Top-K semantic search over the chunk store.

The query path never raises. An unreachable embedding backend, a missing or
corrupt store file and an empty store all come back as an empty result list,
so the caller can carry on without grounding context.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from src.grounding.chunk import ScoredChunk
from src.grounding.config import GroundingConfig
from src.grounding.embeddings import EmbeddingProvider
from src.grounding.errors import PersistenceCorrupt, SearchUnavailable
from src.grounding.result import Err
from src.retrieval.backends import VectorIndex, create_index
from src.retrieval.store import ChunkStore

logger = logging.getLogger(__name__)


class SemanticSearch:
    """Embeds a query and ranks stored chunks by cosine similarity."""

    def __init__(
        self,
        store: ChunkStore,
        embeddings: EmbeddingProvider,
        config: GroundingConfig,
        index: Optional[VectorIndex] = None,
        store_path: str | Path | None = None,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self._config = config
        self._index = index or create_index(config)
        self._store_path = Path(store_path or config.store_path)
        self._indexed_version: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def store_path(self) -> Path:
        return self._store_path

    def search(
        self,
        query: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[str]:
        """Return the content of the best matching chunks, best first."""
        return [hit.content for hit in self.search_scored(query, top_k, threshold)]

    def search_scored(
        self,
        query: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[ScoredChunk]:
        """Return ranked chunks with their scores."""
        k = self._config.top_k if top_k is None else top_k
        cutoff = self._config.similarity_threshold if threshold is None else threshold
        if k < 1:
            return []

        try:
            self._ensure_loaded()
        except SearchUnavailable as e:
            logger.warning("Search unavailable: %s", e)
            return []
        except PersistenceCorrupt as e:
            logger.error("Search unavailable, store file is corrupt: %s", e)
            return []

        try:
            query_result = self._embeddings.embed(query)
        except Exception as e:
            query_result = Err(f"{type(e).__name__}: {e}")
        if query_result.is_err():
            logger.warning("Query embedding failed: %s", query_result.error)  # type: ignore[union-attr]
            return []

        try:
            hits = self._current_index().query(query_result.unwrap(), k, cutoff)
        except Exception:
            logger.exception("Index query failed")
            return []
        logger.debug("Search returned %d hits for %r", len(hits), query)
        return hits

    def _ensure_loaded(self) -> None:
        if not self._store.is_empty:
            return
        self._store.load(self._store_path)
        if self._store.is_empty:
            raise SearchUnavailable(f"Store is empty after loading {self._store_path}")

    def _current_index(self) -> VectorIndex:
        with self._lock:
            if self._indexed_version != self._store.version:
                self._index.rebuild(self._store.chunks)
                self._indexed_version = self._store.version
            return self._index
