"""Ingestion: chunk a corpus, embed every chunk in bounded batches, persist.

A failed embedding never aborts the run. The chunk is logged, recorded on the
report and then excluded or zero-filled according to
``failed_embedding_policy``. Only a missing corpus directory (or an explicit
cancellation) stops ingestion.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from src.chunking.windowing import WindowChunker, chunk_corpus
from src.grounding.chunk import Chunk
from src.grounding.config import FailedEmbeddingPolicy, GroundingConfig
from src.grounding.embeddings import EmbeddingProvider
from src.grounding.errors import EmbeddingError, IngestionCancelled
from src.grounding.result import Err
from src.retrieval.store import ChunkStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class IngestionReport:
    """Summary of one ingestion run."""

    total_chunks: int
    embedded: int = 0
    failures: list[EmbeddingError] = field(default_factory=list)
    stored: int = 0
    saved: bool = False
    store_path: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def failed(self) -> int:
        return len(self.failures)


class IngestionPipeline:
    """Drives the embedding provider over chunk batches and fills the store.

    Usage:
        pipeline = IngestionPipeline(store, embeddings, config)
        report = pipeline.run("text", "vector_store.bin")
    """

    def __init__(
        self,
        store: ChunkStore,
        embeddings: EmbeddingProvider,
        config: GroundingConfig,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self._config = config
        self._on_progress = on_progress
        self._chunker = WindowChunker(
            window_size=config.chunk_size, overlap=config.chunk_overlap
        )

    @property
    def chunker(self) -> WindowChunker:
        return self._chunker

    def run(
        self,
        corpus_dir: str | Path | None = None,
        store_path: str | Path | None = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestionReport:
        """Chunk ``corpus_dir``, embed, replace the store and save it.

        Raises:
            ConfigurationError: If the corpus directory does not exist.
            IngestionCancelled: If ``cancel_event`` is set before completion.
        """
        corpus = Path(corpus_dir or self._config.corpus_dir)
        chunks = chunk_corpus(corpus, self._chunker)
        return self.ingest(chunks, store_path, cancel_event)

    def ingest(
        self,
        chunks: Sequence[Chunk],
        store_path: str | Path | None = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestionReport:
        """Embed ``chunks``, replace the store with the result and save it.

        An empty chunk sequence leaves both the store and any existing file
        untouched.
        """
        start_time = time.monotonic()
        target = Path(store_path or self._config.store_path)
        report = IngestionReport(total_chunks=len(chunks), store_path=str(target))

        if not chunks:
            logger.warning("No chunks to ingest; store at %s left unchanged", target)
            return report

        embedded, failures = self.embed_chunks(chunks, cancel_event)
        report.embedded = len(chunks) - len(failures)
        report.failures = failures

        stored = self._apply_failure_policy(embedded)
        self._store.replace_all(stored)
        report.stored = self._store.save(target)
        report.saved = True
        report.elapsed_ms = (time.monotonic() - start_time) * 1000

        logger.info(
            "Ingested %d chunks (%d embedded, %d failed, %d stored) in %.0fms",
            report.total_chunks, report.embedded, report.failed,
            report.stored, report.elapsed_ms,
        )
        return report

    def embed_chunks(
        self,
        chunks: Sequence[Chunk],
        cancel_event: Optional[threading.Event] = None,
    ) -> tuple[list[Chunk], list[EmbeddingError]]:
        """Embed chunks batch by batch.

        Returns the chunks in their original order (embedded where the call
        succeeded, unchanged otherwise) and the per-chunk failures.
        """
        total = len(chunks)
        batch_size = self._config.batch_size
        workers = min(self._config.embedding_concurrency, batch_size)
        results: list[Chunk] = []
        failures: list[EmbeddingError] = []

        executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            for offset in range(0, total, batch_size):
                if cancel_event is not None and cancel_event.is_set():
                    raise IngestionCancelled(offset, total)

                batch = chunks[offset : offset + batch_size]
                if executor is None:
                    outcomes = [self._embed_one(c, cancel_event, offset, total) for c in batch]
                else:
                    outcomes = list(
                        executor.map(lambda c: self._embed_one(c, cancel_event, offset, total), batch)
                    )

                for chunk, outcome in zip(batch, outcomes):
                    if isinstance(outcome, EmbeddingError):
                        failures.append(outcome)
                        results.append(chunk)
                    else:
                        results.append(outcome)

                processed = offset + len(batch)
                logger.debug("Embedded %d/%d chunks", processed, total)
                if self._on_progress is not None:
                    self._on_progress(processed, total)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        return results, failures

    def _embed_one(
        self,
        chunk: Chunk,
        cancel_event: Optional[threading.Event],
        processed: int,
        total: int,
    ) -> Union[Chunk, EmbeddingError]:
        if cancel_event is not None and cancel_event.is_set():
            raise IngestionCancelled(processed, total)

        try:
            result = self._embeddings.embed(chunk.content)
        except Exception as e:
            result = Err(f"{type(e).__name__}: {e}")

        if result.is_err():
            error = EmbeddingError(chunk.id, str(result.error))  # type: ignore[union-attr]
            logger.warning("%s", error)
            return error

        vector = result.unwrap()
        expected = self._embeddings.dimensions
        if len(vector) != expected:
            error = EmbeddingError(
                chunk.id, f"expected {expected} dimensions, got {len(vector)}"
            )
            logger.warning("%s", error)
            return error

        return chunk.with_embedding(vector)

    def _apply_failure_policy(self, chunks: list[Chunk]) -> list[Chunk]:
        if self._config.failed_embedding_policy == FailedEmbeddingPolicy.ZERO_VECTOR:
            zeros = [0.0] * self._embeddings.dimensions
            return [c if c.is_embedded else c.with_embedding(zeros) for c in chunks]
        return [c for c in chunks if c.is_embedded]
