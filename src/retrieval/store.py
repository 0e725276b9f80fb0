"""In-memory chunk store with binary save/load.

The store is an explicit object owned by the caller and shared by reference
with ingestion and search. Its contents are only ever replaced wholesale,
by a fresh ingestion or by loading a file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

from src.grounding.chunk import Chunk
from src.grounding.errors import PersistenceAbsent, PersistenceCorrupt
from src.grounding.result import Err, Ok, Result
from src.retrieval.serialization import decode_chunks, write_chunks

logger = logging.getLogger(__name__)


class ChunkStore:
    """Ordered collection of embedded chunks."""

    def __init__(self, chunks: Iterable[Chunk] = ()) -> None:
        self._chunks: tuple[Chunk, ...] = tuple(chunks)
        self._version = 0

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        """Snapshot of the current contents, in ingestion order."""
        return self._chunks

    @property
    def version(self) -> int:
        """Incremented every time the contents are replaced."""
        return self._version

    @property
    def is_empty(self) -> bool:
        return not self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._chunks)

    def replace_all(self, chunks: Iterable[Chunk]) -> None:
        """Replace the whole contents."""
        self._chunks = tuple(chunks)
        self._version += 1

    def clear(self) -> None:
        self.replace_all(())

    def save(self, path: str | Path) -> int:
        """Write the current snapshot to ``path`` in one pass, overwriting it.

        Returns:
            Number of records written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        snapshot = self._chunks
        with target.open("wb") as stream:
            count = write_chunks(stream, snapshot)
        logger.info("Saved %d chunks to %s", count, target)
        return count

    def load(self, path: str | Path) -> Result[int, PersistenceAbsent]:
        """Replace the contents with the records stored at ``path``.

        Returns:
            ``Ok(count)`` after a successful load, or ``Err(PersistenceAbsent)``
            when the file does not exist. The contents are unchanged then.

        Raises:
            PersistenceCorrupt: If the file cannot be decoded. The contents
                are unchanged then as well.
        """
        source = Path(path)
        if not source.is_file():
            logger.warning("Store file not found: %s", source)
            return Err(PersistenceAbsent(source))

        try:
            chunks = decode_chunks(source.read_bytes())
        except PersistenceCorrupt as e:
            raise PersistenceCorrupt(e.message, path=source) from e

        self.replace_all(chunks)
        logger.info("Loaded %d chunks from %s", len(chunks), source)
        return Ok(len(chunks))
