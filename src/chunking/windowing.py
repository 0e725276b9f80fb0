"""Character-window chunking of a plain-text corpus.

Each file is normalized (whitespace runs collapsed to one space, trimmed) and
cut into overlapping windows of ``window_size`` characters that advance by
``window_size - overlap``. Windows after the first start on a word boundary,
and every window except the last ends on one. The last window of a file keeps
the exact remainder. A window never starts past the end of the previous one,
so a word longer than the overlap is never dropped between two windows.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from src.grounding.chunk import Chunk
from src.grounding.errors import ConfigurationError

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"[ \t\r\n]+")

CORPUS_SUFFIX = ".txt"


def normalize_text(text: str) -> str:
    """Collapse tabs, CR, LF and repeated spaces to single spaces and trim."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


class WindowChunker:
    """Split normalized text into overlapping, word-aligned windows."""

    def __init__(self, window_size: int = 500, overlap: int = 100) -> None:
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        if overlap < 0:
            raise ValueError(f"overlap must be non-negative, got {overlap}")
        if overlap >= window_size:
            raise ValueError(
                f"overlap ({overlap}) must be less than window_size ({window_size})"
            )
        self.window_size = window_size
        self.overlap = overlap

    @property
    def advance(self) -> int:
        return self.window_size - self.overlap

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of each window in already-normalized text.

        Offsets exclude the spaces trimmed at cut points.
        """
        length = len(text)
        if not text.strip():
            return []
        if length <= self.window_size:
            return [_trim(text, 0, length)]

        spans: list[tuple[int, int]] = []
        start = 0
        covered = 0
        while start < length:
            end = min(start + self.window_size, length)
            if start > 0:
                space = text.find(" ", start, end)
                if space > start:
                    start = space
                if start > covered:
                    # Resume where the previous window stopped
                    start = covered
                    end = min(start + self.window_size, length)

            is_final = end >= length
            if not is_final:
                cut = text.rfind(" ", start, end)
                if cut > start:
                    end = cut

            span = _trim(text, start, end)
            if span[0] < span[1]:
                spans.append(span)
                covered = span[1]
            if is_final:
                break
            start += self.advance

        return spans

    def split(self, text: str) -> list[str]:
        """Normalize ``text`` and return the content of each window."""
        normalized = normalize_text(text)
        return [normalized[start:end] for start, end in self.spans(normalized)]

    def chunk_text(self, text: str, start_id: int = 0) -> list[Chunk]:
        """Build chunks for one text, numbering them from ``start_id``."""
        return [
            Chunk(id=start_id + offset, content=content)
            for offset, content in enumerate(self.split(text))
        ]

    def chunk_files(self, paths: Iterable[Path], start_id: int = 0) -> list[Chunk]:
        """Chunk several files in order; ids continue across file boundaries."""
        chunks: list[Chunk] = []
        next_id = start_id
        for path in paths:
            file_chunks = self.chunk_text(read_corpus_file(path), start_id=next_id)
            logger.debug("Chunked %s into %d windows", path.name, len(file_chunks))
            chunks.extend(file_chunks)
            next_id += len(file_chunks)
        return chunks


def _trim(text: str, start: int, end: int) -> tuple[int, int]:
    while start < end and text[start] == " ":
        start += 1
    while end > start and text[end - 1] == " ":
        end -= 1
    return start, end


def read_corpus_file(path: Path) -> str:
    """Read a corpus file as UTF-8, dropping a leading byte-order mark."""
    return path.read_text(encoding="utf-8-sig")


def load_corpus(directory: str | Path) -> list[Path]:
    """List the ``.txt`` files directly inside ``directory``, sorted by name.

    Subdirectories and other extensions are ignored.

    Raises:
        ConfigurationError: If the directory does not exist.
    """
    root = Path(directory)
    if not root.is_dir():
        raise ConfigurationError(f"Corpus directory not found: {root}")
    return sorted(
        (p for p in root.iterdir() if p.is_file() and p.suffix == CORPUS_SUFFIX),
        key=lambda p: p.name,
    )


def chunk_corpus(directory: str | Path, chunker: WindowChunker | None = None) -> list[Chunk]:
    """Chunk every corpus file in ``directory`` into one ordered sequence."""
    chunker = chunker or WindowChunker()
    paths = load_corpus(directory)
    chunks = chunker.chunk_files(paths)
    logger.info("Chunked %d files from %s into %d chunks", len(paths), directory, len(chunks))
    return chunks
