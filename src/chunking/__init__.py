"""Corpus chunking for ingestion."""

from src.chunking.windowing import (
    WindowChunker,
    chunk_corpus,
    load_corpus,
    normalize_text,
)

__all__ = [
    "WindowChunker",
    "chunk_corpus",
    "load_corpus",
    "normalize_text",
]
