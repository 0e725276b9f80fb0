"""Chunk storage, persistence and semantic search."""

from src.retrieval.backends import BruteForceIndex, VectorIndex, create_index
from src.retrieval.search import SemanticSearch
from src.retrieval.store import ChunkStore

__all__ = ["BruteForceIndex", "ChunkStore", "SemanticSearch", "VectorIndex", "create_index"]
