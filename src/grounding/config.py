"""Configuration for the grounding retrieval subsystem.

Two run modes:
- Production: a real embedding backend (Ollama or OpenAI)
- Mock: deterministic hash-based embeddings, no network or API keys

Every field can be overridden through a ``GROUNDING_`` environment variable,
e.g. ``GROUNDING_MODE=production`` or ``GROUNDING_SIMILARITY_THRESHOLD=0.0``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class RunMode(str, Enum):
    """Embedding execution mode."""

    PRODUCTION = "production"
    MOCK = "mock"


class EmbeddingBackend(str, Enum):
    """Embedding services usable in production mode."""

    OLLAMA = "ollama"
    OPENAI = "openai"


class IndexBackend(str, Enum):
    """Index strategies that satisfy the search contract."""

    BRUTE_FORCE = "brute_force"
    CHROMA = "chroma"
    QDRANT = "qdrant"


class FailedEmbeddingPolicy(str, Enum):
    """What ingestion does with chunks whose embedding call failed."""

    EXCLUDE = "exclude"
    ZERO_VECTOR = "zero_vector"


class GroundingConfig(BaseSettings):
    """Settings for chunking, embedding, persistence and search."""

    model_config = {"env_prefix": "GROUNDING_"}

    mode: RunMode = Field(default=RunMode.MOCK, description="Embedding execution mode")

    # Embedding settings
    embedding_backend: EmbeddingBackend = Field(
        default=EmbeddingBackend.OLLAMA, description="Embedding service used in production"
    )
    ollama_url: str = Field(default="http://localhost:11434", description="Ollama server URL")
    embedding_model: str = Field(
        default="qwen3-embedding:4b", description="Embedding model name"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    embedding_dimensions: int = Field(
        default=2560, gt=0, description="Embedding vector dimensions"
    )
    embedding_timeout: float = Field(
        default=30.0, gt=0, description="Seconds before an embedding call fails"
    )

    # Corpus and persistence
    corpus_dir: str = Field(default="text", description="Directory of .txt source files")
    store_path: str = Field(default="vector_store.bin", description="Binary store file")

    # Chunking settings
    chunk_size: int = Field(default=500, gt=0, description="Window size in characters")
    chunk_overlap: int = Field(default=100, ge=0, description="Window overlap in characters")

    # Ingestion settings
    batch_size: int = Field(default=10, ge=1, description="Chunks embedded per batch")
    embedding_concurrency: int = Field(
        default=1, ge=1, description="Concurrent embedding calls within a batch"
    )
    failed_embedding_policy: FailedEmbeddingPolicy = Field(
        default=FailedEmbeddingPolicy.EXCLUDE,
        description="Handling of chunks whose embedding failed",
    )

    # Index settings
    index_backend: IndexBackend = Field(
        default=IndexBackend.BRUTE_FORCE, description="Index strategy used for search"
    )
    chroma_collection: str = Field(
        default="grounding_chunks", description="ChromaDB / Qdrant collection name"
    )
    qdrant_location: str = Field(
        default=":memory:", description="Qdrant server URL or :memory:"
    )

    # Search settings
    top_k: int = Field(default=10, ge=1, description="Number of passages to return")
    similarity_threshold: float = Field(
        default=0.3, description="Minimum cosine similarity for a result"
    )

    # API settings
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    log_level: str = Field(default="INFO", description="Root log level for the CLI")

    @model_validator(mode="after")
    def _check_overlap(self) -> GroundingConfig:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class MockConfig:
    """Configuration presets for mock mode.

    Deterministic embeddings without any running embedding server.
    Useful for tests, demos and CI.
    """

    @staticmethod
    def default() -> GroundingConfig:
        """Create a default mock configuration."""
        return GroundingConfig(mode=RunMode.MOCK)

    @staticmethod
    def with_overrides(**kwargs: object) -> GroundingConfig:
        """Create mock config with specific overrides."""
        defaults: dict[str, object] = {"mode": RunMode.MOCK}
        defaults.update(kwargs)
        return GroundingConfig(**defaults)  # type: ignore[arg-type]
