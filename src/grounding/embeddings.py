"""Embedding providers with dependency injection for mock mode.

Supports:
- Ollama embeddings over HTTP (production default)
- OpenAI embeddings through langchain-openai (production)
- Mock embeddings (demo/testing - deterministic, no server)

Every provider makes exactly one attempt per call. Retrying is left to the
caller, and a timeout or unreachable backend comes back as ``Err``.
"""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod

import numpy as np
import requests

from src.grounding.config import EmbeddingBackend, GroundingConfig, RunMode
from src.grounding.result import Err, Ok, Result

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Abstract embedding provider interface: text -> fixed-length vector."""

    @abstractmethod
    def embed(self, text: str) -> Result[list[float], str]:
        """Generate the embedding for a single text."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Return the embedding dimensions."""
        ...


class MockEmbeddingProvider(EmbeddingProvider):
    """Deterministic mock embeddings for testing and demos.

    Generates consistent embeddings based on text content hashing.
    Texts with shared words produce similar vectors.
    """

    def __init__(self, dimensions: int = 384) -> None:
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> Result[list[float], str]:
        try:
            return Ok(self._generate_embedding(text))
        except Exception as e:
            return Err(f"Mock embedding failed: {e}")

    def _generate_embedding(self, text: str) -> list[float]:
        """Generate a deterministic embedding from text content.

        Uses word-level hashing so that texts sharing words
        have higher cosine similarity.
        """
        text_hash = hashlib.sha256(text.encode()).hexdigest()
        seed = int(text_hash[:8], 16)
        rng = np.random.RandomState(seed)

        base = rng.randn(self._dimensions).astype(np.float64)

        for word in set(text.lower().split()):
            word_hash = hashlib.md5(word.encode()).hexdigest()
            word_rng = np.random.RandomState(int(word_hash[:8], 16))
            base += word_rng.randn(self._dimensions).astype(np.float64) * 0.3

        norm = np.linalg.norm(base)
        if norm > 0:
            base = base / norm

        return base.tolist()


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embeddings from an Ollama server's ``/api/embed`` endpoint."""

    def __init__(self, config: GroundingConfig, session: requests.Session | None = None) -> None:
        self._config = config
        self._dimensions = config.embedding_dimensions
        self._endpoint = config.ollama_url.rstrip("/") + "/api/embed"
        self._session = session or requests.Session()

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> Result[list[float], str]:
        payload = {"model": self._config.embedding_model, "input": text}
        try:
            response = self._session.post(
                self._endpoint, json=payload, timeout=self._config.embedding_timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout:
            return Err(f"Ollama embedding timed out after {self._config.embedding_timeout}s")
        except requests.RequestException as e:
            return Err(f"Ollama embedding failed: {e}")
        except ValueError as e:
            return Err(f"Ollama returned invalid JSON: {e}")

        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if not embeddings or not embeddings[0]:
            return Err("Ollama response contained no embedding")
        return Ok([float(v) for v in embeddings[0]])


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI API embedding provider."""

    def __init__(self, config: GroundingConfig) -> None:
        self._config = config
        self._dimensions = config.embedding_dimensions
        self._model = None

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _client(self):  # type: ignore[no-untyped-def]
        if self._model is None:
            from langchain_openai import OpenAIEmbeddings

            self._model = OpenAIEmbeddings(
                model=self._config.embedding_model,
                openai_api_key=self._config.openai_api_key,
                dimensions=self._config.embedding_dimensions,
                timeout=self._config.embedding_timeout,
                max_retries=0,
            )
        return self._model

    def embed(self, text: str) -> Result[list[float], str]:
        try:
            return Ok(self._client().embed_query(text))
        except ImportError:
            return Err("langchain-openai not installed")
        except Exception as e:
            return Err(f"OpenAI embedding failed: {e}")


def create_embedding_provider(config: GroundingConfig) -> EmbeddingProvider:
    """Factory function to create the configured embedding provider."""
    if config.mode == RunMode.MOCK:
        return MockEmbeddingProvider(dimensions=config.embedding_dimensions)
    if config.embedding_backend == EmbeddingBackend.OPENAI:
        return OpenAIEmbeddingProvider(config)
    logger.info(
        "Using Ollama embeddings: %s (%s)", config.ollama_url, config.embedding_model
    )
    return OllamaEmbeddingProvider(config)
