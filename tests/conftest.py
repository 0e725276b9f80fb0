"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

import pytest

from src.grounding.embeddings import EmbeddingProvider
from src.grounding.result import Err, Ok, Result


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests spanning several components")


class StubEmbeddingProvider(EmbeddingProvider):
    """Embedding provider with scripted vectors and failures.

    Texts listed in ``vectors`` get that vector, texts containing any string
    in ``fail_on`` return ``Err``, and everything else gets ``default``.
    """

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        default: Optional[list[float]] = None,
        fail_on: tuple[str, ...] = (),
        dimensions: int = 3,
        on_call: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._vectors = vectors or {}
        self._default = default if default is not None else [1.0] + [0.0] * (dimensions - 1)
        self._fail_on = fail_on
        self._dimensions = dimensions
        self._on_call = on_call
        self._lock = threading.Lock()
        self.calls: list[str] = []

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> Result[list[float], str]:
        with self._lock:
            self.calls.append(text)
        if self._on_call is not None:
            self._on_call(text)
        if any(marker in text for marker in self._fail_on):
            return Err("backend unavailable")
        return Ok(list(self._vectors.get(text, self._default)))


@pytest.fixture
def stub_provider() -> type[StubEmbeddingProvider]:
    return StubEmbeddingProvider


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    """A corpus with two text files, a non-text file and a subdirectory."""
    corpus = tmp_path / "text"
    corpus.mkdir()
    (corpus / "b-dinosaurs.txt").write_text(
        "The dinosaur hall holds a Tyrannosaurus skeleton.\n\nTours start hourly.",
        encoding="utf-8",
    )
    (corpus / "a-hours.txt").write_text(
        "The museum opens at nine\tand closes at six.", encoding="utf-8"
    )
    (corpus / "notes.md").write_text("Ignored markdown file.", encoding="utf-8")
    nested = corpus / "archive"
    nested.mkdir()
    (nested / "old.txt").write_text("Ignored nested file.", encoding="utf-8")
    return corpus
