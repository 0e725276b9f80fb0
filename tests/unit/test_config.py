"""Tests for grounding configuration."""

import pytest
from pydantic import ValidationError

from src.grounding.config import (
    FailedEmbeddingPolicy,
    GroundingConfig,
    IndexBackend,
    MockConfig,
    RunMode,
)


class TestGroundingConfig:
    def test_default_mode_is_mock(self) -> None:
        assert GroundingConfig().mode == RunMode.MOCK

    def test_window_defaults(self) -> None:
        config = GroundingConfig()
        assert config.chunk_size == 500
        assert config.chunk_overlap == 100
        assert config.batch_size == 10

    def test_search_defaults(self) -> None:
        config = GroundingConfig()
        assert config.top_k == 10
        assert config.similarity_threshold == pytest.approx(0.3)
        assert config.index_backend == IndexBackend.BRUTE_FORCE
        assert config.failed_embedding_policy == FailedEmbeddingPolicy.EXCLUDE

    def test_custom_config(self) -> None:
        config = GroundingConfig(mode=RunMode.PRODUCTION, chunk_size=800, top_k=3)
        assert config.mode == RunMode.PRODUCTION
        assert config.chunk_size == 800
        assert config.top_k == 3

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GROUNDING_SIMILARITY_THRESHOLD", "0.0")
        monkeypatch.setenv("GROUNDING_INDEX_BACKEND", "chroma")
        config = GroundingConfig()
        assert config.similarity_threshold == 0.0
        assert config.index_backend == IndexBackend.CHROMA

    def test_overlap_must_be_smaller_than_window(self) -> None:
        with pytest.raises(ValidationError, match="chunk_overlap"):
            GroundingConfig(chunk_size=100, chunk_overlap=100)

    def test_batch_size_positive(self) -> None:
        with pytest.raises(ValidationError):
            GroundingConfig(batch_size=0)


class TestMockConfig:
    def test_default_is_mock(self) -> None:
        assert MockConfig.default().mode == RunMode.MOCK

    def test_with_overrides(self) -> None:
        config = MockConfig.with_overrides(batch_size=25)
        assert config.mode == RunMode.MOCK
        assert config.batch_size == 25
