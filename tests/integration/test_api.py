"""Integration tests for the FastAPI query surface."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.grounding.config import GroundingConfig, MockConfig
from src.grounding.service import GroundingService


@pytest.fixture
def config(tmp_path: Path) -> GroundingConfig:
    return MockConfig.with_overrides(
        store_path=str(tmp_path / "store.bin"),
        embedding_dimensions=64,
        similarity_threshold=-1.0,
    )


@pytest.fixture
def service(config: GroundingConfig, corpus_dir: Path) -> GroundingService:
    service = GroundingService(config)
    service.rebuild(corpus_dir)
    return service


@pytest.fixture
def client(service: GroundingService) -> TestClient:
    return TestClient(create_app(service=service))


class TestHealthEndpoint:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["mode"] == "mock"
        assert data["index_backend"] == "brute_force"
        assert data["chunk_count"] == 2
        assert "version" in data


class TestSearchEndpoint:
    def test_search(self, client: TestClient) -> None:
        response = client.post("/search", json={"query": "dinosaur hall"})
        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "dinosaur hall"
        assert [hit["rank"] for hit in data["results"]] == [1, 2]
        assert {hit["id"] for hit in data["results"]} == {0, 1}

    def test_search_top_k(self, client: TestClient) -> None:
        response = client.post("/search", json={"query": "museum", "top_k": 1})
        assert response.status_code == 200
        assert len(response.json()["results"]) == 1

    def test_search_threshold(self, client: TestClient) -> None:
        response = client.post("/search", json={"query": "museum", "threshold": 1.0})
        assert response.status_code == 200
        assert response.json()["results"] == []

    def test_empty_query_rejected(self, client: TestClient) -> None:
        assert client.post("/search", json={"query": ""}).status_code == 422

    def test_invalid_top_k_rejected(self, client: TestClient) -> None:
        assert client.post("/search", json={"query": "x", "top_k": 0}).status_code == 422

    def test_search_without_store_is_empty(self, tmp_path: Path) -> None:
        config = MockConfig.with_overrides(store_path=str(tmp_path / "none.bin"))
        client = TestClient(create_app(config=config))
        response = client.post("/search", json={"query": "anything"})
        assert response.status_code == 200
        assert response.json()["results"] == []


class TestLoadEndpoint:
    def test_load(self, client: TestClient, service: GroundingService) -> None:
        response = client.post("/load")
        assert response.status_code == 200
        assert response.json()["chunk_count"] == 2
        assert response.json()["store_path"] == str(service.store_path)

    def test_load_missing(self, tmp_path: Path) -> None:
        config = MockConfig.with_overrides(store_path=str(tmp_path / "none.bin"))
        client = TestClient(create_app(config=config))
        assert client.post("/load").status_code == 404

    def test_load_corrupt(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.bin"
        path.write_bytes(b"\x02\x00")
        config = MockConfig.with_overrides(store_path=str(path))
        client = TestClient(create_app(config=config))
        assert client.post("/load").status_code == 500
