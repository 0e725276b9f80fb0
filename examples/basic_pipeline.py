"""Basic grounding example.

Demonstrates the rebuild-then-query workflow using mock mode.
No embedding server required.

Usage:
    python examples/basic_pipeline.py
"""

import tempfile
from pathlib import Path

from src.grounding.config import GroundingConfig, RunMode
from src.grounding.service import GroundingService


def main() -> None:
    workdir = Path(tempfile.mkdtemp(prefix="grounding-example-"))
    corpus = workdir / "text"
    corpus.mkdir()

    # 1. Write a small corpus of plain-text files
    (corpus / "fastapi.txt").write_text(
        "FastAPI is a modern Python web framework for building APIs. "
        "It provides automatic OpenAPI documentation, type validation "
        "with Pydantic, and high performance using async/await.",
        encoding="utf-8",
    )
    (corpus / "docker.txt").write_text(
        "Docker containers package applications with their dependencies "
        "for consistent deployment across environments. A Dockerfile "
        "defines the build steps.",
        encoding="utf-8",
    )

    # 2. Configure the service in mock mode with a small window
    config = GroundingConfig(
        mode=RunMode.MOCK,
        store_path=str(workdir / "vector_store.bin"),
        chunk_size=120,
        chunk_overlap=30,
        top_k=3,
        similarity_threshold=0.0,
    )
    service = GroundingService(config)

    # 3. Rebuild the store from the corpus
    report = service.rebuild(corpus)
    print(f"Stored {report.stored} chunks in {report.store_path} ({report.elapsed_ms:.1f}ms)")

    # 4. Query for grounding passages
    queries = [
        "What is FastAPI?",
        "How do Docker containers work?",
    ]
    for query in queries:
        print(f"\nQ: {query}")
        for hit in service.search_scored(query):
            print(f"  {hit.rank}. [{hit.score:.3f}] {hit.content[:80]}")


if __name__ == "__main__":
    main()
