"""CLI interface for grounding retrieval.

Provides command-line access to:
- ingest: Rebuild the store from a corpus directory
- search: Query the store
- inspect: Summarize a store file
- demo: Ingest a sample corpus and query it in mock mode
- serve: Start the FastAPI server
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import tempfile
from collections import Counter
from pathlib import Path
from typing import Optional

from src.grounding.config import GroundingConfig, RunMode
from src.grounding.errors import ConfigurationError, PersistenceCorrupt
from src.grounding.service import GroundingService
from src.retrieval.store import ChunkStore

SAMPLE_CORPUS = {
    "museum-hours.txt": (
        "The museum opens at nine in the morning and closes at six in the "
        "evening from Tuesday to Sunday. On Mondays the galleries are closed "
        "for maintenance, but the cafe and the gift shop remain open. Late "
        "opening on the first Friday of every month runs until ten at night."
    ),
    "dinosaur-hall.txt": (
        "The dinosaur hall holds a complete Tyrannosaurus skeleton found in "
        "Montana, a Triceratops skull and a cast of an Archaeopteryx fossil. "
        "Guided tours of the dinosaur hall start every hour and last thirty "
        "minutes. Children can dig for replica fossils in the sandpit."
    ),
    "tickets.txt": (
        "Adult tickets cost fifteen euros and children under twelve enter for "
        "free. Students and seniors receive a reduced price of ten euros. "
        "Annual memberships include unlimited entry, priority booking for "
        "special exhibitions and a discount in the gift shop."
    ),
}


def build_config(
    corpus: Optional[str] = None,
    store: Optional[str] = None,
    batch_size: Optional[int] = None,
    mode: Optional[str] = None,
) -> GroundingConfig:
    """Load configuration from the environment and apply CLI overrides."""
    overrides: dict[str, object] = {}
    if corpus is not None:
        overrides["corpus_dir"] = corpus
    if store is not None:
        overrides["store_path"] = store
    if batch_size is not None:
        overrides["batch_size"] = batch_size
    if mode is not None:
        overrides["mode"] = RunMode(mode)
    return GroundingConfig(**overrides)  # type: ignore[arg-type]


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Grounding retrieval - chunk, embed and search a text corpus"
    )
    parser.add_argument(
        "--mode", choices=[m.value for m in RunMode], default=None, help="Embedding mode"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    ingest_parser = subparsers.add_parser("ingest", help="Rebuild the store from a corpus")
    ingest_parser.add_argument("--corpus", default=None, help="Corpus directory")
    ingest_parser.add_argument("--store", default=None, help="Store file to write")
    ingest_parser.add_argument("--batch-size", type=int, default=None, help="Chunks per batch")

    search_parser = subparsers.add_parser("search", help="Search the store")
    search_parser.add_argument("query", help="Query text")
    search_parser.add_argument("--top-k", type=int, default=None, help="Number of results")
    search_parser.add_argument("--threshold", type=float, default=None, help="Minimum score")
    search_parser.add_argument("--store", default=None, help="Store file to read")
    search_parser.add_argument("--json", action="store_true", help="Print JSON output")

    inspect_parser = subparsers.add_parser("inspect", help="Summarize a store file")
    inspect_parser.add_argument("--store", default=None, help="Store file to read")

    demo_parser = subparsers.add_parser("demo", help="Run a complete demo in mock mode")
    demo_parser.add_argument(
        "--query", default="When does the museum open?", help="Query to demo"
    )

    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--host", default=None, help="Host")
    serve_parser.add_argument("--port", type=int, default=None, help="Port")

    args = parser.parse_args()

    if args.command == "ingest":
        config = build_config(args.corpus, args.store, args.batch_size, args.mode)
        _configure_logging(config)
        run_ingest(config)
    elif args.command == "search":
        config = build_config(store=args.store, mode=args.mode)
        _configure_logging(config)
        run_search(config, args.query, args.top_k, args.threshold, args.json)
    elif args.command == "inspect":
        config = build_config(store=args.store, mode=args.mode)
        _configure_logging(config)
        run_inspect(config)
    elif args.command == "demo":
        config = build_config(mode=RunMode.MOCK.value)
        _configure_logging(config)
        run_demo(args.query)
    elif args.command == "serve":
        config = build_config(mode=args.mode)
        _configure_logging(config)
        run_serve(config, args.host or config.api_host, args.port or config.api_port)
    else:
        parser.print_help()
        sys.exit(1)


def _configure_logging(config: GroundingConfig) -> None:
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_progress(done: int, total: int) -> None:
    print(f"  embedded {done}/{total} chunks")


def run_ingest(config: GroundingConfig) -> None:
    """Rebuild the store from ``config.corpus_dir``."""
    service = GroundingService(config)
    try:
        report = service.rebuild(config.corpus_dir, on_progress=_print_progress)
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(json.dumps({
        "corpus_dir": config.corpus_dir,
        "store_path": report.store_path,
        "total_chunks": report.total_chunks,
        "embedded": report.embedded,
        "failed": report.failed,
        "stored": report.stored,
        "saved": report.saved,
        "elapsed_ms": round(report.elapsed_ms, 1),
    }, indent=2))


def run_search(
    config: GroundingConfig,
    query: str,
    top_k: Optional[int] = None,
    threshold: Optional[float] = None,
    as_json: bool = False,
) -> None:
    """Query the store at ``config.store_path``."""
    service = GroundingService(config)
    hits = service.search_scored(query, top_k=top_k, threshold=threshold)

    if as_json:
        print(json.dumps({
            "query": query,
            "results": [
                {"rank": h.rank, "score": h.score, "id": h.chunk.id, "content": h.content}
                for h in hits
            ],
        }, indent=2))
        return

    if not hits:
        print("No results")
        return
    for hit in hits:
        print(f"[{hit.rank}] id={hit.chunk.id} score={hit.score:.3f}")
        print(f"    {hit.content[:100]}...")


def run_inspect(config: GroundingConfig) -> None:
    """Print a summary of the store file."""
    store = ChunkStore()
    try:
        result = store.load(config.store_path)
    except PersistenceCorrupt as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    if result.is_err():
        print(f"ERROR: {result.error}")  # type: ignore[union-attr]
        sys.exit(1)

    dimensions = Counter(chunk.dimensions for chunk in store)
    print(json.dumps({
        "store_path": config.store_path,
        "chunk_count": len(store),
        "dimensions": {str(d): n for d, n in sorted(dimensions.items())},
        "first_ids": [chunk.id for chunk in store.chunks[:10]],
    }, indent=2))


def run_demo(query: str) -> None:
    """Ingest a small sample corpus in mock mode and run one query."""
    print("=" * 60)
    print("Grounding Retrieval - Demo Mode")
    print("=" * 60)
    print()

    with tempfile.TemporaryDirectory() as workdir:
        corpus = Path(workdir) / "text"
        corpus.mkdir()
        for name, content in SAMPLE_CORPUS.items():
            (corpus / name).write_text(content, encoding="utf-8")

        config = GroundingConfig(
            mode=RunMode.MOCK,
            embedding_dimensions=384,
            store_path=str(Path(workdir) / "vector_store.bin"),
            similarity_threshold=0.0,
            top_k=3,
        )
        service = GroundingService(config)

        print(f"[1/3] Ingesting {len(SAMPLE_CORPUS)} sample files...")
        report = service.rebuild(corpus)
        print(f"      Stored {report.stored} chunks")
        print()

        print(f'[2/3] Searching: "{query}"')
        print()
        hits = service.search_scored(query)

        print("[3/3] Results:")
        print("-" * 60)
        for hit in hits:
            print(f"  [{hit.rank}] chunk {hit.chunk.id} (score: {hit.score:.3f})")
            print(f"      {hit.content[:100]}...")
            print()
        print("=" * 60)


def run_serve(config: GroundingConfig, host: str, port: int) -> None:
    """Start the FastAPI server for ``config``."""
    import uvicorn

    from src.api.app import create_app

    uvicorn.run(create_app(config), host=host, port=port)


if __name__ == "__main__":
    main()
