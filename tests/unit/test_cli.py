"""Tests for CLI interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from src.grounding.chunk import Chunk
from src.grounding.cli import SAMPLE_CORPUS, main, run_demo
from src.grounding.config import RunMode
from src.retrieval.store import ChunkStore


class TestCLI:
    def test_demo_runs_successfully(self, capsys: pytest.CaptureFixture[str]) -> None:
        run_demo("When does the museum open?")
        captured = capsys.readouterr()
        assert "Grounding Retrieval - Demo Mode" in captured.out
        assert "Ingesting 3 sample files" in captured.out
        assert "Results:" in captured.out
        assert "[1]" in captured.out

    def test_sample_corpus_valid(self) -> None:
        assert len(SAMPLE_CORPUS) >= 3
        assert all(name.endswith(".txt") and text for name, text in SAMPLE_CORPUS.items())

    def test_main_no_args(self) -> None:
        with pytest.raises(SystemExit):
            with patch("sys.argv", ["grounding"]):
                main()

    def test_ingest_then_search(
        self, tmp_path: Path, corpus_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        store = tmp_path / "store.bin"
        argv = ["grounding", "ingest", "--corpus", str(corpus_dir), "--store", str(store)]
        with patch("sys.argv", argv):
            main()
        out = capsys.readouterr().out
        assert "embedded 2/2 chunks" in out
        summary = json.loads(out[out.index("{"):])
        assert summary["total_chunks"] == 2
        assert summary["saved"] is True
        assert store.is_file()

        argv = [
            "grounding", "search", "dinosaur hall skeleton",
            "--store", str(store), "--threshold", "-1", "--top-k", "1", "--json",
        ]
        with patch("sys.argv", argv):
            main()
        data = json.loads(capsys.readouterr().out)
        assert data["query"] == "dinosaur hall skeleton"
        assert len(data["results"]) == 1
        assert data["results"][0]["rank"] == 1

    def test_ingest_missing_corpus(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["grounding", "ingest", "--corpus", str(tmp_path / "missing")]
        with pytest.raises(SystemExit) as excinfo:
            with patch("sys.argv", argv):
                main()
        assert excinfo.value.code == 1
        assert "Corpus directory not found" in capsys.readouterr().out

    def test_search_without_store(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["grounding", "search", "anything", "--store", str(tmp_path / "none.bin")]
        with patch("sys.argv", argv):
            main()
        assert "No results" in capsys.readouterr().out

    def test_inspect(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        store = tmp_path / "store.bin"
        ChunkStore(
            [
                Chunk(id=0, content="a", embedding=(1.0, 0.0)),
                Chunk(id=1, content="b", embedding=(0.0, 1.0)),
                Chunk(id=2, content="c"),
            ]
        ).save(store)
        with patch("sys.argv", ["grounding", "inspect", "--store", str(store)]):
            main()
        data = json.loads(capsys.readouterr().out)
        assert data["chunk_count"] == 3
        assert data["dimensions"] == {"0": 1, "2": 2}
        assert data["first_ids"] == [0, 1, 2]

    def test_inspect_missing(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            with patch("sys.argv", ["grounding", "inspect", "--store", str(tmp_path / "x.bin")]):
                main()
        assert "Store file not found" in capsys.readouterr().out

    def test_inspect_corrupt(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        store = tmp_path / "bad.bin"
        store.write_bytes(b"\x01")
        with pytest.raises(SystemExit):
            with patch("sys.argv", ["grounding", "inspect", "--store", str(store)]):
                main()
        assert "Corrupt store file" in capsys.readouterr().out

    def test_serve_uses_cli_mode(self) -> None:
        argv = ["grounding", "--mode", "production", "serve", "--port", "8123"]
        with patch("uvicorn.run") as run, patch("sys.argv", argv):
            main()

        app = run.call_args.args[0]
        assert app.state.service.config.mode == RunMode.PRODUCTION
        assert run.call_args.kwargs["port"] == 8123

    def test_serve_defaults_to_environment_mode(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GROUNDING_MODE", "mock")
        with patch("uvicorn.run") as run, patch("sys.argv", ["grounding", "serve"]):
            main()

        app = run.call_args.args[0]
        assert app.state.service.config.mode == RunMode.MOCK
        assert run.call_args.kwargs["host"] == app.state.service.config.api_host
